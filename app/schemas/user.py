"""
app/schemas/user.py

Admin-side user management bodies.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal

from app.schemas.auth import CompanyProfile, _clean_email
from utils.constants import MAX_NAME_LENGTH, MAX_PHONE_LENGTH, MIN_PASSWORD_LENGTH


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    phone: Optional[str] = Field(default=None, max_length=MAX_PHONE_LENGTH)
    role: Literal["user", "admin", "company"] = "user"
    company: Optional[CompanyProfile] = None
    hours_balance: Optional[float] = Field(default=None, ge=0)
    is_verified: bool = True

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return _clean_email(v)


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=MAX_PHONE_LENGTH)
    role: Optional[Literal["user", "admin", "company"]] = None
    company: Optional[CompanyProfile] = None
    hours_balance: Optional[float] = Field(default=None, ge=0, description="Hour balance can never be negative")
    is_verified: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: Optional[str]) -> Optional[str]:
        return _clean_email(v)
