"""
app/schemas/auth.py

Request bodies for registration, login and self-service account updates.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal

from utils.validation_utils import normalize_email, validate_email
from utils.constants import MAX_NAME_LENGTH, MAX_PHONE_LENGTH, MIN_PASSWORD_LENGTH


class CompanyProfile(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=100)
    industry: Optional[str] = Field(default=None, max_length=100)
    gst_number: Optional[str] = Field(default=None, max_length=20)


def _clean_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = normalize_email(v)
    if not validate_email(v):
        raise ValueError("Please add a valid email")
    return v


class RegisterRequest(BaseModel):
    """Self-service sign up. Admin accounts are provisioned, never self-assigned."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: str = Field(..., description="Login email, stored lowercased")
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    phone: Optional[str] = Field(default=None, max_length=MAX_PHONE_LENGTH)
    role: Literal["user", "company"] = "user"
    company: Optional[CompanyProfile] = None

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ResendVerificationRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return normalize_email(v)


class UpdateDetailsRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=MAX_PHONE_LENGTH)
    company: Optional[CompanyProfile] = None

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: Optional[str]) -> Optional[str]:
        return _clean_email(v)


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
