"""
app/schemas/rate_config.py
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class CreateRateConfigRequest(BaseModel):
    rate_per_hour: float = Field(..., ge=0, description="Rate cannot be negative")
    currency: str = Field(default="USD", min_length=1, max_length=3)
    effective_from: Optional[datetime] = None
    is_active: bool = True


class UpdateRateConfigRequest(BaseModel):
    rate_per_hour: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=1, max_length=3)
    effective_from: Optional[datetime] = None
    is_active: Optional[bool] = None
