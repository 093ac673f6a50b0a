"""
app/schemas/quotation.py

JSON bodies for the admin and owner lifecycle actions.
Quotation creation and file uploads arrive as multipart forms instead.
"""

from pydantic import BaseModel, Field
from typing import Optional


class RaiseQuoteRequest(BaseModel):
    required_hour: float = Field(..., ge=0, description="Hours the project will consume")
    notes: Optional[str] = Field(default=None, max_length=1000)


class UpdateHourRequest(BaseModel):
    required_hour: float = Field(..., ge=0)


class DecisionRequest(BaseModel):
    # Checked by the lifecycle engine so that bad values surface as InvalidStatus
    status: Optional[str] = None


class PoStatusRequest(BaseModel):
    po_status: Optional[str] = None
