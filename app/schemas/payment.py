"""
app/schemas/payment.py

Payment order / verification bodies. Presence checks live in the payment
service so that missing amounts produce the same message for every gateway.
"""

from pydantic import BaseModel, Field
from typing import Optional


class CreateOrderRequest(BaseModel):
    amount: Optional[int] = Field(default=None, description="Amount in minor units (paise / cents)")
    hours: Optional[float] = None
    gateway: str = "razorpay"


class VerifyPaymentRequest(BaseModel):
    gateway: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    paypal_order_id: Optional[str] = None
    amount: Optional[float] = None
    hours: Optional[float] = None
    quotation_id: Optional[str] = None
