"""
app/models/payment.py

Purpose: Payment document model

- Gateway identity and external order/payment references
- Amount, currency and purchased hours
- Purchase order document reference for the manual path
"""

from enum import Enum
from datetime import datetime
from typing import Optional, Dict, Any

from bson import ObjectId


class PaymentGateway(str, Enum):
    RAZORPAY = "razorpay"
    PAYPAL = "paypal"
    PURCHASE_ORDER = "purchase_order"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


ONLINE_GATEWAYS = (PaymentGateway.RAZORPAY.value, PaymentGateway.PAYPAL.value)


def new_payment_document(
    user_id: ObjectId,
    gateway: str,
    amount: float,
    hours: float,
    currency: str,
    status: str,
    now: datetime,
    quotation_id: Optional[ObjectId] = None,
    order_id: Optional[str] = None,
    payment_id: Optional[str] = None,
    signature: Optional[str] = None,
    purchase_order_file: Optional[str] = None,
    file_type: Optional[str] = None,
    file_size: Optional[int] = None,
) -> Dict[str, Any]:
    document = {
        "user": user_id,
        "quotation": quotation_id,
        "gateway": gateway,
        "amount": amount,
        "currency": currency,
        "hours_purchased": hours,
        "status": status,
        "payment_date": now,
    }
    # Only set references that exist; the (gateway, order_id) unique index is partial
    optional = {
        "order_id": order_id,
        "payment_id": payment_id,
        "signature": signature,
        "purchase_order_file": purchase_order_file,
        "file_type": file_type,
        "file_size": file_size,
    }
    document.update({key: value for key, value in optional.items() if value is not None})
    return document
