"""
app/services/payment_service.py

Purpose: Hour purchases

- Gateway order creation (Razorpay, PayPal)
- Verification and crediting, idempotent per (gateway, order_id)
- Payment history
- Purchase order submission (manual approval path, no credit)
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import (
    DuplicatePaymentError,
    ForbiddenError,
    InvalidGatewayError,
    InvalidSignatureError,
    PaymentIncompleteError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_payments_collection, get_quotations_collection, to_object_id
from app.flow.states import PoStatus
from app.models.payment import (
    ONLINE_GATEWAYS,
    PaymentGateway,
    PaymentStatus,
    new_payment_document,
)
from app.models.quotation import owner_id
from app.models.user import Role
from app.services import file_service, user_service
from app.services.notification_service import NotificationService, get_notification_service
from app.services.paypal_service import PayPalService, get_paypal_service
from app.services.razorpay_service import RazorpayService, get_razorpay_service
from utils import time_utils
from utils.constants import EVENT_PAYMENT_VERIFIED, MSG_QUOTATION_NOT_FOUND

logger = get_logger(__name__)


def _require_amount_and_hours(amount, hours) -> None:
    if not amount or not hours or amount <= 0 or hours <= 0:
        raise ValidationError("Amount and hours are required")


def _paypal_capture(capture: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return capture["purchase_units"][0]["payments"]["captures"][0]
    except (KeyError, IndexError, TypeError):
        return {}


def _paypal_minor_units(entry: Dict[str, Any]) -> Optional[int]:
    try:
        return int(round(float(entry["amount"]["value"]) * 100))
    except (KeyError, TypeError, ValueError):
        return None


def _match_order(amount, hours, paid_amount, paid_hours) -> float:
    """
    Compares the client's amount and hours with what the gateway recorded.

    Returns:
        Hours to credit, as recorded by the gateway
    """
    try:
        paid_hours = float(paid_hours)
        paid_amount = float(paid_amount)
    except (TypeError, ValueError):
        logger.warning("Gateway order carries no amount or hours")
        raise ValidationError("Amount and hours do not match the order")
    if abs(paid_amount - float(amount)) > 0.5 or abs(paid_hours - float(hours)) > 1e-9:
        logger.warning(
            f"Payment terms mismatch: client {amount}/{hours}h, gateway {paid_amount:g}/{paid_hours:g}h"
        )
        raise ValidationError("Amount and hours do not match the order")
    return paid_hours


class PaymentService:
    """Service for buying hours and recording payments."""

    def __init__(
        self,
        razorpay: RazorpayService,
        paypal: PayPalService,
        notifier: NotificationService,
    ):
        self.razorpay = razorpay
        self.paypal = paypal
        self.notifier = notifier

    async def create_order(self, amount: Optional[int], hours: Optional[float], gateway: str = "razorpay") -> Dict[str, Any]:
        """
        Opens an order with the chosen gateway.

        Args:
            amount: Amount in minor units
            hours: Hours being bought
            gateway: "razorpay" or "paypal"

        Returns:
            {"order": gateway order object, "gateway": gateway}
        """
        _require_amount_and_hours(amount, hours)

        if gateway == PaymentGateway.RAZORPAY.value:
            order = await self.razorpay.create_order(amount, hours)
        elif gateway == PaymentGateway.PAYPAL.value:
            order = await self.paypal.create_order(amount, hours)
        else:
            raise InvalidGatewayError()

        return {"order": order, "gateway": gateway}

    async def _ensure_not_recorded(self, gateway: str, order_id: str) -> None:
        existing = await get_payments_collection().find_one(
            {"gateway": gateway, "order_id": order_id}, {"_id": 1}
        )
        if existing:
            raise DuplicatePaymentError()

    async def verify(self, user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Verifies a completed checkout, records it and credits the hours.

        A (gateway, order_id) pair is credited at most once: the pre-check
        rejects repeats before any capture, and the unique index rejects a
        concurrent duplicate insert. The credited hours are the ones the
        gateway recorded for the order; a client amount or hour count that
        differs from them is rejected.

        Returns:
            {"payment", "hours_balance"}
        """
        gateway = data.get("gateway")
        if gateway not in ONLINE_GATEWAYS:
            raise InvalidGatewayError()

        amount = data.get("amount")
        hours = data.get("hours")
        _require_amount_and_hours(amount, hours)

        quotation_id = None
        if data.get("quotation_id"):
            quotation_id = to_object_id(data["quotation_id"], "Quotation")

        with LogContext(user_id=str(user["_id"]), gateway=gateway):
            if gateway == PaymentGateway.RAZORPAY.value:
                order_id = data.get("razorpay_order_id")
                payment_id = data.get("razorpay_payment_id")
                signature = data.get("razorpay_signature")

                if not self.razorpay.verify_signature(order_id, payment_id, signature):
                    logger.warning("Rejected payment with invalid signature")
                    raise InvalidSignatureError()
                await self._ensure_not_recorded(gateway, order_id)
                order = await self.razorpay.fetch_order(order_id)
                hours = _match_order(amount, hours, order.get("amount"), (order.get("notes") or {}).get("hours"))
                currency = settings.RAZORPAY_CURRENCY
            else:
                order_id = data.get("paypal_order_id")
                signature = None
                if not order_id:
                    raise ValidationError("PayPal order id is required")

                await self._ensure_not_recorded(gateway, order_id)
                capture = await self.paypal.capture_order(order_id)
                if capture.get("status") != "COMPLETED":
                    raise PaymentIncompleteError()
                entry = _paypal_capture(capture)
                payment_id = entry.get("id")
                hours = _match_order(amount, hours, _paypal_minor_units(entry), entry.get("custom_id"))
                currency = settings.PAYPAL_CURRENCY

            document = new_payment_document(
                user_id=user["_id"],
                gateway=gateway,
                amount=amount,
                hours=hours,
                currency=currency,
                status=PaymentStatus.SUCCESS.value,
                now=time_utils.utcnow(),
                quotation_id=quotation_id,
                order_id=order_id,
                payment_id=payment_id,
                signature=signature,
            )
            try:
                result = await get_payments_collection().insert_one(document)
            except DuplicateKeyError:
                logger.warning(f"Concurrent verification of order {order_id} rejected")
                raise DuplicatePaymentError()
            document["_id"] = result.inserted_id

            updated = await user_service.credit_hours(user["_id"], hours)
            balance = (updated or {}).get("hours_balance")
            logger.info(
                f"💰 Payment verified: +{hours:g} hours",
                extra={"payment_id": str(result.inserted_id), "status": document["status"]},
            )

        await self.notifier.publish(
            EVENT_PAYMENT_VERIFIED,
            {"payment_id": document["_id"], "hours": hours, "hours_balance": balance},
            user_id=user["_id"],
        )
        return {"payment": document, "hours_balance": balance}

    async def history(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        cursor = get_payments_collection().find(
            {"user": user["_id"]},
            sort=[("payment_date", DESCENDING)],
        )
        return await cursor.to_list(length=None)

    async def create_purchase_order(
        self,
        user: Dict[str, Any],
        amount: Optional[float],
        hours: Optional[float],
        quotation_id: Optional[str],
        upload: Optional[UploadFile],
    ) -> Dict[str, Any]:
        """
        Stores a purchase order document and links a pending payment to the quotation.

        Nothing is credited here; the PO is approved out of band.
        """
        _require_amount_and_hours(amount, hours)
        if not quotation_id:
            raise ValidationError("Quotation ID is required")

        quotation = await get_quotations_collection().find_one(
            {"_id": to_object_id(quotation_id, "Quotation")}
        )
        if not quotation:
            raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)
        if user.get("role") != Role.ADMIN.value and owner_id(quotation) != user["_id"]:
            raise ForbiddenError("Not authorized to submit a purchase order for this quotation")

        stored = await file_service.save_upload(upload, file_service.purchase_order_rule())

        document: Dict[str, Any] = {}
        try:
            document = new_payment_document(
                user_id=user["_id"],
                gateway=PaymentGateway.PURCHASE_ORDER.value,
                amount=amount,
                hours=hours,
                currency=settings.RAZORPAY_CURRENCY,
                status=PaymentStatus.PENDING.value,
                now=time_utils.utcnow(),
                quotation_id=quotation["_id"],
                purchase_order_file=stored.relative_path,
                file_type=stored.file_type,
                file_size=stored.size,
            )
            result = await get_payments_collection().insert_one(document)
            document["_id"] = result.inserted_id

            await get_quotations_collection().update_one(
                {"_id": quotation["_id"]},
                {"$set": {
                    "payment": result.inserted_id,
                    "po_status": PoStatus.REQUESTED.value,
                    "updated_at": time_utils.utcnow(),
                }},
            )
        except Exception:
            if document.get("_id") is not None:
                await get_payments_collection().delete_one({"_id": document["_id"]})
            file_service.delete_stored_file(stored.relative_path)
            raise

        logger.info(
            "Purchase order submitted",
            extra={
                "user_id": str(user["_id"]),
                "quotation_id": str(quotation["_id"]),
                "payment_id": str(result.inserted_id),
            },
        )
        return document


# Global service instance
_payment_service: Optional[PaymentService] = None


def get_payment_service() -> PaymentService:
    """Get or create the payment service."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService(
            razorpay=get_razorpay_service(),
            paypal=get_paypal_service(),
            notifier=get_notification_service(),
        )
    return _payment_service
