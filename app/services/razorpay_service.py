"""
app/services/razorpay_service.py

Purpose: Razorpay REST client

- Creates orders (amount in paise, purchased hours in the notes)
- Reads orders back for verification
- Verifies checkout signatures (HMAC-SHA256 over "order_id|payment_id")
"""

import hashlib
import hmac
import httpx
from typing import Dict, Any, Optional

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from utils import time_utils

logger = get_logger(__name__)


class RazorpayService:
    """Service for talking to the Razorpay Orders API"""

    def __init__(self):
        self.key_id = settings.RAZORPAY_KEY_ID
        self.key_secret = settings.RAZORPAY_KEY_SECRET
        self.base_url = settings.RAZORPAY_BASE_URL.rstrip("/")
        self.currency = settings.RAZORPAY_CURRENCY
        self.timeout = settings.PAYMENT_TIMEOUT_SECONDS

    async def _request(self, method: str, path: str, action: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=payload,
                    auth=(self.key_id or "", self.key_secret or ""),
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Razorpay {action} failed: {e.response.status_code} - {e.response.text}")
            raise ExternalServiceError(f"Failed to {action}") from e
        except httpx.HTTPError as e:
            logger.error(f"Razorpay unreachable: {e}")
            raise ExternalServiceError(f"Failed to {action}") from e

    async def create_order(self, amount: int, hours: float) -> Dict[str, Any]:
        """
        Creates a Razorpay order.

        Args:
            amount: Amount in minor units (paise), as sent by the checkout form
            hours: Hours being bought; stored in the order notes and read back
                at verification so the credit matches what was paid for

        Returns:
            Razorpay order object

        Raises:
            ExternalServiceError: On any HTTP or transport failure
        """
        payload = {
            "amount": amount,
            "currency": self.currency,
            "receipt": f"receipt_{time_utils.timestamp_ms()}",
            "notes": {"hours": f"{hours:g}"},
        }
        order = await self._request("POST", "/v1/orders", "create order", payload)
        logger.info(f"✅ Razorpay order created: {order.get('id')}", extra={"gateway": "razorpay"})
        return order

    async def fetch_order(self, order_id: str) -> Dict[str, Any]:
        """Reads an order back, including its amount and notes."""
        return await self._request("GET", f"/v1/orders/{order_id}", "fetch order")

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new((self.key_secret or "").encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_signature(self, order_id: Optional[str], payment_id: Optional[str], signature: Optional[str]) -> bool:
        """
        Checks a checkout signature in constant time.
        """
        if not order_id or not payment_id or not signature:
            return False
        return hmac.compare_digest(self.expected_signature(order_id, payment_id), signature)


# Global service instance
_razorpay_service: Optional[RazorpayService] = None


def get_razorpay_service() -> RazorpayService:
    """Get or create the Razorpay client."""
    global _razorpay_service
    if _razorpay_service is None:
        _razorpay_service = RazorpayService()
    return _razorpay_service
