"""
app/services/paypal_service.py

Purpose: PayPal Orders v2 client

- OAuth client-credentials access token
- Create order (intent CAPTURE)
- Capture order
"""

import httpx
from typing import Dict, Any, Optional

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


class PayPalService:
    """Service for talking to the PayPal REST API"""

    def __init__(self):
        self.client_id = settings.PAYPAL_CLIENT_ID
        self.client_secret = settings.PAYPAL_CLIENT_SECRET
        self.base_url = settings.paypal_base_url
        self.currency = settings.PAYPAL_CURRENCY
        self.timeout = settings.PAYMENT_TIMEOUT_SECONDS

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{self.base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id or "", self.client_secret or ""),
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _post(self, path: str, body: Dict[str, Any], action: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token = await self._access_token(client)
                response = await client.post(
                    f"{self.base_url}{path}",
                    json=body,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                        "Prefer": "return=representation",
                    },
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"PayPal {action} failed: {e.response.status_code} - {e.response.text}")
            raise ExternalServiceError(f"PayPal {action} failed") from e
        except (httpx.HTTPError, KeyError) as e:
            logger.error(f"PayPal {action} error: {e}")
            raise ExternalServiceError(f"PayPal {action} failed") from e

    async def create_order(self, amount: int, hours: float) -> Dict[str, Any]:
        """
        Creates a PayPal order.

        Args:
            amount: Amount in minor units; PayPal takes major units
            hours: Hours being bought, used in the description and carried
                back on the capture as `custom_id`
        """
        body = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {
                    "currency_code": self.currency,
                    "value": f"{amount / 100:.2f}",
                },
                "description": f"Purchase of {hours:g} hours",
                "custom_id": f"{hours:g}",
            }],
        }
        order = await self._post("/v2/checkout/orders", body, "order")
        logger.info(f"✅ PayPal order created: {order.get('id')}", extra={"gateway": "paypal"})
        return order

    async def capture_order(self, order_id: str) -> Dict[str, Any]:
        """
        Captures an approved order. The caller checks `status == "COMPLETED"`.
        """
        result = await self._post(f"/v2/checkout/orders/{order_id}/capture", {}, "capture")
        logger.info(
            f"PayPal capture {order_id}: {result.get('status')}",
            extra={"gateway": "paypal", "status": result.get("status")},
        )
        return result


# Global service instance
_paypal_service: Optional[PayPalService] = None


def get_paypal_service() -> PayPalService:
    """Get or create the PayPal client."""
    global _paypal_service
    if _paypal_service is None:
        _paypal_service = PayPalService()
    return _paypal_service
