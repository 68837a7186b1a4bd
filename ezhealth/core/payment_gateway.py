"""Razorpay payment gateway client."""

from typing import Any

import httpx
import structlog

from ezhealth.config import Settings
from ezhealth.core.exceptions import GatewayException

logger = structlog.get_logger(__name__)


class PaymentGateway:
    """
    Thin async client for the Razorpay Orders API.

    The underlying ``httpx.AsyncClient`` is created by the caller (the
    application lifespan) and closed with :meth:`aclose`.
    """

    def __init__(self, client: httpx.AsyncClient, key_secret: str):
        """Initialize with a configured HTTP client and the signing secret."""
        self.client = client
        self.key_secret = key_secret

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentGateway":
        """Build a gateway with basic auth against the configured base URL."""
        client = httpx.AsyncClient(
            base_url=settings.razorpay_base_url,
            auth=(settings.razorpay_key_id, settings.razorpay_key_secret),
            timeout=settings.payment_gateway_timeout,
            headers={"Content-Type": "application/json"},
        )
        return cls(client, settings.razorpay_key_secret)

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Create a payment order.

        Args:
            amount: Amount in the smallest currency unit (paise for INR)
            currency: ISO currency code
            receipt: Merchant receipt identifier, unique per attempt
            notes: Free-form key/value pairs stored with the order

        Returns:
            Order object as returned by the gateway (``id`` is the order ref)

        Raises:
            GatewayException: On transport errors or non-2xx responses
        """
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            response = await self.client.post("/orders", json=payload)
            response.raise_for_status()
            order = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "payment_gateway_failed",
                status_code=e.response.status_code,
                body=e.response.text[:500],
                receipt=receipt,
            )
            raise GatewayException("Failed to create payment order") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("payment_gateway_failed", error=str(e), receipt=receipt)
            raise GatewayException("Failed to create payment order") from e

        if not isinstance(order, dict) or not order.get("id"):
            logger.error("payment_gateway_failed", error="order id missing", receipt=receipt)
            raise GatewayException("Failed to create payment order")

        return order

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
