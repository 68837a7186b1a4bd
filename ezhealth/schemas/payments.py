"""Payment schemas.

Verification payloads arrive straight from the Razorpay checkout widget, so
the gateway's field names are accepted alongside the camelCase ones.
"""

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from ezhealth.schemas.appointments import AppointmentResponse
from ezhealth.schemas.common import CamelModel


class CreateOrderRequest(CamelModel):
    """Request to open a gateway order for an appointment."""

    amount: Decimal = Field(..., ge=0, decimal_places=2)
    appointment_id: str | None = None


class CreateOrderResponse(CamelModel):
    """Gateway order plus the appointment it was attached to."""

    success: bool = True
    order: dict[str, Any]
    appointment: AppointmentResponse


class VerifyPaymentRequest(BaseModel):
    """Signed checkout confirmation."""

    order_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("razorpay_order_id", "orderId", "order_id"),
    )
    payment_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("razorpay_payment_id", "paymentId", "payment_id"),
    )
    signature: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("razorpay_signature", "signature"),
    )


class PaymentFailedRequest(BaseModel):
    """Checkout failure reported by the patient's client."""

    order_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("razorpay_order_id", "orderId", "order_id"),
    )
    reason: str | None = Field(None, max_length=500)
