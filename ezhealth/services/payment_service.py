"""Payment service: gateway orders and signed confirmations."""

import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from ezhealth.config import Settings, settings as default_settings
from ezhealth.core.exceptions import (
    ForbiddenException,
    GatewayException,
    InvalidStateException,
    NotFoundException,
    SignatureException,
    ValidationException,
)
from ezhealth.core.payment_gateway import PaymentGateway
from ezhealth.core.security import verify_payment_signature
from ezhealth.models.appointments import appointments
from ezhealth.schemas.appointments import AppointmentResponse, AppointmentStatus, PaymentStatus

logger = structlog.get_logger(__name__)

UNPAYABLE_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED})


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to the smallest currency unit (e.g. paise)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_receipt(appointment_id: UUID) -> str:
    """Merchant receipt, salted with the current time so each attempt is unique."""
    return f"apt_{appointment_id.hex[-8:]}_{int(time.time() * 1000)}"


class PaymentService:
    """Service for the gateway order / verify handshake.

    ``paymentStatus`` moves Pending -> Paid | Failed. A new order may be
    opened after a failure; nothing leaves Paid.
    """

    def __init__(
        self,
        db: AsyncSession,
        gateway: PaymentGateway | None = None,
        settings: Settings = default_settings,
    ):
        """Initialize service; only order creation needs the gateway client."""
        self.db = db
        self.gateway = gateway
        self.settings = settings

    async def _get_by_order_ref(self, order_ref: str) -> RowMapping:
        result = await self.db.execute(
            select(appointments).where(appointments.c.order_ref == order_ref)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("No appointment found for this order ID")
        return row

    async def create_order(
        self,
        appointment_id: str | None,
        amount: Decimal,
        patient_id: UUID,
    ) -> tuple[dict[str, Any], AppointmentResponse]:
        """
        Open a gateway order and attach it to the appointment.

        The appointment is only written after the gateway succeeds.

        Args:
            appointment_id: Appointment ID as sent by the client
            amount: Amount in major currency units
            patient_id: Requesting patient

        Returns:
            The gateway order and the updated appointment

        Raises:
            ValidationException: If the appointment id is missing or malformed
            NotFoundException: If appointment not found
            ForbiddenException: If the patient does not own it
            InvalidStateException: If it is already paid, cancelled or rejected
            GatewayException: If the gateway call fails
        """
        if not appointment_id or appointment_id == "undefined":
            raise ValidationException("appointmentId is missing or invalid")
        try:
            appointment_uuid = UUID(appointment_id)
        except ValueError:
            raise ValidationException("appointmentId is missing or invalid") from None

        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_uuid)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("Appointment not found")
        if row["patient_id"] != patient_id:
            raise ForbiddenException("Not authorized to pay for this appointment")
        if row["payment_status"] == PaymentStatus.PAID.value:
            raise InvalidStateException("Appointment is already paid")
        if AppointmentStatus(row["status"]) in UNPAYABLE_STATUSES:
            raise InvalidStateException("Cannot pay for this appointment")
        if self.gateway is None:
            raise GatewayException("Payment gateway is not configured")

        order = await self.gateway.create_order(
            amount=to_minor_units(amount),
            currency=self.settings.payment_currency,
            receipt=build_receipt(appointment_uuid),
            notes={"appointmentId": str(appointment_uuid)},
        )

        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_uuid,
                appointments.c.payment_status != PaymentStatus.PAID.value,
            )
            .values(
                order_ref=order["id"],
                amount=amount,
                payment_status=PaymentStatus.PENDING.value,
            )
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        updated = result.mappings().first()
        if updated is None:
            await self.db.rollback()
            raise InvalidStateException("Appointment is already paid")
        await self.db.commit()

        logger.info(
            "payment_order_created",
            appointment_id=str(appointment_uuid),
            order_ref=order["id"],
            amount=str(amount),
        )
        return order, AppointmentResponse.model_validate(dict(updated))

    async def verify_payment(
        self,
        order_ref: str,
        payment_ref: str,
        signature: str,
    ) -> AppointmentResponse:
        """
        Verify a signed checkout confirmation and mark the appointment paid.

        Replaying the confirmation that already settled the appointment
        returns it unchanged; any other confirmation for a paid order is
        rejected.

        Raises:
            NotFoundException: If no appointment carries this order
            SignatureException: If the signature does not match
            InvalidStateException: If the order was settled differently or failed
        """
        row = await self._get_by_order_ref(order_ref)

        if not verify_payment_signature(
            order_ref, payment_ref, signature, self.settings.razorpay_key_secret
        ):
            logger.warning(
                "payment_signature_mismatch",
                appointment_id=str(row["id"]),
                order_ref=order_ref,
            )
            raise SignatureException("Payment verification failed")

        if row["payment_status"] == PaymentStatus.PAID.value:
            if row["payment_ref"] == payment_ref:
                return AppointmentResponse.model_validate(dict(row))
            raise InvalidStateException("Payment already verified for this order")
        if row["payment_status"] != PaymentStatus.PENDING.value:
            raise InvalidStateException("Payment for this order has failed, create a new order")

        stmt = (
            update(appointments)
            .where(
                appointments.c.id == row["id"],
                appointments.c.order_ref == order_ref,
                appointments.c.payment_status == PaymentStatus.PENDING.value,
            )
            .values(
                payment_status=PaymentStatus.PAID.value,
                payment_ref=payment_ref,
                payment_signature=signature,
            )
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        updated = result.mappings().first()
        if updated is None:
            await self.db.rollback()
            raise InvalidStateException("Appointment payment changed concurrently, please retry")
        await self.db.commit()

        logger.info(
            "payment_verified",
            appointment_id=str(updated["id"]),
            order_ref=order_ref,
            payment_ref=payment_ref,
        )
        return AppointmentResponse.model_validate(dict(updated))

    async def mark_failed(
        self,
        order_ref: str,
        patient_id: UUID,
        reason: str | None = None,
    ) -> AppointmentResponse:
        """
        Record a checkout failure reported by the patient.

        Raises:
            NotFoundException: If no appointment carries this order
            ForbiddenException: If the patient does not own it
            InvalidStateException: If the payment is already settled
        """
        row = await self._get_by_order_ref(order_ref)
        if row["patient_id"] != patient_id:
            raise ForbiddenException("Not authorized to update this payment")
        if row["payment_status"] == PaymentStatus.FAILED.value:
            return AppointmentResponse.model_validate(dict(row))
        if row["payment_status"] != PaymentStatus.PENDING.value:
            raise InvalidStateException("Payment is already settled")

        stmt = (
            update(appointments)
            .where(
                appointments.c.id == row["id"],
                appointments.c.payment_status == PaymentStatus.PENDING.value,
            )
            .values(payment_status=PaymentStatus.FAILED.value)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        updated = result.mappings().first()
        if updated is None:
            await self.db.rollback()
            raise InvalidStateException("Payment is already settled")
        await self.db.commit()

        logger.info(
            "payment_marked_failed",
            appointment_id=str(row["id"]),
            order_ref=order_ref,
            reason=reason,
        )
        return AppointmentResponse.model_validate(dict(updated))
