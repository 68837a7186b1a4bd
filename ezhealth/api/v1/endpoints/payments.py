"""Payment endpoints."""

from fastapi import APIRouter, status

from ezhealth.dependencies import DatabaseSession, PatientPrincipal, PaymentGatewayDep
from ezhealth.schemas.appointments import AppointmentEnvelope
from ezhealth.schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentFailedRequest,
    VerifyPaymentRequest,
)
from ezhealth.services.payment_service import PaymentService

router = APIRouter()


@router.post(
    "/create-order",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_200_OK,
    summary="Create a gateway order for an appointment",
)
async def create_order(
    data: CreateOrderRequest,
    principal: PatientPrincipal,
    db: DatabaseSession,
    gateway: PaymentGatewayDep,
) -> CreateOrderResponse:
    """
    Open a payment order and attach it to the appointment.

    Args:
        data: Amount and appointment ID
        principal: Authenticated patient
        db: Database session
        gateway: Payment gateway client

    Returns:
        Gateway order and updated appointment
    """
    service = PaymentService(db, gateway)
    order, appointment = await service.create_order(data.appointment_id, data.amount, principal.id)
    return CreateOrderResponse(order=order, appointment=appointment)


@router.post(
    "/verify",
    response_model=AppointmentEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Verify a signed payment confirmation",
)
async def verify_payment(
    data: VerifyPaymentRequest,
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> AppointmentEnvelope:
    """
    Check the gateway signature and mark the appointment paid.

    Args:
        data: Order, payment and signature from the checkout
        principal: Authenticated patient
        db: Database session

    Returns:
        Updated appointment
    """
    service = PaymentService(db)
    appointment = await service.verify_payment(data.order_id, data.payment_id, data.signature)
    return AppointmentEnvelope(message="Payment verified successfully", appointment=appointment)


@router.post(
    "/failed",
    response_model=AppointmentEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Report a failed checkout",
)
async def payment_failed(
    data: PaymentFailedRequest,
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> AppointmentEnvelope:
    """Mark the appointment's pending payment as failed."""
    service = PaymentService(db)
    appointment = await service.mark_failed(data.order_id, principal.id, data.reason)
    return AppointmentEnvelope(message="Payment marked as failed", appointment=appointment)
