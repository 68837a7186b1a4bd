"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ezhealth.core.slots import parse_appointment_date
from ezhealth.dependencies import (
    AdminPrincipal,
    DatabaseSession,
    DoctorPrincipal,
    NotifierDep,
    PatientPrincipal,
)
from ezhealth.schemas.appointments import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentListResponse,
    AppointmentStatusUpdate,
    AvailableSlotsResponse,
)
from ezhealth.schemas.common import MessageResponse
from ezhealth.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    summary="List free slots for a doctor on a date",
)
async def available_slots(
    db: DatabaseSession,
    doctor_id: UUID = Query(..., alias="doctorId"),
    appointment_date: str = Query(..., alias="date", description="YYYY-MM-DD"),
) -> AvailableSlotsResponse:
    """
    List the slot labels still bookable for a doctor on a date.

    Args:
        db: Database session
        doctor_id: Doctor ID
        appointment_date: Calendar date

    Returns:
        Free slots in catalog order
    """
    on_date = parse_appointment_date(appointment_date)
    service = AppointmentService(db)
    slots = await service.list_available_slots(doctor_id, on_date)
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        appointment_date=on_date,
        available_slots=slots,
    )


@router.post(
    "/book",
    response_model=AppointmentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> AppointmentEnvelope:
    """
    Book a slot for the authenticated patient.

    Args:
        data: Doctor, date, slot and optional department
        principal: Authenticated patient
        db: Database session

    Returns:
        Created appointment
    """
    service = AppointmentService(db)
    appointment = await service.book(principal.id, data)
    return AppointmentEnvelope(message="Appointment booked successfully", appointment=appointment)


@router.get(
    "/all",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List all appointments (admin only)",
)
async def list_all_appointments(
    principal: AdminPrincipal,
    db: DatabaseSession,
) -> AppointmentListResponse:
    """All appointments with patient and doctor names."""
    return await AppointmentService(db).list_all()


@router.get(
    "/me",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my appointments (patient)",
)
async def list_patient_appointments(
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> AppointmentListResponse:
    """Appointments booked by the authenticated patient."""
    return await AppointmentService(db).list_for_patient(principal.id)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my appointments (doctor)",
)
async def list_doctor_appointments(
    principal: DoctorPrincipal,
    db: DatabaseSession,
) -> AppointmentListResponse:
    """Appointments assigned to the authenticated doctor."""
    return await AppointmentService(db).list_for_doctor(principal.id)


@router.put(
    "/{appointment_id}/cancel",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel an appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    principal: PatientPrincipal,
    db: DatabaseSession,
) -> MessageResponse:
    """
    Cancel one of the patient's Pending or Accepted appointments.

    Args:
        appointment_id: Appointment ID
        principal: Authenticated patient
        db: Database session

    Returns:
        Confirmation message
    """
    await AppointmentService(db).cancel(appointment_id, principal.id)
    return MessageResponse(message="Appointment cancelled")


@router.put(
    "/{appointment_id}/status",
    response_model=AppointmentEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status (doctor)",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    principal: DoctorPrincipal,
    db: DatabaseSession,
    notifier: NotifierDep,
) -> AppointmentEnvelope:
    """
    Accept, reject or complete an appointment.

    Args:
        appointment_id: Appointment ID
        data: New status
        principal: Authenticated doctor
        db: Database session
        notifier: E-mail notifier for the patient

    Returns:
        Updated appointment
    """
    service = AppointmentService(db, notifier=notifier)
    appointment = await service.update_status(appointment_id, principal.id, data.status)
    return AppointmentEnvelope(
        message=f"Appointment status updated to {appointment.status.value}",
        appointment=appointment,
    )
