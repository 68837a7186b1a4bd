"""Appointment service for business logic.

Lifecycle (status)::

    Pending  -> Accepted | Rejected | Completed | Cancelled
    Accepted -> Completed | Cancelled
    Rejected, Completed, Cancelled are terminal.

Cancelled is reached only through a patient cancel; the other moves belong
to the appointment's doctor. Payment status is handled by PaymentService.
"""

from datetime import date
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ezhealth.config import Settings, settings as default_settings
from ezhealth.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from ezhealth.core.slots import is_valid_slot, parse_appointment_date, remaining_slots
from ezhealth.models.appointments import appointments
from ezhealth.models.doctors import doctors
from ezhealth.models.users import users
from ezhealth.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentSummary,
    PaymentStatus,
)
from ezhealth.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

DOCTOR_SETTABLE_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.ACCEPTED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.COMPLETED,
    }
)

CANCELLABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.ACCEPTED})

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {
            AppointmentStatus.ACCEPTED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.ACCEPTED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

NOTIFY_ON = frozenset({AppointmentStatus.ACCEPTED, AppointmentStatus.REJECTED})


def build_meeting_link(appointment_id: UUID, base_url: str) -> str:
    """Video consultation URL for an appointment; stable for a given id."""
    return f"{base_url.rstrip('/')}/ezhealth-{appointment_id}"


class AppointmentService:
    """Service for managing appointments."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationService | None = None,
        settings: Settings = default_settings,
    ):
        """Initialize service with database session and optional e-mail notifier."""
        self.db = db
        self.notifier = notifier
        self.settings = settings

    async def _get_row(self, appointment_id: UUID) -> RowMapping:
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_id)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("Appointment not found")
        return row

    async def _compare_and_set(
        self,
        appointment_id: UUID,
        observed_status: str,
        values: dict[str, Any],
    ) -> RowMapping:
        """
        Apply ``values`` only if the status is still ``observed_status``.

        Raises:
            InvalidStateException: If another request changed the status first
        """
        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.status == observed_status,
            )
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if row is None:
            await self.db.rollback()
            raise InvalidStateException("Appointment was modified by another request, please retry")
        await self.db.commit()
        return row

    async def _taken_slots(self, doctor_id: UUID, on_date: date) -> set[str]:
        stmt = select(appointments.c.appointment_time).where(
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_date == on_date,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def list_available_slots(self, doctor_id: UUID, on_date: date | str) -> list[str]:
        """
        List free slots for a doctor on a date.

        Args:
            doctor_id: Doctor ID
            on_date: Calendar date or its ISO string

        Returns:
            Slot labels in catalog order

        Raises:
            ValidationException: If the date cannot be parsed
        """
        parsed = parse_appointment_date(on_date)
        return remaining_slots(await self._taken_slots(doctor_id, parsed))

    async def _find_active_booking(
        self,
        doctor_id: UUID,
        on_date: date,
        appointment_time: str,
    ) -> RowMapping | None:
        stmt = select(appointments.c.id).where(
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_date == on_date,
            appointments.c.appointment_time == appointment_time,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        )
        result = await self.db.execute(stmt)
        return result.mappings().first()

    async def book(self, patient_id: UUID, data: AppointmentCreate) -> AppointmentResponse:
        """
        Book a slot for a patient.

        The pre-check gives the common case a clean error; the partial unique
        index on active slots settles concurrent bookings.

        Raises:
            ValidationException: If the time is not a catalog slot
            NotFoundException: If the doctor is unknown or unverified
            ConflictException: If the slot is already taken
        """
        if not is_valid_slot(data.appointment_time):
            raise ValidationException("Invalid appointment time. Choose one of the available slots")

        result = await self.db.execute(
            select(doctors.c.department, doctors.c.consultation_fee, doctors.c.is_verified).where(
                doctors.c.id == data.doctor_id
            )
        )
        doctor = result.mappings().first()
        if doctor is None or not doctor["is_verified"]:
            raise NotFoundException("Doctor not found")

        if await self._find_active_booking(
            data.doctor_id, data.appointment_date, data.appointment_time
        ):
            logger.info(
                "appointment_slot_conflict",
                doctor_id=str(data.doctor_id),
                appointment_date=str(data.appointment_date),
                appointment_time=data.appointment_time,
            )
            raise ConflictException()

        fee = doctor["consultation_fee"]
        values = {
            "patient_id": patient_id,
            "doctor_id": data.doctor_id,
            "appointment_date": data.appointment_date,
            "appointment_time": data.appointment_time,
            "department": data.department or doctor["department"],
            "status": AppointmentStatus.PENDING.value,
            "payment_status": PaymentStatus.PENDING.value,
            "amount": fee if fee is not None else self.settings.default_consultation_fee,
            "meeting_link": "",
            "has_visited": False,
        }

        stmt = insert(appointments).values(**values).returning(appointments)
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(
                "appointment_slot_conflict",
                doctor_id=str(data.doctor_id),
                appointment_date=str(data.appointment_date),
                appointment_time=data.appointment_time,
                concurrent=True,
            )
            raise ConflictException() from e

        logger.info(
            "appointment_booked",
            appointment_id=str(row["id"]),
            patient_id=str(patient_id),
            doctor_id=str(data.doctor_id),
        )
        return AppointmentResponse.model_validate(dict(row))

    async def cancel(self, appointment_id: UUID, patient_id: UUID) -> None:
        """
        Cancel a patient's own appointment, freeing its slot.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the patient does not own it
            InvalidStateException: Unless it is Pending or Accepted
        """
        row = await self._get_row(appointment_id)

        if row["patient_id"] != patient_id:
            raise ForbiddenException("Not authorized to cancel this appointment")

        if AppointmentStatus(row["status"]) not in CANCELLABLE_STATUSES:
            raise InvalidStateException("Cannot cancel this appointment")

        await self._compare_and_set(
            appointment_id,
            row["status"],
            {"status": AppointmentStatus.CANCELLED.value},
        )
        logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment_id),
            previous_status=row["status"],
        )

    async def update_status(
        self,
        appointment_id: UUID,
        doctor_id: UUID,
        new_status: str,
    ) -> AppointmentResponse:
        """
        Move an appointment along its lifecycle on behalf of its doctor.

        Accepting derives the meeting link once; it is never cleared.
        Completing marks the patient as visited. Re-applying the current
        status is a no-op.

        Raises:
            ValidationException: If the status is not doctor-settable
            NotFoundException: If appointment not found
            ForbiddenException: If the doctor does not own it
            InvalidStateException: If the transition is not allowed
        """
        try:
            target = AppointmentStatus(new_status)
        except ValueError:
            raise ValidationException("Invalid status") from None
        if target not in DOCTOR_SETTABLE_STATUSES:
            raise ValidationException("Invalid status")

        row = await self._get_row(appointment_id)

        if row["doctor_id"] != doctor_id:
            raise ForbiddenException("Unauthorized to update this appointment")

        current = AppointmentStatus(row["status"])
        if target == current:
            return AppointmentResponse.model_validate(dict(row))

        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStateException(
                f"Cannot change appointment status from {current.value} to {target.value}"
            )

        values: dict[str, Any] = {"status": target.value}
        if target == AppointmentStatus.ACCEPTED and not row["meeting_link"]:
            values["meeting_link"] = build_meeting_link(
                appointment_id, self.settings.meeting_link_base_url
            )
        if target == AppointmentStatus.COMPLETED:
            values["has_visited"] = True

        updated = await self._compare_and_set(appointment_id, current.value, values)
        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment_id),
            old_status=current.value,
            new_status=target.value,
        )

        if target in NOTIFY_ON:
            await self._notify_status_change(updated)

        return AppointmentResponse.model_validate(dict(updated))

    async def _notify_status_change(self, appointment: RowMapping) -> None:
        if self.notifier is None:
            return
        try:
            result = await self.db.execute(
                select(users.c.email, users.c.first_name, users.c.last_name).where(
                    users.c.id == appointment["patient_id"]
                )
            )
            patient = result.mappings().first()
            if patient is None or not patient["email"]:
                logger.warning(
                    "appointment_email_skipped",
                    appointment_id=str(appointment["id"]),
                    reason="patient email unknown",
                )
                return
            await self.notifier.send_appointment_status_email(
                to=patient["email"],
                patient_name=f"{patient['first_name']} {patient['last_name']}",
                appointment=dict(appointment),
            )
        except Exception as e:
            # Status change is already committed
            logger.warning(
                "appointment_email_failed",
                appointment_id=str(appointment["id"]),
                error=str(e),
            )

    def _summary_query(self):
        patient_name = (users.c.first_name + " " + users.c.last_name).label("patient_name")
        doctor_name = (doctors.c.first_name + " " + doctors.c.last_name).label("doctor_name")
        columns = [c for c in appointments.c if c.name != "department"]
        return (
            select(
                *columns,
                func.coalesce(appointments.c.department, doctors.c.department).label("department"),
                patient_name,
                users.c.email.label("patient_email"),
                users.c.phone.label("patient_phone"),
                doctor_name,
            )
            .select_from(appointments)
            .outerjoin(users, users.c.id == appointments.c.patient_id)
            .outerjoin(doctors, doctors.c.id == appointments.c.doctor_id)
            .order_by(appointments.c.appointment_date.desc(), appointments.c.created_at.desc())
        )

    async def _list(self, *conditions: Any) -> AppointmentListResponse:
        stmt = self._summary_query()
        if conditions:
            stmt = stmt.where(*conditions)
        result = await self.db.execute(stmt)
        items = [AppointmentSummary.model_validate(dict(row)) for row in result.mappings().all()]
        return AppointmentListResponse(total=len(items), appointments=items)

    async def list_for_doctor(self, doctor_id: UUID) -> AppointmentListResponse:
        """Appointments assigned to a doctor, newest date first."""
        return await self._list(appointments.c.doctor_id == doctor_id)

    async def list_for_patient(self, patient_id: UUID) -> AppointmentListResponse:
        """Appointments booked by a patient, newest date first."""
        return await self._list(appointments.c.patient_id == patient_id)

    async def list_all(self) -> AppointmentListResponse:
        """Every appointment with participant names (admin view)."""
        return await self._list()
