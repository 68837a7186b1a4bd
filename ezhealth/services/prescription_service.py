"""Prescription service."""

from uuid import UUID

import structlog
from sqlalchemy import insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from ezhealth.core.exceptions import ForbiddenException, NotFoundException
from ezhealth.models.appointments import appointments
from ezhealth.models.doctors import doctors
from ezhealth.models.prescriptions import prescriptions
from ezhealth.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse

logger = structlog.get_logger(__name__)


class PrescriptionService:
    """Prescriptions issued by doctors against their appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def create(self, doctor_id: UUID, data: PrescriptionCreate) -> PrescriptionResponse:
        """
        Record a prescription for one of the doctor's appointments.

        The patient is taken from the appointment, not from the request.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the appointment belongs to another doctor
        """
        result = await self.db.execute(
            select(appointments.c.doctor_id, appointments.c.patient_id).where(
                appointments.c.id == data.appointment_id
            )
        )
        appointment = result.mappings().first()
        if appointment is None:
            raise NotFoundException("Appointment not found")
        if appointment["doctor_id"] != doctor_id:
            raise ForbiddenException("Not authorized to prescribe for this appointment")

        stmt = (
            insert(prescriptions)
            .values(
                doctor_id=doctor_id,
                patient_id=appointment["patient_id"],
                appointment_id=data.appointment_id,
                medications=data.medications,
                notes=data.notes,
                file_url=str(data.file_url),
            )
            .returning(prescriptions)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one()
        await self.db.commit()

        logger.info(
            "prescription_created",
            prescription_id=str(row["id"]),
            appointment_id=str(data.appointment_id),
        )
        return PrescriptionResponse.model_validate(dict(row))

    async def list_for_patient(self, patient_id: UUID) -> list[PrescriptionResponse]:
        """A patient's prescriptions, newest first, with the prescribing doctor's name."""
        doctor_name = (literal("Dr. ") + doctors.c.first_name + " " + doctors.c.last_name).label(
            "doctor_name"
        )
        stmt = (
            select(prescriptions, doctor_name)
            .outerjoin(doctors, doctors.c.id == prescriptions.c.doctor_id)
            .where(prescriptions.c.patient_id == patient_id)
            .order_by(prescriptions.c.issued_at.desc())
        )
        result = await self.db.execute(stmt)
        return [PrescriptionResponse.model_validate(dict(row)) for row in result.mappings().all()]
