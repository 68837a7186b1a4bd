"""Prescription schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import AnyHttpUrl, Field

from ezhealth.schemas.common import CamelModel


class PrescriptionCreate(CamelModel):
    """Prescription issued by a doctor for one of their appointments."""

    appointment_id: UUID
    medications: list[str] = Field(..., min_length=1, examples=[["Paracetamol 500mg"]])
    notes: str | None = Field(None, max_length=2000)
    file_url: AnyHttpUrl


class PrescriptionResponse(CamelModel):
    """Prescription response schema."""

    id: UUID
    doctor_id: UUID
    patient_id: UUID
    appointment_id: UUID
    medications: list[str]
    notes: str | None = None
    file_url: str
    issued_at: datetime | None = None
    doctor_name: str | None = None


class PrescriptionEnvelope(CamelModel):
    """Single prescription with a status message."""

    success: bool = True
    message: str
    prescription: PrescriptionResponse


class PrescriptionListResponse(CamelModel):
    """Prescription listing."""

    success: bool = True
    total: int
    prescriptions: list[PrescriptionResponse]
