"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import Field, field_serializer, field_validator

from ezhealth.core.slots import normalize_slot_label
from ezhealth.schemas.common import CamelModel


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class AppointmentCreate(CamelModel):
    """Schema for booking an appointment."""

    doctor_id: UUID
    appointment_date: date
    appointment_time: str = Field(..., min_length=1, max_length=16, examples=["10:00 AM"])
    department: str | None = Field(None, max_length=200)

    @field_validator("appointment_time")
    @classmethod
    def normalize_time(cls, v: str) -> str:
        """Canonical slot label, e.g. ``"9:00 am "`` -> ``"09:00 AM"``."""
        return normalize_slot_label(v)


class AppointmentStatusUpdate(CamelModel):
    """Schema for a doctor's status update.

    The value is checked by the service so that unknown statuses are a
    400 rather than a request validation error.
    """

    status: str


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    appointment_time: str
    department: str | None = None
    status: AppointmentStatus
    payment_status: PaymentStatus
    amount: Decimal
    meeting_link: str = ""
    has_visited: bool = False
    order_ref: str | None = None
    payment_ref: str | None = None
    payment_signature: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        """Serialize amount as a JSON number."""
        return float(amount)


class AppointmentSummary(AppointmentResponse):
    """Appointment enriched with participant names for listings."""

    patient_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None
    doctor_name: str | None = None


class AppointmentEnvelope(CamelModel):
    """Single appointment wrapped with a status message."""

    success: bool = True
    message: str
    appointment: AppointmentResponse


class AppointmentListResponse(CamelModel):
    """Appointment listing."""

    success: bool = True
    total: int
    appointments: list[AppointmentSummary]


class AvailableSlotsResponse(CamelModel):
    """Free slots for a doctor on a date, in catalog order."""

    success: bool = True
    doctor_id: UUID
    appointment_date: date
    available_slots: list[str]
