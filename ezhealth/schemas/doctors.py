"""Doctor schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import computed_field, field_serializer

from ezhealth.schemas.common import CamelModel


class DoctorResponse(CamelModel):
    """Doctor response schema."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    gender: str | None = None
    profile_image: str = ""
    specialization: str | None = None
    department: str | None = None
    experience: str | None = None
    consultation_fee: Decimal | None = None
    is_verified: bool
    verified_at: datetime | None = None
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def name(self) -> str:
        """Display name."""
        return f"{self.first_name} {self.last_name}"

    @field_serializer("consultation_fee")
    def serialize_fee(self, fee: Decimal | None) -> float | None:
        """Serialize Decimal fee as float."""
        return float(fee) if fee is not None else None


class DoctorListResponse(CamelModel):
    """Verified doctor directory."""

    success: bool = True
    total_doctors: int
    doctors: list[DoctorResponse]


class DoctorVerifyResponse(CamelModel):
    """Result of an admin verification."""

    success: bool = True
    message: str
    doctor: DoctorResponse
