"""Authentication schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Principal role enumeration."""

    PATIENT = "Patient"
    DOCTOR = "Doctor"
    ADMIN = "Admin"


class Principal(BaseModel):
    """Authenticated caller, decoded once per request from the bearer token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: Role
