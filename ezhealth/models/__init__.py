"""Database models."""

from sqlalchemy import MetaData

from ezhealth.models.appointments import appointments
from ezhealth.models.appointments import metadata as appointments_metadata
from ezhealth.models.doctors import doctors
from ezhealth.models.doctors import metadata as doctors_metadata
from ezhealth.models.prescriptions import metadata as prescriptions_metadata
from ezhealth.models.prescriptions import prescriptions
from ezhealth.models.users import metadata as users_metadata
from ezhealth.models.users import users


def combined_metadata() -> MetaData:
    """Copy every table into one MetaData for create_all and migrations."""
    metadata = MetaData()
    for source in (
        users_metadata,
        doctors_metadata,
        appointments_metadata,
        prescriptions_metadata,
    ):
        for table in source.tables.values():
            table.to_metadata(metadata)
    return metadata


__all__ = [
    "appointments",
    "combined_metadata",
    "doctors",
    "prescriptions",
    "users",
]
