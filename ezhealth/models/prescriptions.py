"""Prescriptions table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, MetaData, Table, Text, Uuid, func

metadata = MetaData()

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("doctor_id", Uuid, nullable=False, index=True),
    Column("patient_id", Uuid, nullable=False, index=True),
    Column("appointment_id", Uuid, nullable=False, index=True),
    Column("medications", JSON, nullable=False),
    Column("notes", Text),
    # Document stored on the external media host
    Column("file_url", Text, nullable=False),
    Column("issued_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
