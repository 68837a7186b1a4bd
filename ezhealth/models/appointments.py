"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
    text,
)

metadata = MetaData()

ACTIVE_SLOT_PREDICATE = text("status <> 'Cancelled'")

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # References to external principal records
    Column("patient_id", Uuid, nullable=False, index=True),
    Column("doctor_id", Uuid, nullable=False, index=True),
    # Slot
    Column("appointment_date", Date, nullable=False),
    Column("appointment_time", String(8), nullable=False),
    Column("department", Text, nullable=True),
    # Lifecycle
    Column("status", String(16), nullable=False, server_default="Pending"),
    Column("has_visited", Boolean, nullable=False, server_default=false()),
    Column("meeting_link", Text, nullable=False, server_default=""),
    # Payment
    Column("payment_status", String(16), nullable=False, server_default="Pending"),
    Column("amount", Numeric(10, 2), nullable=False, server_default="0"),
    Column("order_ref", Text, nullable=True),
    Column("payment_ref", Text, nullable=True),
    Column("payment_signature", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    # Constraints
    CheckConstraint(
        "status IN ('Pending', 'Accepted', 'Rejected', 'Completed', 'Cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "payment_status IN ('Pending', 'Paid', 'Failed')",
        name="appointments_payment_status_check",
    ),
    CheckConstraint("amount >= 0", name="appointments_amount_check"),
)

# At most one non-cancelled appointment per doctor/date/time
Index(
    "uq_appointments_active_slot",
    appointments.c.doctor_id,
    appointments.c.appointment_date,
    appointments.c.appointment_time,
    unique=True,
    postgresql_where=ACTIVE_SLOT_PREDICATE,
    sqlite_where=ACTIVE_SLOT_PREDICATE,
)

Index("uq_appointments_order_ref", appointments.c.order_ref, unique=True)
