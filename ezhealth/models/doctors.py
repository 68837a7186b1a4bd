"""Doctor model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
)

metadata = MetaData()

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Profile
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("phone", String(20)),
    Column("gender", String(10)),
    Column("profile_image", Text, nullable=False, server_default=""),
    # Practice information
    Column("specialization", String(200), index=True),
    Column("department", String(200), index=True),
    Column("experience", String(50)),
    Column("consultation_fee", Numeric(10, 2)),
    # Verification
    Column("is_verified", Boolean, nullable=False, server_default=false(), index=True),
    Column("verified_at", DateTime(timezone=True)),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
)
