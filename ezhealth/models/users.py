"""User model definition using SQLAlchemy Core.

Patients and admins share this table; doctors live in ``doctors``.
"""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    func,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Profile
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("phone", String(20)),
    Column("gender", String(10)),
    Column("age", String(3)),
    Column("address", Text),
    Column("role", String(16), nullable=False, server_default="Patient"),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    CheckConstraint("role IN ('Patient', 'Admin')", name="users_role_check"),
)
