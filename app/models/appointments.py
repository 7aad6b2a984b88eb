"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    Column,
    MetaData,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata for all tables
metadata = MetaData()

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    # References (not owned)
    Column("patient_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("doctor_id", UUID(as_uuid=True), nullable=False, index=True),
    # Scheduling
    Column("date_time", TIMESTAMP(timezone=True), nullable=False, index=True),
    Column("start_time", TIMESTAMP(timezone=True), nullable=True),
    Column("end_time", TIMESTAMP(timezone=True), nullable=True),
    # Status is free-form; only "cancelled" carries behaviour
    Column(
        "status",
        Text,
        nullable=False,
        server_default="scheduled",
    ),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("cancelled_at", TIMESTAMP(timezone=True), nullable=True),
)
