"""Doctor model definition using SQLAlchemy Core."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID

metadata = MetaData()

doctors = Table(
    "doctors",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    # Identity
    Column("name", Text, nullable=False),
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("phone", String(20)),
    Column("specialty", String(200), nullable=False, index=True),
    # Professional details
    Column("experience", Integer),
    Column("education", Text),
    Column("bio", Text),
    Column("image", Text),
    # Office
    Column("office_hours", Text),
    Column("office_location", Text),
    Column("office_phone", String(20)),
    Column("accepting_new_patients", Boolean, server_default=text("true")),
    # Ratings
    Column("rating", Numeric(3, 2)),
    Column("review_count", Integer, nullable=False, server_default=text("0")),
    # Availability
    Column("availability", JSON),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)
