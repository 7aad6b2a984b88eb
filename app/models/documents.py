"""Documents table model using SQLAlchemy Core."""

from sqlalchemy import Column, MetaData, String, Table, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("patient_id", UUID(as_uuid=True), nullable=False, index=True),
    Column("doctor_id", UUID(as_uuid=True), nullable=True, index=True),
    Column("document_name", Text, nullable=False),
    Column("document_type", String(100), nullable=False, index=True),
    Column("document_url", Text, nullable=False),
    Column("notes", Text, nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
)
