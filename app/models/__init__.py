"""Database models."""

from sqlalchemy import Table

from app.models.appointments import appointments
from app.models.doctors import doctors
from app.models.documents import documents

# Collections reachable through the record store, keyed by name
collections: dict[str, Table] = {
    "appointments": appointments,
    "doctors": doctors,
    "documents": documents,
}

__all__ = [
    "appointments",
    "collections",
    "doctors",
    "documents",
]
