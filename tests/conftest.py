import os
from collections import defaultdict
from collections.abc import AsyncGenerator, Callable, Mapping
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep tests away from real services
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("DEFAULT_TIMEZONE", "UTC")

from app.core.blob_store import BlobStore, get_blob_store
from app.core.exceptions import RecordStoreError
from app.core.record_store import RecordStore
from app.dependencies import get_cache_manager, get_record_store
from app.main import app


class InMemoryRecordStore(RecordStore):
    """Record store double keeping collections in dictionaries.

    Every write is recorded in ``writes`` as ``(operation, collection,
    filters, values)``. ``fail_find_one`` and ``fail_update`` inject errors.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[UUID, dict[str, Any]]] = defaultdict(dict)
        self.writes: list[tuple[str, str, dict[str, Any], dict[str, Any]]] = []
        self.find_one_error: Exception | None = None
        self.update_errors: list[tuple[Callable[[Mapping[str, Any]], bool], Exception]] = []

    # Test helpers

    def seed(self, collection: str, **values: Any) -> dict[str, Any]:
        record = {"id": uuid4(), "created_at": datetime.now(UTC), **values}
        self.collections[collection][record["id"]] = record
        return dict(record)

    def fail_find_one(self, exc: Exception | None = None) -> None:
        self.find_one_error = exc or RecordStoreError("connection reset")

    def fail_update(
        self,
        predicate: Callable[[Mapping[str, Any]], bool] = lambda values: True,
        exc: Exception | None = None,
    ) -> None:
        self.update_errors.append((predicate, exc or RecordStoreError("connection reset")))

    def updates(self, collection: str = "appointments") -> list[dict[str, Any]]:
        return [
            values
            for operation, name, _, values in self.writes
            if operation == "update" and name == collection
        ]

    # RecordStore

    @staticmethod
    def _matches(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
        for key, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if record.get(key) not in value:
                    return False
            elif record.get(key) != value:
                return False
        return True

    @staticmethod
    def _in_ranges(record: Mapping[str, Any], ranges: Mapping[str, tuple[Any, Any]] | None) -> bool:
        for key, (lower, upper) in (ranges or {}).items():
            value = record.get(key)
            if value is None:
                return False
            if lower is not None and value < lower:
                return False
            if upper is not None and value > upper:
                return False
        return True

    async def find(self, collection, filters=None, *, ranges=None, order_by=None):
        rows = [
            dict(record)
            for record in self.collections[collection].values()
            if self._matches(record, filters) and self._in_ranges(record, ranges)
        ]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or 0))
        return rows

    async def find_one(self, collection, filters):
        if self.find_one_error is not None:
            raise self.find_one_error
        for record in self.collections[collection].values():
            if self._matches(record, filters):
                return dict(record)
        return None

    async def insert(self, collection, values):
        self.writes.append(("insert", collection, {}, dict(values)))
        return self.seed(collection, **values)

    async def update(self, collection, filters, values):
        self.writes.append(("update", collection, dict(filters), dict(values)))
        for predicate, exc in self.update_errors:
            if predicate(values):
                raise exc

        updated = []
        for record in self.collections[collection].values():
            if self._matches(record, filters):
                record.update(values)
                updated.append(dict(record))
        return updated

    async def delete(self, collection, filters):
        self.writes.append(("delete", collection, dict(filters), {}))
        ids = [key for key, record in self.collections[collection].items() if self._matches(record, filters)]
        for key in ids:
            del self.collections[collection][key]
        return len(ids)


class InMemoryBlobStore(BlobStore):
    """Blob store double keeping uploads in a dictionary."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str | None]] = {}

    async def upload(self, path, content, content_type=None):
        self.objects[path] = (content, content_type)

    def get_public_url(self, path):
        return f"https://files.test/{path}"


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Empty in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def mock_logger() -> MagicMock:
    """Log sink capturing structured events."""
    return MagicMock()


@pytest_asyncio.fixture
async def client(
    store: InMemoryRecordStore,
    blob_store: InMemoryBlobStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def scheduled_appointment(store: InMemoryRecordStore) -> dict:
    """A scheduled appointment on 2024-03-10."""
    return store.seed(
        "appointments",
        patient_id=uuid4(),
        doctor_id=uuid4(),
        date_time=datetime(2024, 3, 10, tzinfo=UTC),
        start_time=None,
        end_time=None,
        status="scheduled",
        notes=None,
        cancelled_at=None,
    )


@pytest.fixture
def cancelled_appointment(store: InMemoryRecordStore) -> dict:
    """An appointment that was already cancelled."""
    return store.seed(
        "appointments",
        patient_id=uuid4(),
        doctor_id=uuid4(),
        date_time=datetime(2024, 3, 12, 9, 0, tzinfo=UTC),
        status="cancelled",
        cancelled_at=datetime(2024, 3, 1, 8, 0, tzinfo=UTC),
    )
