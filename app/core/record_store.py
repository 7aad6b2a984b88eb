"""Record store client: filtered CRUD over named collections."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import RecordStoreError
from app.models import collections

logger = structlog.get_logger(__name__)

Filters = Mapping[str, Any]
Ranges = Mapping[str, tuple[Any, Any]]


class RecordStore(ABC):
    """
    Contract for the relational record store.

    Filters map a column to a value it must equal, or to a list, tuple or
    set of values it must be one of.

    "No match" is reported through the return value (empty list, ``None``,
    zero); every other failure raises ``RecordStoreError``.
    """

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: Filters | None = None,
        *,
        ranges: Ranges | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return every record matching the filters.

        Args:
            collection: Collection name
            filters: Column/value filters
            ranges: Column -> (lower, upper) inclusive bounds, either may be None
            order_by: Column to sort ascending by

        Returns:
            Matching records
        """

    @abstractmethod
    async def find_one(self, collection: str, filters: Filters) -> dict[str, Any] | None:
        """Return the first record matching the filters, or None."""

    @abstractmethod
    async def insert(self, collection: str, values: Mapping[str, Any]) -> dict[str, Any]:
        """Insert one record and return it as stored."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        filters: Filters,
        values: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        """Update matching records and return them as stored (empty if no match)."""

    @abstractmethod
    async def delete(self, collection: str, filters: Filters) -> int:
        """Delete matching records and return how many were removed."""


class SQLAlchemyRecordStore(RecordStore):
    """Record store backed by SQLAlchemy Core tables on an async session."""

    def __init__(self, db: AsyncSession, tables: Mapping[str, Table] | None = None):
        """Initialize store with database session and collection registry."""
        self.db = db
        self.tables = tables if tables is not None else collections

    def _table(self, collection: str) -> Table:
        try:
            return self.tables[collection]
        except KeyError:
            raise RecordStoreError(f"Unknown collection: {collection}")

    @staticmethod
    def _column(table: Table, name: str) -> Any:
        try:
            return table.c[name]
        except KeyError:
            raise RecordStoreError(f"Unknown column {name!r} on {table.name}")

    def _conditions(
        self,
        table: Table,
        filters: Filters | None,
        ranges: Ranges | None = None,
    ) -> list[Any]:
        conditions = []
        for name, value in (filters or {}).items():
            column = self._column(table, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)

        for name, (lower, upper) in (ranges or {}).items():
            column = self._column(table, name)
            if lower is not None:
                conditions.append(column >= lower)
            if upper is not None:
                conditions.append(column <= upper)

        return conditions

    def _check_columns(self, table: Table, values: Mapping[str, Any]) -> None:
        for name in values:
            self._column(table, name)

    async def find(
        self,
        collection: str,
        filters: Filters | None = None,
        *,
        ranges: Ranges | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        table = self._table(collection)
        stmt = select(table)

        conditions = self._conditions(table, filters, ranges)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        if order_by:
            stmt = stmt.order_by(self._column(table, order_by))

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("record_store_find_failed", collection=collection, error=str(e))
            raise RecordStoreError(str(e)) from e

        return [dict(row) for row in result.mappings().all()]

    async def find_one(self, collection: str, filters: Filters) -> dict[str, Any] | None:
        table = self._table(collection)
        stmt = select(table).where(and_(*self._conditions(table, filters))).limit(1)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("record_store_find_failed", collection=collection, error=str(e))
            raise RecordStoreError(str(e)) from e

        row = result.mappings().first()
        return dict(row) if row else None

    async def insert(self, collection: str, values: Mapping[str, Any]) -> dict[str, Any]:
        table = self._table(collection)
        self._check_columns(table, values)
        stmt = insert(table).values(**values).returning(table)

        try:
            result = await self.db.execute(stmt)
            row = result.mappings().first()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("record_store_insert_failed", collection=collection, error=str(e))
            raise RecordStoreError(str(e)) from e

        if not row:
            raise RecordStoreError(f"Insert into {collection} returned no record")

        return dict(row)

    async def update(
        self,
        collection: str,
        filters: Filters,
        values: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        table = self._table(collection)
        self._check_columns(table, values)
        stmt = (
            update(table)
            .where(and_(*self._conditions(table, filters)))
            .values(**values)
            .returning(table)
        )

        try:
            result = await self.db.execute(stmt)
            rows = result.mappings().all()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("record_store_update_failed", collection=collection, error=str(e))
            raise RecordStoreError(str(e)) from e

        return [dict(row) for row in rows]

    async def delete(self, collection: str, filters: Filters) -> int:
        table = self._table(collection)
        stmt = delete(table).where(and_(*self._conditions(table, filters)))

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("record_store_delete_failed", collection=collection, error=str(e))
            raise RecordStoreError(str(e)) from e

        return result.rowcount or 0
