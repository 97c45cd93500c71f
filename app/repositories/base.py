"""Base repository for paginated reads against the relational stores."""

from collections.abc import AsyncGenerator, Collection, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, Select, false, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.errors.api import ValidationError
from app.errors.database import DatabaseError, DuplicateEntryError

type FilterValue = str | int | float | bool | datetime | None
type Record = dict[str, Any]


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except (TypeError, ValueError, AttributeError):
        return False
    return True


def parse_uuids(ids: Collection[str]) -> list[str]:
    """Keep the ids a UUID column can compare against and silently skip the rest."""
    return [value for value in ids if is_uuid(value)]


def require_uuid(value: str, message: str) -> str:
    """Return ``value`` when it is a UUID, otherwise fail with a 400 carrying ``message``."""
    if not is_uuid(value):
        raise ValidationError(message)
    return value


class BaseRepository[ModelT: SQLModel]:
    """
    Base repository implementing the read patterns every listing needs.

    Subclasses set ``model`` and may set ``search_fields`` (columns matched
    case-insensitively by free-text search) and ``order_field`` (newest
    first). Rows come back as plain dicts so the enrichment stage can attach
    ``*_details`` keys without touching the ORM objects.

    Attributes:
        model: The SQLModel database model type.
        id_field: The name of the primary key field (default: "id").
    """

    model: type[ModelT]
    id_field: str = "id"
    search_fields: tuple[str, ...] = ()
    order_field: str = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    def _conditions(
        self,
        search: str = "",
        filters: Mapping[str, FilterValue] | None = None,
    ) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [
            getattr(self.model, name) == value for name, value in (filters or {}).items()
        ]
        if search and self.search_fields:
            pattern = f"%{escape_like(search)}%"
            conditions.append(
                or_(
                    *(
                        getattr(self.model, name).ilike(pattern, escape="\\")
                        for name in self.search_fields
                    ),
                ),
            )
        return conditions

    def _ordered(self, statement: Select[Any]) -> Select[Any]:
        return statement.order_by(getattr(self.model, self.order_field).desc())

    async def _execute(self, statement: Select[Any]) -> Any:
        try:
            return await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(f"{self.model.__name__} query failed: {e}") from e

    async def list_page(
        self,
        *,
        offset: int,
        limit: int,
        search: str = "",
        filters: Mapping[str, FilterValue] | None = None,
    ) -> tuple[list[Record], int]:
        """
        Get one page of records and the total matching count.

        Args:
            offset: Number of records to skip
            limit: Maximum number of records to return
            search: Free-text term matched against ``search_fields``
            filters: Column equality filters

        Returns:
            tuple[list[Record], int]: Page of records and total count

        Raises:
            DatabaseError: If the store query fails
        """
        conditions = self._conditions(search, filters)
        count_statement = select(func.count()).select_from(self.model).where(*conditions)
        total = (await self._execute(count_statement)).scalar() or 0

        statement = self._ordered(select(self.model).where(*conditions)).offset(offset).limit(limit)
        rows = (await self._execute(statement)).scalars().all()
        return [row.model_dump() for row in rows], total

    async def scan(
        self,
        *,
        batch_size: int,
        filters: Mapping[str, FilterValue] | None = None,
    ) -> AsyncGenerator[list[Record]]:
        """
        Yield every matching record in fixed-size batches, newest first.

        Args:
            batch_size: Rows fetched per round-trip
            filters: Column equality filters
        """
        conditions = self._conditions(filters=filters)
        offset = 0
        while True:
            statement = (
                self._ordered(select(self.model).where(*conditions))
                .offset(offset)
                .limit(batch_size)
            )
            rows = (await self._execute(statement)).scalars().all()
            if rows:
                yield [row.model_dump() for row in rows]
            if len(rows) < batch_size:
                return
            offset += batch_size

    async def get_by_ids(
        self,
        ids: Collection[str],
        columns: tuple[str, ...] | None = None,
    ) -> list[Record]:
        """
        Fetch records whose primary key is in ``ids`` with one ``IN`` query.

        Args:
            ids: Primary keys to fetch
            columns: Optional projection; all columns when omitted

        Returns:
            list[Record]: Found records, in no particular order
        """
        id_column = getattr(self.model, self.id_field)
        condition = id_column.in_(list(ids)) if ids else false()
        if columns:
            statement = select(*(getattr(self.model, name) for name in columns)).where(condition)
            result = await self._execute(statement)
            return [dict(row) for row in result.mappings().all()]
        result = await self._execute(select(self.model).where(condition))
        return [row.model_dump() for row in result.scalars().all()]

    async def count(self, filters: Mapping[str, FilterValue] | None = None) -> int:
        """
        Count records.

        Returns:
            int: Total number of records
        """
        statement = select(func.count()).select_from(self.model).where(*self._conditions(filters=filters))
        count = (await self._execute(statement)).scalar()
        return count if count is not None else 0

    async def recent(self, limit: int) -> list[Record]:
        """The ``limit`` newest records."""
        rows = (await self._execute(self._ordered(select(self.model)).limit(limit))).scalars().all()
        return [row.model_dump() for row in rows]

    async def timestamps_between(self, start: datetime, end: datetime) -> list[datetime]:
        """``order_field`` values within ``[start, end]``, oldest first."""
        column = getattr(self.model, self.order_field)
        statement = select(column).where(column >= start, column <= end).order_by(column)
        return [value for value in (await self._execute(statement)).scalars().all() if value is not None]

    async def sum_columns(
        self,
        columns: tuple[str, ...],
        filters: Mapping[str, FilterValue] | None = None,
    ) -> dict[str, float]:
        """
        Sum numeric columns over every matching record.

        Returns:
            dict[str, float]: Column name to total, 0 when nothing matches
        """
        statement = select(
            *(func.coalesce(func.sum(getattr(self.model, name)), 0).label(name) for name in columns),
        ).where(*self._conditions(filters=filters))
        row = (await self._execute(statement)).mappings().one()
        return {name: row[name] for name in columns}

    async def _get_row(self, record_id: str) -> ModelT | None:
        id_column = getattr(self.model, self.id_field)
        result = await self._execute(select(self.model).where(id_column == record_id))
        return result.scalar_one_or_none()

    async def get_by_id(self, record_id: str) -> Record | None:
        """
        Get a record by its ID.

        Args:
            record_id: Primary key

        Returns:
            Record | None: Record if found, None otherwise
        """
        row = await self._get_row(record_id)
        return row.model_dump() if row is not None else None

    async def get_by_field(self, field_name: str, value: FilterValue) -> Record | None:
        """
        Get the first record whose ``field_name`` equals ``value``.

        Args:
            field_name: Name of the field to search
            value: Value to search for

        Returns:
            Record | None: Record if found, None otherwise
        """
        field = getattr(self.model, field_name)
        result = await self._execute(select(self.model).where(field == value).limit(1))
        row = result.scalars().first()
        return row.model_dump() if row is not None else None

    async def create(self, data: Mapping[str, Any]) -> Record:
        """
        Insert a record.

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: For other database errors
        """
        row = self.model.model_validate(dict(data))
        return (await self._add_and_refresh(row)).model_dump()

    async def update_fields(self, record_id: str, values: Mapping[str, Any]) -> Record | None:
        """
        Set ``values`` on a record.

        Returns:
            Record | None: Updated record if found, None otherwise
        """
        row = await self._get_row(record_id)
        if row is None:
            return None
        for key, value in values.items():
            setattr(row, key, value)
        return (await self._add_and_refresh(row)).model_dump()

    async def delete(self, record_id: str) -> bool:
        """
        Delete a record by ID.

        Returns:
            bool: True if record was deleted, False if not found
        """
        row = await self._get_row(record_id)
        if row is None:
            return False
        try:
            await self.session.delete(row)
            await self.session.flush()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"{self.model.__name__} delete failed: {e}") from e
        return True

    async def _add_and_refresh(self, row: ModelT) -> ModelT:
        """
        Add a record and refresh it from the database with error handling.

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: For other database errors
        """
        try:
            self.session.add(row)
            await self.session.flush()
            await self.session.refresh(row)
        except IntegrityError as e:
            await self.session.rollback()
            error_msg = str(e.orig) if e.orig else str(e)
            if "unique" in error_msg.lower() or "duplicate" in error_msg.lower():
                raise DuplicateEntryError() from e
            raise DatabaseError(f"{self.model.__name__} integrity error: {error_msg}") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"{self.model.__name__} save failed: {e}") from e
        return row
