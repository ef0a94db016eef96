"""Shared SQLAlchemy plumbing for the four event repositories."""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from starlette.concurrency import run_in_threadpool

from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import EventFilter
from metrics_service.domain.exceptions import ConflictError, UpstreamError, ValidationError
from metrics_service.infrastructure.database.base import Base

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)
E = TypeVar("E")


def to_document(value: Any) -> Any:
    """Dataclass/enum/datetime tree → JSON-safe primitives."""
    if value is None:
        return None
    if hasattr(value, "__dataclass_fields__"):
        return to_document(asdict(value))
    if isinstance(value, dict):
        return {key: to_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value


def parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(value))


class SQLAlchemyEventRepository(Generic[M, E]):
    """Filtering, ordering and error translation common to every event table.

    Subclasses declare the ORM model, the natural-key column and how wire
    dimension names map to columns, and provide ``_to_entity``/``_to_model``.
    Writes commit immediately so the record is durable before the caller
    touches the live metrics.
    """

    model: ClassVar[type[Base]]
    entity_name: ClassVar[str]
    natural_key_field: ClassVar[str]
    natural_key_column: ClassVar[str]
    dimension_columns: ClassVar[dict[str, str]] = {}

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: M) -> E:
        raise NotImplementedError

    def _to_model(self, entity: E) -> M:
        raise NotImplementedError

    def _column(self, name: str) -> InstrumentedAttribute:
        return getattr(self.model, name)

    def _violates_natural_key(self, exc: IntegrityError) -> bool:
        """True when the failed constraint is the natural-key unique one.

        PostgreSQL names the constraint (``uq_<table>_<column>``); SQLite
        reports ``UNIQUE constraint failed: <table>.<column>``.
        """
        table = self.model.__tablename__
        message = str(exc.orig)
        return (
            f"uq_{table}_{self.natural_key_column}" in message
            or f"UNIQUE constraint failed: {table}.{self.natural_key_column}" in message
        )

    @asynccontextmanager
    async def _store(self, natural_key: str | None = None) -> AsyncIterator[None]:
        """Translate store failures into domain errors."""
        try:
            yield
        except IntegrityError as exc:
            await self._session.rollback()
            if not self._violates_natural_key(exc):
                logger.warning(
                    "%s rejected by store constraints: %s", self.entity_name, exc.orig
                )
                raise ValidationError.for_field(
                    "record", "Violates a store constraint"
                ) from exc
            logger.warning(
                "Duplicate %s %s=%s rejected by store",
                self.entity_name,
                self.natural_key_field,
                natural_key,
            )
            raise ConflictError(self.entity_name, self.natural_key_field, natural_key or "") from exc
        except SQLAlchemyError as exc:
            logger.exception("Store failure on %s", self.model.__tablename__)
            raise UpstreamError("database", "Durable store unavailable") from exc

    def _filtered(self, stmt: Select, event_filter: EventFilter) -> Select:
        timestamp = self._column("timestamp")
        if event_filter.start_date is not None:
            stmt = stmt.where(timestamp >= event_filter.start_date)
        if event_filter.end_date is not None:
            stmt = stmt.where(timestamp <= event_filter.end_date)
        if event_filter.user_id is not None:
            stmt = stmt.where(self._column("user_id") == event_filter.user_id)
        for name, value in event_filter.dimensions.items():
            stmt = stmt.where(self._column(self.dimension_columns[name]) == value)
        return stmt

    async def exists(self, natural_key: str) -> bool:
        stmt = select(self.model.id).where(
            self._column(self.natural_key_column) == natural_key
        ).limit(1)
        async with self._store(natural_key):
            result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create(self, event: E) -> E:
        model = self._to_model(event)
        natural_key = getattr(model, self.natural_key_column)
        async with self._store(natural_key):
            self._session.add(model)
            await self._session.flush()
            await self._session.commit()
        return self._to_entity(model)

    async def find(
        self,
        event_filter: EventFilter,
        *,
        newest_first: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[E]:
        stmt = self._filtered(select(self.model), event_filter)
        timestamp, row_id = self._column("timestamp"), self._column("id")
        if newest_first:
            stmt = stmt.order_by(timestamp.desc(), row_id.desc())
        else:
            stmt = stmt.order_by(timestamp.asc(), row_id.asc())
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._store():
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        # Rows are fully loaded; hydration touches no connection.
        return await run_in_threadpool(self._to_entities, rows)

    def _to_entities(self, rows: Sequence[M]) -> list[E]:
        return [self._to_entity(row) for row in rows]

    async def count(self, event_filter: EventFilter) -> int:
        stmt = self._filtered(select(func.count()).select_from(self.model), event_filter)
        async with self._store():
            result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def _get_owned(self, natural_key: str, user_id: str) -> M | None:
        stmt = select(self.model).where(
            self._column(self.natural_key_column) == natural_key,
            self._column("user_id") == user_id,
        )
        async with self._store(natural_key):
            result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _save(self, model: M) -> E:
        async with self._store(getattr(model, self.natural_key_column)):
            await self._session.flush()
            await self._session.commit()
        return self._to_entity(model)

