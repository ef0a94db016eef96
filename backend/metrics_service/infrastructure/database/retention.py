"""Retention Sweeper: asyncio daemon that expires old rows.

Relational stores have no TTL index, so this task plays that role for the
event tables: it periodically deletes rows whose timestamp is older than
the domain's retention horizon. Expiry is eventual, bounded by the sweep
interval. Nothing in the application layer deletes records.
"""

import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from metrics_service.domain.clock import Clock, utc_now
from metrics_service.domain.entities import EventDomain
from metrics_service.domain.retention import RetentionPolicy
from metrics_service.infrastructure.database.models import (
    AIRequestModel,
    EngagementEventModel,
    PerformanceSampleModel,
    SalesTransactionModel,
)

logger = logging.getLogger(__name__)

EXPIRING_TABLES = (
    (EventDomain.AI_REQUEST, AIRequestModel),
    (EventDomain.ENGAGEMENT, EngagementEventModel),
    (EventDomain.SALES, SalesTransactionModel),
    (EventDomain.PERFORMANCE, PerformanceSampleModel),
)


class RetentionSweeper:
    """Runs as an asyncio.Task inside FastAPI's lifespan."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        policy: RetentionPolicy,
        interval_seconds: float = 3600,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._policy = policy
        self._interval = interval_seconds
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("RetentionSweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("RetentionSweeper stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("RetentionSweeper sweep failed")

            await asyncio.sleep(self._interval)

    async def sweep_once(self) -> dict[EventDomain, int]:
        """Delete every row past its horizon. Returns deleted counts per domain."""
        now = self._clock()
        deleted: dict[EventDomain, int] = {}
        async with self._session_factory() as session:
            for domain, model in EXPIRING_TABLES:
                cutoff = self._policy.cutoff(domain, now)
                result = await session.execute(
                    delete(model).where(model.timestamp < cutoff)
                )
                deleted[domain] = result.rowcount or 0
            await session.commit()

        total = sum(deleted.values())
        if total:
            logger.info(
                "Expired %d record(s): %s",
                total,
                ", ".join(f"{d.value}={n}" for d, n in deleted.items() if n),
            )
        return deleted
