"""Integration fixtures: a throwaway SQLite store and a static identity provider."""

import pytest
import pytest_asyncio

from metrics_service.application.interfaces import IdentityProvider
from metrics_service.application.services import IngestionService
from metrics_service.domain.entities import Caller
from metrics_service.domain.exceptions import AuthenticationError
from metrics_service.infrastructure.database import Base
from metrics_service.infrastructure.database.session import build_engine, build_session_factory
from metrics_service.infrastructure.database.repositories import (
    SQLAlchemyAIRequestRepository,
    SQLAlchemyEngagementEventRepository,
    SQLAlchemyPerformanceSampleRepository,
    SQLAlchemySalesTransactionRepository,
)

TOKENS = {
    "alice-token": Caller(id="alice", plan="premium"),
    "bob-token": Caller(id="bob"),
    "admin-token": Caller(id="root", role="admin"),
}


class StaticIdentityProvider(IdentityProvider):
    """Resolves a fixed set of bearer tokens; everything else is rejected."""

    async def verify(self, token: str) -> Caller:
        caller = TOKENS.get(token)
        if caller is None:
            raise AuthenticationError("Invalid token")
        return caller


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'metrics.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_ingestion(session, live_metrics, clock) -> IngestionService:
    return IngestionService(
        ai_requests=SQLAlchemyAIRequestRepository(session),
        engagement_events=SQLAlchemyEngagementEventRepository(session),
        sales_transactions=SQLAlchemySalesTransactionRepository(session),
        performance_samples=SQLAlchemyPerformanceSampleRepository(session),
        live_metrics=live_metrics,
        clock=clock,
    )


@pytest.fixture
def identity_provider() -> StaticIdentityProvider:
    return StaticIdentityProvider()
