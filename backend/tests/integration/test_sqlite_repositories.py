"""SQLAlchemy repositories against a real SQLite file."""

from datetime import timedelta

import pytest

from metrics_service.application.schemas import (
    AIRequestCreate,
    AIRequestUpdate,
    EngagementCreate,
    PerformanceSampleCreate,
    SalesTransactionCreate,
    SalesTransactionUpdate,
)
from metrics_service.application.services import RequestMetadata
from metrics_service.domain.entities import (
    AIModel,
    AIRequest,
    AIRequestStatus,
    DeviceType,
    EngagementEvent,
    EngagementEventType,
    EventFilter,
    TransactionStatus,
)
from metrics_service.domain.exceptions import ConflictError, NotFoundError, ValidationError
from metrics_service.infrastructure.database.repositories import (
    SQLAlchemyAIRequestRepository,
    SQLAlchemyEngagementEventRepository,
    SQLAlchemyPerformanceSampleRepository,
    SQLAlchemySalesTransactionRepository,
)

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


def _ai(request_id: str) -> AIRequestCreate:
    return AIRequestCreate(requestId=request_id, model="gpt-4", prompt="Describe")


@pytest.mark.asyncio
async def test_find_orders_by_timestamp_then_insertion(session, sql_ingestion, alice, clock):
    await sql_ingestion.track_ai_request(alice, _ai("first"))
    await sql_ingestion.track_ai_request(alice, _ai("second"))
    clock.advance(minutes=1)
    await sql_ingestion.track_ai_request(alice, _ai("third"))
    repository = SQLAlchemyAIRequestRepository(session)

    ascending = await repository.find(EventFilter())
    newest = await repository.find(EventFilter(), newest_first=True, skip=1, limit=1)

    assert [r.request_id for r in ascending] == ["first", "second", "third"]
    assert [r.request_id for r in newest] == ["second"]
    assert ascending[2].timestamp == clock.now
    assert await repository.count(EventFilter(start_date=clock.now)) == 1


@pytest.mark.asyncio
async def test_store_rejects_duplicate_natural_key(session):
    repository = SQLAlchemyAIRequestRepository(session)
    await repository.create(AIRequest(request_id="dup", user_id="u", model=AIModel.GPT_4, prompt="p"))

    with pytest.raises(ConflictError) as excinfo:
        await repository.create(
            AIRequest(request_id="dup", user_id="u", model=AIModel.GPT_4, prompt="p")
        )

    assert excinfo.value.field == "requestId"
    assert await repository.count(EventFilter()) == 1


@pytest.mark.asyncio
async def test_store_constraint_other_than_natural_key_is_not_a_conflict(session):
    repository = SQLAlchemyEngagementEventRepository(session)
    broken = EngagementEvent(user_id="u", session_id=None, event=EngagementEventType("login"))

    with pytest.raises(ValidationError) as excinfo:
        await repository.create(broken)

    assert excinfo.value.violations[0].field == "record"
    assert await repository.count(EventFilter()) == 0


@pytest.mark.asyncio
async def test_ai_update_round_trip(session, sql_ingestion, alice, bob, clock):
    await sql_ingestion.track_ai_request(alice, _ai("r-1"))
    await sql_ingestion.update_ai_request(alice, "r-1", AIRequestUpdate(status="processing"))
    clock.advance(milliseconds=250)
    await sql_ingestion.update_ai_request(
        alice,
        "r-1",
        AIRequestUpdate(
            status="completed", response="ok", tokens={"input": 7, "output": 3}, cost=0.01
        ),
    )
    repository = SQLAlchemyAIRequestRepository(session)

    stored = await repository.get_owned("r-1", "alice")

    assert stored.status == AIRequestStatus.COMPLETED
    assert stored.tokens.total == 10
    assert stored.timing.duration == 250
    assert stored.response == "ok"
    assert await repository.get_owned("r-1", "bob") is None
    with pytest.raises(NotFoundError):
        await sql_ingestion.update_ai_request(bob, "r-1", AIRequestUpdate(status="failed"))


@pytest.mark.asyncio
async def test_engagement_client_columns_and_dimension_filter(session, sql_ingestion, alice):
    metadata = RequestMetadata(user_agent=IPHONE, time_on_page=42, utm_source="newsletter")
    await sql_ingestion.track_engagement(
        alice,
        "premium",
        EngagementCreate(event="page_view", sessionId="s-1", properties={"tab": "home", "n": 2}),
        metadata,
    )
    await sql_ingestion.track_engagement(
        alice, "premium", EngagementCreate(event="login", sessionId="s-2")
    )
    repository = SQLAlchemyEngagementEventRepository(session)

    events = await repository.find(EventFilter(dimensions={"sessionId": "s-1"}))

    assert len(events) == 1
    event = events[0]
    assert event.context.device_type == DeviceType.MOBILE
    assert event.context.browser == "Safari"
    assert event.context.time_on_page == 42
    assert event.context.utm_source == "newsletter"
    assert event.properties == {"tab": "home", "n": 2}
    assert await repository.count(EventFilter(dimensions={"userPlan": "premium"})) == 2


@pytest.mark.asyncio
async def test_sales_update_persists_status_and_refund(session, sql_ingestion, alice, clock):
    await sql_ingestion.track_sales_transaction(
        alice,
        SalesTransactionCreate(
            transactionId="t-1",
            type="subscription",
            amount=29,
            status="completed",
            currency="eur",
            subscription={"interval": "yearly"},
        ),
    )
    clock.advance(days=2)
    await sql_ingestion.update_sales_transaction(
        alice, "t-1", SalesTransactionUpdate(status="refunded", refund={"amount": 29})
    )
    repository = SQLAlchemySalesTransactionRepository(session)

    stored = await repository.get_owned("t-1", "alice")

    assert stored.status == TransactionStatus.REFUNDED
    assert stored.currency == "EUR"
    assert stored.subscription.interval.value == "yearly"
    assert stored.refund.processed_at == clock.now
    assert stored.updated_at == clock.now
    assert stored.timestamp == clock.now - timedelta(days=2)


@pytest.mark.asyncio
async def test_performance_sample_round_trip_and_status_filter(session, sql_ingestion, alice):
    base = {"service": "auth", "endpoint": "/login", "method": "POST", "responseTime": 12.5}
    await sql_ingestion.track_performance_sample(
        alice,
        "free",
        PerformanceSampleCreate(
            **base,
            statusCode=503,
            system={"cpu": {"usage": 55.0}, "memory": {"percentage": 40}},
            database={"queryTime": 3, "connectionPool": {"active": 2, "idle": 8, "total": 10}},
        ),
        RequestMetadata(request_id="hdr-1"),
    )
    await sql_ingestion.track_performance_sample(
        alice, "free", PerformanceSampleCreate(**base, statusCode=200)
    )
    repository = SQLAlchemyPerformanceSampleRepository(session)

    failed = await repository.find(EventFilter(dimensions={"statusCode": 503}))

    assert [s.request_id for s in failed] == ["hdr-1"]
    assert failed[0].cpu_usage == 55.0
    assert failed[0].memory_usage == 40
    assert failed[0].database.connection_pool.total == 10
    assert failed[0].context.user_plan.value == "free"
    with pytest.raises(ConflictError):
        await sql_ingestion.track_performance_sample(
            alice, "free", PerformanceSampleCreate(**base, statusCode=200, requestId="hdr-1")
        )
