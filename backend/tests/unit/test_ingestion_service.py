"""Unit tests for the IngestionService write paths."""

import re

import pytest

from metrics_service.application.schemas import (
    AIRequestCreate,
    AIRequestUpdate,
    EngagementCreate,
    PerformanceSampleCreate,
    SalesTransactionCreate,
    SalesTransactionUpdate,
)
from metrics_service.application.services import IngestionService, RequestMetadata
from metrics_service.application.services.ingestion_service import generate_request_id
from metrics_service.domain.entities import (
    AIRequestStatus,
    DeviceType,
    EventFilter,
    TransactionStatus,
)
from metrics_service.domain.exceptions import ConflictError, NotFoundError, ValidationError

AI_LABELS = {"model": "gpt-4", "feature": "other", "user_plan": "free"}


def _ai_payload(request_id: str = "req-1") -> AIRequestCreate:
    return AIRequestCreate(requestId=request_id, model="gpt-4", prompt="Describe this artwork")


# ── AI requests ──


@pytest.mark.asyncio
async def test_duplicate_ai_request_is_rejected_without_double_count(
    ingestion: IngestionService, repositories, live_metrics, alice
):
    await ingestion.track_ai_request(alice, _ai_payload())

    with pytest.raises(ConflictError):
        await ingestion.track_ai_request(alice, _ai_payload())

    assert len(repositories["ai"].records) == 1
    assert live_metrics.ai_requests.value({**AI_LABELS, "status": "pending"}) == 1


@pytest.mark.asyncio
async def test_new_ai_request_starts_pending_with_start_time(
    ingestion: IngestionService, repositories, clock, alice
):
    metadata = RequestMetadata(user_agent="pytest", session_id="sess-9")
    await ingestion.track_ai_request(alice, _ai_payload(), metadata)

    stored = repositories["ai"].records[0]
    assert stored.user_id == "alice"
    assert stored.status == AIRequestStatus.PENDING
    assert stored.timing.start_time == clock.now
    assert stored.context.session_id == "sess-9"


@pytest.mark.asyncio
async def test_completion_derives_total_tokens_and_exact_duration(
    ingestion: IngestionService, live_metrics, clock, alice
):
    await ingestion.track_ai_request(alice, _ai_payload())
    await ingestion.update_ai_request(alice, "req-1", AIRequestUpdate(status="processing"))
    clock.advance(milliseconds=1234)

    saved = await ingestion.update_ai_request(
        alice,
        "req-1",
        AIRequestUpdate(
            status="completed",
            tokens={"input": 120, "output": 80, "total": 999},
            cost=0.5,
            response="A blue painting",
        ),
    )

    assert saved.tokens.total == 200
    assert saved.timing.duration == 1234
    assert saved.timing.end_time == clock.now
    assert live_metrics.ai_cost.value({"model": "gpt-4", "user_plan": "free"}) == 0.5
    assert live_metrics.ai_duration.value(AI_LABELS).sum == pytest.approx(1.234)


@pytest.mark.asyncio
async def test_illegal_transition_is_rejected_and_not_counted(
    ingestion: IngestionService, live_metrics, alice
):
    await ingestion.track_ai_request(alice, _ai_payload())

    with pytest.raises(ValidationError) as excinfo:
        await ingestion.update_ai_request(alice, "req-1", AIRequestUpdate(status="completed"))

    assert excinfo.value.violations[0].field == "status"
    assert live_metrics.ai_requests.value({**AI_LABELS, "status": "completed"}) == 0


@pytest.mark.asyncio
async def test_terminal_request_accepts_no_further_transition(ingestion: IngestionService, alice):
    await ingestion.track_ai_request(alice, _ai_payload())
    await ingestion.update_ai_request(alice, "req-1", AIRequestUpdate(status="cancelled"))

    with pytest.raises(ValidationError):
        await ingestion.update_ai_request(alice, "req-1", AIRequestUpdate(status="processing"))


@pytest.mark.asyncio
async def test_update_of_someone_elses_request_is_not_found(
    ingestion: IngestionService, alice, bob
):
    await ingestion.track_ai_request(alice, _ai_payload())

    with pytest.raises(NotFoundError):
        await ingestion.update_ai_request(bob, "req-1", AIRequestUpdate(cost=1.0))
    with pytest.raises(NotFoundError):
        await ingestion.update_ai_request(alice, "missing", AIRequestUpdate(cost=1.0))


# ── Engagement ──


@pytest.mark.asyncio
async def test_engagement_derives_client_info_and_plan(
    ingestion: IngestionService, repositories, live_metrics, alice
):
    metadata = RequestMetadata(
        user_agent="Mozilla/5.0 (Linux; Android 14) Mobile Chrome/120.0",
        time_on_page=42,
        scroll_depth=80,
    )
    event_id = await ingestion.track_engagement(
        alice,
        "premium",
        EngagementCreate(event="page_view", sessionId="s-1", page="/gallery"),
        metadata,
    )

    stored = repositories["engagement"].records[0]
    assert stored.event_id == event_id
    assert stored.user_plan.value == "premium"
    assert stored.context.device_type == DeviceType.MOBILE
    assert stored.context.browser == "Chrome"
    assert stored.context.time_on_page == 42
    assert live_metrics.engagement_events.value({
        "event": "page_view", "feature": "none", "user_plan": "premium", "device_type": "mobile",
    }) == 1


@pytest.mark.asyncio
async def test_engagement_unknown_plan_falls_back_to_free(
    ingestion: IngestionService, repositories, alice
):
    await ingestion.track_engagement(
        alice, "enterprise", EngagementCreate(event="login", sessionId="s-1")
    )
    assert repositories["engagement"].records[0].user_plan.value == "free"


def test_engagement_properties_must_be_flat():
    with pytest.raises(ValueError):
        EngagementCreate(event="login", sessionId="s", properties={"nested": {"a": 1}})


# ── Sales ──


def _sale(transaction_id: str = "txn-1", status: str = "pending", amount: float = 29.0):
    return SalesTransactionCreate(
        transactionId=transaction_id,
        type="subscription",
        amount=amount,
        currency="usd",
        status=status,
        paymentMethod="stripe",
        plan="premium",
    )


@pytest.mark.asyncio
async def test_sales_revenue_counted_once_on_completion(
    ingestion: IngestionService, repositories, live_metrics, alice
):
    await ingestion.track_sales_transaction(alice, _sale())
    revenue_labels = {"type": "subscription", "plan": "premium", "currency": "USD"}
    assert live_metrics.sales_revenue.value(revenue_labels) == 0

    await ingestion.update_sales_transaction(
        alice, "txn-1", SalesTransactionUpdate(status="completed")
    )
    assert live_metrics.sales_revenue.value(revenue_labels) == 29.0

    refunded = await ingestion.update_sales_transaction(
        alice, "txn-1", SalesTransactionUpdate(status="refunded", refund={"amount": 29.0})
    )
    assert refunded.status == TransactionStatus.REFUNDED
    assert refunded.refund.processed_at is not None
    assert live_metrics.sales_revenue.value(revenue_labels) == 29.0
    assert repositories["sales"].records[0].currency == "USD"


@pytest.mark.asyncio
async def test_duplicate_sales_transaction_conflicts(ingestion: IngestionService, alice, bob):
    await ingestion.track_sales_transaction(alice, _sale())
    with pytest.raises(ConflictError):
        await ingestion.track_sales_transaction(bob, _sale())


@pytest.mark.asyncio
async def test_failed_sale_cannot_complete(ingestion: IngestionService, alice):
    await ingestion.track_sales_transaction(alice, _sale(status="failed"))
    with pytest.raises(ValidationError):
        await ingestion.update_sales_transaction(
            alice, "txn-1", SalesTransactionUpdate(status="completed")
        )


# ── Performance ──


def _sample(**overrides) -> PerformanceSampleCreate:
    body = {
        "service": "auth",
        "endpoint": "/login",
        "method": "POST",
        "statusCode": 200,
        "responseTime": 120,
    }
    body.update(overrides)
    return PerformanceSampleCreate(**body)


@pytest.mark.asyncio
async def test_performance_request_id_precedence(ingestion: IngestionService, alice):
    from_body = await ingestion.track_performance_sample(
        alice, "free", _sample(requestId="body-id"), RequestMetadata(request_id="header-id")
    )
    from_header = await ingestion.track_performance_sample(
        alice, "free", _sample(), RequestMetadata(request_id="header-id")
    )
    generated = await ingestion.track_performance_sample(alice, "free", _sample())

    assert from_body == "body-id"
    assert from_header == "header-id"
    assert re.fullmatch(r"req_\d+_[0-9a-z]{9}", generated)


@pytest.mark.asyncio
async def test_duplicate_performance_request_id_conflicts(
    ingestion: IngestionService, repositories, live_metrics, alice
):
    await ingestion.track_performance_sample(alice, "free", _sample(requestId="p-1"))
    with pytest.raises(ConflictError):
        await ingestion.track_performance_sample(alice, "free", _sample(requestId="p-1"))

    assert await repositories["performance"].count(EventFilter()) == 1
    assert live_metrics.http_requests.value({
        "service": "auth", "endpoint": "/login", "method": "POST", "status_code": "200",
    }) == 1


def test_status_code_out_of_range_is_invalid():
    with pytest.raises(ValueError):
        _sample(statusCode=700)


def test_generated_request_ids_embed_clock_millis(clock):
    request_id = generate_request_id(clock)
    assert request_id.startswith(f"req_{int(clock.now.timestamp() * 1000)}_")
