"""End-to-end HTTP tests: real app, SQLite store, static identity provider."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from metrics_service.infrastructure.database.session import get_db_session
from metrics_service.infrastructure.dependencies import get_identity_provider
from metrics_service.main import create_app

ALICE = {"Authorization": "Bearer alice-token"}
BOB = {"Authorization": "Bearer bob-token"}
ADMIN = {"Authorization": "Bearer admin-token"}


@pytest_asyncio.fixture
async def client(session_factory, identity_provider):
    app = create_app()

    async def _session():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def _sample(status_code: int, response_time: float) -> dict:
    return {
        "service": "auth",
        "endpoint": "/login",
        "method": "POST",
        "statusCode": status_code,
        "responseTime": response_time,
    }


# ── Authentication ──


@pytest.mark.asyncio
async def test_missing_token_is_401(client):
    response = await client.get("/api/ai-tracking/stats")

    assert response.status_code == 401
    assert response.json() == {
        "error": "Authentication Failed",
        "message": "Access token required",
    }


@pytest.mark.asyncio
async def test_unknown_token_is_401(client):
    response = await client.get(
        "/api/performance/stats", headers={"Authorization": "Bearer forged"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_are_403_for_standard_callers(client):
    for path in (
        "/api/ai-tracking/admin/stats",
        "/api/analytics/admin/engagement/stats",
        "/api/analytics/admin/sales/stats",
        "/api/performance/admin/stats",
        "/api/performance/admin/alerts",
    ):
        response = await client.get(path, headers=ALICE)
        assert response.status_code == 403, path
        assert response.json()["error"] == "Access Denied"


# ── AI tracking ──


@pytest.mark.asyncio
async def test_track_then_duplicate_conflicts(client):
    body = {"requestId": "req-1", "model": "gpt-4", "prompt": "Describe this"}

    created = await client.post("/api/ai-tracking/track", json=body, headers=ALICE)
    duplicate = await client.post("/api/ai-tracking/track", json=body, headers=ALICE)

    assert created.status_code == 201
    assert created.json()["requestId"] == "req-1"
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Conflict"


@pytest.mark.asyncio
async def test_invalid_body_is_400_with_field_details(client):
    response = await client.post(
        "/api/ai-tracking/track", json={"requestId": "req-2", "prompt": "x"}, headers=ALICE
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation Error"
    assert data["message"] == "Invalid input"
    assert "model" in [detail["field"] for detail in data["details"]]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path, raw_body, field",
    [
        (
            "/api/performance/track",
            '{"service":"auth","endpoint":"/login","method":"POST",'
            '"statusCode":200,"responseTime":Infinity}',
            "responseTime",
        ),
        (
            "/api/analytics/engagement/track",
            '{"event":"login","sessionId":"s","value":NaN}',
            "value",
        ),
    ],
)
async def test_non_finite_numbers_are_400(client, path, raw_body, field):
    response = await client.post(
        path,
        content=raw_body,
        headers={**ALICE, "Content-Type": "application/json"},
    )
    stats = await client.get("/api/performance/stats", headers=ALICE)

    assert response.status_code == 400
    assert field in [detail["field"] for detail in response.json()["details"]]
    assert stats.json()["stats"]["totalRequests"] == 0


@pytest.mark.asyncio
async def test_invalid_date_filter_is_400(client):
    response = await client.get(
        "/api/ai-tracking/stats",
        params={"startDate": "yesterday-ish", "endDate": "2024-01-01"},
        headers=ALICE,
    )

    assert response.status_code == 400
    assert response.json()["details"] == [
        {"field": "startDate", "message": "Must be an ISO-8601 date or datetime"}
    ]


@pytest.mark.asyncio
async def test_update_flow_and_history_are_scoped(client):
    await client.post(
        "/api/ai-tracking/track",
        json={"requestId": "req-3", "model": "claude-3", "prompt": "p"},
        headers=ALICE,
    )

    foreign = await client.put(
        "/api/ai-tracking/update/req-3", json={"status": "processing"}, headers=BOB
    )
    illegal = await client.put(
        "/api/ai-tracking/update/req-3", json={"status": "completed"}, headers=ALICE
    )
    moved = await client.put(
        "/api/ai-tracking/update/req-3", json={"status": "processing"}, headers=ALICE
    )
    bob_history = await client.get("/api/ai-tracking/history", headers=BOB)
    alice_stats = await client.get(
        "/api/ai-tracking/stats", params={"userId": "bob"}, headers=ALICE
    )

    assert foreign.status_code == 404
    assert illegal.status_code == 400
    assert moved.status_code == 200
    assert moved.json()["status"] == "processing"
    assert bob_history.json()["requests"] == []
    assert bob_history.json()["pagination"]["total"] == 0
    stats = alice_stats.json()
    assert stats["stats"]["totalRequests"] == 1
    assert stats["filters"]["userId"] == "alice"


# ── Analytics ──


@pytest.mark.asyncio
async def test_engagement_and_sales_round_trip(client):
    tracked = await client.post(
        "/api/analytics/engagement/track",
        json={"event": "page_view", "sessionId": "s-1", "page": "/home"},
        headers={**ALICE, "User-Agent": "Mozilla/5.0 (iPad; CPU OS 17_0) Tablet"},
    )
    journey = await client.get("/api/analytics/engagement/journey", headers=ALICE)

    sale = await client.post(
        "/api/analytics/sales/track",
        json={
            "transactionId": "t-1",
            "type": "subscription",
            "amount": 19.5,
            "status": "pending",
            "paymentMethod": "paypal",
            "plan": "premium",
        },
        headers=ALICE,
    )
    completed = await client.put(
        "/api/analytics/sales/update/t-1", json={"status": "completed"}, headers=ALICE
    )
    sales_stats = await client.get("/api/analytics/sales/stats", headers=ALICE)

    assert tracked.status_code == 201
    assert journey.json()["userId"] == "alice"
    assert journey.json()["journey"][0]["deviceType"] == "tablet"
    assert sale.status_code == 201
    assert completed.json()["status"] == "completed"
    body = sales_stats.json()
    assert body["stats"]["totalRevenue"] == 19.5
    assert body["customerLifetimeValue"]["transactionCount"] == 1


# ── Performance ──


@pytest.mark.asyncio
async def test_error_rates_and_alerts_for_failing_endpoint(client):
    for _ in range(5):
        response = await client.post("/api/performance/track", json=_sample(500, 2500), headers=ALICE)
        assert response.status_code == 201
    for _ in range(5):
        await client.post("/api/performance/track", json=_sample(200, 100), headers=ALICE)

    rates = await client.get("/api/performance/error-rates", headers=ALICE)
    alerts = await client.get("/api/performance/admin/alerts", headers=ADMIN)

    group = rates.json()["errorRates"][0]
    assert group["errorRate"] == 50
    assert group["errors"] == [{"statusCode": 500, "count": 5}]
    body = alerts.json()
    assert [(a["service"], a["endpoint"], a["method"]) for a in body["alerts"]] == [
        ("auth", "/login", "POST")
    ]
    assert body["thresholds"] == {"errorRate": 5.0, "responseTime": 2000.0}


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold, expected", [(100, 200), (100.5, 400), (-1, 400)])
async def test_error_rate_threshold_is_a_percentage(client, threshold, expected):
    response = await client.get(
        "/api/performance/admin/alerts",
        params={"errorRateThreshold": threshold},
        headers=ADMIN,
    )

    assert response.status_code == expected
    if expected == 400:
        assert response.json()["details"][0]["field"] == "errorRateThreshold"


@pytest.mark.asyncio
async def test_request_id_header_is_used_for_samples(client):
    response = await client.post(
        "/api/performance/track",
        json=_sample(200, 10),
        headers={**ALICE, "X-Request-ID": "from-header"},
    )
    assert response.json()["requestId"] == "from-header"


# ── Overview ──


@pytest.mark.asyncio
async def test_dashboard_and_top_metrics(client):
    await client.post(
        "/api/ai-tracking/track",
        json={"requestId": "req-9", "model": "gemini-pro", "prompt": "p"},
        headers=ALICE,
    )

    dashboard = await client.get("/api/metrics/dashboard", headers=ALICE)
    top = await client.get(
        "/api/metrics/top-metrics", params={"metric": "ai-models"}, headers=ALICE
    )
    denied = await client.get("/api/metrics/top-metrics", params={"metric": "users"}, headers=ALICE)
    too_many = await client.get(
        "/api/metrics/top-metrics", params={"metric": "ai-models", "limit": 51}, headers=ALICE
    )

    assert dashboard.json()["kpis"]["aiRequests"]["total"] == 1
    assert dashboard.json()["isAdmin"] is False
    assert top.json()["topMetrics"][0]["model"] == "gemini-pro"
    assert denied.status_code == 403
    assert too_many.status_code == 400


@pytest.mark.asyncio
async def test_live_metrics_reflect_ingestion(client):
    await client.post(
        "/api/ai-tracking/track",
        json={"requestId": "req-10", "model": "gpt-4", "prompt": "p"},
        headers=ALICE,
    )

    exposition = await client.get("/metrics")

    assert 'ai_requests_total{model="gpt-4"' in exposition.text
