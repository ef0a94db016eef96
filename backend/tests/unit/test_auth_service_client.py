"""Unit tests for the AuthServiceClient."""

import httpx
import pytest

from metrics_service.domain.exceptions import AuthenticationError
from metrics_service.infrastructure.auth.auth_service_client import AuthServiceClient


# ── Helpers ──


def _make_mock_transport(payload=None, status_code: int = 200, seen: list | None = None):
    """Create a mock transport that returns a fixed response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload if payload is not None else {})

    return httpx.MockTransport(handler)


def _client(transport: httpx.MockTransport) -> AuthServiceClient:
    return AuthServiceClient(
        base_url="http://auth.test/",
        http_client=httpx.AsyncClient(transport=transport),
    )


# ── Tests ──


@pytest.mark.asyncio
async def test_verify_returns_caller_and_forwards_token():
    seen: list[httpx.Request] = []
    transport = _make_mock_transport(
        {"id": "u-1", "role": "admin", "plan": "premium", "email": "a@example.com"}, seen=seen
    )

    caller = await _client(transport).verify("tok-123")

    assert caller.id == "u-1"
    assert caller.role == "admin"
    assert caller.plan == "premium"
    assert caller.email == "a@example.com"
    assert str(seen[0].url) == "http://auth.test/auth/me"
    assert seen[0].headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_verify_accepts_wrapped_user_and_mongo_style_id():
    transport = _make_mock_transport({"user": {"_id": "abc", "name": "Ada"}})

    caller = await _client(transport).verify("tok")

    assert caller.id == "abc"
    assert caller.role == "user"
    assert caller.plan == "free"
    assert caller.name == "Ada"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 403, 500])
async def test_non_200_is_rejected(status_code):
    transport = _make_mock_transport({"error": "nope"}, status_code=status_code)

    with pytest.raises(AuthenticationError):
        await _client(transport).verify("tok")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"role": "admin"}, {"user": {"id": ""}}, ["u-1"]])
async def test_payload_without_id_is_rejected(payload):
    with pytest.raises(AuthenticationError):
        await _client(_make_mock_transport(payload)).verify("tok")


@pytest.mark.asyncio
async def test_timeout_is_an_authentication_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(AuthenticationError) as excinfo:
        await _client(httpx.MockTransport(handler)).verify("tok")

    assert "timed out" in excinfo.value.message


@pytest.mark.asyncio
async def test_connection_error_is_an_authentication_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AuthenticationError):
        await _client(httpx.MockTransport(handler)).verify("tok")


@pytest.mark.asyncio
async def test_empty_token_never_calls_the_service():
    seen: list[httpx.Request] = []

    with pytest.raises(AuthenticationError):
        await _client(_make_mock_transport({"id": "u"}, seen=seen)).verify("")

    assert seen == []
