"""Identity-service client: implements the IdentityProvider interface.

Delegates bearer-token verification to ``GET {base_url}/auth/me``. Every
failure mode (non-200, timeout, transport error, unusable payload) is an
authentication failure. The client never grants access on error.
"""

import logging
from typing import Any

import httpx

from metrics_service.application.interfaces import IdentityProvider
from metrics_service.domain.entities import Caller
from metrics_service.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class AuthServiceClient(IdentityProvider):
    """Infrastructure adapter for the external auth service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def verify(self, token: str) -> Caller:
        if not token:
            raise AuthenticationError("Access token required")

        client = await self._get_client()
        should_close = self._http_client is None
        try:
            response = await client.get(
                f"{self._base_url}/auth/me",
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            logger.warning("Auth service timed out after %ss", self._timeout)
            raise AuthenticationError("Authentication service timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("Auth service unreachable: %s", exc)
            raise AuthenticationError("Authentication service unavailable") from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            logger.warning("Token rejected by auth service (HTTP %d)", response.status_code)
            raise AuthenticationError("Invalid token")

        try:
            data = response.json()
        except ValueError as exc:
            raise AuthenticationError("Invalid token") from exc
        return self._parse_caller(data)

    @staticmethod
    def _parse_caller(data: Any) -> Caller:
        """Accept either the user object itself or ``{"user": {...}}``."""
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        if not isinstance(data, dict):
            raise AuthenticationError("Invalid token")

        user_id = data.get("id") or data.get("_id")
        if not user_id:
            raise AuthenticationError("Invalid token")
        return Caller(
            id=str(user_id),
            role=str(data.get("role") or "user"),
            plan=str(data.get("plan") or "free"),
            email=data.get("email"),
            name=data.get("name"),
        )
