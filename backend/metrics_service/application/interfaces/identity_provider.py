"""Abstract interface for the external identity-verification service."""

from abc import ABC, abstractmethod

from metrics_service.domain.entities import Caller


class IdentityProvider(ABC):
    """Port: verifies a bearer token and returns the caller's identity."""

    @abstractmethod
    async def verify(self, token: str) -> Caller:
        """Resolve ``token`` to a verified caller.

        Raises:
            AuthenticationError: on any failure, including the provider
                being unreachable. Never grants access on error.
        """
        ...
