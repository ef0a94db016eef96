"""Turns a verified caller into the actor scope every read and write runs under."""

import logging

from metrics_service.domain.entities import AccessScope, Caller, EventFilter
from metrics_service.domain.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


class AccessScopeResolver:
    """Standard callers only ever see their own records; elevated callers see all."""

    def __init__(self, admin_role: str = "admin"):
        self._admin_role = admin_role

    def resolve(self, caller: Caller) -> AccessScope:
        return AccessScope(user_id=caller.id, elevated=caller.role == self._admin_role)

    @staticmethod
    def narrow(scope: AccessScope, event_filter: EventFilter) -> EventFilter:
        """Merge the scope into a filter set.

        A standard caller's own id always replaces whatever actor id the
        request supplied. Elevated callers keep their requested filter.
        """
        if scope.elevated:
            return event_filter
        return event_filter.with_user(scope.user_id)

    @staticmethod
    def require_elevated(scope: AccessScope, operation: str) -> None:
        if not scope.elevated:
            logger.warning("User %s denied %s", scope.user_id, operation)
            raise AuthorizationError(operation)
