"""Request-level helpers shared by the endpoint modules.

Turns query strings into ``EventFilter`` sets and collects the transport
context (headers, client address, UTM tags) stored alongside ingested events.
"""

from collections.abc import Callable
from datetime import datetime

from fastapi import Request
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from metrics_service.application.services import RequestMetadata
from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import EventFilter
from metrics_service.domain.exceptions import FieldViolation, ValidationError

_DATETIME = TypeAdapter(datetime)

# Dimensions compared against integer columns.
_INTEGER_DIMENSIONS = frozenset({"statusCode"})


def _header_int(request: Request, name: str) -> int:
    """Numeric tracking header; anything unparseable counts as 0."""
    raw = request.headers.get(name)
    try:
        return int(raw) if raw is not None else 0
    except ValueError:
        return 0


def request_metadata(request: Request) -> RequestMetadata:
    headers = request.headers
    query = request.query_params
    return RequestMetadata(
        user_agent=headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
        referrer=headers.get("referer") or headers.get("referrer"),
        session_id=headers.get("x-session-id"),
        request_id=headers.get("x-request-id"),
        utm_source=query.get("utm_source"),
        utm_medium=query.get("utm_medium"),
        utm_campaign=query.get("utm_campaign"),
        screen_resolution=headers.get("x-screen-resolution"),
        time_on_page=_header_int(request, "x-time-on-page"),
        scroll_depth=_header_int(request, "x-scroll-depth"),
        clicks=_header_int(request, "x-clicks"),
        form_interactions=_header_int(request, "x-form-interactions"),
        source=headers.get("x-source"),
        campaign=headers.get("x-campaign"),
        region=headers.get("x-region"),
        timezone=headers.get("x-timezone"),
    )


def parse_datetime_param(name: str, raw: str | None) -> datetime | None:
    if raw is None or raw == "":
        return None
    try:
        return as_utc(_DATETIME.validate_python(raw))
    except PydanticValidationError as exc:
        raise ValidationError.for_field(name, "Must be an ISO-8601 date or datetime") from exc


def event_filter(dimensions: frozenset[str]) -> Callable[[Request], EventFilter]:
    """Build a dependency that reads ``startDate``, ``endDate``, ``userId``
    and the given exact-match dimensions from the query string.

    Every unparseable parameter is reported together.
    """

    def dependency(request: Request) -> EventFilter:
        query = request.query_params
        violations: list[FieldViolation] = []

        bounds: dict[str, datetime | None] = {}
        for name in ("startDate", "endDate"):
            try:
                bounds[name] = parse_datetime_param(name, query.get(name))
            except ValidationError as exc:
                violations.extend(exc.violations)
                bounds[name] = None

        values: dict[str, str | int] = {}
        for name in sorted(dimensions):
            raw = query.get(name)
            if raw is None or raw == "":
                continue
            if name in _INTEGER_DIMENSIONS:
                try:
                    values[name] = int(raw)
                except ValueError:
                    violations.append(FieldViolation(name, "Must be an integer"))
                continue
            values[name] = raw

        start, end = bounds["startDate"], bounds["endDate"]
        if start is not None and end is not None and start > end:
            violations.append(FieldViolation("startDate", "Must not be after endDate"))
        if violations:
            raise ValidationError(violations)

        return EventFilter(
            start_date=start,
            end_date=end,
            user_id=query.get("userId") or None,
            dimensions=values,
        )

    return dependency
