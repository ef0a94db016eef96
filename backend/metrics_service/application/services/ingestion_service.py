"""Ingestion Service: validated, idempotent writes with live-metrics fan-out.

Every write path follows the same order: uniqueness pre-check, durable
write, then exactly one set of live-metrics mutations. Any error raised
before the fan-out leaves the registry untouched.
"""

import logging
import secrets
import string
from dataclasses import dataclass

from metrics_service.application.interfaces import (
    AIRequestRepository,
    EngagementEventRepository,
    LiveMetrics,
    PerformanceSampleRepository,
    SalesTransactionRepository,
)
from metrics_service.application.schemas import (
    AIRequestCreate,
    AIRequestUpdate,
    EngagementCreate,
    PerformanceSampleCreate,
    SalesTransactionCreate,
    SalesTransactionUpdate,
)
from metrics_service.domain.clock import Clock, utc_now
from metrics_service.domain.entities import (
    AccessScope,
    AIRequest,
    AIRequestContext,
    AIRequestStatus,
    EngagementContext,
    EngagementEvent,
    PerformanceContext,
    PerformanceSample,
    RefundDetails,
    RequestError,
    SalesContext,
    SalesTransaction,
    SubscriptionDetails,
    TokenUsage,
    TransactionSource,
    TransactionStatus,
    UserPlan,
)
from metrics_service.domain.exceptions import ConflictError, NotFoundError
from metrics_service.domain.user_agent import parse_user_agent

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class RequestMetadata:
    """Transport-level context captured alongside an ingested event."""

    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    session_id: str | None = None
    request_id: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    screen_resolution: str | None = None
    time_on_page: int = 0
    scroll_depth: int = 0
    clicks: int = 0
    form_interactions: int = 0
    source: str | None = None
    campaign: str | None = None
    region: str | None = None
    timezone: str | None = None


def generate_request_id(clock: Clock = utc_now) -> str:
    """``req_<epoch-ms>_<9 base36 chars>``."""
    millis = int(clock().timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"req_{millis}_{suffix}"


def _plan(value: str | None) -> UserPlan:
    try:
        return UserPlan(value)
    except ValueError:
        return UserPlan.FREE


def _source(value: str | None) -> TransactionSource:
    try:
        return TransactionSource(value)
    except ValueError:
        return TransactionSource.WEB


class IngestionService:
    """Accepts events for all four domains on behalf of a scoped caller."""

    def __init__(
        self,
        ai_requests: AIRequestRepository,
        engagement_events: EngagementEventRepository,
        sales_transactions: SalesTransactionRepository,
        performance_samples: PerformanceSampleRepository,
        live_metrics: LiveMetrics,
        clock: Clock = utc_now,
    ):
        self._ai_requests = ai_requests
        self._engagement_events = engagement_events
        self._sales_transactions = sales_transactions
        self._performance_samples = performance_samples
        self._live_metrics = live_metrics
        self._clock = clock

    # -- AI requests ---------------------------------------------------------

    async def track_ai_request(
        self,
        scope: AccessScope,
        payload: AIRequestCreate,
        metadata: RequestMetadata | None = None,
    ) -> str:
        metadata = metadata or RequestMetadata()
        if await self._ai_requests.exists(payload.request_id):
            logger.warning("Duplicate AI request %s rejected", payload.request_id)
            raise ConflictError("AIRequest", "requestId", payload.request_id)

        request = AIRequest(
            request_id=payload.request_id,
            user_id=scope.user_id,
            model=payload.model,
            prompt=payload.prompt,
            feature=payload.feature,
            complexity=payload.complexity,
            language=payload.language,
            user_plan=payload.user_plan,
            context=AIRequestContext(
                user_agent=metadata.user_agent,
                ip_address=metadata.ip_address,
                session_id=metadata.session_id,
            ),
        )
        request.start(self._clock())
        stored = await self._ai_requests.create(request)

        self._live_metrics.record_ai_request_created(stored)
        logger.info(
            "AI request tracked: %s user=%s model=%s feature=%s",
            stored.request_id,
            stored.user_id,
            stored.model.value,
            stored.feature.value,
        )
        return stored.request_id

    async def update_ai_request(
        self, scope: AccessScope, request_id: str, patch: AIRequestUpdate
    ) -> AIRequest:
        """Apply a partial update to a request the caller owns.

        Raises:
            NotFoundError: when no request with this id belongs to the caller.
            ValidationError: when the status transition is not allowed.
        """
        request = await self._ai_requests.get_owned(request_id, scope.user_id)
        if request is None:
            raise NotFoundError("AIRequest", request_id)

        tokens = None
        if patch.tokens is not None:
            tokens = TokenUsage(input=patch.tokens.input, output=patch.tokens.output)
        error = None
        if patch.error is not None:
            error = RequestError(
                code=patch.error.code,
                message=patch.error.message,
                details=patch.error.details,
            )

        changed = request.apply_update(
            self._clock(),
            status=patch.status,
            response=patch.response,
            tokens=tokens,
            cost=patch.cost,
            error=error,
        )
        saved = await self._ai_requests.update(request)

        newly_completed = changed and saved.status == AIRequestStatus.COMPLETED
        self._live_metrics.record_ai_request_updated(saved, newly_completed=newly_completed)
        logger.info(
            "AI request updated: %s status=%s duration=%s",
            saved.request_id,
            saved.status.value,
            saved.timing.duration,
        )
        return saved

    # -- Engagement ----------------------------------------------------------

    async def track_engagement(
        self,
        scope: AccessScope,
        caller_plan: str | None,
        payload: EngagementCreate,
        metadata: RequestMetadata | None = None,
    ) -> str:
        metadata = metadata or RequestMetadata()
        client = parse_user_agent(metadata.user_agent)
        event = EngagementEvent(
            user_id=scope.user_id,
            session_id=payload.session_id,
            event=payload.event,
            page=payload.page,
            feature=payload.feature,
            value=payload.value,
            properties=dict(payload.properties),
            user_plan=_plan(caller_plan),
            context=EngagementContext(
                user_agent=metadata.user_agent,
                ip_address=metadata.ip_address,
                referrer=metadata.referrer,
                utm_source=metadata.utm_source,
                utm_medium=metadata.utm_medium,
                utm_campaign=metadata.utm_campaign,
                device_type=client.device_type,
                browser=client.browser,
                os=client.os,
                screen_resolution=metadata.screen_resolution,
                time_on_page=metadata.time_on_page,
                scroll_depth=metadata.scroll_depth,
                clicks=metadata.clicks,
                form_interactions=metadata.form_interactions,
            ),
            timestamp=self._clock(),
        )
        stored = await self._engagement_events.create(event)

        self._live_metrics.record_engagement(stored)
        logger.info(
            "Engagement event tracked: %s user=%s event=%s",
            stored.event_id,
            stored.user_id,
            stored.event.value,
        )
        return stored.event_id

    # -- Sales ---------------------------------------------------------------

    async def track_sales_transaction(
        self,
        scope: AccessScope,
        payload: SalesTransactionCreate,
        metadata: RequestMetadata | None = None,
    ) -> str:
        metadata = metadata or RequestMetadata()
        if await self._sales_transactions.exists(payload.transaction_id):
            logger.warning("Duplicate sales transaction %s rejected", payload.transaction_id)
            raise ConflictError("SalesTransaction", "transactionId", payload.transaction_id)

        now = self._clock()
        subscription = None
        if payload.subscription is not None:
            subscription = SubscriptionDetails(**payload.subscription.model_dump())
        refund = None
        if payload.refund is not None:
            refund = RefundDetails(**payload.refund.model_dump())

        transaction = SalesTransaction(
            transaction_id=payload.transaction_id,
            user_id=scope.user_id,
            type=payload.type,
            amount=payload.amount,
            status=payload.status,
            currency=payload.currency,
            payment_method=payload.payment_method,
            plan=payload.plan,
            subscription=subscription,
            refund=refund,
            context=SalesContext(
                user_agent=metadata.user_agent,
                ip_address=metadata.ip_address,
                source=_source(metadata.source),
                campaign=metadata.campaign,
                utm_source=metadata.utm_source,
                utm_medium=metadata.utm_medium,
                utm_campaign=metadata.utm_campaign,
                referrer=metadata.referrer,
                description=payload.description,
                invoice_number=payload.invoice_number,
            ),
            timestamp=now,
            updated_at=now,
        )
        stored = await self._sales_transactions.create(transaction)

        self._live_metrics.record_sales_transaction(
            stored, newly_completed=stored.status == TransactionStatus.COMPLETED
        )
        logger.info(
            "Sales transaction tracked: %s user=%s type=%s amount=%s %s",
            stored.transaction_id,
            stored.user_id,
            stored.type.value,
            stored.amount,
            stored.currency,
        )
        return stored.transaction_id

    async def update_sales_transaction(
        self, scope: AccessScope, transaction_id: str, patch: SalesTransactionUpdate
    ) -> SalesTransaction:
        """Change status and/or attach refund details, then re-save the whole record."""
        transaction = await self._sales_transactions.get_owned(transaction_id, scope.user_id)
        if transaction is None:
            raise NotFoundError("SalesTransaction", transaction_id)

        now = self._clock()
        changed = False
        if patch.status is not None:
            changed = transaction.transition_to(patch.status)
        if patch.refund is not None:
            transaction.refund = RefundDetails(
                amount=patch.refund.amount,
                reason=patch.refund.reason,
                processed_at=patch.refund.processed_at or now,
            )
        transaction.updated_at = now
        saved = await self._sales_transactions.update(transaction)

        newly_completed = changed and saved.status == TransactionStatus.COMPLETED
        self._live_metrics.record_sales_transaction(saved, newly_completed=newly_completed)
        logger.info(
            "Sales transaction updated: %s status=%s",
            saved.transaction_id,
            saved.status.value,
        )
        return saved

    # -- Performance ---------------------------------------------------------

    async def track_performance_sample(
        self,
        scope: AccessScope,
        caller_plan: str | None,
        payload: PerformanceSampleCreate,
        metadata: RequestMetadata | None = None,
    ) -> str:
        metadata = metadata or RequestMetadata()
        request_id = (
            payload.request_id
            or metadata.request_id
            or generate_request_id(self._clock)
        )
        if await self._performance_samples.exists(request_id):
            logger.warning("Duplicate performance sample %s rejected", request_id)
            raise ConflictError("PerformanceSample", "requestId", request_id)

        client = parse_user_agent(metadata.user_agent)
        sample = PerformanceSample(
            request_id=request_id,
            service=payload.service,
            endpoint=payload.endpoint,
            method=payload.method,
            status_code=payload.status_code,
            response_time=payload.response_time,
            user_id=scope.user_id,
            request_size=payload.request_size,
            response_size=payload.response_size,
            error=payload.error,
            system=payload.system.to_entity() if payload.system else None,
            database=payload.database.to_entity() if payload.database else None,
            cache=payload.cache.to_entity() if payload.cache else None,
            context=PerformanceContext(
                user_agent=metadata.user_agent,
                ip_address=metadata.ip_address,
                user_plan=_plan(caller_plan),
                region=metadata.region,
                timezone=metadata.timezone,
                browser=client.browser,
                os=client.os,
                device_type=client.device_type,
            ),
            timestamp=self._clock(),
        )
        stored = await self._performance_samples.create(sample)

        self._live_metrics.record_performance_sample(stored)
        logger.info(
            "Performance sample tracked: %s %s %s %s -> %d in %.1fms",
            stored.request_id,
            stored.service.value,
            stored.method.value,
            stored.endpoint,
            stored.status_code,
            stored.response_time,
        )
        return stored.request_id
