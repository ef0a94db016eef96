"""Read-side aggregates over sales transactions.

Revenue figures only ever include completed transactions.
"""

import logging

from metrics_service.application.interfaces import SalesTransactionRepository
from metrics_service.application.schemas import (
    AppliedFilters,
    CustomerLifetimeValue,
    PaymentMethodBreakdown,
    PlanRevenue,
    RecurringRevenue,
    SalesAdminStatsResponse,
    SalesStats,
    SalesStatsResponse,
    TopRevenue,
)
from metrics_service.application.services import aggregation as agg
from metrics_service.application.services.scope_resolver import AccessScopeResolver
from metrics_service.domain.clock import Clock, utc_now
from metrics_service.domain.entities import (
    AccessScope,
    EventFilter,
    SalesTransaction,
    TimeBucket,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)


def summarize(transactions: list[SalesTransaction]) -> SalesStats:
    if not transactions:
        return SalesStats()
    completed = [t for t in transactions if t.counts_as_revenue]
    revenue = sum(t.amount for t in completed)
    return SalesStats(
        total_transactions=len(transactions),
        total_revenue=revenue,
        avg_transaction_value=agg.safe_ratio(revenue, len(completed)),
        successful_transactions=len(completed),
        failed_transactions=sum(1 for t in transactions if t.status == TransactionStatus.FAILED),
        refunded_transactions=sum(
            1 for t in transactions if t.status == TransactionStatus.REFUNDED
        ),
        total_refunds=sum(
            t.refund.amount for t in transactions if t.refund and t.refund.amount is not None
        ),
    )


def revenue_by_plan(transactions: list[SalesTransaction]) -> list[PlanRevenue]:
    completed = [t for t in transactions if t.counts_as_revenue]
    rows = []
    for plan, group in agg.group_by(completed, lambda t: t.plan.value).items():
        revenue = sum(t.amount for t in group)
        rows.append(
            PlanRevenue(
                plan=plan,
                total_revenue=revenue,
                transaction_count=len(group),
                avg_transaction_value=agg.safe_ratio(revenue, len(group)),
            )
        )
    return agg.rank(rows, lambda row: row.total_revenue)


def lifetime_value(transactions: list[SalesTransaction]) -> CustomerLifetimeValue:
    completed = [t for t in transactions if t.counts_as_revenue]
    if not completed:
        return CustomerLifetimeValue()
    spent = sum(t.amount for t in completed)
    return CustomerLifetimeValue(
        total_spent=spent,
        transaction_count=len(completed),
        avg_order_value=agg.safe_ratio(spent, len(completed)),
        first_purchase=min(t.timestamp for t in completed),
        last_purchase=max(t.timestamp for t in completed),
    )


class SalesQueryService:
    def __init__(
        self,
        repository: SalesTransactionRepository,
        scope_resolver: AccessScopeResolver,
        clock: Clock = utc_now,
    ):
        self._repository = repository
        self._scopes = scope_resolver
        self._clock = clock

    async def _matching(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> tuple[EventFilter, list[SalesTransaction]]:
        agg.check_dimensions(event_filter, self._repository.dimensions)
        narrowed = self._scopes.narrow(scope, event_filter)
        records = await self._repository.find(narrowed)
        logger.debug("Sales query matched %d records (%s)", len(records), narrowed)
        return narrowed, records

    async def stats_row(self, scope: AccessScope, event_filter: EventFilter) -> SalesStats:
        _, records = await self._matching(scope, event_filter)
        return await agg.offload(summarize, records)

    async def stats(self, scope: AccessScope, event_filter: EventFilter) -> SalesStatsResponse:
        narrowed, records = await self._matching(scope, event_filter)
        own = await self._repository.find(EventFilter(user_id=scope.user_id))
        return SalesStatsResponse(
            stats=await agg.offload(summarize, records),
            revenue_by_plan=await agg.offload(revenue_by_plan, records),
            customer_lifetime_value=await agg.offload(lifetime_value, own),
            filters=AppliedFilters.of(narrowed),
        )

    async def admin_stats(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> SalesAdminStatsResponse:
        self._scopes.require_elevated(scope, "sales admin stats")
        narrowed, records = await self._matching(scope, event_filter)
        mrr = await self.monthly_recurring_revenue()

        def build() -> SalesAdminStatsResponse:
            completed = [t for t in records if t.counts_as_revenue]
            methods = []
            for method, group in agg.group_by(
                completed, lambda t: t.payment_method.value if t.payment_method else None
            ).items():
                amount = sum(t.amount for t in group)
                methods.append(
                    PaymentMethodBreakdown(
                        payment_method=method,
                        count=len(group),
                        total_amount=amount,
                        avg_amount=agg.safe_ratio(amount, len(group)),
                    )
                )
            return SalesAdminStatsResponse(
                stats=summarize(records),
                revenue_by_plan=revenue_by_plan(records),
                monthly_recurring_revenue=mrr,
                payment_method_distribution=agg.rank(methods, lambda row: row.count),
                filters=AppliedFilters.of(narrowed),
            )

        return await agg.offload(build)

    async def monthly_recurring_revenue(self) -> RecurringRevenue:
        """Completed subscription revenue booked in the current calendar month."""
        now = self._clock()
        month_start = agg.bucket_start(now, TimeBucket.MONTH)
        records = await self._repository.find(
            EventFilter(
                start_date=month_start,
                end_date=now,
                dimensions={
                    "type": TransactionType.SUBSCRIPTION,
                    "status": TransactionStatus.COMPLETED,
                },
            )
        )
        return RecurringRevenue(
            month=month_start.strftime("%Y-%m"),
            mrr=sum(t.amount for t in records),
            subscription_count=len(records),
        )

    async def top_revenue(
        self, scope: AccessScope, event_filter: EventFilter, limit: int
    ) -> list[TopRevenue]:
        self._scopes.require_elevated(scope, "revenue metrics")
        agg.validate_limit(limit)
        _, records = await self._matching(scope, event_filter)

        def build() -> list[TopRevenue]:
            completed = [t for t in records if t.counts_as_revenue]
            rows = [
                TopRevenue(
                    user_id=user_id,
                    total_revenue=sum(t.amount for t in group),
                    transaction_count=len(group),
                )
                for user_id, group in agg.group_by(completed, lambda t: t.user_id).items()
            ]
            return agg.top_n(rows, lambda row: row.total_revenue, limit)

        return await agg.offload(build)
