"""Concrete repository for sales transactions backed by SQLAlchemy."""

from typing import Any

from metrics_service.application.interfaces import SalesTransactionRepository
from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import (
    PaymentMethod,
    RefundDetails,
    SalesContext,
    SalesTransaction,
    SubscriptionDetails,
    SubscriptionInterval,
    TransactionSource,
    TransactionStatus,
    TransactionType,
    UserPlan,
)
from metrics_service.domain.exceptions import NotFoundError
from metrics_service.infrastructure.database.models import SalesTransactionModel
from metrics_service.infrastructure.database.repositories.event_repository import (
    SQLAlchemyEventRepository,
    parse_datetime,
    to_document,
)


def _subscription(document: dict[str, Any] | None) -> SubscriptionDetails | None:
    if not document:
        return None
    return SubscriptionDetails(
        start_date=parse_datetime(document.get("start_date")),
        end_date=parse_datetime(document.get("end_date")),
        interval=SubscriptionInterval(document.get("interval", "monthly")),
        auto_renew=document.get("auto_renew", True),
        trial_end=parse_datetime(document.get("trial_end")),
    )


def _refund(document: dict[str, Any] | None) -> RefundDetails | None:
    if not document:
        return None
    return RefundDetails(
        amount=document.get("amount"),
        reason=document.get("reason"),
        processed_at=parse_datetime(document.get("processed_at")),
    )


class SQLAlchemySalesTransactionRepository(
    SQLAlchemyEventRepository[SalesTransactionModel, SalesTransaction],
    SalesTransactionRepository,
):
    """Implements the SalesTransactionRepository port; updates re-save the whole row."""

    model = SalesTransactionModel
    entity_name = "SalesTransaction"
    natural_key_field = "transactionId"
    natural_key_column = "transaction_id"
    dimension_columns = {
        "type": "type",
        "status": "status",
        "plan": "plan",
        "paymentMethod": "payment_method",
        "currency": "currency",
    }

    def _to_entity(self, model: SalesTransactionModel) -> SalesTransaction:
        context = dict(model.context or {})
        context["source"] = TransactionSource(context.get("source", "web"))
        return SalesTransaction(
            id=model.id,
            transaction_id=model.transaction_id,
            user_id=model.user_id,
            type=TransactionType(model.type),
            amount=model.amount,
            currency=model.currency,
            status=TransactionStatus(model.status),
            payment_method=PaymentMethod(model.payment_method) if model.payment_method else None,
            plan=UserPlan(model.plan),
            subscription=_subscription(model.subscription),
            refund=_refund(model.refund),
            context=SalesContext(**context),
            timestamp=as_utc(model.timestamp),
            updated_at=as_utc(model.updated_at),
        )

    def _to_model(self, entity: SalesTransaction) -> SalesTransactionModel:
        model = SalesTransactionModel(
            transaction_id=entity.transaction_id,
            user_id=entity.user_id,
            timestamp=entity.timestamp,
        )
        self._apply(model, entity)
        return model

    @staticmethod
    def _apply(model: SalesTransactionModel, entity: SalesTransaction) -> None:
        model.type = entity.type.value
        model.amount = entity.amount
        model.currency = entity.currency
        model.status = entity.status.value
        model.payment_method = entity.payment_method.value if entity.payment_method else None
        model.plan = entity.plan.value
        model.subscription = to_document(entity.subscription)
        model.refund = to_document(entity.refund)
        model.context = to_document(entity.context)
        model.updated_at = entity.updated_at

    async def get_owned(
        self, transaction_id: str, user_id: str
    ) -> SalesTransaction | None:
        model = await self._get_owned(transaction_id, user_id)
        return self._to_entity(model) if model else None

    async def update(self, transaction: SalesTransaction) -> SalesTransaction:
        model = await self._get_owned(transaction.transaction_id, transaction.user_id)
        if model is None:
            raise NotFoundError(self.entity_name, transaction.transaction_id)
        self._apply(model, transaction)
        return await self._save(model)
