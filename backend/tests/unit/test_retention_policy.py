"""Unit tests for per-domain retention horizons."""

from datetime import datetime, timedelta, timezone

import pytest

from metrics_service.domain.entities import EventDomain
from metrics_service.domain.retention import RetentionPolicy


def test_ai_requests_share_the_engagement_horizon():
    policy = RetentionPolicy(engagement_days=45, sales_days=400, performance_days=7)

    assert policy.horizon_days(EventDomain.AI_REQUEST) == 45
    assert policy.horizon_days(EventDomain.ENGAGEMENT) == 45
    assert policy.horizon_days(EventDomain.SALES) == 400
    assert policy.horizon_days(EventDomain.PERFORMANCE) == 7


def test_cutoff_subtracts_horizon():
    now = datetime(2024, 5, 15, tzinfo=timezone.utc)
    assert RetentionPolicy().cutoff(EventDomain.PERFORMANCE, now) == now - timedelta(days=30)


@pytest.mark.parametrize("field", ["engagement_days", "sales_days", "performance_days"])
def test_horizons_must_be_positive(field):
    with pytest.raises(ValueError):
        RetentionPolicy(**{field: 0})
