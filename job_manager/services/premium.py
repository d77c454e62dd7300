"""
Premium status resolver.

A company is premium while its subscription is ACTIVE and either has no end
date or ends in the future. Evaluated on every call; nothing is cached.
"""

from datetime import datetime, timezone
from typing import Optional

from job_manager.models.subscription import Subscription, SubscriptionStatus


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_premium_status(
    status: SubscriptionStatus,
    end_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> bool:
    if status != SubscriptionStatus.ACTIVE:
        return False
    if end_at is None:
        return True
    now = _as_utc(now or datetime.now(timezone.utc))
    return _as_utc(end_at) > now


def is_premium(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    if subscription is None:
        return False
    return is_premium_status(subscription.status, subscription.end_at, now)
