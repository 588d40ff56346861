"""Eligibility rules for a draw cycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from .types import DrawConfig, SubscriberSnapshot


def _as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def eligible_again_at(
    subscriber: SubscriberSnapshot, config: DrawConfig
) -> Optional[datetime]:
    """Return when ``subscriber`` leaves the cooldown window.

    ``None`` means the subscriber has never won and no cooldown applies.
    """
    if subscriber.last_won_at is None:
        return None
    return _as_utc(subscriber.last_won_at) + timedelta(
        days=config.eligibility_cooldown_days
    )


def is_eligible(
    subscriber: SubscriberSnapshot, config: DrawConfig, now: datetime
) -> bool:
    """Return ``True`` when ``subscriber`` may win the cycle running at ``now``.

    A subscriber must be currently subscribed and must not have won within the
    last ``eligibility_cooldown_days``. Exactly ``eligibility_cooldown_days``
    since the last win counts as eligible.
    """
    if not subscriber.is_subscribed:
        return False
    cooldown_ends = eligible_again_at(subscriber, config)
    if cooldown_ends is None:
        return True
    return _as_utc(now) >= cooldown_ends


def filter_eligible(
    subscribers: Iterable[SubscriberSnapshot],
    config: DrawConfig,
    now: datetime,
) -> list[SubscriberSnapshot]:
    """Return the subscribers eligible for the cycle running at ``now``.

    Parameters
    ----------
    subscribers : Iterable[SubscriberSnapshot]
        Full subscriber feed, in any order.
    config : DrawConfig
        Configuration supplying the cooldown window.
    now : datetime
        Reference moment of the cycle.

    Returns
    -------
    list[SubscriberSnapshot]
        Eligible subscribers in their input order. An empty feed yields an
        empty list.
    """
    return [s for s in subscribers if is_eligible(s, config, now)]


__all__ = ["eligible_again_at", "filter_eligible", "is_eligible"]
