"""Value objects shared by the draw allocation engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

Money = int
"""Monetary amount in integer minor units (e.g. paise)."""

WEEKS_PER_MONTH = 4
"""Fixed number of weekly cycles assumed per month of revenue."""


class RandomSource(Protocol):
    """Minimal interface the engine needs from a random number generator.

    Any :class:`random.Random` instance satisfies it. Give each cycle its own
    instance; the engine never shares one between calls.
    """

    def randint(self, a: int, b: int) -> int:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True)
class DrawConfig:
    """Immutable configuration for a single draw cycle.

    Attributes
    ----------
    draw_share_percent : int
        Percentage of monthly revenue earmarked for prizes.
    profit_share_percent : int
        Percentage kept as profit. Not used by the engine.
    maintenance_share_percent : int
        Percentage reserved for maintenance. Not used by the engine.
    winners_per_draw : int
        Number of winners selected each cycle.
    minimum_reward_amount : Money
        Guaranteed floor per winner, in minor units.
    eligibility_cooldown_days : int
        Days a previous winner waits before becoming eligible again.
    preflight_lead_days : int
        Days before the draw that the preflight check runs.
    version : Optional[int]
        Identifier of the stored configuration this value was built from.
    """

    draw_share_percent: int = 50
    profit_share_percent: int = 30
    maintenance_share_percent: int = 20
    winners_per_draw: int = 3
    minimum_reward_amount: Money = 500
    eligibility_cooldown_days: int = 21
    preflight_lead_days: int = 5
    version: Optional[int] = None


@dataclass(frozen=True)
class SubscriberSnapshot:
    """Read-only view of a subscriber as handed to the engine."""

    id: str
    email: Optional[str] = None
    is_subscribed: bool = False
    last_won_at: Optional[datetime] = None


__all__ = [
    "DrawConfig",
    "Money",
    "RandomSource",
    "SubscriberSnapshot",
    "WEEKS_PER_MONTH",
]
