"""Prize pool arithmetic over integer minor units."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidConfiguration
from .types import WEEKS_PER_MONTH, DrawConfig, Money


@dataclass(frozen=True)
class RevenueSplit:
    """Monthly revenue broken down by configured share."""

    draw: Money
    profit: Money
    maintenance: Money


def monthly_revenue_for(active_subscriber_count: int, monthly_fee: Money) -> Money:
    """Return the recurring revenue produced by ``active_subscriber_count`` subscribers."""
    if active_subscriber_count < 0:
        raise ValueError("active_subscriber_count must be non-negative")
    if monthly_fee < 0:
        raise ValueError("monthly_fee must be non-negative")
    return active_subscriber_count * monthly_fee


def compute_pool(monthly_revenue: Money, config: DrawConfig) -> Money:
    """Return the prize pool for one weekly cycle.

    ``pool = floor(monthly_revenue * draw_share_percent / 100 / 4)``, computed
    with a single integer division so no fractional minor units are lost
    between the two divisions.

    Raises
    ------
    InvalidConfiguration
        If ``draw_share_percent`` is negative or the pool would be negative.
    """
    if config.draw_share_percent < 0:
        raise InvalidConfiguration(
            f"draw share percent must be non-negative, got {config.draw_share_percent}"
        )
    if monthly_revenue < 0:
        raise InvalidConfiguration(
            f"prize pool would be negative for revenue {monthly_revenue}"
        )
    return (monthly_revenue * config.draw_share_percent) // (100 * WEEKS_PER_MONTH)


def split_revenue(monthly_revenue: Money, config: DrawConfig) -> RevenueSplit:
    """Break ``monthly_revenue`` into the draw, profit and maintenance shares.

    Each share is floored independently; any remainder left by rounding is
    not assigned.
    """
    return RevenueSplit(
        draw=monthly_revenue * config.draw_share_percent // 100,
        profit=monthly_revenue * config.profit_share_percent // 100,
        maintenance=monthly_revenue * config.maintenance_share_percent // 100,
    )


__all__ = ["RevenueSplit", "compute_pool", "monthly_revenue_for", "split_revenue"]
