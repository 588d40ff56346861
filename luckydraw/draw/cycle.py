"""Helpers for naming draw cycles and computing their schedule."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

IST = timezone(timedelta(hours=5, minutes=30), "IST")
"""Default timezone for scheduled draws."""


def cycle_id_for(moment: datetime) -> str:
    """Return the ISO week identifier (``YYYY-Www``) of ``moment``.

    The week is taken from ``moment`` as given; convert it to the schedule's
    timezone first when the calendar week matters.
    """
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def next_draw_at(
    now: datetime,
    day_of_week: int,
    hour: int,
    tz: Optional[tzinfo] = None,
) -> datetime:
    """Return the next scheduled draw strictly after ``now``.

    Parameters
    ----------
    now : datetime
        Reference moment. Naive values are treated as UTC.
    day_of_week : int
        Weekday of the draw, ``0`` for Monday through ``6`` for Sunday.
    hour : int
        Hour of the draw in ``tz``.
    tz : Optional[tzinfo], default: None
        Schedule timezone, :data:`IST` when omitted.
    """
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 and 6")
    if not 0 <= hour <= 23:
        raise ValueError("hour must be between 0 and 23")

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz or IST)
    days_ahead = (day_of_week - local_now.weekday()) % 7
    candidate = local_now.replace(
        hour=hour, minute=0, second=0, microsecond=0
    ) + timedelta(days=days_ahead)
    if candidate <= local_now:
        candidate += timedelta(days=7)
    return candidate


def preflight_at(draw_at: datetime, lead_days: int) -> datetime:
    """Return when the preflight check for the draw at ``draw_at`` should run."""
    if lead_days <= 0:
        raise ValueError("lead_days must be positive")
    return draw_at - timedelta(days=lead_days)


__all__ = ["IST", "cycle_id_for", "next_draw_at", "preflight_at"]
