"""Early warning check run a few days before the draw."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .commands import NotifyAdmins
from .eligibility import filter_eligible
from .types import DrawConfig, SubscriberSnapshot


@dataclass(frozen=True)
class PreflightReport:
    eligible_count: int
    required: int
    sufficient: bool

    def warning_command(self, cycle_id: str) -> Optional[NotifyAdmins]:
        """Return the admin warning to send, or ``None`` when the pool is large enough."""
        if self.sufficient:
            return None
        return NotifyAdmins(
            reason=(
                f"insufficient eligible subscribers for upcoming draw: "
                f"got {self.eligible_count}, need {self.required}"
            ),
            cycle_id=cycle_id,
        )


def check_sufficiency(
    subscribers: Iterable[SubscriberSnapshot],
    config: DrawConfig,
    now: datetime,
) -> PreflightReport:
    """Report whether enough subscribers are currently eligible to draw."""
    eligible_count = len(filter_eligible(subscribers, config, now))
    return PreflightReport(
        eligible_count=eligible_count,
        required=config.winners_per_draw,
        sufficient=eligible_count >= config.winners_per_draw,
    )


__all__ = ["PreflightReport", "check_sufficiency"]
