"""Draw allocation engine: eligibility, pool math, selection and prizes."""

from .commands import (
    Allocation,
    DrawCommand,
    DrawRecord,
    NotifyAdmins,
    NotifyWinner,
    PersistDrawRecord,
    UpdateWinnerCooldown,
)
from .cycle import cycle_id_for, next_draw_at, preflight_at
from .distribution import distribute
from .eligibility import filter_eligible, is_eligible
from .engine import (
    Completed,
    DrawEngine,
    DrawResult,
    DrawState,
    Failed,
    run_cycle,
)
from .errors import (
    DrawError,
    InsufficientEligibleSubscribers,
    InsufficientPrizePool,
    InvalidConfiguration,
)
from .pool import compute_pool, monthly_revenue_for, split_revenue
from .preflight import PreflightReport, check_sufficiency
from .selection import select_winners
from .types import DrawConfig, Money, RandomSource, SubscriberSnapshot

__all__ = [
    "Allocation",
    "Completed",
    "DrawCommand",
    "DrawConfig",
    "DrawEngine",
    "DrawError",
    "DrawRecord",
    "DrawResult",
    "DrawState",
    "Failed",
    "InsufficientEligibleSubscribers",
    "InsufficientPrizePool",
    "InvalidConfiguration",
    "Money",
    "NotifyAdmins",
    "NotifyWinner",
    "PersistDrawRecord",
    "PreflightReport",
    "RandomSource",
    "SubscriberSnapshot",
    "UpdateWinnerCooldown",
    "check_sufficiency",
    "compute_pool",
    "cycle_id_for",
    "distribute",
    "filter_eligible",
    "is_eligible",
    "monthly_revenue_for",
    "next_draw_at",
    "preflight_at",
    "run_cycle",
    "select_winners",
    "split_revenue",
]
