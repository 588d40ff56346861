"""Draw records and the side-effect commands emitted by the engine.

The engine never persists or notifies anything itself. It returns these
values and leaves their execution to the caller (see
:func:`luckydraw.workflows.apply_commands`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from .types import Money

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class Allocation:
    """Prize assigned to a single winner."""

    subscriber_id: str
    prize_amount: Money
    email: Optional[str] = None


@dataclass(frozen=True)
class DrawRecord:
    """Immutable, auditable outcome of one cycle.

    Attributes
    ----------
    cycle_id : str
        Cycle identifier, usually the ISO week of the draw.
    drawn_at : datetime
        Moment the cycle was executed.
    status : str
        ``"completed"`` or ``"failed"``.
    total_pool : Money
        Prize pool distributed; ``0`` when the cycle failed before the pool
        was computed.
    total_revenue : Money
        Monthly revenue the pool was derived from.
    allocations : tuple[Allocation, ...]
        Winners and their prizes; empty on failure.
    reason : Optional[str]
        Human-readable failure reason.
    config_version : Optional[int]
        Version of the configuration used.
    seed : Optional[str]
        Seed of the random generator, when the engine created it.
    proof_hash : Optional[str]
        SHA-256 of ``"{seed}:{cycle_id}"`` published for audits.
    """

    cycle_id: str
    drawn_at: datetime
    status: str
    total_pool: Money = 0
    total_revenue: Money = 0
    allocations: tuple[Allocation, ...] = field(default_factory=tuple)
    reason: Optional[str] = None
    config_version: Optional[int] = None
    seed: Optional[str] = None
    proof_hash: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_json(self) -> dict:
        """Return a JSON-serializable representation of the record."""
        return {
            "cycle_id": self.cycle_id,
            "drawn_at": self.drawn_at.isoformat(),
            "status": self.status,
            "total_pool": self.total_pool,
            "total_revenue": self.total_revenue,
            "allocations": [
                {
                    "subscriber_id": a.subscriber_id,
                    "email": a.email,
                    "prize_amount": a.prize_amount,
                }
                for a in self.allocations
            ],
            "reason": self.reason,
            "config_version": self.config_version,
            "seed": self.seed,
            "proof_hash": self.proof_hash,
        }


@dataclass(frozen=True)
class PersistDrawRecord:
    record: DrawRecord


@dataclass(frozen=True)
class UpdateWinnerCooldown:
    subscriber_id: str
    won_at: datetime
    prize_amount: Money


@dataclass(frozen=True)
class NotifyWinner:
    subscriber_id: str
    amount: Money
    cycle_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class NotifyAdmins:
    reason: str
    cycle_id: str


DrawCommand = Union[PersistDrawRecord, UpdateWinnerCooldown, NotifyWinner, NotifyAdmins]


__all__ = [
    "Allocation",
    "DrawCommand",
    "DrawRecord",
    "NotifyAdmins",
    "NotifyWinner",
    "PersistDrawRecord",
    "STATUS_COMPLETED",
    "STATUS_FAILED",
    "UpdateWinnerCooldown",
]
