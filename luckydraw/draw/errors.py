"""Exceptions raised by the draw components."""

from __future__ import annotations


class DrawError(ValueError):
    """Base class for expected, recoverable draw failures."""


class InvalidConfiguration(DrawError):
    """Raised when configuration values make a draw impossible to compute."""


class InsufficientEligibleSubscribers(DrawError):
    """Raised when fewer eligible subscribers exist than winners required."""

    def __init__(self, eligible_count: int, required: int) -> None:
        self.eligible_count = eligible_count
        self.required = required
        super().__init__(
            f"insufficient eligible subscribers: got {eligible_count}, need {required}"
        )


class InsufficientPrizePool(DrawError):
    """Raised when the pool cannot cover the minimum reward for every winner."""

    def __init__(self, pool: int, required: int) -> None:
        self.pool = pool
        self.required = required
        super().__init__("insufficient prize pool")


__all__ = [
    "DrawError",
    "InsufficientEligibleSubscribers",
    "InsufficientPrizePool",
    "InvalidConfiguration",
]
