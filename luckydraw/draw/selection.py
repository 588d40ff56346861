"""Unbiased winner selection."""

from __future__ import annotations

from typing import MutableSequence, Sequence, TypeVar

from .errors import InsufficientEligibleSubscribers, InvalidConfiguration
from .types import RandomSource

T = TypeVar("T")


def shuffle_in_place(items: MutableSequence[T], rng: RandomSource) -> None:
    """Fisher-Yates shuffle of ``items`` driven by ``rng``.

    Every permutation is equally likely provided ``rng.randint`` is uniform.
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def select_winners(
    eligible: Sequence[T],
    winners_per_draw: int,
    rng: RandomSource,
) -> list[T]:
    """Pick ``winners_per_draw`` distinct entries from ``eligible``.

    A copy of ``eligible`` is shuffled and the first ``winners_per_draw``
    entries are returned, so every subset of that size is equally likely.
    ``eligible`` itself is left untouched.

    Raises
    ------
    InvalidConfiguration
        If ``winners_per_draw`` is not positive.
    InsufficientEligibleSubscribers
        If ``eligible`` holds fewer entries than ``winners_per_draw``.
    """
    if winners_per_draw <= 0:
        raise InvalidConfiguration(
            f"winners per draw must be positive, got {winners_per_draw}"
        )
    if len(eligible) < winners_per_draw:
        raise InsufficientEligibleSubscribers(len(eligible), winners_per_draw)

    shuffled = list(eligible)
    shuffle_in_place(shuffled, rng)
    return shuffled[:winners_per_draw]


__all__ = ["select_winners", "shuffle_in_place"]
