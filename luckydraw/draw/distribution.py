"""Splitting a prize pool among winners under a minimum-reward floor."""

from __future__ import annotations

from .errors import InsufficientPrizePool, InvalidConfiguration
from .selection import shuffle_in_place
from .types import Money, RandomSource


def required_pool(winners_per_draw: int, minimum_reward: Money) -> Money:
    """Return the smallest pool that pays every winner the floor."""
    return winners_per_draw * minimum_reward


def distribute(
    pool: Money,
    winners_per_draw: int,
    minimum_reward: Money,
    rng: RandomSource,
) -> list[Money]:
    """Partition ``pool`` into ``winners_per_draw`` random prize amounts.

    Parameters
    ----------
    pool : Money
        Total amount to hand out, in minor units.
    winners_per_draw : int
        Number of amounts to produce.
    minimum_reward : Money
        Floor every amount must meet.
    rng : RandomSource
        Source of randomness for both the amounts and their final order.

    Returns
    -------
    list[Money]
        Amounts that sum exactly to ``pool``, each at least
        ``minimum_reward``, in shuffled order.

    Raises
    ------
    InvalidConfiguration
        If ``winners_per_draw`` is not positive or ``minimum_reward`` is
        negative.
    InsufficientPrizePool
        If ``pool`` is smaller than ``winners_per_draw * minimum_reward``.

    Notes
    -----
    Each winner except the last draws uniformly from
    ``[minimum_reward, remaining - still_to_pay * minimum_reward]`` so the
    winners after it can always be paid the floor. The last winner takes
    whatever remains. The amounts are shuffled afterwards so the draw order
    does not favour the earliest positions.
    """
    if winners_per_draw <= 0:
        raise InvalidConfiguration(
            f"winners per draw must be positive, got {winners_per_draw}"
        )
    if minimum_reward < 0:
        raise InvalidConfiguration(
            f"minimum reward must be non-negative, got {minimum_reward}"
        )
    needed = required_pool(winners_per_draw, minimum_reward)
    if pool < needed:
        raise InsufficientPrizePool(pool, needed)

    amounts: list[Money] = []
    remaining = pool
    for position in range(winners_per_draw - 1):
        still_to_pay = winners_per_draw - position - 1
        max_possible = remaining - still_to_pay * minimum_reward
        amount = rng.randint(minimum_reward, max_possible)
        amounts.append(amount)
        remaining -= amount
    amounts.append(remaining)

    shuffle_in_place(amounts, rng)
    return amounts


__all__ = ["distribute", "required_pool"]
