"""Engine that runs one draw cycle end to end."""

from __future__ import annotations

import enum
import hashlib
import logging
import random
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Union

from .commands import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    Allocation,
    DrawCommand,
    DrawRecord,
    NotifyAdmins,
    NotifyWinner,
    PersistDrawRecord,
    UpdateWinnerCooldown,
)
from .cycle import cycle_id_for
from .distribution import distribute, required_pool
from .eligibility import filter_eligible
from .errors import (
    DrawError,
    InsufficientEligibleSubscribers,
    InsufficientPrizePool,
    InvalidConfiguration,
)
from .pool import compute_pool
from .selection import select_winners
from .types import DrawConfig, Money, RandomSource, SubscriberSnapshot

logger = logging.getLogger(__name__)


class DrawState(enum.Enum):
    NOT_STARTED = "not_started"
    ELIGIBILITY_CHECKED = "eligibility_checked"
    POOL_COMPUTED = "pool_computed"
    WINNERS_SELECTED = "winners_selected"
    PRIZES_DISTRIBUTED = "prizes_distributed"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Completed:
    """Successful cycle.

    Attributes
    ----------
    record : DrawRecord
        Record to persist, with ``status == "completed"``.
    commands : tuple[DrawCommand, ...]
        Side effects the caller must apply: persist the record, then update
        the cooldown and notify each winner.
    states : tuple[DrawState, ...]
        States visited by the cycle, in order.
    """

    record: DrawRecord
    commands: tuple[DrawCommand, ...]
    states: tuple[DrawState, ...]

    @property
    def total_pool(self) -> Money:
        return self.record.total_pool

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return self.record.allocations


@dataclass(frozen=True)
class Failed:
    """Cycle that stopped before any money was allocated.

    ``failed_from`` is the last state reached before the failure.
    """

    record: DrawRecord
    commands: tuple[DrawCommand, ...]
    states: tuple[DrawState, ...]
    failed_from: DrawState

    @property
    def reason(self) -> str:
        return self.record.reason or ""


DrawResult = Union[Completed, Failed]


def proof_hash_for(seed: str, cycle_id: str) -> str:
    """Return the SHA-256 commitment published for ``seed`` in ``cycle_id``."""
    return hashlib.sha256(f"{seed}:{cycle_id}".encode("utf-8")).hexdigest()


def _check_config(config: DrawConfig) -> None:
    if config.winners_per_draw <= 0:
        raise InvalidConfiguration(
            f"winners per draw must be positive, got {config.winners_per_draw}"
        )
    if config.minimum_reward_amount <= 0:
        raise InvalidConfiguration(
            f"minimum reward must be positive, got {config.minimum_reward_amount}"
        )


class DrawEngine:
    """Stateless orchestrator for weekly draw cycles.

    The engine holds no per-cycle state, so one instance can serve concurrent
    cycles as long as each call gets its own random source.
    """

    def __init__(
        self,
        *,
        rng_factory: Optional[Callable[[str], RandomSource]] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        rng_factory : Optional[Callable[[str], RandomSource]], default: None
            Builds a random source from a seed string when :meth:`run_cycle`
            is not handed one. Defaults to :class:`random.Random`.
        """
        self._rng_factory = rng_factory or random.Random

    def run_cycle(
        self,
        subscribers: Sequence[SubscriberSnapshot],
        monthly_revenue: Money,
        config: DrawConfig,
        now: datetime,
        rng: Optional[RandomSource] = None,
        *,
        cycle_id: Optional[str] = None,
        seed: Optional[str] = None,
    ) -> DrawResult:
        """Execute one draw cycle and describe its side effects.

        Parameters
        ----------
        subscribers : Sequence[SubscriberSnapshot]
            Subscriber feed for the cycle.
        monthly_revenue : Money
            Recurring revenue the pool is carved from, in minor units.
        config : DrawConfig
            Configuration snapshot for this cycle.
        now : datetime
            Moment of the draw; used for eligibility and as the win time.
        rng : Optional[RandomSource], default: None
            Random source owned by this call. When omitted, one is built
            from ``seed`` (or a fresh random seed), and the seed is stored on
            the record so the cycle can be replayed.
        cycle_id : Optional[str], default: None
            Cycle identifier; the ISO week of ``now`` when omitted.
        seed : Optional[str], default: None
            Seed for the engine-built random source. Cannot be combined with
            ``rng``.

        Returns
        -------
        DrawResult
            :class:`Completed` or :class:`Failed`, each carrying the draw
            record and the commands to apply.

        Notes
        -----
        The cycle runs the steps in order: eligibility, pool, winner
        selection, prize distribution. If fewer subscribers are eligible than
        winners are needed the cycle fails before the pool is computed, and if
        the pool cannot pay every winner the floor it fails before anyone is
        selected. Nothing is retried.
        """
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")

        resolved_cycle_id = cycle_id or cycle_id_for(now)
        proof_hash: Optional[str] = None
        if rng is None:
            seed = seed if seed is not None else secrets.token_hex(16)
            rng = self._rng_factory(seed)
            proof_hash = proof_hash_for(seed, resolved_cycle_id)

        cycle = _Cycle(
            cycle_id=resolved_cycle_id,
            now=now,
            monthly_revenue=monthly_revenue,
            config=config,
            seed=seed,
            proof_hash=proof_hash,
        )

        try:
            _check_config(config)
        except InvalidConfiguration as exc:
            return cycle.fail(str(exc))

        eligible = filter_eligible(subscribers, config, now)
        cycle.advance(DrawState.ELIGIBILITY_CHECKED)
        if len(eligible) < config.winners_per_draw:
            return cycle.fail(
                str(InsufficientEligibleSubscribers(len(eligible), config.winners_per_draw))
            )

        try:
            pool = compute_pool(monthly_revenue, config)
        except InvalidConfiguration as exc:
            return cycle.fail(str(exc))
        cycle.pool = pool
        cycle.advance(DrawState.POOL_COMPUTED)
        needed = required_pool(config.winners_per_draw, config.minimum_reward_amount)
        if pool < needed:
            return cycle.fail(str(InsufficientPrizePool(pool, needed)))

        try:
            winners = select_winners(eligible, config.winners_per_draw, rng)
            cycle.advance(DrawState.WINNERS_SELECTED)
            amounts = distribute(
                pool, config.winners_per_draw, config.minimum_reward_amount, rng
            )
            cycle.advance(DrawState.PRIZES_DISTRIBUTED)
        except DrawError as exc:  # pragma: no cover - preconditions checked above
            return cycle.fail(str(exc))

        # ``distribute`` shuffles the amounts, so pairing by position carries
        # no selection-order bias.
        allocations = tuple(
            Allocation(
                subscriber_id=winner.id,
                prize_amount=amount,
                email=winner.email,
            )
            for winner, amount in zip(winners, amounts)
        )
        return cycle.complete(allocations)


class _Cycle:
    """Mutable bookkeeping for a single :meth:`DrawEngine.run_cycle` call."""

    def __init__(
        self,
        *,
        cycle_id: str,
        now: datetime,
        monthly_revenue: Money,
        config: DrawConfig,
        seed: Optional[str],
        proof_hash: Optional[str],
    ) -> None:
        self.cycle_id = cycle_id
        self.now = now
        self.monthly_revenue = monthly_revenue
        self.config = config
        self.seed = seed
        self.proof_hash = proof_hash
        self.pool: Money = 0
        self.states: list[DrawState] = [DrawState.NOT_STARTED]

    @property
    def state(self) -> DrawState:
        return self.states[-1]

    def advance(self, state: DrawState) -> None:
        logger.debug(f"Draw {self.cycle_id}: {self.state.value} -> {state.value}")
        self.states.append(state)

    def _record(self, status: str, **fields) -> DrawRecord:
        return DrawRecord(
            cycle_id=self.cycle_id,
            drawn_at=self.now,
            status=status,
            total_pool=self.pool,
            total_revenue=self.monthly_revenue,
            config_version=self.config.version,
            seed=self.seed,
            proof_hash=self.proof_hash,
            **fields,
        )

    def fail(self, reason: str) -> Failed:
        failed_from = self.state
        self.advance(DrawState.FAILED)
        record = self._record(STATUS_FAILED, reason=reason)
        logger.warning(f"Draw {self.cycle_id} failed: {reason}")
        return Failed(
            record=record,
            commands=(
                PersistDrawRecord(record),
                NotifyAdmins(reason=reason, cycle_id=self.cycle_id),
            ),
            states=tuple(self.states),
            failed_from=failed_from,
        )

    def complete(self, allocations: tuple[Allocation, ...]) -> Completed:
        self.advance(DrawState.COMPLETED)
        record = self._record(STATUS_COMPLETED, allocations=allocations)
        commands: list[DrawCommand] = [PersistDrawRecord(record)]
        for allocation in allocations:
            commands.append(
                UpdateWinnerCooldown(
                    subscriber_id=allocation.subscriber_id,
                    won_at=self.now,
                    prize_amount=allocation.prize_amount,
                )
            )
        for allocation in allocations:
            commands.append(
                NotifyWinner(
                    subscriber_id=allocation.subscriber_id,
                    amount=allocation.prize_amount,
                    cycle_id=self.cycle_id,
                    email=allocation.email,
                )
            )
        logger.info(
            f"Draw {self.cycle_id} completed: pool={self.pool}, "
            f"winners={len(allocations)}"
        )
        return Completed(
            record=record,
            commands=tuple(commands),
            states=tuple(self.states),
        )


DEFAULT_ENGINE = DrawEngine()


def run_cycle(
    subscribers: Sequence[SubscriberSnapshot],
    monthly_revenue: Money,
    config: DrawConfig,
    now: datetime,
    rng: Optional[RandomSource] = None,
    *,
    cycle_id: Optional[str] = None,
    seed: Optional[str] = None,
) -> DrawResult:
    """Run a cycle with the default engine. See :meth:`DrawEngine.run_cycle`."""
    return DEFAULT_ENGINE.run_cycle(
        subscribers,
        monthly_revenue,
        config,
        now,
        rng,
        cycle_id=cycle_id,
        seed=seed,
    )


__all__ = [
    "Completed",
    "DEFAULT_ENGINE",
    "DrawEngine",
    "DrawResult",
    "DrawState",
    "Failed",
    "proof_hash_for",
    "run_cycle",
]
