import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy.orm import Session

from .db.utils import as_utc
from .draw.commands import (
    DrawCommand,
    NotifyAdmins,
    NotifyWinner,
    PersistDrawRecord,
    UpdateWinnerCooldown,
)
from .draw.cycle import cycle_id_for, next_draw_at, preflight_at
from .draw.engine import DEFAULT_ENGINE, DrawEngine
from .draw.pool import monthly_revenue_for
from .draw.preflight import PreflightReport, check_sufficiency
from .draw.types import RandomSource
from .models import DrawConfiguration, DrawRecordRow, Subscriber

if TYPE_CHECKING:
    from .notify.api import Notifier

logger = logging.getLogger(__name__)


def load_draw_config(session: Session) -> DrawConfiguration:
    """Return the configuration that applies to the next cycle.

    When nothing has been stored yet, a row holding the default values is
    created so that every draw record can reference a configuration version.
    """

    settings = DrawConfiguration.latest(session)
    if settings is None:
        settings = DrawConfiguration()
        session.add(settings)
        session.flush()
        logger.info(f"Created default draw configuration (version {settings.id})")
    return settings


def save_draw_config(session: Session, settings: DrawConfiguration) -> DrawConfiguration:
    """Validate and store a new configuration version.

    Raises
    ------
    InvalidConfiguration
        If the share split does not add up to 100 or a value is out of range.
    """

    if settings.id is not None:
        raise ValueError("Configuration rows are immutable; store a new version instead")
    settings.validate()
    session.add(settings)
    session.flush()
    return settings


def upcoming_schedule(
    settings: DrawConfiguration, now: Optional[datetime] = None
) -> tuple[datetime, datetime]:
    """Return ``(draw_at, preflight_at)`` for the next scheduled draw."""

    now = as_utc(now or datetime.now(timezone.utc))
    draw_at = next_draw_at(
        now,
        settings.draw_day_of_week,
        settings.draw_hour,
        settings.schedule_tz,
    )
    return draw_at, preflight_at(draw_at, settings.preflight_lead_days)


def apply_commands(
    session: Session,
    commands: Iterable[DrawCommand],
    notifier: Optional["Notifier"] = None,
) -> Optional[DrawRecordRow]:
    """Execute the side effects emitted by the draw engine.

    Persistence commands are applied first and flushed; notifications are
    sent afterwards so that a delivery failure never leaves a draw half
    written. A failed delivery is logged and the remaining notifications are
    still attempted.

    Parameters
    ----------
    session : Session
        Session used to store the draw record and update winners.
    commands : Iterable[DrawCommand]
        Commands from :class:`~luckydraw.draw.engine.Completed` or
        :class:`~luckydraw.draw.engine.Failed`.
    notifier : Optional[Notifier], default: None
        Delivery channel. When omitted, notifications are skipped.

    Returns
    -------
    Optional[DrawRecordRow]
        The persisted draw row, if a persist command was present.

    Raises
    ------
    ValueError
        If a command references a subscriber that is not stored.
    """

    row: Optional[DrawRecordRow] = None
    notifications: list[DrawCommand] = []

    for command in commands:
        if isinstance(command, PersistDrawRecord):
            row = DrawRecordRow.from_record(session, command.record)
            session.add(row)
        elif isinstance(command, UpdateWinnerCooldown):
            subscriber = Subscriber.get_by_uid(session, command.subscriber_id)
            if subscriber is None:
                raise ValueError(f"Unknown subscriber '{command.subscriber_id}'")
            subscriber.record_win(command.won_at, command.prize_amount)
        elif isinstance(command, (NotifyWinner, NotifyAdmins)):
            notifications.append(command)
        else:
            raise TypeError(f"Unsupported draw command: {command!r}")

    session.flush()

    if notifier is None:
        if notifications:
            logger.info(f"No notifier configured; skipped {len(notifications)} notification(s)")
        return row

    for command in notifications:
        try:
            if isinstance(command, NotifyWinner):
                if not command.email:
                    logger.warning(
                        f"Winner {command.subscriber_id} has no email; not notified"
                    )
                    continue
                notifier.notify_winner(command.email, command.amount, command.cycle_id)
            else:
                notifier.notify_admins(command.reason, command.cycle_id)
        except Exception:
            logger.exception(f"Failed to deliver notification {command!r}")

    return row


def run_weekly_draw(
    session: Session,
    *,
    now: Optional[datetime] = None,
    notifier: Optional["Notifier"] = None,
    rng: Optional[RandomSource] = None,
    seed: Optional[str] = None,
    engine: Optional[DrawEngine] = None,
    force: bool = False,
) -> Optional[DrawRecordRow]:
    """Run the draw for the current cycle and persist its outcome.

    The workflow performs these steps:

    1. Load the current configuration and derive the cycle id from ``now``
       in the schedule timezone.
    2. Return the stored record unchanged if the cycle already ran.
    3. Derive monthly revenue as active subscribers times the monthly fee.
    4. Run the engine and apply the emitted commands.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    now : Optional[datetime], default: None
        Moment of the draw, current UTC time when omitted.
    notifier : Optional[Notifier], default: None
        Delivery channel for winner and admin notifications.
    rng : Optional[RandomSource], default: None
        Random source for this cycle; see
        :meth:`~luckydraw.draw.engine.DrawEngine.run_cycle`.
    seed : Optional[str], default: None
        Seed for an engine-built random source, used to replay a cycle.
    engine : Optional[DrawEngine], default: None
        Engine override, mainly for tests.
    force : bool, default: False
        Run even when automatic draws are disabled.

    Returns
    -------
    Optional[DrawRecordRow]
        The record for the cycle, or ``None`` when automatic draws are
        disabled and ``force`` is not set.
    """

    settings = load_draw_config(session)
    if not settings.is_auto_draw_enabled and not force:
        logger.info("Automatic draws are disabled; skipping weekly draw")
        return None

    now = as_utc(now or datetime.now(timezone.utc))
    cycle_id = cycle_id_for(now.astimezone(settings.schedule_tz))

    existing = DrawRecordRow.get_by_cycle_id(session, cycle_id)
    if existing is not None:
        logger.info(f"Draw {cycle_id} already ran (status={existing.status})")
        return existing

    subscribers = Subscriber.all_subscribed(session)
    revenue = monthly_revenue_for(len(subscribers), settings.monthly_fee)

    result = (engine or DEFAULT_ENGINE).run_cycle(
        [s.to_snapshot() for s in subscribers],
        revenue,
        settings.to_config(),
        now,
        rng,
        cycle_id=cycle_id,
        seed=seed,
    )
    row = apply_commands(session, result.commands, notifier)
    session.flush()
    return row


def run_preflight_check(
    session: Session,
    *,
    now: Optional[datetime] = None,
    notifier: Optional["Notifier"] = None,
) -> PreflightReport:
    """Check whether the upcoming draw has enough eligible subscribers.

    When the check comes up short and a ``notifier`` is supplied, admins are
    warned about the upcoming cycle. Nothing is written to the database
    except a default configuration row if none exists yet.
    """

    settings = load_draw_config(session)
    now = as_utc(now or datetime.now(timezone.utc))
    draw_at, _ = upcoming_schedule(settings, now)

    subscribers = Subscriber.all_subscribed(session)
    # Eligibility is judged at draw time so cooldowns ending before the draw count.
    report = check_sufficiency(
        [s.to_snapshot() for s in subscribers],
        settings.to_config(),
        draw_at,
    )

    warning = report.warning_command(cycle_id_for(draw_at))
    if warning is not None:
        logger.warning(
            f"Preflight for {warning.cycle_id}: {report.eligible_count} eligible, "
            f"{report.required} required"
        )
        if notifier is not None:
            notifier.notify_admins(warning.reason, warning.cycle_id)
    return report
