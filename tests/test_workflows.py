import os
import random
import time
import unittest
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import patch

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from luckydraw.draw import (
    DrawRecord,
    NotifyAdmins,
    PersistDrawRecord,
    UpdateWinnerCooldown,
)
from luckydraw.models import Base, DrawConfiguration, DrawRecordRow, DrawWinner, Subscriber
from luckydraw.workflows import (
    apply_commands,
    load_draw_config,
    run_preflight_check,
    run_weekly_draw,
    save_draw_config,
    upcoming_schedule,
)

# Saturday 08:00 IST
DRAW_TIME = datetime(2025, 1, 25, 2, 30, tzinfo=timezone.utc)
# Monday 08:00 IST of the same week
PREFLIGHT_TIME = datetime(2025, 1, 20, 2, 30, tzinfo=timezone.utc)


class DummyNotifier:
    def __init__(self, fail_for: Optional[str] = None):
        self.fail_for = fail_for
        self.winner_calls: list[dict[str, Any]] = []
        self.admin_calls: list[dict[str, Any]] = []

    def notify_winner(self, email: str, amount: int, cycle_id: str) -> None:
        if email == self.fail_for:
            raise RuntimeError("mail service unavailable")
        self.winner_calls.append({"email": email, "amount": amount, "cycle_id": cycle_id})

    def notify_admins(self, reason: str, cycle_id: str) -> None:
        self.admin_calls.append({"reason": reason, "cycle_id": cycle_id})


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _seed(self, session, count: int, **config_overrides) -> list[Subscriber]:
        config_values = {"minimum_reward_amount": 1000, "winners_per_draw": 3}
        config_values.update(config_overrides)
        session.add(DrawConfiguration(**config_values))
        subscribers = [
            Subscriber(
                uid=f"user-{idx:02d}",
                email=f"User{idx:02d}@Example.com",
                is_subscribed=True,
            )
            for idx in range(count)
        ]
        session.add_all(subscribers)
        session.flush()
        return subscribers


class RunWeeklyDrawTests(WorkflowTestCase):
    def test_completed_draw_is_persisted_and_winners_updated(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 10)
            row = run_weekly_draw(
                session, now=DRAW_TIME, notifier=notifier, rng=random.Random(3)
            )

            self.assertIsNotNone(row)
            self.assertIsNotNone(row.id)
            self.assertEqual(row.status, "completed")
            self.assertEqual(row.cycle_id, "2025-W04")
            # 10 subscribers * 3000 = 30000 revenue; 30000 * 50 / 100 / 4 = 3750
            self.assertEqual(row.total_revenue, 30000)
            self.assertEqual(row.total_pool, 3750)
            self.assertEqual(len(row.winners), 3)
            self.assertEqual(sum(w.prize_amount for w in row.winners), 3750)

            for winner in row.winners:
                self.assertGreaterEqual(winner.prize_amount, 1000)
                self.assertEqual(winner.subscriber.last_win_amount, winner.prize_amount)
                self.assertEqual(winner.subscriber.last_won_at, DRAW_TIME)

        self.assertEqual(len(notifier.winner_calls), 3)
        self.assertEqual(notifier.admin_calls, [])
        self.assertTrue(
            all(call["email"].endswith("@example.com") for call in notifier.winner_calls)
        )

    def test_rerunning_a_cycle_returns_the_stored_record(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 10)
            first = run_weekly_draw(session, now=DRAW_TIME, notifier=notifier)
            second = run_weekly_draw(
                session, now=DRAW_TIME + timedelta(hours=1), notifier=notifier
            )
            self.assertEqual(first.id, second.id)
            self.assertEqual(
                len(session.scalars(select(DrawRecordRow)).all()), 1
            )
        self.assertEqual(len(notifier.winner_calls), 3)

    def test_winners_cool_down_for_the_next_cycle(self):
        with self.Session.begin() as session:
            # 5 * 3000 * 50% / 4 = 1875, enough for three prizes of 300
            self._seed(session, 5, minimum_reward_amount=300)
            first = run_weekly_draw(session, now=DRAW_TIME, rng=random.Random(1))
            second = run_weekly_draw(
                session, now=DRAW_TIME + timedelta(days=7), rng=random.Random(2)
            )
            self.assertEqual(first.status, "completed")
            self.assertEqual(second.status, "failed")
            self.assertEqual(
                second.reason, "insufficient eligible subscribers: got 2, need 3"
            )

    def test_failed_draw_is_persisted_and_admins_notified(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 2)
            row = run_weekly_draw(session, now=DRAW_TIME, notifier=notifier)

            self.assertEqual(row.status, "failed")
            self.assertEqual(row.reason, "insufficient eligible subscribers: got 2, need 3")
            self.assertEqual(row.winners, [])
            self.assertIsNotNone(row.seed)

        self.assertEqual(notifier.winner_calls, [])
        self.assertEqual(
            notifier.admin_calls,
            [{"reason": "insufficient eligible subscribers: got 2, need 3", "cycle_id": "2025-W04"}],
        )

    def test_insufficient_pool(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 10, minimum_reward_amount=2000)
            row = run_weekly_draw(session, now=DRAW_TIME, notifier=notifier)
            self.assertEqual(row.status, "failed")
            self.assertEqual(row.reason, "insufficient prize pool")
            self.assertEqual(row.total_pool, 3750)
        self.assertEqual(len(notifier.admin_calls), 1)

    def test_disabled_auto_draw_is_skipped_unless_forced(self):
        with self.Session.begin() as session:
            self._seed(session, 10, is_auto_draw_enabled=False)
            self.assertIsNone(run_weekly_draw(session, now=DRAW_TIME))
            row = run_weekly_draw(session, now=DRAW_TIME, force=True)
            self.assertEqual(row.status, "completed")

    def test_notification_failure_does_not_undo_the_draw(self):
        notifier = DummyNotifier(fail_for="user00@example.com")
        with self.Session.begin() as session:
            self._seed(session, 3, minimum_reward_amount=300)
            with self.assertLogs("luckydraw.workflows", level="ERROR"):
                row = run_weekly_draw(session, now=DRAW_TIME, notifier=notifier)
            self.assertEqual(row.status, "completed")
            self.assertEqual(len(row.winners), 3)
        self.assertEqual(len(notifier.winner_calls), 2)

    def test_seeded_draw_can_be_replayed(self):
        with self.Session.begin() as session:
            self._seed(session, 10)
            row = run_weekly_draw(session, now=DRAW_TIME, seed="replay-me")
            stored = row.to_record()

        other_engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(other_engine)
        OtherSession = sessionmaker(bind=other_engine, future=True, expire_on_commit=False)
        try:
            with OtherSession.begin() as session:
                self._seed(session, 10)
                replayed = run_weekly_draw(session, now=DRAW_TIME, seed="replay-me")
                self.assertEqual(replayed.to_record().allocations, stored.allocations)
                self.assertEqual(replayed.proof_hash, stored.proof_hash)
        finally:
            other_engine.dispose()

    @unittest.skipUnless(hasattr(time, "tzset"), "requires time.tzset")
    def test_naive_now_is_read_as_utc_regardless_of_local_zone(self):
        # Sunday 18:00 UTC is Sunday 23:30 IST, still week 4.
        naive_now = datetime(2025, 1, 26, 18, 0)
        try:
            with patch.dict(os.environ, {"TZ": "America/Los_Angeles"}):
                time.tzset()
                with self.Session.begin() as session:
                    self._seed(session, 10)
                    row = run_weekly_draw(session, now=naive_now)
                    self.assertEqual(row.cycle_id, "2025-W04")
                    self.assertEqual(
                        row.to_record().drawn_at,
                        naive_now.replace(tzinfo=timezone.utc),
                    )
                    draw_at, _ = upcoming_schedule(load_draw_config(session), naive_now)
        finally:
            time.tzset()
        self.assertEqual(draw_at, datetime(2025, 2, 1, 2, 30, tzinfo=timezone.utc))


class ApplyCommandsTests(WorkflowTestCase):
    def test_unknown_subscriber_raises(self):
        with self.Session.begin() as session:
            self._seed(session, 1)
            with self.assertRaises(ValueError):
                apply_commands(
                    session,
                    [UpdateWinnerCooldown("missing", DRAW_TIME, 100)],
                )

    def test_unsupported_command_raises(self):
        with self.Session.begin() as session:
            with self.assertRaises(TypeError):
                apply_commands(session, ["not-a-command"])  # type: ignore[list-item]

    def test_without_notifier_notifications_are_skipped(self):
        record = DrawRecord(
            cycle_id="2025-W10",
            drawn_at=DRAW_TIME,
            status="failed",
            reason="insufficient prize pool",
        )
        with self.Session.begin() as session:
            row = apply_commands(
                session,
                [PersistDrawRecord(record), NotifyAdmins("insufficient prize pool", "2025-W10")],
            )
            self.assertIsNotNone(row.id)
            self.assertEqual(DrawRecordRow.get_by_cycle_id(session, "2025-W10").id, row.id)
            self.assertEqual(session.scalars(select(DrawWinner)).all(), [])


class PreflightWorkflowTests(WorkflowTestCase):
    def test_short_pool_warns_admins(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 2)
            report = run_preflight_check(session, now=PREFLIGHT_TIME, notifier=notifier)

        self.assertFalse(report.sufficient)
        self.assertEqual(report.eligible_count, 2)
        self.assertEqual(len(notifier.admin_calls), 1)
        self.assertEqual(notifier.admin_calls[0]["cycle_id"], "2025-W04")

    def test_sufficient_pool_is_quiet(self):
        notifier = DummyNotifier()
        with self.Session.begin() as session:
            self._seed(session, 3)
            report = run_preflight_check(session, now=PREFLIGHT_TIME, notifier=notifier)
        self.assertTrue(report.sufficient)
        self.assertEqual(notifier.admin_calls, [])

    def test_cooldown_ending_before_the_draw_counts(self):
        with self.Session.begin() as session:
            subscribers = self._seed(session, 3)
            # Won 22 days before the draw: cooling down now, eligible on draw day.
            subscribers[0].last_won_at = DRAW_TIME - timedelta(days=22)
            session.flush()
            report = run_preflight_check(session, now=PREFLIGHT_TIME)
        self.assertTrue(report.sufficient)

    def test_preflight_does_not_write_draws(self):
        with self.Session.begin() as session:
            self._seed(session, 1)
            run_preflight_check(session, now=PREFLIGHT_TIME)
            self.assertEqual(session.scalars(select(DrawRecordRow)).all(), [])


class ConfigurationWorkflowTests(WorkflowTestCase):
    def test_default_configuration_is_created_once(self):
        with self.Session.begin() as session:
            first = load_draw_config(session)
            second = load_draw_config(session)
            self.assertEqual(first.id, second.id)
            config = first.to_config()
            self.assertEqual(config.version, first.id)
            self.assertEqual(config.draw_share_percent, 50)
            self.assertEqual(config.winners_per_draw, 3)
            self.assertEqual(config.minimum_reward_amount, 500)
            self.assertEqual(config.eligibility_cooldown_days, 21)
            self.assertEqual(config.preflight_lead_days, 5)

    def test_saved_configuration_becomes_current(self):
        with self.Session.begin() as session:
            load_draw_config(session)
            saved = save_draw_config(
                session,
                DrawConfiguration(
                    draw_share_percent=60,
                    profit_share_percent=25,
                    maintenance_share_percent=15,
                ),
            )
            self.assertEqual(load_draw_config(session).id, saved.id)

    def test_upcoming_schedule(self):
        with self.Session.begin() as session:
            settings = load_draw_config(session)
            draw_at, check_at = upcoming_schedule(settings, PREFLIGHT_TIME)
        self.assertEqual(draw_at, DRAW_TIME)
        self.assertEqual(check_at, DRAW_TIME - timedelta(days=5))


if __name__ == "__main__":
    unittest.main()
