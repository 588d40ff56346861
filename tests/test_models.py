import unittest
import warnings
from datetime import datetime, timedelta, timezone

from sqlalchemy import Text, create_engine
from sqlalchemy.exc import IntegrityError, SAWarning
from sqlalchemy.orm import sessionmaker

from luckydraw.draw import Allocation, DrawRecord, InvalidConfiguration
from luckydraw.models import (
    Base,
    DrawConfiguration,
    DrawRecordRow,
    Subscriber,
    check_share_split,
)


class ModelTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()


class SubscriberModelTests(ModelTestCase):
    def test_email_is_normalized(self):
        subscriber = Subscriber(uid="u1", email="  Someone@Example.COM ")
        self.assertEqual(subscriber.email, "someone@example.com")
        self.assertIsNone(Subscriber(uid="u2", email="   ").email)

    def test_queries(self):
        with self.Session.begin() as session:
            session.add_all(
                [
                    Subscriber(uid="a", email="a@example.com", is_subscribed=True),
                    Subscriber(uid="b", email="b@example.com", is_subscribed=False),
                    Subscriber(uid="admin", email="boss@example.com", is_admin=True),
                ]
            )
            session.flush()

            self.assertEqual([s.uid for s in Subscriber.all_subscribed(session)], ["a"])
            self.assertEqual(Subscriber.get_by_uid(session, "b").email, "b@example.com")
            self.assertIsNone(Subscriber.get_by_uid(session, "zzz"))
            self.assertEqual(Subscriber.admin_emails(session), ["boss@example.com"])

    def test_uid_is_unique(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                session.add_all([Subscriber(uid="dup"), Subscriber(uid="dup")])
                session.flush()

    def test_snapshot_attaches_utc_to_stored_timestamps(self):
        won_at = datetime(2025, 1, 4, 2, 30, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            session.add(Subscriber(uid="s", is_subscribed=True, last_won_at=won_at))

        with self.Session() as session:
            snapshot = Subscriber.get_by_uid(session, "s").to_snapshot()
        self.assertEqual(snapshot.id, "s")
        self.assertTrue(snapshot.is_subscribed)
        self.assertEqual(snapshot.last_won_at, won_at)
        self.assertIsNotNone(snapshot.last_won_at.tzinfo)

    def test_record_win_stores_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        subscriber = Subscriber(uid="w")
        subscriber.record_win(datetime(2025, 1, 25, 8, 0, tzinfo=ist), 1500)
        self.assertEqual(subscriber.last_won_at.utcoffset(), timedelta(0))
        self.assertEqual(subscriber.last_won_at, datetime(2025, 1, 25, 2, 30, tzinfo=timezone.utc))
        self.assertEqual(subscriber.last_win_amount, 1500)

    def test_to_json(self):
        with self.Session.begin() as session:
            subscriber = Subscriber(uid="j", email="j@example.com", is_subscribed=True)
            session.add(subscriber)
            session.flush()
            payload = subscriber.to_json()
        self.assertEqual(payload["uid"], "j")
        self.assertTrue(payload["is_subscribed"])
        self.assertIsNone(payload["last_won_at"])
        self.assertIsInstance(payload["created_at"], str)


class DrawConfigurationTests(ModelTestCase):
    def test_share_split_must_sum_to_100(self):
        check_share_split(50, 30, 20)
        with self.assertRaises(InvalidConfiguration):
            check_share_split(50, 30, 30)
        with self.assertRaises(InvalidConfiguration):
            check_share_split(110, -5, -5)

    def test_validate_ranges(self):
        DrawConfiguration().validate()
        invalid = [
            {"winners_per_draw": 0},
            {"minimum_reward_amount": 0},
            {"eligibility_cooldown_days": -1},
            {"preflight_lead_days": 0},
            {"draw_day_of_week": 7},
            {"draw_hour": 24},
        ]
        for overrides in invalid:
            with self.subTest(**overrides):
                with self.assertRaises(InvalidConfiguration):
                    DrawConfiguration(**overrides).validate()

    def test_schedule_timezone(self):
        self.assertEqual(
            DrawConfiguration().schedule_tz.utcoffset(None),
            timedelta(hours=5, minutes=30),
        )

    def test_latest(self):
        with self.Session.begin() as session:
            self.assertIsNone(DrawConfiguration.latest(session))
            session.add(DrawConfiguration(winners_per_draw=2))
            session.flush()
            session.add(DrawConfiguration(winners_per_draw=5))
            session.flush()
            self.assertEqual(DrawConfiguration.latest(session).winners_per_draw, 5)


class DrawRecordRowTests(ModelTestCase):
    def _record(self, **overrides) -> DrawRecord:
        values = dict(
            cycle_id="2025-W04",
            drawn_at=datetime(2025, 1, 25, 2, 30, tzinfo=timezone.utc),
            status="completed",
            total_pool=3750,
            total_revenue=30000,
            allocations=(
                Allocation("a", 2000, "a@example.com"),
                Allocation("b", 1750, "b@example.com"),
            ),
            config_version=1,
            seed="abc",
            proof_hash="f" * 64,
        )
        values.update(overrides)
        return DrawRecord(**values)

    def _seed_subscribers(self, session):
        session.add_all(
            [
                Subscriber(uid="a", email="a@example.com", is_subscribed=True),
                Subscriber(uid="b", email="b@example.com", is_subscribed=True),
            ]
        )
        session.flush()

    def test_stored_record_matches_engine_record(self):
        record = self._record()
        with self.Session.begin() as session:
            self._seed_subscribers(session)
            session.add(DrawRecordRow.from_record(session, record))

        with self.Session() as session:
            row = DrawRecordRow.get_by_cycle_id(session, "2025-W04")
            self.assertEqual(row.to_record(), record)
            payload = row.to_json()
        self.assertEqual(payload["status"], "completed")
        self.assertEqual(
            [w["subscriber_uid"] for w in payload["winners"]], ["a", "b"]
        )
        self.assertFalse(payload["winners"][0]["claimed"])

    def test_building_winners_emits_no_flush_warnings(self):
        with self.Session.begin() as session:
            self._seed_subscribers(session)
            with warnings.catch_warnings():
                warnings.simplefilter("error", SAWarning)
                row = DrawRecordRow.from_record(session, self._record())
                session.add(row)
                session.flush()
            self.assertEqual(len(row.winners), 2)
            self.assertTrue(all(w.id is not None for w in row.winners))

    def test_long_replay_seed_is_stored_verbatim(self):
        self.assertIsInstance(DrawRecordRow.__table__.c.seed.type, Text)
        seed = "operator-supplied-replay-seed:" + "x" * 200
        with self.Session.begin() as session:
            self._seed_subscribers(session)
            session.add(DrawRecordRow.from_record(session, self._record(seed=seed)))

        with self.Session() as session:
            self.assertEqual(DrawRecordRow.get_by_cycle_id(session, "2025-W04").seed, seed)

    def test_unknown_winner_is_rejected(self):
        record = self._record(allocations=(Allocation("ghost", 3750),))
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                DrawRecordRow.from_record(session, record)

    def test_one_record_per_cycle(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                self._seed_subscribers(session)
                session.add(DrawRecordRow.from_record(session, self._record()))
                session.flush()
                session.add(
                    DrawRecordRow.from_record(
                        session, self._record(allocations=(), status="failed")
                    )
                )
                session.flush()

    def test_recent_orders_newest_first(self):
        base = datetime(2025, 1, 4, 2, 30, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            for week in range(3):
                session.add(
                    DrawRecordRow.from_record(
                        session,
                        self._record(
                            cycle_id=f"2025-W{week + 1:02d}",
                            drawn_at=base + timedelta(days=7 * week),
                            allocations=(),
                        ),
                    )
                )
            session.flush()
            recent = DrawRecordRow.recent(session, limit=2)
            self.assertEqual([r.cycle_id for r in recent], ["2025-W03", "2025-W02"])


if __name__ == "__main__":
    unittest.main()
