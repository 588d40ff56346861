"""Entry point for the scheduler that triggers the weekly draw."""

from __future__ import annotations

import argparse
import logging

from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.notify import MailClient
from luckydraw.models import Subscriber
from luckydraw.workflows import run_weekly_draw


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the draw for the current cycle.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="run even when automatic draws are disabled",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    Session = get_sessionmaker(make_engine())

    with Session.begin() as session:
        # Admin accounts in the database take precedence over ADMIN_EMAILS.
        notifier = MailClient(admin_emails=Subscriber.admin_emails(session) or None)
        row = run_weekly_draw(session, notifier=notifier, force=args.force)
        if row is None:
            print("Automatic draws are disabled.")
            return 0
        print(f"Draw {row.cycle_id}: {row.status}")
        if row.reason:
            print(f"Reason: {row.reason}")
        for winner in row.winners:
            print(f"  {winner.subscriber.uid}: {winner.prize_amount}")
        return 0 if row.status == "completed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
