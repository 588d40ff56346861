"""Entry point for the scheduler that runs the pre-draw eligibility check."""

from __future__ import annotations

import logging

from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.notify import MailClient
from luckydraw.models import Subscriber
from luckydraw.workflows import run_preflight_check


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    Session = get_sessionmaker(make_engine())

    with Session.begin() as session:
        notifier = MailClient(admin_emails=Subscriber.admin_emails(session) or None)
        report = run_preflight_check(session, notifier=notifier)

    status = "OK" if report.sufficient else "SHORT"
    print(f"Preflight {status}: {report.eligible_count} eligible, {report.required} required")
    return 0 if report.sufficient else 1


if __name__ == "__main__":
    raise SystemExit(main())
