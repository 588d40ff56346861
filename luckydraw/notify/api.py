import os
import logging
from urllib.parse import urljoin
from typing import Any, Mapping, Optional, Protocol, Sequence

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "Chillar Club <no-reply@chillarclub.com>"


class Notifier(Protocol):
    """Delivery channel for draw notifications."""

    def notify_winner(self, email: str, amount: int, cycle_id: str) -> Any:  # pragma: no cover - protocol
        ...

    def notify_admins(self, reason: str, cycle_id: str) -> Any:  # pragma: no cover - protocol
        ...


def format_amount(amount: int) -> str:
    """Render minor units as rupees, e.g. ``12550`` -> ``"₹125.50"``."""
    rupees, paise = divmod(amount, 100)
    if paise:
        return f"₹{rupees}.{paise:02d}"
    return f"₹{rupees}"


class MailClient:
    """Thin client for a transactional email HTTP API.

    Configuration is read from ``MAIL_API_BASE_URL``, ``MAIL_API_KEY``,
    ``MAIL_SENDER`` and ``ADMIN_EMAILS`` (comma separated) unless supplied.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        sender: Optional[str] = None,
        admin_emails: Optional[Sequence[str]] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        load_dotenv()
        url = base_url or os.getenv("MAIL_API_BASE_URL")
        if not url:
            raise ValueError("Environment variable 'MAIL_API_BASE_URL' is not set")
        key = api_key or os.getenv("MAIL_API_KEY")
        if not key:
            raise ValueError("Environment variable 'MAIL_API_KEY' is not set")

        self.base_url = url.rstrip("/")
        self.api_key = key
        self.sender = sender or os.getenv("MAIL_SENDER") or DEFAULT_SENDER
        if admin_emails is None:
            raw = os.getenv("ADMIN_EMAILS", "")
            admin_emails = [e.strip() for e in raw.split(",") if e.strip()]
        self.admin_emails = list(admin_emails)
        self.session = session or requests.Session()
        self.timeout = timeout

    # -------- headers --------
    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.api_key}"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=self.auth_headers,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    def send_email(self, to: Sequence[str], subject: str, html: str) -> Any:
        # Never log message bodies; recipients are counted only.
        logger.debug(f"Sending '{subject}' to {len(to)} recipient(s)")
        return self._request(
            "POST",
            "/emails",
            json={"from": self.sender, "to": list(to), "subject": subject, "html": html},
        )

    # -------- draw notifications --------
    def notify_winner(self, email: str, amount: int, cycle_id: str) -> Any:
        return self.send_email(
            [email],
            "Congratulations! You won the Chillar Club weekly draw!",
            (
                "<h1>Congratulations!</h1>"
                f"<p>You've won {format_amount(amount)} in this week's draw ({cycle_id})!</p>"
                "<p>Rewards vary weekly, so stay subscribed for more surprises!</p>"
                "<p>Visit your dashboard to claim your prize.</p>"
            ),
        )

    def notify_admins(self, reason: str, cycle_id: str) -> Any:
        if not self.admin_emails:
            logger.warning(f"No admin emails configured; dropping notice for {cycle_id}")
            return None
        return self.send_email(
            self.admin_emails,
            f"Weekly draw {cycle_id} needs attention",
            (
                "<h1>Weekly Draw Alert</h1>"
                f"<p>Cycle: {cycle_id}</p>"
                f"<p>Reason: {reason}</p>"
                "<p>Please check the admin dashboard for more details.</p>"
            ),
        )
