"""Outbound notification delivery for draw results."""

from .api import MailClient, Notifier, format_amount

__all__ = ["MailClient", "Notifier", "format_amount"]
