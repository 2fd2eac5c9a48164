"""Notification senders for approval reminders and escalations."""

from __future__ import annotations

import logging

from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class LogOnlyNotificationService:
    """INotificationService implementation that logs instead of sending email.

    Use when no SMTP is configured. Production can swap in an SMTP or queue-based implementation.
    """

    async def send(
        self,
        to_emails: list[str],
        subject: str,
        body: str,
    ) -> None:
        """Log the notification; no actual email sent."""
        recipients = list(dict.fromkeys(to_emails or []))
        subject_preview = (subject or "")[:80]
        if not recipients:
            logger.info(
                "Approval notify: no recipients, skipping send (subject=%r)",
                subject_preview,
            )
            return
        logger.info(
            "Approval notify: would send to %d recipients (subject=%r)",
            len(recipients),
            subject_preview,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Approval notify recipients: %s (at %s)",
                recipients,
                utc_now().isoformat(),
            )
        logger.debug("Approval notify body (first 500 chars): %s", (body or "")[:500])
