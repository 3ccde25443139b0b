"""Outbound notification channels."""
from __future__ import annotations

from typing import Protocol

from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="notification_channel")


class NotificationChannel(Protocol):
    def send(self, integration: str, recipient: str, subject: str, body: str) -> None:
        ...


class AirflowEmailChannel:
    """Send email through Airflow's configured SMTP connection.

    ``integration`` is passed as the Airflow ``conn_id``.
    """

    def send(self, integration: str, recipient: str, subject: str, body: str) -> None:
        from airflow.utils.email import send_email

        logger.info(f"Sending email to {recipient} via '{integration}': {subject}")
        send_email(
            to=recipient,
            subject=subject,
            html_content=body,
            conn_id=integration,
            mime_subtype="alternative",
        )


class LoggingChannel:
    """Write notifications to the log; used for manual dry runs."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []

    def send(self, integration: str, recipient: str, subject: str, body: str) -> None:
        logger.info(f"[dry-run:{integration}] to={recipient} subject={subject!r}\n{body}")
        self.sent.append((integration, recipient, subject, body))
