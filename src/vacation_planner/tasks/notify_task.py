"""Read the target table and run the notification state machine."""
from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import sessionmaker

from vacation_planner.clients.completion_client import CompletionClient, make_completion_client_from_env
from vacation_planner.db.ops_vacation_spots import fetch_vacation_spots
from vacation_planner.notifications.channels import AirflowEmailChannel, NotificationChannel
from vacation_planner.notifications.notification_task import (
    NotificationSettings,
    NotificationState,
    RecommendationPolicy,
    make_notification_settings_from_env,
    make_policy_from_env,
    run_notification,
)
from vacation_planner.tasks.update_task import UpdateResult
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="notify_task")


def run_notify(
    update_result: Optional[UpdateResult] = None,
    *,
    session_factory: Optional[sessionmaker] = None,
    completion_client: Optional[CompletionClient] = None,
    channel: Optional[NotificationChannel] = None,
    settings: Optional[NotificationSettings] = None,
    policy: Optional[RecommendationPolicy] = None,
) -> NotificationState:
    """
    Notify from the current target table.

    Runs whether or not the preceding update succeeded; after a failed
    update the table still holds the last committed snapshot.
    """
    if session_factory is None:
        from vacation_planner.db.session import SessionLocal

        session_factory = SessionLocal

    if update_result is None:
        logger.warning("No update result received; notifying from the last committed snapshot")
    elif update_result.status != "success":
        logger.warning(f"Preceding update {update_result.status}: {update_result.error}")
    else:
        logger.info(
            f"Preceding update merged {update_result.harmonized} spots "
            f"(inserted={update_result.inserted}, updated={update_result.updated})"
        )

    with session_factory() as session:
        spots = fetch_vacation_spots(session)

    return run_notification(
        spots,
        completion_client=completion_client or make_completion_client_from_env(),
        channel=channel or AirflowEmailChannel(),
        settings=settings or make_notification_settings_from_env(),
        policy=policy or make_policy_from_env(),
    )
