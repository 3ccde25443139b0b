"""
Manual, full-pipeline execution: update then notify.

Mirrors the scheduled DAG for operators who want an on-demand run:

    python -m vacation_planner.pipeline [--dry-run] [--bootstrap]
"""
from __future__ import annotations

import argparse
import os
import uuid
from typing import Optional, Sequence

from vacation_planner.db.utils import utcnow
from vacation_planner.notifications.channels import LoggingChannel
from vacation_planner.notifications.notification_task import NotificationState
from vacation_planner.tasks.notify_task import run_notify
from vacation_planner.tasks.update_task import UPDATE_FAILED, UpdateResult, run_update
from vacation_planner.utils.logging_utils import get_tagged_logger, setup_logging
from vacation_planner.utils.run_history import record_task_run

logger = get_tagged_logger(__name__, tag="pipeline")

PIPELINE_ID = "vacation_spots_pipeline"


def run_pipeline(
    *,
    update=run_update,
    notify=run_notify,
    record=record_task_run,
    dry_run: bool = False,
) -> tuple[UpdateResult, NotificationState]:
    """
    Run the update task, then the notification task once it completes.

    The notification runs after a failed update too; the update error is
    re-raised once notification has finished.
    """
    run_id = f"manual__{uuid.uuid4()}"
    started_at = utcnow()
    update_error: Optional[Exception] = None
    try:
        result = update()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Update task failed; notifying from the last committed snapshot")
        update_error = exc
        result = UpdateResult(
            status=UPDATE_FAILED,
            started_at=started_at,
            completed_at=utcnow(),
            error=str(exc),
        )
    record(
        dag_id=PIPELINE_ID,
        task_id="update_vacation_spots",
        run_id=run_id,
        start_time=result.started_at,
        end_time=result.completed_at,
        state=result.status,
        error=result.error,
    )

    notify_started = utcnow()
    try:
        state = notify(result, channel=LoggingChannel()) if dry_run else notify(result)
    except Exception as exc:
        record(
            dag_id=PIPELINE_ID,
            task_id="notify",
            run_id=run_id,
            start_time=notify_started,
            end_time=utcnow(),
            state="failed",
            error=str(exc),
        )
        raise
    record(
        dag_id=PIPELINE_ID,
        task_id="notify",
        run_id=run_id,
        start_time=notify_started,
        end_time=utcnow(),
        state=state.value,
    )

    if update_error is not None:
        raise update_error
    return result, state


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint for a manual pipeline run."""
    parser = argparse.ArgumentParser(description="Update vacation spots and send the recommendation")
    parser.add_argument("--dry-run", action="store_true", help="log the notification instead of emailing it")
    parser.add_argument("--bootstrap", action="store_true", help="create or extend the target table first")
    args = parser.parse_args(argv)

    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name=PIPELINE_ID)

    if args.bootstrap:
        from vacation_planner.db.bootstrap import ensure_target_table
        from vacation_planner.db.session import ENGINE

        ensure_target_table(ENGINE)

    result, state = run_pipeline(dry_run=args.dry_run)
    logger.info(f"Pipeline finished: update={result.status} notification={state.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
