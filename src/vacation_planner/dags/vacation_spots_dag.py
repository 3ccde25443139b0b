"""Airflow DAG: merge harmonized vacation spots daily, then email a recommendation."""
import os
from datetime import datetime, timedelta

from airflow.decorators import dag, task

from vacation_planner.db.bootstrap import ensure_target_table
from vacation_planner.db.session import ENGINE
from vacation_planner.notifications.notification_task import NotificationState
from vacation_planner.tasks.notify_task import run_notify
from vacation_planner.tasks.update_task import UpdateResult, ensure_update_succeeded, run_update
from vacation_planner.utils.logging_utils import get_tagged_logger, setup_logging
from vacation_planner.utils.run_history import log_failure, log_success

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))
logger = get_tagged_logger(__name__, tag="vacation_spots_dag")

UPDATE_INTERVAL = timedelta(minutes=1440)


def update_result_from_xcom(payload: dict | None) -> UpdateResult | None:
    """Rebuild the update completion signal; None when the update produced none."""
    if not payload:
        return None
    return UpdateResult(
        **{
            **payload,
            "started_at": datetime.fromisoformat(payload["started_at"]),
            "completed_at": datetime.fromisoformat(payload["completed_at"]),
        }
    )


@dag(
    dag_id="vacation_spots_pipeline",
    description="Merge harmonized flight/weather/attraction data and email a vacation pick",
    schedule=UPDATE_INTERVAL,
    start_date=datetime(2024, 1, 1),
    catchup=False,
    default_args={"retries": 0, "on_failure_callback": log_failure},
    tags=["vacation", "merge", "notification"],
    on_success_callback=log_success,
    on_failure_callback=log_failure,
)
def vacation_spots_pipeline():
    """Update the vacation_spots table, then notify once the update has finished."""

    @task()
    def update_vacation_spots() -> dict:
        """Recompute the views and upsert the target table in one transaction."""
        ensure_target_table(ENGINE)
        result = run_update()
        return result.to_dict()

    # all_done: notify after the update finishes, whether it succeeded or not
    @task(trigger_rule="all_done")
    def notify(**context) -> str:
        """
        Filter stored spots, generate the report and send exactly one email.

        Fails after sending when the update failed, so the DAG run fails too.
        """
        update_result = update_result_from_xcom(context["ti"].xcom_pull(task_ids="update_vacation_spots"))
        state: NotificationState = run_notify(update_result)
        logger.info(f"Notification finished in state {state.value}")
        ensure_update_succeeded(update_result)
        return state.value

    update_vacation_spots() >> notify()


vacation_spots_pipeline()
