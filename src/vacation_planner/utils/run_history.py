"""Record task run outcomes in the warehouse so operators can inspect history."""
from __future__ import annotations

import os
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import Column, DateTime, MetaData, Table, Text, desc, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="run_history")
RUN_LOG_SCHEMA = os.getenv("RUN_LOG_SCHEMA", "ops")

run_log_metadata = MetaData(schema=RUN_LOG_SCHEMA)

task_runs = Table(
    "task_runs",
    run_log_metadata,
    Column("dag_id", Text, nullable=False),
    Column("task_id", Text),
    Column("run_id", Text, nullable=False),
    Column("start_time", DateTime(timezone=True)),
    Column("end_time", DateTime(timezone=True)),
    Column("state", Text, nullable=False),
    Column("error", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)


def _default_engine() -> Engine:
    from vacation_planner.db.session import ENGINE

    return ENGINE


def record_task_run(
    *,
    dag_id: str,
    run_id: str,
    state: str,
    task_id: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    error: Optional[str] = None,
    engine: Optional[Engine] = None,
) -> None:
    """Persist one run outcome; best-effort so logging failures never fail the task."""
    engine = engine or _default_engine()
    payload = {
        "dag_id": dag_id,
        "task_id": task_id,
        "run_id": run_id,
        "start_time": start_time,
        "end_time": end_time,
        "state": state,
        "error": error,
    }
    try:
        run_log_metadata.create_all(bind=engine, checkfirst=True)
        with engine.begin() as conn:
            conn.execute(insert(task_runs).values(**payload))
    except SQLAlchemyError as exc:  # pragma: no cover - best effort logging
        logger.warning("Failed to write task run history: %s", exc)


def fetch_run_history(limit: int = 100, engine: Optional[Engine] = None) -> List[dict]:
    """Return the most recent runs, newest first."""
    engine = engine or _default_engine()
    stmt = select(task_runs).order_by(desc(task_runs.c.start_time)).limit(limit)
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(stmt).mappings().all()]


def record_state_from_context(context: dict[str, Any], state: str, error: str | None = None) -> None:
    """Translate an Airflow callback context into a run-history row."""
    dag_run = context.get("dag_run")
    task_instance = context.get("task_instance") or context.get("ti")
    record_task_run(
        dag_id=getattr(dag_run, "dag_id", None) or context.get("dag").dag_id,  # type: ignore[union-attr]
        task_id=getattr(task_instance, "task_id", None),
        run_id=getattr(dag_run, "run_id", None) or context.get("run_id"),
        start_time=getattr(dag_run, "start_date", None),
        end_time=getattr(dag_run, "end_date", None),
        state=state,
        error=error,
    )


def log_success(context: dict[str, Any]) -> None:
    """Airflow callback for successful runs."""
    record_state_from_context(context, "success")


def log_failure(context: dict[str, Any]) -> None:
    """Airflow callback for failed runs."""
    exc = context.get("exception")
    record_state_from_context(context, "failed", error=str(exc) if exc else None)
