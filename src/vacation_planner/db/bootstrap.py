"""Schema bootstrap utilities for the warehouse."""
from __future__ import annotations

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from vacation_planner.db.models import Base, VacationSpot
from vacation_planner.utils.logging_utils import get_tagged_logger
from vacation_planner.utils.run_history import RUN_LOG_SCHEMA

logger = get_tagged_logger(__name__, tag="bootstrap")


def ensure_schemas(engine: Engine, schemas=("gold", "ops")) -> None:
    """Create schemas if they do not already exist."""
    logger.debug(f"Ensuring schemas exist: {schemas}")
    with engine.begin() as conn:
        for s in schemas:
            conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{s}"'))


def add_missing_columns(engine: Engine, table=VacationSpot.__table__) -> list[str]:
    """
    Add model columns missing from the live table as nullable columns.

    Schema evolution is additive only: existing columns are never altered
    or dropped. Returns the names of the columns that were added.
    """
    inspector = inspect(engine)
    existing = {col["name"] for col in inspector.get_columns(table.name, schema=table.schema)}
    added: list[str] = []
    with engine.begin() as conn:
        for column in table.columns:
            if column.name in existing:
                continue
            col_type = column.type.compile(dialect=engine.dialect)
            qualified = f'"{table.schema}"."{table.name}"' if table.schema else f'"{table.name}"'
            logger.info(f"Adding column '{column.name}' ({col_type}) to {qualified}")
            conn.execute(text(f'ALTER TABLE {qualified} ADD COLUMN "{column.name}" {col_type}'))
            added.append(column.name)
    return added


def ensure_target_table(engine: Engine, *, create_schemas: bool = True) -> list[str]:
    """Create the target table if needed, then add any new columns."""
    if create_schemas:
        ensure_schemas(engine, schemas=(VacationSpot.__table__.schema, RUN_LOG_SCHEMA))
    Base.metadata.create_all(bind=engine, checkfirst=True)
    return add_missing_columns(engine)
