"""Read immutable snapshots of the upstream datasets into DataFrames."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

import pandas as pd
from sqlalchemy import Date, DateTime, Float, Integer, Numeric, Table, select
from sqlalchemy.orm import Session

from vacation_planner.db.models import sources
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_sources")

# snapshot field -> upstream table
SOURCE_TABLES: dict[str, Table] = {
    "emissions_schedules": sources.estimated_emissions_schedules,
    "flight_statuses": sources.flight_status_latest,
    "forecast_days": sources.forecast_day,
    "population_timeseries": sources.datacommons_timeseries,
    "geography_index": sources.geography_index,
    "geography_relationships": sources.geography_relationships,
    "poi_index": sources.point_of_interest_index,
    "poi_addresses": sources.point_of_interest_addresses_relationships,
    "addresses": sources.us_addresses,
}


@dataclass(frozen=True)
class SourceSnapshots:
    """
    Point-in-time copy of every upstream table the views read.

    Views treat these frames as read-only and always return new frames.
    """

    emissions_schedules: pd.DataFrame
    flight_statuses: pd.DataFrame
    forecast_days: pd.DataFrame
    population_timeseries: pd.DataFrame
    geography_index: pd.DataFrame
    geography_relationships: pd.DataFrame
    poi_index: pd.DataFrame
    poi_addresses: pd.DataFrame
    addresses: pd.DataFrame

    @classmethod
    def from_records(cls, **tables: Iterable[Mapping[str, Any]]) -> "SourceSnapshots":
        """Build snapshots from plain row dicts; omitted tables are empty."""
        return cls(
            **{
                f.name: records_to_frame(tables.get(f.name, ()), SOURCE_TABLES[f.name])
                for f in fields(cls)
            }
        )


def _apply_column_types(frame: pd.DataFrame, table: Table) -> pd.DataFrame:
    """Coerce numeric and date columns so empty or null-heavy frames still aggregate."""
    for column in table.columns:
        if isinstance(column.type, (Float, Integer, Numeric)):
            frame[column.name] = pd.to_numeric(frame[column.name], errors="coerce").astype("float64")
        elif isinstance(column.type, (Date, DateTime)):
            frame[column.name] = pd.to_datetime(frame[column.name], errors="coerce")
    return frame


def records_to_frame(rows: Iterable[Mapping[str, Any]], table: Table) -> pd.DataFrame:
    """Return ``rows`` as a DataFrame with exactly ``table``'s columns."""
    columns = [column.name for column in table.columns]
    frame = pd.DataFrame.from_records([dict(row) for row in rows], columns=columns)
    return _apply_column_types(frame, table)


def read_table_snapshot(session: Session, table: Table) -> pd.DataFrame:
    """Read every row of ``table`` through the caller's connection."""
    frame = pd.read_sql(select(table), session.connection())
    frame = _apply_column_types(frame.reindex(columns=[c.name for c in table.columns]), table)
    logger.debug(f"Read {len(frame)} rows from {table.fullname}")
    return frame


def load_source_snapshots(session: Session) -> SourceSnapshots:
    """Snapshot all upstream tables within the caller's transaction."""
    logger.info(f"Loading upstream snapshots from schema '{sources.SOURCE_SCHEMA}'")
    snapshots = SourceSnapshots(
        **{name: read_table_snapshot(session, table) for name, table in SOURCE_TABLES.items()}
    )
    logger.info(
        f"Loaded snapshots: {len(snapshots.emissions_schedules)} emission schedules, "
        f"{len(snapshots.flight_statuses)} flight statuses, "
        f"{len(snapshots.forecast_days)} forecast days"
    )
    return snapshots
