"""Recompute harmonized vacation spots and merge them into the target table."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from vacation_planner.db.ops_sources import load_source_snapshots
from vacation_planner.db.ops_vacation_spots import upsert_vacation_spots
from vacation_planner.db.utils import utcnow
from vacation_planner.enrichment.airport_lookup import AirportCityLookup
from vacation_planner.models.records import load_home_config, validate_harmonized_rows
from vacation_planner.transforms.harmonize import build_harmonized_rows
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="update_task")

HOME_CONFIG_PATH = os.getenv("HOME_CONFIG_PATH", "data/home.json")

UPDATE_SUCCESS = "success"
UPDATE_FAILED = "failed"


class UpdateFailedError(RuntimeError):
    """Raised after notification when the preceding update did not succeed."""


@dataclass
class UpdateResult:
    """Completion signal the update task hands to the notification task."""

    status: str
    started_at: datetime
    completed_at: datetime
    harmonized: int = 0
    inserted: int = 0
    updated: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["completed_at"] = self.completed_at.isoformat()
        return data


def ensure_update_succeeded(result: Optional[UpdateResult]) -> None:
    """Raise UpdateFailedError unless ``result`` reports a successful update."""
    if result is None:
        raise UpdateFailedError("Update task produced no result")
    if result.status != UPDATE_SUCCESS:
        raise UpdateFailedError(f"Update task {result.status}: {result.error}")


def run_update(
    session_factory: Optional[sessionmaker] = None,
    *,
    home_config_path: str = HOME_CONFIG_PATH,
    reference_path: Optional[str] = None,
    lookup_factory: Callable[[Optional[str]], AirportCityLookup] = AirportCityLookup.from_file,
) -> UpdateResult:
    """
    Run one update cycle inside a single transaction.

    Snapshots, harmonization and the merge all happen under one
    ``session_factory.begin()`` block, so readers see either the previous
    table state or the fully merged one. Errors roll back and propagate.
    """
    if session_factory is None:
        from vacation_planner.db.session import SessionLocal

        session_factory = SessionLocal

    started_at = utcnow()
    home = load_home_config(home_config_path)
    lookup = lookup_factory(reference_path)
    logger.info(f"Starting vacation spot update for home airport '{home.airport}'")

    with session_factory.begin() as session:
        snapshots = load_source_snapshots(session)
        rows = validate_harmonized_rows(build_harmonized_rows(snapshots, home.airport, lookup.lookup))
        counts = upsert_vacation_spots(session, rows)

    result = UpdateResult(
        status=UPDATE_SUCCESS,
        started_at=started_at,
        completed_at=utcnow(),
        harmonized=len(rows),
        inserted=counts.inserted,
        updated=counts.updated,
    )
    logger.info(f"Update complete: {result.to_dict()}")
    return result
