"""Upsert and read helpers for the ``vacation_spots`` target table."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from vacation_planner.db.models import VacationSpot, VACATION_SPOT_VALUE_COLUMNS
from vacation_planner.db.utils import float_or_none, int_or_none, utcnow
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_vacation_spots")

_INT_COLUMNS = {"aquarium_cnt", "zoo_cnt", "korean_restaurant_cnt"}


class VacationSpotMissingKey(Exception):
    """Raised when a harmonized row lacks its (city, airport) key."""


@dataclass
class MergeCounts:
    """How many rows each branch of the merge touched."""

    inserted: int = 0
    updated: int = 0


def _coerce(column: str, value: Any):
    if column in _INT_COLUMNS:
        return int_or_none(value)
    return float_or_none(value)


def ensure_vacation_spot_record(
    session: Session,
    spot: Mapping[str, Any],
) -> tuple[VacationSpot, bool]:
    """
    Upsert (current row) for one harmonized vacation spot.

    Every non-key column is overwritten on update; nothing is merged
    column-by-column with the stored row. Returns ``(row, inserted)``.
    """
    city = spot.get("city")
    airport = spot.get("airport")
    if not city or not airport:
        raise VacationSpotMissingKey(f"Harmonized row without key: {dict(spot)!r}")

    stmt = (
        select(VacationSpot)
        .where(
            VacationSpot.city == city,
            VacationSpot.airport == airport,
        )
        .limit(1)
    )
    row = session.execute(stmt).scalar_one_or_none()

    if row is None:
        logger.debug(f"'{city}/{airport}' is a new vacation spot.  Creating a new record...")
        row = VacationSpot(
            city=city,
            airport=airport,
            **{column: _coerce(column, spot.get(column)) for column in VACATION_SPOT_VALUE_COLUMNS},
        )
        session.add(row)
        session.flush()
        return row, True

    logger.debug(f"'{city}/{airport}' is an existing vacation spot.  Updating the existing record.")
    for column in VACATION_SPOT_VALUE_COLUMNS:
        setattr(row, column, _coerce(column, spot.get(column)))
    row.last_updated_at_dtz = utcnow()
    return row, False


def upsert_vacation_spots(
    session: Session,
    spots: Iterable[Mapping[str, Any]],
) -> MergeCounts:
    """
    Merge harmonized rows into the target table.

    Matched keys are replaced, new keys inserted, and keys absent from
    ``spots`` are left untouched. The caller owns the transaction.
    """
    counts = MergeCounts()
    for spot in spots:
        _, inserted = ensure_vacation_spot_record(session, spot)
        if inserted:
            counts.inserted += 1
        else:
            counts.updated += 1
    session.flush()
    logger.info(f"Merged vacation spots: inserted={counts.inserted} updated={counts.updated}")
    return counts


def fetch_vacation_spots(session: Session) -> List[dict]:
    """Return every stored vacation spot as a dict, ordered by key."""
    stmt = select(VacationSpot).order_by(VacationSpot.city, VacationSpot.airport)
    return [row.to_dict() for row in session.execute(stmt).scalars().all()]
