"""
Batched airport-code to city resolution.

The reference file follows the ``airport_list.json`` layout shipped by the
pyairports package: a JSON list of positional records where index 1 holds
the city name and index 3 the IATA location identifier.
"""
from __future__ import annotations

import json
import os
from importlib import resources
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="airport_lookup")

REFERENCE_PACKAGE = "pyairports"
REFERENCE_RESOURCE = "data/airport_list.json"
CITY_INDEX = 1
IATA_INDEX = 3


class AirportReferenceError(RuntimeError):
    """Raised when the airport reference data cannot be loaded."""


def default_reference_path() -> Path:
    """
    Location of the airport list.

    ``AIRPORT_REFERENCE_PATH`` overrides the copy packaged with pyairports.
    """
    override = os.getenv("AIRPORT_REFERENCE_PATH")
    if override:
        return Path(override)
    try:
        package_root = resources.files(REFERENCE_PACKAGE)
    except ModuleNotFoundError as exc:
        raise AirportReferenceError(f"Airport reference package '{REFERENCE_PACKAGE}' is not installed") from exc
    return Path(str(package_root / REFERENCE_RESOURCE))


class AirportCityLookup:
    """In-memory IATA code -> city map built once per batch."""

    def __init__(self, airports: Mapping[str, str]) -> None:
        self._airports: Dict[str, str] = {code.upper(): city for code, city in airports.items()}

    def __len__(self) -> int:
        return len(self._airports)

    @classmethod
    def from_records(cls, records) -> "AirportCityLookup":
        """Build the map from positional airport records."""
        if not isinstance(records, list):
            raise AirportReferenceError(
                f"Airport reference must be a JSON list, got {type(records).__name__}"
            )
        airports: Dict[str, str] = {}
        for idx, record in enumerate(records):
            if not isinstance(record, (list, tuple)) or len(record) <= max(CITY_INDEX, IATA_INDEX):
                raise AirportReferenceError(f"Malformed airport record at position {idx}: {record!r}")
            code, city = record[IATA_INDEX], record[CITY_INDEX]
            if not code or not city:
                # Airfields without an IATA code are common in the list
                continue
            airports[str(code).upper()] = str(city)
        return cls(airports)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "AirportCityLookup":
        """Load the reference list from disk; defaults to default_reference_path()."""
        path = path or default_reference_path()
        logger.info(f"Loading airport reference data from '{path}'")
        try:
            with open(path, "r", encoding="utf-8") as fh:
                records = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise AirportReferenceError(f"Failed to load airport reference '{path}': {exc}") from exc
        lookup = cls.from_records(records)
        logger.info(f"Loaded {len(lookup)} airport codes")
        return lookup

    def lookup(self, codes: Sequence[Optional[str]]) -> List[Optional[str]]:
        """Resolve a batch of codes; unknown or blank codes map to ``None``."""
        return [
            self._airports.get(code.strip().upper()) if code and code.strip() else None
            for code in codes
        ]


def get_city_for_airport(
    codes: Sequence[Optional[str]],
    reference_path: str | Path | None = None,
) -> List[Optional[str]]:
    """Load the reference data for this batch and resolve ``codes``."""
    return AirportCityLookup.from_file(reference_path).lookup(codes)
