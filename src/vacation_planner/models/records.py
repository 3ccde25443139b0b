"""Pydantic schemas for pipeline payloads."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class HomeConfigError(RuntimeError):
    """Raised when the home-airport document is missing or malformed."""


class HomeConfig(BaseModel):
    """Single-value document naming the airport closest to home."""

    model_config = ConfigDict(extra="ignore")

    airport: str = Field(min_length=3, max_length=3)

    @field_validator("airport", mode="before")
    @classmethod
    def normalize_airport(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


def load_home_config(path: str | Path) -> HomeConfig:
    """Read and validate the home-airport JSON document."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
        return HomeConfig.model_validate(json.loads(raw))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise HomeConfigError(f"Invalid home config at '{path}': {exc}") from exc


class HarmonizedVacationSpot(BaseModel):
    """One joined (city, airport) row ready to merge into the target table."""

    model_config = ConfigDict(extra="ignore")

    city: str
    airport: str

    co2_emissions_kg_per_person: Optional[float] = None
    punctual_pct: Optional[float] = Field(default=None, ge=0, le=100)
    avg_temperature_air_f: Optional[float] = None
    avg_relative_humidity_pct: Optional[float] = None
    avg_cloud_cover_pct: Optional[float] = None
    precipitation_probability_pct: Optional[float] = None

    aquarium_cnt: Optional[int] = Field(default=None, ge=0)
    zoo_cnt: Optional[int] = Field(default=None, ge=0)
    korean_restaurant_cnt: Optional[int] = Field(default=None, ge=0)


def validate_harmonized_rows(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate and normalize harmonized rows prior to merging."""
    return [HarmonizedVacationSpot.model_validate(row).model_dump() for row in rows]
