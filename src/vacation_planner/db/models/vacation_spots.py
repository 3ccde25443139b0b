"""Gold-layer target table holding the latest harmonized snapshot per (city, airport)."""
from __future__ import annotations

import os
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Float, Integer, Text
from sqlalchemy.orm import Mapped
from sqlalchemy.sql import func

from vacation_planner.db.models.base import Base

TARGET_SCHEMA = os.getenv("TARGET_SCHEMA", "gold")

# Non-key columns every merge overwrites, in insert order.
VACATION_SPOT_VALUE_COLUMNS = (
    "co2_emissions_kg_per_person",
    "punctual_pct",
    "avg_temperature_air_f",
    "avg_relative_humidity_pct",
    "avg_cloud_cover_pct",
    "precipitation_probability_pct",
    "aquarium_cnt",
    "zoo_cnt",
    "korean_restaurant_cnt",
)


class VacationSpot(Base):
    """One candidate destination reachable from the home airport."""
    __tablename__ = "vacation_spots"
    __table_args__ = {"schema": TARGET_SCHEMA}

    city: Mapped[str] = Column(Text, primary_key=True)
    airport: Mapped[str] = Column(Text, primary_key=True)

    co2_emissions_kg_per_person: Mapped[Optional[float]] = Column(Float, nullable=True)
    punctual_pct: Mapped[Optional[float]] = Column(Float, nullable=True)
    avg_temperature_air_f: Mapped[Optional[float]] = Column(Float, nullable=True)
    avg_relative_humidity_pct: Mapped[Optional[float]] = Column(Float, nullable=True)
    avg_cloud_cover_pct: Mapped[Optional[float]] = Column(Float, nullable=True)
    precipitation_probability_pct: Mapped[Optional[float]] = Column(Float, nullable=True)

    # Amenity counts; new signals are appended here as nullable columns.
    aquarium_cnt: Mapped[Optional[int]] = Column(Integer, nullable=True)
    zoo_cnt: Mapped[Optional[int]] = Column(Integer, nullable=True)
    korean_restaurant_cnt: Mapped[Optional[int]] = Column(Integer, nullable=True)

    created_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_updated_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def to_dict(self) -> dict:
        """Return the business columns as a plain dict."""
        data = {"city": self.city, "airport": self.airport}
        for column in VACATION_SPOT_VALUE_COLUMNS:
            data[column] = getattr(self, column)
        return data


__all__ = ["VacationSpot", "VACATION_SPOT_VALUE_COLUMNS", "TARGET_SCHEMA"]
