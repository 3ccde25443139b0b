"""Compose the source views into one harmonized row per (city, airport)."""
from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from vacation_planner.db.ops_sources import SourceSnapshots
from vacation_planner.transforms import views
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="harmonize")

HARMONIZED_COLUMNS = [
    "city",
    "airport",
    "co2_emissions_kg_per_person",
    "punctual_pct",
    *views.WEATHER_METRICS,
    *views.ATTRACTION_CATEGORIES,
]


def harmonize(
    flights: pd.DataFrame,
    city_weather: pd.DataFrame,
    attractions: pd.DataFrame,
) -> pd.DataFrame:
    """
    Inner-join flights to city weather on the arrival city name, then to
    attractions on the matched city's ``geo_id``.

    ``city_weather`` is expected in population order; when two major cities
    share a name only the first is kept so (city, airport) stays unique.
    """
    weather = city_weather.drop_duplicates("geo_name", keep="first")
    joined = (
        flights.dropna(subset=["arrival_city"])
        .merge(weather, how="inner", left_on="arrival_city", right_on="geo_name")
        .merge(attractions.drop(columns=["geo_name"], errors="ignore"), how="inner", on="geo_id")
        .rename(columns={"arrival_city": "city", "arrival_airport": "airport"})
        .drop_duplicates(["city", "airport"], keep="first")
    )
    return joined[HARMONIZED_COLUMNS].reset_index(drop=True)


def frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Plain dict rows with ``None`` for missing values and native Python scalars."""
    return frame.astype(object).where(frame.notna(), None).to_dict(orient="records")


def build_harmonized_rows(
    snapshots: SourceSnapshots,
    home_airport: str,
    lookup: views.CityLookup,
) -> List[Dict[str, Any]]:
    """Evaluate every source view over ``snapshots`` and join the results."""
    emissions = views.flight_emissions(snapshots.emissions_schedules)
    punctuality = views.flight_punctuality(snapshots.flight_statuses)
    flights = views.flights_from_home(emissions, punctuality, home_airport, lookup)

    cities = views.major_cities(
        snapshots.population_timeseries,
        snapshots.geography_index,
        snapshots.geography_relationships,
    )
    zips = views.zip_codes_in_city(snapshots.geography_relationships)
    weather = views.weather_forecast(snapshots.forecast_days)
    city_weather = views.weather_joined_with_major_cities(cities, zips, weather)
    city_attractions = views.attractions(
        snapshots.poi_index,
        snapshots.poi_addresses,
        snapshots.addresses,
        cities,
    )

    rows = frame_to_records(harmonize(flights, city_weather, city_attractions))
    logger.info(
        f"Harmonized {len(rows)} vacation spots from {len(flights)} home flights, "
        f"{len(city_weather)} city forecasts and {len(city_attractions)} attraction profiles"
    )
    return rows
