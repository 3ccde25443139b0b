"""
Read-only upstream datasets (marketplace replicas).

These tables are owned by the data providers. They live on their own
``MetaData`` so schema bootstrap never tries to create them.
"""
from __future__ import annotations

import os

from sqlalchemy import Column, Date, Float, Integer, MetaData, Table, Text

SOURCE_SCHEMA = os.getenv("SOURCE_SCHEMA", "marketplace")

source_metadata = MetaData(schema=SOURCE_SCHEMA)

estimated_emissions_schedules = Table(
    "estimated_emissions_schedules",
    source_metadata,
    Column("departure_airport", Text),
    Column("arrival_airport", Text),
    Column("seats", Integer),
    Column("estimated_co2_total_tonnes", Float),
)

flight_status_latest = Table(
    "flight_status_latest",
    source_metadata,
    Column("departure_iata_airport_code", Text),
    Column("arrival_iata_airport_code", Text),
    Column("arrival_actual_ingate_timeliness", Text),
)

forecast_day = Table(
    "forecast_day",
    source_metadata,
    Column("postal_code", Text),
    Column("country", Text),
    Column("avg_temperature_air_2m_f", Float),
    Column("avg_humidity_relative_2m_pct", Float),
    Column("avg_cloud_cover_tot_pct", Float),
    Column("probability_of_precipitation_pct", Float),
)

datacommons_timeseries = Table(
    "datacommons_timeseries",
    source_metadata,
    Column("geo_id", Text),
    Column("variable_name", Text),
    Column("date", Date),
    Column("value", Float),
)

geography_index = Table(
    "geography_index",
    source_metadata,
    Column("geo_id", Text),
    Column("geo_name", Text),
    Column("level", Text),
)

geography_relationships = Table(
    "geography_relationships",
    source_metadata,
    Column("geo_id", Text),
    Column("geo_name", Text),
    Column("level", Text),
    Column("related_geo_id", Text),
    Column("related_geo_name", Text),
    Column("related_level", Text),
)

point_of_interest_index = Table(
    "point_of_interest_index",
    source_metadata,
    Column("poi_id", Text),
    Column("poi_name", Text),
    Column("category_main", Text),
)

point_of_interest_addresses_relationships = Table(
    "point_of_interest_addresses_relationships",
    source_metadata,
    Column("poi_id", Text),
    Column("address_id", Text),
)

us_addresses = Table(
    "us_addresses",
    source_metadata,
    Column("address_id", Text),
    Column("id_city", Text),
    Column("id_country", Text),
)

__all__ = [
    "SOURCE_SCHEMA",
    "source_metadata",
    "estimated_emissions_schedules",
    "flight_status_latest",
    "forecast_day",
    "datacommons_timeseries",
    "geography_index",
    "geography_relationships",
    "point_of_interest_index",
    "point_of_interest_addresses_relationships",
    "us_addresses",
]
