"""
Source views over upstream snapshots.

Each view is a pure function over pandas DataFrames: inputs are never
modified and every call returns a fresh frame. Nothing is cached; every
pipeline run recomputes them. Rows with missing or unusable values are
filtered out here so they never surface as failures downstream.
"""
from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional, Sequence

import pandas as pd

CityLookup = Callable[[Sequence[Optional[str]]], List[Optional[str]]]

ON_TIME_CLASSES = ("OnTime", "Early")
WEATHER_COUNTRY = "US"
COUNTRY_GEO_ID = "country/USA"
POPULATION_VARIABLE = "Total Population, census.gov"
POPULATION_REFERENCE_DATE = date(2020, 1, 1)
MIN_CITY_POPULATION = 100_000
CITY_LEVEL = "City"
ZIP_LEVEL = "CensusZipCodeTabulationArea"

# output column -> upstream forecast column
WEATHER_METRICS = {
    "avg_temperature_air_f": "avg_temperature_air_2m_f",
    "avg_relative_humidity_pct": "avg_humidity_relative_2m_pct",
    "avg_cloud_cover_pct": "avg_cloud_cover_tot_pct",
    "precipitation_probability_pct": "probability_of_precipitation_pct",
}

# output column -> category_main value
ATTRACTION_CATEGORIES = {
    "aquarium_cnt": "Aquarium",
    "zoo_cnt": "Zoo",
    "korean_restaurant_cnt": "Korean Restaurant",
}

EMISSION_PAIR = ["departure_airport", "arrival_airport"]
STATUS_PAIR = ["departure_iata_airport_code", "arrival_iata_airport_code"]


def _countries_cities(relationships: pd.DataFrame, country_geo_id: str) -> pd.Series:
    return relationships.loc[relationships["geo_id"] == country_geo_id, "related_geo_id"]


# --------------------------------------------------------------------------- #
# Flights                                                                     #
# --------------------------------------------------------------------------- #

def flight_emissions(schedules: pd.DataFrame) -> pd.DataFrame:
    """Average per-seat CO2 (kg) for each (departure, arrival) airport pair."""
    usable = schedules[(schedules["seats"].fillna(0) != 0) & schedules["estimated_co2_total_tonnes"].notna()]
    per_seat = usable.assign(
        co2_emissions_kg_per_person=usable["estimated_co2_total_tonnes"] / usable["seats"] * 1000
    )
    return per_seat.groupby(EMISSION_PAIR, as_index=False, sort=False).agg(
        co2_emissions_kg_per_person=("co2_emissions_kg_per_person", "mean")
    )


def flight_punctuality(statuses: pd.DataFrame) -> pd.DataFrame:
    """Share of flights arriving on time or early per airport pair, as 0-100."""
    rated = statuses.dropna(subset=["arrival_actual_ingate_timeliness"])
    rated = rated.assign(
        on_time_pct=rated["arrival_actual_ingate_timeliness"].isin(ON_TIME_CLASSES).astype("float64") * 100
    )
    return rated.groupby(STATUS_PAIR, as_index=False, sort=False).agg(punctual_pct=("on_time_pct", "mean"))


def flights_from_home(
    emissions: pd.DataFrame,
    punctuality: pd.DataFrame,
    home_airport: str,
    lookup: CityLookup,
) -> pd.DataFrame:
    """
    Join emissions with punctuality for flights leaving ``home_airport``.

    Arrival cities are resolved with a single batched lookup call. Unknown
    airports keep ``arrival_city=None`` and drop out of later inner joins.
    """
    from_home = emissions[emissions["departure_airport"] == home_airport]
    joined = from_home.merge(
        punctuality,
        how="inner",
        left_on=EMISSION_PAIR,
        right_on=STATUS_PAIR,
    )[EMISSION_PAIR + ["co2_emissions_kg_per_person", "punctual_pct"]].reset_index(drop=True)

    cities = lookup(joined["arrival_airport"].tolist()) if len(joined) else []
    return joined.assign(arrival_city=pd.Series(cities, index=joined.index, dtype="object"))


# --------------------------------------------------------------------------- #
# Weather and geography                                                       #
# --------------------------------------------------------------------------- #

def weather_forecast(forecast_days: pd.DataFrame, country: str = WEATHER_COUNTRY) -> pd.DataFrame:
    """Average forecast metrics per postal code within ``country``; nulls are skipped."""
    local = forecast_days[forecast_days["country"] == country]
    renamed = local.rename(columns={src: out for out, src in WEATHER_METRICS.items()})
    return renamed.groupby("postal_code", as_index=False, sort=False)[list(WEATHER_METRICS)].mean()


def major_cities(
    timeseries: pd.DataFrame,
    geography_index: pd.DataFrame,
    relationships: pd.DataFrame,
    *,
    country_geo_id: str = COUNTRY_GEO_ID,
    reference_date: date = POPULATION_REFERENCE_DATE,
    min_population: float = MIN_CITY_POPULATION,
) -> pd.DataFrame:
    """Cities in the country above ``min_population``, most populous first."""
    in_country = _countries_cities(relationships, country_geo_id)
    cities = geography_index.loc[
        (geography_index["level"] == CITY_LEVEL) & geography_index["geo_id"].isin(in_country),
        ["geo_id", "geo_name"],
    ]

    observations = timeseries[
        (timeseries["variable_name"] == POPULATION_VARIABLE)
        & timeseries["geo_id"].isin(cities["geo_id"])
        & (timeseries["date"] >= pd.Timestamp(reference_date))
        & timeseries["value"].notna()
    ]
    latest = (
        observations.sort_values(["geo_id", "date"], kind="stable")
        .drop_duplicates("geo_id", keep="last")
        .rename(columns={"value": "total_population"})
    )

    result = cities.merge(latest[["geo_id", "total_population"]], on="geo_id", how="inner")
    result = result[result["total_population"] > min_population]
    return result.sort_values("total_population", ascending=False, kind="stable").reset_index(drop=True)


def zip_codes_in_city(
    relationships: pd.DataFrame,
    *,
    country_geo_id: str = COUNTRY_GEO_ID,
) -> pd.DataFrame:
    """Expand each city inside the country into its postal-code areas."""
    in_country = _countries_cities(relationships, country_geo_id)
    zips = relationships[
        relationships["geo_id"].isin(in_country)
        & (relationships["level"] == CITY_LEVEL)
        & (relationships["related_level"] == ZIP_LEVEL)
    ]
    zips = zips.rename(
        columns={
            "geo_id": "city_geo_id",
            "geo_name": "city_geo_name",
            "related_geo_id": "zip_geo_id",
            "related_geo_name": "zip_geo_name",
        }
    )[["city_geo_id", "city_geo_name", "zip_geo_id", "zip_geo_name"]]
    return zips.sort_values("city_geo_id", kind="stable").reset_index(drop=True)


def weather_joined_with_major_cities(
    cities: pd.DataFrame,
    zips: pd.DataFrame,
    weather: pd.DataFrame,
) -> pd.DataFrame:
    """Average postal-code weather across every zip of each major city."""
    metrics = list(WEATHER_METRICS)
    per_zip = zips.merge(weather, how="inner", left_on="zip_geo_name", right_on="postal_code")
    per_city = per_zip.groupby("city_geo_id", as_index=False)[metrics].mean()
    joined = cities.merge(per_city, how="inner", left_on="geo_id", right_on="city_geo_id")
    return joined[["geo_id", "geo_name", "total_population"] + metrics].reset_index(drop=True)


def attractions(
    poi_index: pd.DataFrame,
    poi_addresses: pd.DataFrame,
    addresses: pd.DataFrame,
    cities: pd.DataFrame,
    *,
    country_geo_id: str = COUNTRY_GEO_ID,
) -> pd.DataFrame:
    """Count aquariums, zoos and Korean restaurants per major city."""
    columns = ["geo_id", "geo_name"] + list(ATTRACTION_CATEGORIES)
    pois = poi_index[poi_index["category_main"].isin(ATTRACTION_CATEGORIES.values())]
    local_addresses = addresses[addresses["id_country"] == country_geo_id]
    located = (
        pois.merge(poi_addresses, how="inner", on="poi_id")
        .merge(local_addresses, how="inner", on="address_id")
    )
    located = located[located["id_city"].isin(cities["geo_id"])]
    if located.empty:
        return pd.DataFrame(columns=columns)

    counts = (
        located.groupby(["id_city", "category_main"])
        .size()
        .unstack(fill_value=0)
        .reindex(columns=list(ATTRACTION_CATEGORIES.values()), fill_value=0)
        .rename(columns={name: column for column, name in ATTRACTION_CATEGORIES.items()})
    )
    joined = cities[["geo_id", "geo_name"]].merge(counts, how="inner", left_on="geo_id", right_index=True)
    return joined[columns].reset_index(drop=True)
