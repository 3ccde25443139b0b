"""Shared fixtures for unit tests.

Provides a silenced root logger, a minimal Airflow stub (used when Airflow
is not installed) so DAG modules import and build, a dummy ORM session for
the upsert helpers, an in-memory SQLite "warehouse" with the ``gold``, ``ops`` and
``marketplace`` schemas attached, and a small but complete set of upstream
snapshots that exercises every source view.

Fixtures:
    dummy_session: stub session returning queued scalar results.
    sqlite_engine: in-memory engine with the warehouse schemas attached.
    session_factory: sessionmaker bound to ``sqlite_engine``.
    source_rows: upstream rows for a home airport of SFO, keyed by snapshot.
    source_snapshots: ``source_rows`` as SourceSnapshots DataFrames.
    airport_lookup: AirportCityLookup over the airports in the snapshots.
    seeded_warehouse: ``session_factory`` with all upstream tables loaded.
"""
import logging
import sys
import types
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List

import pytest
from sqlalchemy import create_engine, event, insert
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vacation_planner.db.models import Base
from vacation_planner.db.models import sources
from vacation_planner.db.ops_sources import SOURCE_TABLES, SourceSnapshots
from vacation_planner.enrichment.airport_lookup import AirportCityLookup
from vacation_planner.utils.run_history import run_log_metadata


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class _NullHandler(logging.Handler):
    """Configure logging so tests don't try writing to pytest's closed streams."""

    def emit(self, record):  # pragma: no cover
        pass


root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)
root_logger.handlers = [_NullHandler()]

# Silence noisy third-party libraries (e.g., Airflow) during tests.
logging.getLogger("airflow").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Lightweight Airflow stub so DAG modules can be imported without the real pkg
# ---------------------------------------------------------------------------
try:  # pragma: no cover - exercised when Airflow is not installed
    import airflow  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - executed in dev/test envs
    airflow = types.ModuleType("airflow")
    decorators = types.ModuleType("airflow.decorators")
    airflow_utils = types.ModuleType("airflow.utils")
    airflow_email = types.ModuleType("airflow.utils.email")
    _dag_stack: list[Any] = []

    class DummyDag:
        """Minimal DAG object used by tests."""

        def __init__(self, dag_id: str, default_args: dict | None = None, **kwargs: Any) -> None:
            self.dag_id = dag_id
            self.default_args = dict(default_args or {})
            self.kwargs = kwargs
            self.task_dict: dict[str, Any] = {}

        @property
        def tasks(self) -> list[Any]:
            return list(self.task_dict.values())

    def dag(**dag_kwargs: Any):
        """Return a decorator that registers a dummy DAG for test imports."""

        def decorator(func):
            def wrapper(*args: Any, **kwargs: Any) -> DummyDag:
                dag_obj = DummyDag(**dag_kwargs)
                _dag_stack.append(dag_obj)
                try:
                    func(*args, **kwargs)
                finally:
                    _dag_stack.pop()
                return dag_obj

            wrapper.__doc__ = func.__doc__
            return wrapper

        return decorator

    class DummyTask:
        """Task instance created when a decorated function is called inside a DAG."""

        def __init__(self, func, trigger_rule: str = "all_success", **kwargs: Any) -> None:
            self.python_callable = func
            self.task_id = func.__name__
            self.trigger_rule = trigger_rule
            self.kwargs = kwargs
            self.upstream_task_ids: set[str] = set()
            self.downstream_task_ids: set[str] = set()

        def __rshift__(self, other: "DummyTask") -> "DummyTask":
            self.downstream_task_ids.add(other.task_id)
            other.upstream_task_ids.add(self.task_id)
            return other

    class TaskDecorator:
        """Mimic Airflow's ``@task(...)`` decorator for testing DAG modules."""

        def __call__(self, **task_kwargs: Any):
            def decorator(func):
                def factory(*_args: Any, **_kwargs: Any) -> DummyTask:
                    task_obj = DummyTask(func, **task_kwargs)
                    if _dag_stack:
                        _dag_stack[-1].task_dict[task_obj.task_id] = task_obj
                    return task_obj

                return factory

            return decorator

    def send_email(**_kwargs: Any) -> None:
        raise RuntimeError("Airflow is not installed; patch send_email in tests")

    decorators.dag = dag
    decorators.task = TaskDecorator()
    airflow_email.send_email = send_email
    airflow_utils.email = airflow_email
    airflow.decorators = decorators
    airflow.utils = airflow_utils
    sys.modules["airflow"] = airflow
    sys.modules["airflow.decorators"] = decorators
    sys.modules["airflow.utils"] = airflow_utils
    sys.modules["airflow.utils.email"] = airflow_email


# ---------------------------------------------------------------------------
# Helper session used by DB unit tests
# ---------------------------------------------------------------------------

@dataclass
class DummyResult:
    """Lightweight result wrapper that returns a configured scalar value."""

    value: Any

    def scalar_one_or_none(self):
        return self.value


@dataclass
class DummySession:
    """In-memory stub for a database session used in unit tests."""

    results: List[Any] = field(default_factory=list)
    added: List[Any] = field(default_factory=list)
    flushed: int = 0

    def execute(self, _stmt):
        value: Any = self.results.pop(0) if self.results else None
        return DummyResult(value)

    def add(self, obj: Any):
        self.added.append(obj)

    def flush(self):
        self.flushed += 1


@pytest.fixture
def dummy_session():
    """Provide a dummy database session fixture for unit tests."""
    return DummySession()


# ---------------------------------------------------------------------------
# SQLite warehouse
# ---------------------------------------------------------------------------

@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def _attach_schemas(dbapi_conn, _record):
        for schema in ("gold", "ops", sources.SOURCE_SCHEMA):
            dbapi_conn.execute(f"ATTACH DATABASE ':memory:' AS \"{schema}\"")

    Base.metadata.create_all(engine)
    sources.source_metadata.create_all(engine)
    run_log_metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return sessionmaker(bind=sqlite_engine, autoflush=False, future=True)


# ---------------------------------------------------------------------------
# Upstream data
# ---------------------------------------------------------------------------

def _schedule(dep, arr, seats, co2):
    return {"departure_airport": dep, "arrival_airport": arr, "seats": seats, "estimated_co2_total_tonnes": co2}


def _status(dep, arr, timeliness):
    return {
        "departure_iata_airport_code": dep,
        "arrival_iata_airport_code": arr,
        "arrival_actual_ingate_timeliness": timeliness,
    }


def _forecast(postal_code, temp, humidity=60.0, cloud=20.0, precip=10.0, country="US"):
    return {
        "postal_code": postal_code,
        "country": country,
        "avg_temperature_air_2m_f": temp,
        "avg_humidity_relative_2m_pct": humidity,
        "avg_cloud_cover_tot_pct": cloud,
        "probability_of_precipitation_pct": precip,
    }


def _population(geo_id, year, value):
    return {
        "geo_id": geo_id,
        "variable_name": "Total Population, census.gov",
        "date": date(year, 1, 1),
        "value": value,
    }


def _contains(geo_id, geo_name, level, related_geo_id, related_geo_name, related_level):
    return {
        "geo_id": geo_id,
        "geo_name": geo_name,
        "level": level,
        "related_geo_id": related_geo_id,
        "related_geo_name": related_geo_name,
        "related_level": related_level,
    }


CITIES = {
    "geoId/honolulu": "Honolulu",
    "geoId/miami": "Miami",
    "geoId/sandiego": "San Diego",
    "geoId/phoenix": "Phoenix",
    "geoId/smallville": "Smallville",
}

CITY_ZIPS = {
    "geoId/honolulu": ["96815", "96816"],
    "geoId/miami": ["33101"],
    "geoId/sandiego": ["92101"],
    "geoId/phoenix": ["85001"],
    "geoId/smallville": ["66002"],
}


@pytest.fixture
def source_rows():
    """
    Upstream rows, keyed by snapshot field, for a home airport of SFO.

    Expected harmonized spots: Honolulu/HNL, Miami/MIA, San Diego/SAN.
    Phoenix has flights and weather but no attractions; Smallville is below
    the population threshold; XXX is an unknown airport.
    """
    schedules = (
        _schedule("SFO", "HNL", 200, 20.0),
        _schedule("SFO", "HNL", 100, 12.0),
        _schedule("SFO", "MIA", 0, 5.0),
        _schedule("SFO", "MIA", 150, 30.0),
        _schedule("SFO", "SAN", 100, None),
        _schedule("SFO", "SAN", 100, 5.0),
        _schedule("SFO", "PHX", 100, 8.0),
        _schedule("SFO", "XXX", 100, 10.0),
        _schedule("LAX", "HNL", 100, 10.0),
    )
    statuses = (
        _status("SFO", "HNL", "OnTime"),
        _status("SFO", "HNL", "Early"),
        _status("SFO", "HNL", "Late"),
        _status("SFO", "HNL", None),
        _status("SFO", "MIA", "OnTime"),
        _status("SFO", "MIA", "Late"),
        _status("SFO", "SAN", "Late"),
        _status("SFO", "PHX", "OnTime"),
        _status("SFO", "XXX", "OnTime"),
        _status("LAX", "HNL", "OnTime"),
    )
    forecasts = (
        _forecast("96815", 80.0),
        _forecast("96815", 78.0),
        _forecast("96816", 82.0, humidity=None),
        _forecast("96815", 0.0, country="CA"),
        _forecast("33101", 85.0),
        _forecast("92101", 68.0),
        _forecast("85001", 101.0),
        _forecast("66002", 75.0),
    )
    timeseries = (
        _population("geoId/honolulu", 2019, 400_000),
        _population("geoId/honolulu", 2021, 345_000),
        _population("geoId/honolulu", 2022, 350_000),
        _population("geoId/miami", 2021, 440_000),
        _population("geoId/sandiego", 2021, 1_380_000),
        _population("geoId/phoenix", 2021, 1_600_000),
        _population("geoId/smallville", 2021, 50_000),
    )
    geography_index = tuple(
        {"geo_id": geo_id, "geo_name": name, "level": "City"} for geo_id, name in CITIES.items()
    ) + ({"geo_id": "country/USA", "geo_name": "United States", "level": "Country"},)

    relationships = [
        _contains("country/USA", "United States", "Country", geo_id, name, "City")
        for geo_id, name in CITIES.items()
    ]
    for geo_id, zips in CITY_ZIPS.items():
        for z in zips:
            relationships.append(
                _contains(geo_id, CITIES[geo_id], "City", f"zip/{z}", z, "CensusZipCodeTabulationArea")
            )

    pois = (
        {"poi_id": "p1", "poi_name": "Waikiki Aquarium", "category_main": "Aquarium"},
        {"poi_id": "p2", "poi_name": "Seoul Kitchen", "category_main": "Korean Restaurant"},
        {"poi_id": "p3", "poi_name": "Zoo Miami", "category_main": "Zoo"},
        {"poi_id": "p4", "poi_name": "K-BBQ", "category_main": "Korean Restaurant"},
        {"poi_id": "p5", "poi_name": "Bishop Museum", "category_main": "Museum"},
        {"poi_id": "p6", "poi_name": "San Diego Zoo", "category_main": "Zoo"},
    )
    poi_addresses = tuple({"poi_id": f"p{i}", "address_id": f"a{i}"} for i in range(1, 7))
    address_city = {
        "a1": "geoId/honolulu",
        "a2": "geoId/honolulu",
        "a3": "geoId/miami",
        "a4": "geoId/miami",
        "a5": "geoId/honolulu",
        "a6": "geoId/sandiego",
    }
    addresses = tuple(
        {"address_id": a, "id_city": city, "id_country": "country/USA"} for a, city in address_city.items()
    )

    return {
        "emissions_schedules": schedules,
        "flight_statuses": statuses,
        "forecast_days": forecasts,
        "population_timeseries": timeseries,
        "geography_index": geography_index,
        "geography_relationships": tuple(relationships),
        "poi_index": pois,
        "poi_addresses": poi_addresses,
        "addresses": addresses,
    }


@pytest.fixture
def source_snapshots(source_rows):
    return SourceSnapshots.from_records(**source_rows)


@pytest.fixture
def airport_lookup():
    return AirportCityLookup(
        {
            "SFO": "San Francisco",
            "LAX": "Los Angeles",
            "HNL": "Honolulu",
            "MIA": "Miami",
            "SAN": "San Diego",
            "PHX": "Phoenix",
        }
    )


@pytest.fixture
def seeded_warehouse(sqlite_engine, session_factory, source_rows):
    """Load every upstream snapshot into the SQLite source tables."""
    with sqlite_engine.begin() as conn:
        for name, rows in source_rows.items():
            conn.execute(insert(SOURCE_TABLES[name]), [dict(r) for r in rows])
    return session_factory


@pytest.fixture
def home_config_path(tmp_path):
    path = tmp_path / "home.json"
    path.write_text('{"airport": "SFO"}', encoding="utf-8")
    return str(path)
