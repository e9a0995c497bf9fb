# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory property store and scripted weather client fakes
# - Sample Weatherstack payloads
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("WEATHERSTACK_API_KEY", "test-weatherstack-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("RATE_LIMIT_MAX", "0")

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from app.exceptions import PersistenceFaultError
from core.models.property import (
    PropertyCreate,
    PropertyFilter,
    PropertyRecord,
    PropertySort,
    SortOrder,
)
from core.models.weather import WeatherSnapshot
from core.services.property_service import PropertyService
from lib.weather_client import WeatherLookup


# =============================================================================
# Fakes
# =============================================================================

class InMemoryPropertyRepository:
    """Dict-backed stand-in for lib.supabase_client.PropertyRepository."""

    def __init__(self):
        self.rows: dict[str, PropertyRecord] = {}
        self.insert_calls = 0
        self.fetch_calls = 0
        self.fail_with: str | None = None
        self.lose_delete_race = False

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_with:
            raise PersistenceFaultError(operation, self.fail_with)

    def insert(self, record: PropertyRecord) -> PropertyRecord:
        self.insert_calls += 1
        self._maybe_fail("insert")
        self.rows[str(record.id)] = record
        return record

    def fetch_by_id(self, property_id: str) -> PropertyRecord | None:
        self.fetch_calls += 1
        self._maybe_fail("fetch")
        return self.rows.get(property_id)

    def list(
        self,
        filter: PropertyFilter | None = None,
        sort: PropertySort | None = None,
    ) -> list[PropertyRecord]:
        self._maybe_fail("list")
        filter = filter or PropertyFilter()
        sort = sort or PropertySort()
        wanted = filter.active()
        matches = [
            record for record in self.rows.values()
            if all(record.to_row()[column] == value for column, value in wanted.items())
        ]
        return sorted(
            matches,
            key=lambda record: (record.created_at, str(record.id)),
            reverse=sort.created_at == SortOrder.DESC,
        )

    def delete(self, property_id: str) -> bool:
        self._maybe_fail("delete")
        if self.lose_delete_race:
            self.rows.pop(property_id, None)
            return False
        return self.rows.pop(property_id, None) is not None

    def ping(self) -> None:
        self._maybe_fail("ping")


class ScriptedWeatherClient:
    """Weather client fake that replays a list of results or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.addresses: list[str] = []

    def fetch(self, address: str) -> WeatherLookup:
        self.addresses.append(address)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SequenceClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fountain_hills_input():
    """The Fountain Hills, AZ property used throughout the tests."""
    return PropertyCreate(
        street="15528 E Golden Eagle Blvd",
        city="Fountain Hills",
        state="AZ",
        zip_code="85268",
    )


@pytest.fixture
def fountain_hills_lookup():
    """Weather lookup result for the Fountain Hills property."""
    return WeatherLookup(
        snapshot=WeatherSnapshot(
            temperature=75,
            conditions=["Sunny"],
            humidity=35,
            wind_speed=5,
            observed_at="05:30 PM",
            feels_like=73,
        ),
        latitude=33.609,
        longitude=-111.729,
    )


@pytest.fixture
def weatherstack_payload():
    """A successful Weatherstack /current response body."""
    return {
        "request": {
            "type": "Address",
            "query": "15528 E Golden Eagle Blvd, Fountain Hills, AZ 85268",
            "language": "en",
            "unit": "f",
        },
        "location": {
            "name": "Fountain Hills",
            "country": "USA",
            "region": "Arizona",
            "lat": "33.609",
            "lon": "-111.729",
            "timezone_id": "America/Phoenix",
            "localtime": "2024-01-15 17:30",
            "localtime_epoch": 1705339800,
            "utc_offset": "-7.0",
        },
        "current": {
            "observation_time": "05:30 PM",
            "temperature": 75,
            "weather_code": 113,
            "weather_icons": ["https://example.com/sunny.png"],
            "weather_descriptions": ["Sunny"],
            "wind_speed": 5,
            "wind_degree": 90,
            "wind_dir": "E",
            "pressure": 1015,
            "precip": 0,
            "humidity": 35,
            "cloudcover": 0,
            "feelslike": 73,
            "uv_index": 3,
            "visibility": 10,
        },
    }


@pytest.fixture
def repository():
    """Empty in-memory property store."""
    return InMemoryPropertyRepository()


@pytest.fixture
def weather_client(fountain_hills_lookup):
    """Weather client that always succeeds with the Fountain Hills lookup."""
    return ScriptedWeatherClient(fountain_hills_lookup)


@pytest.fixture
def clock():
    return SequenceClock()


@pytest.fixture
def service(repository, weather_client, clock):
    """PropertyService wired to the fakes."""
    return PropertyService(repository, weather_client, clock=clock)


def make_record(
    city: str = "Fountain Hills",
    state: str = "AZ",
    zip_code: str = "85268",
    created_at: datetime | None = None,
    record_id: str | None = None,
) -> PropertyRecord:
    """Build a stored-looking PropertyRecord for query tests."""
    return PropertyRecord(
        id=UUID(record_id) if record_id else UUID(int=0),
        street="1 Main St",
        city=city,
        state=state,
        zip_code=zip_code,
        weather=WeatherSnapshot(
            temperature=70,
            conditions=["Clear"],
            humidity=20,
            wind_speed=3,
            observed_at="09:00 AM",
            feels_like=69,
        ),
        latitude=33.0,
        longitude=-111.0,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def record_factory():
    """Factory for stored-looking PropertyRecords."""
    return make_record


@pytest.fixture
def scripted_weather_client():
    """The ScriptedWeatherClient class, for tests that script their own outcomes."""
    return ScriptedWeatherClient
