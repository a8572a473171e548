# tests/conftest.py
import os

# Keep tests off the on-disk database; must be set before vital_monitor is imported
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from vital_monitor.config import Config
from vital_monitor.main import create_app
from vital_monitor.models import NewVitalReading, VitalReading
from vital_monitor.services import VitalService
from vital_monitor.storage import SqlAlchemyVitalStore


FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryVitalStore:
    """VitalStore kept in a list. Counts calls so tests can check query shape."""

    def __init__(self):
        self._rows: list[VitalReading] = []
        self.calls: list[str] = []

    def _newest_first(self) -> list[VitalReading]:
        return sorted(self._rows, key=lambda r: (r.timestamp, r.id), reverse=True)

    def insert(self, reading: NewVitalReading) -> VitalReading:
        self.calls.append("insert")
        stored = VitalReading(id=len(self._rows) + 1, **reading.model_dump())
        self._rows.append(stored)
        return stored

    def get(self, vital_id: int):
        self.calls.append("get")
        return next((row for row in self._rows if row.id == vital_id), None)

    def count(self) -> int:
        self.calls.append("count")
        return len(self._rows)

    def latest(self, n: int) -> list[VitalReading]:
        self.calls.append("latest")
        return self._newest_first()[:n]

    def page(self, page: int, page_size: int):
        self.calls.append("page")
        start = (page - 1) * page_size
        return self._newest_first()[start:start + page_size], len(self._rows)


class UnlimitedConfig(Config):
    """Rate limiting off unless a test turns it on."""
    RATE_LIMIT_PERMIT = 0


@pytest.fixture(scope="function")
def now():
    return FIXED_NOW


@pytest.fixture(scope="function")
def store_class():
    return InMemoryVitalStore


@pytest.fixture(scope="function")
def make_app(store):
    """Build an app with settings overridden, e.g. make_app(RATE_LIMIT_PERMIT=2)."""
    def _make_app(target_store=None, clock=lambda: FIXED_NOW, **overrides):
        config = type("OverriddenConfig", (UnlimitedConfig,), overrides)
        return create_app(config=config, store=target_store or store, clock=clock)

    return _make_app


@pytest.fixture(scope="function")
def store():
    """Empty in-memory store per test."""
    return InMemoryVitalStore()


@pytest.fixture(scope="function")
def sql_store():
    """SQLAlchemy store on an in-memory SQLite database."""
    vital_store = SqlAlchemyVitalStore("sqlite://")
    vital_store.init_schema()
    yield vital_store
    vital_store.close()


@pytest.fixture(scope="function")
def service(store):
    return VitalService(store, clock=lambda: FIXED_NOW)


@pytest.fixture(scope="function")
def app(store):
    """A clean app per test, wired to the in-memory store and a fixed clock."""
    return create_app(config=UnlimitedConfig, store=store, clock=lambda: FIXED_NOW)


@pytest.fixture(scope="function")
def client(app):
    """Test client isolated per test."""
    return TestClient(app)


@pytest.fixture(scope="function")
def seed(store):
    """
    Insert readings oldest to newest, one minute apart, ending a minute before FIXED_NOW.

    Each item is a dict of field overrides; the rest default to thermal 1,
    battery 50, memory 50.
    """
    def _seed(items, target=None):
        target = target or store
        stored = []
        start = FIXED_NOW - timedelta(minutes=len(items))
        for index, overrides in enumerate(items):
            values = {
                "device_id": "device-1",
                "timestamp": start + timedelta(minutes=index),
                "thermal_value": 1,
                "battery_level": 50.0,
                "memory_usage": 50.0,
            }
            values.update(overrides)
            stored.append(target.insert(NewVitalReading(**values)))
        return stored

    return _seed


@pytest.fixture(scope="function")
def valid_payload():
    return {
        "device_id": "device-1",
        "timestamp": (FIXED_NOW - timedelta(minutes=1)).isoformat(),
        "thermal_value": 1,
        "battery_level": 50.0,
        "memory_usage": 60.0,
    }
