"""Shared test fixtures and helpers."""

import json
import os
from datetime import date, datetime

# in-memory database for every module imported below
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from washbay.database import get_db
from washbay.dependencies import get_now
from washbay.models import Base
from washbay.services.booking_store import BookingStore, CustomerInfo
from washbay.services.slots import (
    BookingConfig,
    BusinessCalendar,
    CapacityConfig,
    SlotSnapshot,
)

# Monday
NOW = datetime(2026, 10, 19, 7, 0)
TUESDAY = date(2026, 10, 20)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)
CHRISTMAS = date(2026, 12, 25)


class FakeRedis:
    """Records pushed events instead of talking to a server."""

    def __init__(self, healthy: bool = True):
        self.healthy = healthy
        self.pushed: list[tuple[str, dict]] = []

    def rpush(self, queue: str, value: str) -> int:
        self.pushed.append((queue, json.loads(value)))
        return len(self.pushed)

    def ping(self) -> bool:
        return self.healthy

    def events(self, event_type: str) -> list[dict]:
        return [e for _, e in self.pushed if e["type"] == event_type]


class FakeReader:
    """SnapshotReader over a fixed {(date, "HH:MM"): [service_id, ...]} table."""

    def __init__(self, bookings: dict | None = None, error: Exception | None = None):
        self.bookings = bookings or {}
        self.error = error
        self.day_reads = 0

    def count_active_bookings(self, target_date, time_slot):
        if self.error:
            raise self.error
        return SlotSnapshot.from_service_ids(self.bookings.get((target_date, time_slot), []))

    def day_snapshots(self, target_date):
        if self.error:
            raise self.error
        self.day_reads += 1
        return {
            time_slot: SlotSnapshot.from_service_ids(ids)
            for (day, time_slot), ids in self.bookings.items()
            if day == target_date
        }


def customer(n: int = 1, **kwargs) -> CustomerInfo:
    return CustomerInfo(
        name=kwargs.pop("name", f"Customer {n}"),
        email=kwargs.pop("email", f"customer{n}@example.com"),
        **kwargs,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def booking_config():
    return BookingConfig()


@pytest.fixture
def capacity_config():
    return CapacityConfig()


@pytest.fixture
def calendar(booking_config):
    return BusinessCalendar(config=booking_config)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return BookingStore(db_session)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("washbay.services.events.redis_client", fake)
    return fake


@pytest.fixture
def client(db_session, fake_redis, now):
    from washbay.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: now
    yield TestClient(app)
    app.dependency_overrides.clear()
