from datetime import datetime, timedelta, timezone

import pytest

from repository import ProjectRepository
from storage import MemoryStore


class Clock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def details():
    return {
        "name": "Priya Sharma",
        "phone": "+91 98765 43210",
        "email": "priya@example.com",
        "address": "12 MG Road\nBengaluru 560001",
    }


@pytest.fixture
def config():
    return {
        "make": "Trina Solar",
        "watt_peak": 540,
        "number_of_panels": 20,
        "base_price_per_kw": 50000,
        "gst_percentage": 13.8,
        "cleaning_charges": 5000,
        "subsidy": 10000,
    }


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def repo(store, clock):
    return ProjectRepository(store, clock=clock)
