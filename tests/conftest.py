"""Root conftest — shared fixtures for schedule tests."""

import os

# Keep tests off the real database and bot
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "000000:test-token")
os.environ.setdefault("ALLOWED_OWNER_IDS", "")

import pytest

from models.schedule import Frequency
from repositories.memory_repo import InMemoryScheduleStore
from security.auth import AllowListVerifier
from services.execution_service import ExecutionService
from services.schedule_service import ScheduleService
from utils.clock import FixedClock

NOW = 1_700_000_000
DAY = 86_400
WEEK = 7 * DAY
OWNER = "alice"
OTHER = "mallory"


class RecordingEventSink:
    """Keeps every published event in order."""

    def __init__(self):
        self.events = []

    def publish(self, kind, payload):
        self.events.append((kind, payload))

    @property
    def kinds(self):
        return [kind for kind, _ in self.events]


class FailingEventSink:
    def publish(self, kind, payload):
        raise ConnectionError("event bus down")


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return InMemoryScheduleStore()


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def service(store, clock, events):
    return ScheduleService(
        store=store, clock=clock, verifier=AllowListVerifier([]), events=events,
    )


@pytest.fixture
def engine(store, clock, events):
    return ExecutionService(store=store, clock=clock, events=events)


@pytest.fixture
def make_schedule(service):
    """Create a schedule starting one day from NOW unless told otherwise."""
    def _make(owner=OWNER, amount=1000, frequency=Frequency.WEEKLY,
              start=NOW + DAY, frequency_days=0, end=None, split_config_ref=None):
        return service.create_schedule(
            owner=owner,
            amount=amount,
            frequency=frequency,
            start_timestamp=start,
            frequency_days=frequency_days,
            split_config_ref=split_config_ref,
            end_timestamp=end,
        )
    return _make
