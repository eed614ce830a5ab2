# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides reusable test data and mocks for all tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock
import sys

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fitnessgap.core.config_manager import Config
from fitnessgap.core.errors import BackendWriteFailure
from fitnessgap.models import (
    ActivityKind, ActivityPlan, CalendarEvent, DailyWindow, PlanEntry,
    TimeInterval, UserPreferences, normalize_busy_periods
)


UTC = timezone.utc

# Monday 17 November 2025, before the daily window opens
FIXED_NOW = datetime(2025, 11, 17, 5, 0, tzinfo=UTC)


def at(day: int, hour: int, minute: int = 0, month: int = 11) -> datetime:
    """UTC instant in November 2025 (or another month of 2025)."""
    return datetime(2025, month, day, hour, minute, tzinfo=UTC)


# ==================== Fake Calendar Backend ====================

class FakeCalendarBackend:
    """
    In-memory calendar backend.

    Free/busy includes every timed event on the calendar plus any extra
    busy intervals, the way the Google free/busy endpoint reports them.
    """

    def __init__(self, events=None, busy=None):
        self.events = {}
        self.busy = list(busy or [])
        self.calls = []
        self.created = []
        self.deleted = []
        # 0-based create attempts that fail with BackendWriteFailure
        self.fail_create_on = set()
        self.create_attempts = 0
        self.create_error = None
        self.delete_error = None
        self.list_error = None
        self.free_busy_error = None
        self._next_id = 1
        for event in events or []:
            self.add(event)

    def add(self, event: CalendarEvent) -> CalendarEvent:
        if event.event_id is None:
            event.event_id = f"evt_{self._next_id}"
            self._next_id += 1
        self.events[event.event_id] = event
        return event

    def add_activity(self, kind: ActivityKind, start: datetime, owned_marker: bool = True) -> CalendarEvent:
        return self.add(CalendarEvent(
            summary=kind.label,
            start=start,
            end=start + timedelta(minutes=kind.duration_minutes),
            source_id=Config.GENERATOR_ID if owned_marker else None,
        ))

    @property
    def write_calls(self):
        return [call for call in self.calls if call[0] in ('create_event', 'delete_event')]

    def query_free_busy(self, time_min, time_max):
        self.calls.append(('query_free_busy', time_min, time_max))
        if self.free_busy_error is not None:
            raise self.free_busy_error
        intervals = [e.interval for e in self.events.values() if not e.all_day] + self.busy
        window = TimeInterval(time_min, time_max)
        return normalize_busy_periods(i for i in intervals if i.overlaps(window))

    def list_events(self, time_min, time_max):
        self.calls.append(('list_events', time_min, time_max))
        if self.list_error is not None:
            raise self.list_error
        window = TimeInterval(time_min, time_max)
        found = [e for e in self.events.values() if e.interval.overlaps(window)]
        return sorted(found, key=lambda e: e.start)

    def create_event(self, label, description, interval, reminder_minutes=None, timezone=None):
        self.calls.append(('create_event', label, interval))
        if self.create_error is not None:
            raise self.create_error
        attempt = self.create_attempts
        self.create_attempts += 1
        if attempt in self.fail_create_on:
            raise BackendWriteFailure("events.insert: 500 backend error", 500)
        event = self.add(CalendarEvent(
            summary=label,
            start=interval.start,
            end=interval.end,
            description=description,
            source_id=Config.GENERATOR_ID,
            html_link="https://calendar.example/event",
        ))
        self.created.append(event)
        return event

    def delete_event(self, event_id):
        self.calls.append(('delete_event', event_id))
        if self.delete_error is not None:
            raise self.delete_error
        self.events.pop(event_id, None)
        self.deleted.append(event_id)

    def owned(self, kind: ActivityKind):
        return sorted(
            (e for e in self.events.values() if kind.label in e.summary),
            key=lambda e: e.start
        )


# ==================== Clock Fixtures ====================

class MutableClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return MutableClock(FIXED_NOW)


@pytest.fixture
def make_clock():
    return MutableClock


@pytest.fixture
def at_utc():
    """Helper building UTC instants: at_utc(17, 9, 30)."""
    return at


# ==================== Preference Fixtures ====================

@pytest.fixture
def window():
    """06:00-22:00 UTC window."""
    return DailyWindow("06:00", "22:00", "UTC")


@pytest.fixture
def workout_plan():
    """Workouts once per business day, everything else off."""
    return ActivityPlan.from_selection({'workouts': True})


@pytest.fixture
def full_plan():
    return ActivityPlan.from_selection({'workouts': True, 'stretching': True, 'meditation': True})


@pytest.fixture
def make_plan():
    """Factory fixture for plans with explicit occurrences."""
    def _create(**per_day) -> ActivityPlan:
        return ActivityPlan({
            ActivityKind(name): PlanEntry(enabled=count > 0, occurrences_per_day=max(count, 0))
            for name, count in per_day.items()
        })
    return _create


@pytest.fixture
def sample_preferences_dict():
    return {
        'hasCompletedOnboarding': True,
        'activityPreferences': {'workouts': True, 'stretching': True, 'meditation': False},
        'earliestWorkoutTime': '06:00',
        'latestWorkoutTime': '22:00',
        'preferredWorkoutDuration': 30,
        'timezone': 'UTC',
        'horizon': 'week',
    }


@pytest.fixture
def preferences(sample_preferences_dict):
    return UserPreferences.from_dict(sample_preferences_dict)


# ==================== Backend Fixtures ====================

@pytest.fixture
def backend():
    return FakeCalendarBackend()


@pytest.fixture
def make_backend():
    """Factory fixture for backends pre-loaded with events or busy time."""
    return FakeCalendarBackend


@pytest.fixture
def mock_calendar_resource():
    """Mock Google Calendar API resource."""
    mock = Mock()
    mock.events().list().execute.return_value = {'items': []}
    mock.events().insert().execute.return_value = {
        'id': 'new_event_id',
        'htmlLink': 'https://calendar.google.com/event?eid=new_event_id',
    }
    mock.events().delete().execute.return_value = None
    mock.freebusy().query().execute.return_value = {
        'calendars': {'primary': {'busy': []}}
    }
    return mock


# ==================== Temporary Directory Fixtures ====================

@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


# ==================== Pytest Markers ====================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
