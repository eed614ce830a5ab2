# File: fitnessgap/models/activity.py
"""
Activity kinds, the desired activity plan and the daily scheduling window.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional

import pytz

from .common import parse_clock_time
from .interval import TimeInterval


class ActivityKind(Enum):
    """Wellness activities placed into free time."""
    WORKOUTS = "workouts"
    STRETCHING = "stretching"
    MEDITATION = "meditation"

    @property
    def label(self) -> str:
        return ACTIVITY_METADATA[self]["label"]

    @property
    def description(self) -> str:
        return ACTIVITY_METADATA[self]["description"]

    @property
    def duration_minutes(self) -> int:
        return ACTIVITY_METADATA[self]["duration"]

    @property
    def default_per_day(self) -> int:
        return ACTIVITY_METADATA[self]["per_day"]


# The label is the only identity key for events across runs, so labels
# must never contain one another.
ACTIVITY_METADATA: Dict[ActivityKind, Dict[str, Any]] = {
    ActivityKind.WORKOUTS: {
        "label": "Workout Session",
        "description": "Time for a quick workout to boost your energy!",
        "duration": 30,
        "per_day": 1,
    },
    ActivityKind.STRETCHING: {
        "label": "Stretching Break",
        "description": "Take a moment to stretch and move your body.",
        "duration": 15,
        "per_day": 2,
    },
    ActivityKind.MEDITATION: {
        "label": "Meditation Break",
        "description": "Take a moment to breathe and center yourself.",
        "duration": 5,
        "per_day": 2,
    },
}


@dataclass
class PlanEntry:
    """Desired state for one activity kind."""
    enabled: bool
    occurrences_per_day: int

    def __post_init__(self):
        if self.occurrences_per_day < 0:
            raise ValueError(f"occurrences_per_day cannot be negative: {self.occurrences_per_day}")


@dataclass
class ActivityPlan:
    """Which activity kinds are wanted and how often per business day."""
    entries: Dict[ActivityKind, PlanEntry] = field(default_factory=dict)

    def __post_init__(self):
        # Kinds missing from the plan are treated as disabled
        for kind in ActivityKind:
            self.entries.setdefault(kind, PlanEntry(False, kind.default_per_day))

    @classmethod
    def from_selection(
        cls,
        selection: Dict[str, bool],
        occurrences: Optional[Dict[str, int]] = None
    ) -> 'ActivityPlan':
        """
        Build a plan from {'workouts': True, ...} toggles.

        Args:
            selection: Enabled flag per kind value
            occurrences: Optional per-kind override of occurrences per day
        """
        occurrences = occurrences or {}
        entries = {}
        for kind in ActivityKind:
            entries[kind] = PlanEntry(
                enabled=bool(selection.get(kind.value, False)),
                occurrences_per_day=int(occurrences.get(kind.value, kind.default_per_day)),
            )
        return cls(entries)

    def is_enabled(self, kind: ActivityKind) -> bool:
        return self.entries[kind].enabled

    def occurrences_per_day(self, kind: ActivityKind) -> int:
        return self.entries[kind].occurrences_per_day

    def enabled_kinds(self) -> List[ActivityKind]:
        """Enabled kinds in declaration order."""
        return [kind for kind in ActivityKind if self.entries[kind].enabled]

    def disabled_kinds(self) -> List[ActivityKind]:
        return [kind for kind in ActivityKind if not self.entries[kind].enabled]

    def to_dict(self) -> dict:
        return {
            kind.value: {
                'enabled': entry.enabled,
                'occurrences_per_day': entry.occurrences_per_day,
            }
            for kind, entry in self.entries.items()
        }


@dataclass
class DailyWindow:
    """Portion of every calendar day that is eligible for scheduling."""
    earliest_time: time
    latest_time: time
    timezone: str = "UTC"

    def __post_init__(self):
        self.earliest_time = parse_clock_time(self.earliest_time)
        self.latest_time = parse_clock_time(self.latest_time)
        if self.latest_time <= self.earliest_time:
            raise ValueError(
                f"Window must end after it starts: {self.earliest_time} - {self.latest_time}"
            )
        # Raises UnknownTimeZoneError early on a bad identifier
        pytz.timezone(self.timezone)

    @property
    def tz(self):
        return pytz.timezone(self.timezone)

    def localize(self, day: date, wall_time: time) -> datetime:
        """Attach the window timezone to a wall-clock time on a given day."""
        return self.tz.localize(datetime.combine(day, wall_time))

    def bounds(self, day: date) -> Optional[TimeInterval]:
        """
        Window for a calendar day as an absolute interval.

        Returns None when the localized window has no eligible minutes,
        which can happen around daylight saving transitions.
        """
        start = self.localize(day, self.earliest_time)
        end = self.localize(day, self.latest_time)
        if end <= start:
            return None
        return TimeInterval(start, end)

    def day_of(self, moment: datetime) -> date:
        """Calendar day of an instant, seen from the window timezone."""
        if moment.tzinfo is None:
            return moment.date()
        return moment.astimezone(self.tz).date()
