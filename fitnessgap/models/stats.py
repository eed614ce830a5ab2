# File: fitnessgap/models/stats.py

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from .activity import ActivityKind
from .calendar import ScheduledEvent
from .enums import StatsPeriod


@dataclass(frozen=True)
class KindStats:
    scheduled: int = 0
    completed: int = 0
    upcoming: int = 0

    def to_dict(self) -> dict:
        return {'scheduled': self.scheduled, 'completed': self.completed, 'upcoming': self.upcoming}


@dataclass(frozen=True)
class WellnessStats:
    """Owned activity counts over a week, month or year."""
    period: StatsPeriod
    start_day: date
    end_day: date
    by_kind: Dict[ActivityKind, KindStats] = field(default_factory=dict)
    events: List[dict] = field(default_factory=list)

    @property
    def total_scheduled(self) -> int:
        return sum(s.scheduled for s in self.by_kind.values())

    @property
    def total_completed(self) -> int:
        return sum(s.completed for s in self.by_kind.values())

    @property
    def total_upcoming(self) -> int:
        return sum(s.upcoming for s in self.by_kind.values())

    @property
    def completion_rate(self) -> int:
        """Completed share of scheduled activities, as a rounded percent."""
        if self.total_scheduled == 0:
            return 0
        return round(self.total_completed / self.total_scheduled * 100)

    def to_dict(self) -> dict:
        return {
            'period': self.period.value,
            'dateRange': {'start': self.start_day.isoformat(), 'end': self.end_day.isoformat()},
            'stats': {k.value: s.to_dict() for k, s in self.by_kind.items()},
            'totals': {
                'scheduled': self.total_scheduled,
                'completed': self.total_completed,
                'upcoming': self.total_upcoming,
                'completionRate': self.completion_rate,
            },
            'events': self.events,
        }


def event_entry(event: ScheduledEvent, completed: bool) -> dict:
    entry = event.to_dict()
    entry['completed'] = completed
    return entry
