# File: fitnessgap/models/calendar.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .activity import ActivityKind
from .interval import TimeInterval


@dataclass
class CalendarEvent:
    """Represents an event as returned by the calendar backend."""
    summary: str
    start: datetime
    end: datetime
    event_id: Optional[str] = None
    description: Optional[str] = None
    source_id: Optional[str] = None
    html_link: Optional[str] = None
    all_day: bool = False

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"Event end time must be after start time: {self.summary}")

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)


@dataclass(frozen=True)
class ScheduledEvent:
    """An activity occurrence owned by this system."""
    event_id: Optional[str]
    kind: ActivityKind
    interval: TimeInterval
    label: str
    link: Optional[str] = None

    @classmethod
    def from_calendar_event(cls, event: CalendarEvent, kind: ActivityKind) -> 'ScheduledEvent':
        return cls(
            event_id=event.event_id,
            kind=kind,
            interval=event.interval,
            label=event.summary,
            link=event.html_link,
        )

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    def to_dict(self) -> dict:
        return {
            'id': self.event_id,
            'title': self.label,
            'type': self.kind.value,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'link': self.link,
        }
