# File: fitnessgap/processors/event_classifier.py
"""
Existing-event classification.

Splits the backend's events into ones this system owns and foreign ones,
then groups owned events by activity kind and by calendar day.
"""

import datetime
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from fitnessgap.core.config_manager import Config
from fitnessgap.models import ActivityKind, CalendarEvent, DailyWindow, ScheduledEvent, TimeInterval
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def match_kind(summary: Optional[str]) -> Optional[ActivityKind]:
    """Kind whose label appears in the summary, first match wins."""
    if not summary:
        return None
    for kind in ActivityKind:
        if kind.label in summary:
            return kind
    return None


class ClassifiedEvents:
    """Owned events indexed by kind and by day."""

    def __init__(self, owned: List[ScheduledEvent], window: DailyWindow, all_day_ids: Sequence[str] = ()):
        self.owned = owned
        self.window = window
        self._all_day_ids = set(all_day_ids)
        self._by_kind_day: Dict[Tuple[ActivityKind, datetime.date], List[ScheduledEvent]] = defaultdict(list)

        for event in owned:
            # All-day events are owned but never count against a day's quota
            if event.event_id in self._all_day_ids:
                continue
            day = window.day_of(event.start)
            self._by_kind_day[(event.kind, day)].append(event)

        for events in self._by_kind_day.values():
            events.sort(key=lambda e: e.start)

    def __len__(self) -> int:
        return len(self.owned)

    def by_kind(self, kind: ActivityKind) -> List[ScheduledEvent]:
        return [event for event in self.owned if event.kind == kind]

    def events_on(self, kind: ActivityKind, day: datetime.date) -> List[ScheduledEvent]:
        return list(self._by_kind_day.get((kind, day), []))

    def count(self, kind: ActivityKind, day: datetime.date) -> int:
        return len(self._by_kind_day.get((kind, day), []))

    def occupied_intervals(self, day: datetime.date) -> List[TimeInterval]:
        """Intervals taken by owned events of any kind on a day."""
        intervals = []
        for kind in ActivityKind:
            intervals.extend(event.interval for event in self._by_kind_day.get((kind, day), []))
        return sorted(intervals, key=lambda interval: interval.start)

    def counts(self) -> Dict[ActivityKind, int]:
        return {kind: len(self.by_kind(kind)) for kind in ActivityKind}

    def discard(self, event: ScheduledEvent) -> None:
        """Forget an event after it has been deleted from the backend."""
        self.owned = [e for e in self.owned if e is not event]
        for key, events in self._by_kind_day.items():
            self._by_kind_day[key] = [e for e in events if e is not event]


class EventClassifier:
    """Decides which calendar events belong to this system."""

    def __init__(self, window: DailyWindow, require_marker: bool = None):
        self.window = window
        self.require_marker = (
            Config.REQUIRE_OWNERSHIP_MARKER if require_marker is None else require_marker
        )

    def kind_of(self, event: CalendarEvent) -> Optional[ActivityKind]:
        kind = match_kind(event.summary)
        if kind is None:
            return None
        if self.require_marker and event.source_id != Config.GENERATOR_ID:
            return None
        return kind

    def classify(self, events: Sequence[CalendarEvent]) -> ClassifiedEvents:
        owned: List[ScheduledEvent] = []
        all_day_ids: List[str] = []

        for event in events:
            kind = self.kind_of(event)
            if kind is None:
                continue
            scheduled = ScheduledEvent.from_calendar_event(event, kind)
            owned.append(scheduled)
            if event.all_day:
                all_day_ids.append(event.event_id)

        logger.info(f"Classified {len(owned)} owned events out of {len(events)}")
        return ClassifiedEvents(owned, self.window, all_day_ids)
