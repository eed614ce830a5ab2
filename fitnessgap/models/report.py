# File: fitnessgap/models/report.py
"""
Scheduling-run report.

A RunReportBuilder accumulates outcomes while the reconciler walks the
calendar; build() freezes them into a SchedulingRunReport that is handed
back to the caller.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from .activity import ActivityKind
from .calendar import ScheduledEvent
from .enums import Outcome
from .interval import TimeInterval


@dataclass(frozen=True)
class KindResult:
    """Per-kind scheduling counters and day annotations."""
    scheduled: int = 0
    failed: int = 0
    days: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {'scheduled': self.scheduled, 'failed': self.failed, 'days': list(self.days)}


@dataclass(frozen=True)
class DayDetail:
    """Outcome of a single occurrence (or removal) on a given day."""
    day: date
    kind: ActivityKind
    outcome: Outcome
    slot: Optional[TimeInterval] = None

    def to_dict(self) -> dict:
        return {
            'day': self.day.isoformat(),
            'type': self.kind.value,
            'outcome': self.outcome.value,
            'slot': self.slot.to_dict() if self.slot else None,
        }


def _zero_counts() -> Dict[ActivityKind, int]:
    return {kind: 0 for kind in ActivityKind}


@dataclass(frozen=True)
class SchedulingRunReport:
    """Immutable summary of one scheduling, reconciling or removal run."""
    success: bool
    message: str
    results: Dict[ActivityKind, KindResult] = field(default_factory=dict)
    added: Dict[ActivityKind, int] = field(default_factory=_zero_counts)
    removed: Dict[ActivityKind, int] = field(default_factory=_zero_counts)
    kept: Dict[ActivityKind, int] = field(default_factory=_zero_counts)
    scheduled_events: Tuple[ScheduledEvent, ...] = ()
    details: Tuple[DayDetail, ...] = ()
    errors: Tuple[str, ...] = ()
    incomplete: bool = False

    @property
    def total_added(self) -> int:
        return sum(self.added.values())

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())

    @property
    def total_kept(self) -> int:
        return sum(self.kept.values())

    @property
    def total_failed(self) -> int:
        return sum(result.failed for result in self.results.values())

    @classmethod
    def refusal(cls, message: str) -> 'SchedulingRunReport':
        """A run that declined to do anything."""
        return cls(success=False, message=message)

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary keyed by kind value."""
        return {
            'success': self.success,
            'message': self.message,
            'incomplete': self.incomplete,
            'scheduling_results': {k.value: r.to_dict() for k, r in self.results.items()},
            'smart_results': {
                'added': {k.value: v for k, v in self.added.items()},
                'removed': {k.value: v for k, v in self.removed.items()},
                'kept': {k.value: v for k, v in self.kept.items()},
            },
            'scheduled_events': [e.to_dict() for e in self.scheduled_events],
            'details': [d.to_dict() for d in self.details],
            'errors': list(self.errors),
        }


class RunReportBuilder:
    """Mutable accumulator used for the duration of one run."""

    def __init__(self):
        self._scheduled = _zero_counts()
        self._failed = _zero_counts()
        self._days: Dict[ActivityKind, List[str]] = {kind: [] for kind in ActivityKind}
        self._annotated: set = set()
        self.added = _zero_counts()
        self.removed = _zero_counts()
        self.kept = _zero_counts()
        self.scheduled_events: List[ScheduledEvent] = []
        self.details: List[DayDetail] = []
        self.errors: List[str] = []
        self.incomplete = False

    def _annotate(self, kind: ActivityKind, day: date, text: str) -> None:
        # One annotation per (kind, day), taken from the first attempt that day
        if (kind, day) in self._annotated:
            return
        self._annotated.add((kind, day))
        self._days[kind].append(text)

    def record_scheduled(self, event: ScheduledEvent, day: date) -> None:
        self._scheduled[event.kind] += 1
        self.added[event.kind] += 1
        self.scheduled_events.append(event)
        self.details.append(DayDetail(day, event.kind, Outcome.SCHEDULED, event.interval))
        self._annotate(event.kind, day, day.strftime("%A"))

    def record_no_slot(self, kind: ActivityKind, day: date) -> None:
        self._failed[kind] += 1
        self.details.append(DayDetail(day, kind, Outcome.NO_AVAILABLE_TIME))
        self._annotate(kind, day, f"{day.strftime('%A')} (no available time)")

    def record_write_failure(self, kind: ActivityKind, day: date, slot: TimeInterval, error: str) -> None:
        self._failed[kind] += 1
        self.details.append(DayDetail(day, kind, Outcome.WRITE_FAILED, slot))
        self.errors.append(error)

    def record_kept(self, kind: ActivityKind, count: int) -> None:
        self.kept[kind] += count

    def record_removed(self, event: ScheduledEvent, day: date) -> None:
        self.removed[event.kind] += 1
        self.details.append(DayDetail(day, event.kind, Outcome.REMOVED, event.interval))

    def record_remove_failure(self, event: ScheduledEvent, day: date, error: str) -> None:
        self.details.append(DayDetail(day, event.kind, Outcome.REMOVE_FAILED, event.interval))
        self.errors.append(error)

    def summary_message(self, prefix: str) -> str:
        message = prefix
        total_removed = sum(self.removed.values())
        total_added = sum(self.added.values())
        total_kept = sum(self.kept.values())
        if total_removed > 0:
            message += f" Removed {total_removed} events."
        if total_added > 0:
            message += f" Added {total_added} new events."
        if total_kept > 0:
            message += f" Kept {total_kept} existing events."
        if self.incomplete:
            message += " Stopped early: deadline reached."
        return message.strip()

    def build(self, message: str, success: bool = True) -> SchedulingRunReport:
        results = {
            kind: KindResult(self._scheduled[kind], self._failed[kind], tuple(self._days[kind]))
            for kind in ActivityKind
        }
        return SchedulingRunReport(
            success=success,
            message=message,
            results=results,
            added=dict(self.added),
            removed=dict(self.removed),
            kept=dict(self.kept),
            scheduled_events=tuple(self.scheduled_events),
            details=tuple(self.details),
            errors=tuple(self.errors),
            incomplete=self.incomplete,
        )


@dataclass(frozen=True)
class ScheduledCheck:
    """Answer to "is anything already scheduled this period?"."""
    has_scheduled_events: bool
    event_counts: Dict[ActivityKind, int]
    expected_events: Dict[ActivityKind, int]
    business_days: int

    def to_dict(self) -> dict:
        return {
            'hasScheduledEvents': self.has_scheduled_events,
            'eventCounts': {k.value: v for k, v in self.event_counts.items()},
            'expectedEvents': {k.value: v for k, v in self.expected_events.items()},
            'businessDaysInPeriod': self.business_days,
        }
