# File: fitnessgap/core/reconciler.py
"""
Reconciling auto-scheduler.

Converges the calendar toward an ActivityPlan: occurrences of disabled
kinds are removed, missing occurrences are added into free slots and
occurrences already in place are kept. Runs are sequential; every
placement becomes busy time for the placements after it on the same day.

Run states:

    START -> CLASSIFY_EXISTING -> REMOVE_DISABLED_KINDS -> REFRESH_BUSY_TIMES
          -> WALK_DAYS -> REPORT -> DONE

An Unauthenticated or AccessDenied error moves the run to ABORTED and
propagates. Any other failed write is recorded and the walk continues.
A failed read also moves the run to ABORTED, but returns a report with
success=False that still lists the removals already made.
"""

import datetime
from enum import Enum
from typing import Callable, List, Optional

import pytz

from fitnessgap.core.config_manager import Config
from fitnessgap.core.errors import AuthError, CalendarBackendError, RunDeadlineExceeded
from fitnessgap.models import (
    ActivityKind,
    ActivityPlan,
    DailyWindow,
    Horizon,
    RunReportBuilder,
    ScheduledCheck,
    ScheduledEvent,
    SchedulingRunReport,
    TimeInterval,
)
from fitnessgap.processors.event_classifier import ClassifiedEvents, EventClassifier
from fitnessgap.processors.slot_finder import SlotFinder
from fitnessgap.utils.dates import business_days, count_business_days, period_range, scheduling_range
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)

ALREADY_SCHEDULED_MESSAGE = (
    "Wellness activities are already scheduled for this period. "
    "Remove them first, or use smart scheduling to update them."
)


class RunState(Enum):
    START = "start"
    CLASSIFY_EXISTING = "classify_existing"
    REMOVE_DISABLED_KINDS = "remove_disabled_kinds"
    REFRESH_BUSY_TIMES = "refresh_busy_times"
    WALK_DAYS = "walk_days"
    REPORT = "report"
    DONE = "done"
    ABORTED = "aborted"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(pytz.utc)


class Reconciler:
    """
    Drives one scheduling run against a calendar backend.

    The backend is any object offering query_free_busy, list_events,
    create_event and delete_event with the signatures of
    GoogleCalendarService.
    """

    def __init__(
        self,
        backend,
        slot_finder: Optional[SlotFinder] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        reminder_minutes: Optional[int] = None,
        require_marker: Optional[bool] = None
    ):
        self.backend = backend
        self.slot_finder = slot_finder or SlotFinder()
        self.clock = clock or utc_now
        self.reminder_minutes = Config.REMINDER_MINUTES if reminder_minutes is None else reminder_minutes
        self.require_marker = require_marker
        self.state = RunState.START

    # ------------------------------------------------------------------ helpers

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state {self.state.value} -> {state.value}")
        self.state = state

    def _check_deadline(self, deadline: Optional[datetime.datetime]) -> None:
        """Called before every backend call."""
        if deadline is not None and self.clock() >= deadline:
            raise RunDeadlineExceeded(f"Deadline {deadline.isoformat()} reached")

    @staticmethod
    def _range_instants(window: DailyWindow, start_day: datetime.date, end_day: datetime.date):
        return (
            window.localize(start_day, datetime.time.min),
            window.localize(end_day, datetime.time.min),
        )

    def _classify(self, window, time_min, time_max, deadline) -> ClassifiedEvents:
        self._check_deadline(deadline)
        events = self.backend.list_events(time_min, time_max)
        return EventClassifier(window, self.require_marker).classify(events)

    def _delete(
        self,
        event: ScheduledEvent,
        window: DailyWindow,
        classified: ClassifiedEvents,
        builder: RunReportBuilder,
        deadline: Optional[datetime.datetime]
    ) -> bool:
        day = window.day_of(event.start)
        if not event.event_id:
            logger.warning(f"Cannot remove '{event.label}' on {day}: no event id")
            return False

        self._check_deadline(deadline)
        try:
            self.backend.delete_event(event.event_id)
        except AuthError:
            raise
        except CalendarBackendError as e:
            logger.error(f"Failed to remove {event.kind.value} event {event.event_id}: {e}")
            builder.record_remove_failure(event, day, f"Failed to remove: {event.label} ({e})")
            return False

        classified.discard(event)
        builder.record_removed(event, day)
        logger.info(f"Removed {event.kind.value} event '{event.label}' at {event.start.isoformat()}")
        return True

    def _read_failure(
        self,
        builder: RunReportBuilder,
        operation: str,
        error: CalendarBackendError
    ) -> SchedulingRunReport:
        """Failed report for a run stopped by a calendar read; earlier writes stay in it."""
        logger.error(f"{operation} stopped by a failed calendar read: {error}")
        message = builder.summary_message(f"{operation} failed: {error}.")
        builder.errors.append(str(error))
        builder.incomplete = True
        self._transition(RunState.ABORTED)
        return builder.build(message, success=False)

    # ----------------------------------------------------------------- run steps

    def _remove_disabled_kinds(self, plan, window, classified, builder, deadline) -> None:
        """Delete every owned occurrence of every disabled kind in range."""
        for kind in plan.disabled_kinds():
            to_remove = classified.by_kind(kind)
            if to_remove:
                logger.info(f"Removing {len(to_remove)} {kind.value} events (deselected)")
            for event in to_remove:
                self._delete(event, window, classified, builder, deadline)

    def _remove_surplus(self, plan, window, start_day, end_day, classified, builder, deadline) -> None:
        """Trim enabled kinds down to their daily quota, latest occurrences first."""
        for day in business_days(start_day, end_day):
            for kind in plan.enabled_kinds():
                quota = plan.occurrences_per_day(kind)
                events = classified.events_on(kind, day)
                surplus = events[quota:]
                if surplus:
                    logger.info(f"Removing {len(surplus)} surplus {kind.value} events on {day}")
                for event in reversed(surplus):
                    self._delete(event, window, classified, builder, deadline)

    def _walk_days(
        self,
        plan: ActivityPlan,
        window: DailyWindow,
        start_day: datetime.date,
        end_day: datetime.date,
        classified: ClassifiedEvents,
        busy: List[TimeInterval],
        now: datetime.datetime,
        builder: RunReportBuilder,
        deadline: Optional[datetime.datetime]
    ) -> None:
        for day in business_days(start_day, end_day):
            bounds = window.bounds(day)
            busy_today: List[TimeInterval] = []
            if bounds is not None:
                busy_today = [interval for interval in busy if interval.overlaps(bounds)]
            busy_today.extend(classified.occupied_intervals(day))

            for kind in plan.enabled_kinds():
                self._reconcile_kind(
                    kind, plan.occurrences_per_day(kind), day, window,
                    classified, busy_today, now, builder, deadline
                )

    def _reconcile_kind(
        self,
        kind: ActivityKind,
        quota: int,
        day: datetime.date,
        window: DailyWindow,
        classified: ClassifiedEvents,
        busy_today: List[TimeInterval],
        now: datetime.datetime,
        builder: RunReportBuilder,
        deadline: Optional[datetime.datetime]
    ) -> None:
        day_name = day.strftime("%A")
        existing = classified.count(kind, day)
        builder.record_kept(kind, min(existing, quota))

        needed = quota - existing
        if needed <= 0:
            logger.debug(f"Keeping {existing} existing {kind.value} events for {day_name} {day}")
            return

        for occurrence in range(1, needed + 1):
            slot = self.slot_finder.interval_probe(day, window, kind.duration_minutes, busy_today, now)
            if slot is None:
                logger.info(f"No available time for {kind.value} #{occurrence} on {day_name} {day}")
                builder.record_no_slot(kind, day)
                continue

            self._check_deadline(deadline)
            # Reserved before the write: a failed create still blocks this slot today
            busy_today.append(slot)
            try:
                created = self.backend.create_event(
                    kind.label,
                    kind.description,
                    slot,
                    self.reminder_minutes,
                    window.timezone
                )
            except AuthError:
                raise
            except CalendarBackendError as e:
                logger.error(f"Failed to schedule {kind.value} on {day}: {e}")
                builder.record_write_failure(kind, day, slot, f"Failed to schedule {kind.label} on {day}: {e}")
                continue

            logger.info(f"Scheduled {kind.value} #{occurrence} for {day_name} at {slot.start.isoformat()}")
            builder.record_scheduled(
                ScheduledEvent(
                    event_id=created.event_id,
                    kind=kind,
                    interval=slot,
                    label=kind.label,
                    link=created.html_link,
                ),
                day
            )

    # ---------------------------------------------------------------- operations

    def smart_schedule(
        self,
        plan: ActivityPlan,
        window: DailyWindow,
        horizon: Horizon = Horizon.MONTH,
        deadline: Optional[datetime.datetime] = None
    ) -> SchedulingRunReport:
        """
        Reconcile the plan against what is already on the calendar.

        Args:
            plan: Desired activity plan
            window: Daily scheduling window
            horizon: WEEK or MONTH
            deadline: Stop before the next backend call once this passes

        Returns:
            SchedulingRunReport (incomplete=True if the deadline or a failed
            read cut it short; success=False for the latter)

        Raises:
            Unauthenticated, AccessDenied: the run is aborted
        """
        self.state = RunState.START
        now = self.clock()
        start_day, end_day = scheduling_range(horizon, window.day_of(now))
        time_min, time_max = self._range_instants(window, start_day, end_day)
        builder = RunReportBuilder()

        logger.info(f"Smart scheduling {start_day} - {end_day} ({horizon.value})")

        try:
            self._transition(RunState.CLASSIFY_EXISTING)
            classified = self._classify(window, time_min, time_max, deadline)

            self._transition(RunState.REMOVE_DISABLED_KINDS)
            self._remove_disabled_kinds(plan, window, classified, builder, deadline)
            self._remove_surplus(plan, window, start_day, end_day, classified, builder, deadline)

            self._transition(RunState.REFRESH_BUSY_TIMES)
            self._check_deadline(deadline)
            busy = self.backend.query_free_busy(max(now, time_min), time_max)

            self._transition(RunState.WALK_DAYS)
            self._walk_days(plan, window, start_day, end_day, classified, busy, now, builder, deadline)
        except RunDeadlineExceeded as e:
            logger.warning(f"Smart scheduling stopped early: {e}")
            builder.incomplete = True
        except AuthError:
            self._transition(RunState.ABORTED)
            raise
        except CalendarBackendError as e:
            return self._read_failure(builder, "Smart scheduling", e)

        self._transition(RunState.REPORT)
        report = builder.build(builder.summary_message("Smart scheduling completed!"))
        self._transition(RunState.DONE)
        logger.info(report.message)
        return report

    def auto_schedule(
        self,
        plan: ActivityPlan,
        window: DailyWindow,
        horizon: Horizon = Horizon.WEEK,
        deadline: Optional[datetime.datetime] = None
    ) -> SchedulingRunReport:
        """
        Plain scheduler: fills an empty range, refuses when owned events exist.

        Returns:
            SchedulingRunReport, or a refusal (success=False) with no writes
        """
        self.state = RunState.START
        now = self.clock()
        start_day, end_day = scheduling_range(horizon, window.day_of(now))
        time_min, time_max = self._range_instants(window, start_day, end_day)
        builder = RunReportBuilder()

        logger.info(f"Auto-scheduling {start_day} - {end_day} ({horizon.value})")

        try:
            self._transition(RunState.CLASSIFY_EXISTING)
            classified = self._classify(window, time_min, time_max, deadline)
            if len(classified) > 0:
                logger.warning(f"Refusing to auto-schedule: {len(classified)} owned events already in range")
                self._transition(RunState.DONE)
                return SchedulingRunReport.refusal(ALREADY_SCHEDULED_MESSAGE)

            self._transition(RunState.REFRESH_BUSY_TIMES)
            self._check_deadline(deadline)
            busy = self.backend.query_free_busy(max(now, time_min), time_max)

            self._transition(RunState.WALK_DAYS)
            self._walk_days(plan, window, start_day, end_day, classified, busy, now, builder, deadline)
        except RunDeadlineExceeded as e:
            logger.warning(f"Auto-scheduling stopped early: {e}")
            builder.incomplete = True
        except AuthError:
            self._transition(RunState.ABORTED)
            raise
        except CalendarBackendError as e:
            return self._read_failure(builder, "Auto-scheduling", e)

        self._transition(RunState.REPORT)
        total = len(builder.scheduled_events)
        message = f"Scheduled {total} wellness activities for the {horizon.value}"
        if builder.incomplete:
            message += " (stopped early: deadline reached)"
        report = builder.build(message)
        self._transition(RunState.DONE)
        logger.info(report.message)
        return report

    def remove_scheduled(
        self,
        window: DailyWindow,
        horizon: Horizon = Horizon.MONTH,
        deadline: Optional[datetime.datetime] = None
    ) -> SchedulingRunReport:
        """Bulk-remove every owned event in the current period."""
        self.state = RunState.START
        now = self.clock()
        start_day, end_day = period_range(horizon, window.day_of(now))
        time_min, time_max = self._range_instants(window, start_day, end_day)
        builder = RunReportBuilder()

        try:
            self._transition(RunState.CLASSIFY_EXISTING)
            classified = self._classify(window, time_min, time_max, deadline)
            logger.info(f"Found {len(classified)} owned events to remove")

            self._transition(RunState.REMOVE_DISABLED_KINDS)
            for event in list(classified.owned):
                self._delete(event, window, classified, builder, deadline)
        except RunDeadlineExceeded as e:
            logger.warning(f"Removal stopped early: {e}")
            builder.incomplete = True
        except AuthError:
            self._transition(RunState.ABORTED)
            raise
        except CalendarBackendError as e:
            return self._read_failure(builder, "Removal", e)

        self._transition(RunState.REPORT)
        message = f"Removed {sum(builder.removed.values())} scheduled wellness activities"
        if builder.incomplete:
            message += " (stopped early: deadline reached)"
        report = builder.build(message)
        self._transition(RunState.DONE)
        return report

    def check_scheduled(
        self,
        plan: ActivityPlan,
        window: DailyWindow,
        horizon: Horizon = Horizon.MONTH
    ) -> ScheduledCheck:
        """Whether owned events exist in the current period, with counts."""
        now = self.clock()
        start_day, end_day = period_range(horizon, window.day_of(now))
        time_min, time_max = self._range_instants(window, start_day, end_day)

        classified = self._classify(window, time_min, time_max, None)
        days = count_business_days(start_day, end_day)
        expected = {
            kind: days * plan.occurrences_per_day(kind) if plan.is_enabled(kind) else 0
            for kind in ActivityKind
        }
        return ScheduledCheck(
            has_scheduled_events=len(classified) > 0,
            event_counts=classified.counts(),
            expected_events=expected,
            business_days=days,
        )
