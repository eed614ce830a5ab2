# File: tests/integration/test_reconciler.py
"""
Integration tests for the reconciling scheduler.
Runs full scheduling passes against an in-memory calendar backend.
"""

import pytest
from collections import defaultdict
from datetime import date, timedelta

from fitnessgap.core.errors import AccessDenied, BackendWriteFailure, TransientBackendError, Unauthenticated
from fitnessgap.core.reconciler import Reconciler, RunState
from fitnessgap.models import ActivityKind, CalendarEvent, Horizon, TimeInterval


@pytest.fixture
def reconciler(backend, clock):
    return Reconciler(backend, clock=clock, require_marker=False)


@pytest.fixture
def friday_clock(make_clock, at_utc):
    """Friday 28 November 2025: the only business day left in the month."""
    return make_clock(at_utc(28, 5))


def events_by_day(events):
    days = defaultdict(list)
    for event in events:
        days[event.start.date()].append(event)
    return days


# ==================== Smart scheduling ====================

class TestSmartSchedule:
    """Tests for Reconciler.smart_schedule."""

    def test_fills_every_business_day(self, reconciler, backend, window, workout_plan, at_utc):
        """Workouts x1 over a week starting Monday lands on five weekdays at 06:00."""
        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        starts = [e.start for e in backend.created]
        assert starts == [at_utc(day, 6) for day in range(17, 22)]
        assert report.success is True
        assert report.added[ActivityKind.WORKOUTS] == 5
        assert report.message == "Smart scheduling completed! Added 5 new events."
        assert report.results[ActivityKind.WORKOUTS].days == (
            "Monday", "Tuesday", "Wednesday", "Thursday", "Friday"
        )
        assert reconciler.state == RunState.DONE

    def test_removes_disabled_kind_and_adds_enabled(self, make_backend, friday_clock, window, workout_plan, at_utc):
        """Stretching off, workouts on: stretch removed, workout placed in the freed time."""
        backend = make_backend()
        stretch = backend.add_activity(ActivityKind.STRETCHING, at_utc(28, 6))
        reconciler = Reconciler(backend, clock=friday_clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.MONTH)

        assert backend.deleted == [stretch.event_id]
        assert report.removed[ActivityKind.STRETCHING] == 1
        assert report.added[ActivityKind.WORKOUTS] == 1
        assert backend.created[0].start == at_utc(28, 6)
        assert report.message == "Smart scheduling completed! Removed 1 events. Added 1 new events."

    def test_existing_occurrence_is_kept(self, make_backend, friday_clock, window, workout_plan, at_utc):
        """A day that already has its workout gets no backend writes."""
        backend = make_backend()
        backend.add_activity(ActivityKind.WORKOUTS, at_utc(28, 12))
        reconciler = Reconciler(backend, clock=friday_clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.MONTH)

        assert backend.write_calls == []
        assert report.kept[ActivityKind.WORKOUTS] == 1
        assert report.total_added == 0
        assert report.message == "Smart scheduling completed! Kept 1 existing events."

    def test_rerun_is_idempotent(self, reconciler, backend, window, full_plan):
        """A second run with the same plan writes nothing."""
        first = reconciler.smart_schedule(full_plan, window, Horizon.WEEK)
        writes_after_first = len(backend.write_calls)

        second = reconciler.smart_schedule(full_plan, window, Horizon.WEEK)

        assert first.total_added == 5 * (1 + 2 + 2)
        assert len(backend.write_calls) == writes_after_first
        assert second.total_added == 0
        assert second.total_removed == 0
        assert second.total_kept == 25

    def test_no_overlaps_and_window_containment(self, make_backend, clock, window, full_plan, at_utc):
        """Placements never overlap each other, foreign events or the window edges."""
        meetings = [
            CalendarEvent("Standup", at_utc(17, 6), at_utc(17, 6, 20)),
            CalendarEvent("Planning", at_utc(17, 6, 30), at_utc(17, 9)),
            CalendarEvent("Lunch", at_utc(18, 6), at_utc(18, 21, 30)),
        ]
        backend = make_backend(events=meetings)
        reconciler = Reconciler(backend, clock=clock, require_marker=False)

        reconciler.smart_schedule(full_plan, window, Horizon.WEEK)

        for day, created in events_by_day(backend.created).items():
            bounds = window.bounds(day)
            for event in created:
                assert bounds.contains(event.interval)
                assert not any(event.interval.overlaps(m.interval) for m in meetings)
            ordered = sorted(created, key=lambda e: e.start)
            for earlier, later in zip(ordered, ordered[1:]):
                assert earlier.end <= later.start

    def test_placements_step_aligned_after_busy(self, make_backend, clock, window, full_plan, at_utc):
        backend = make_backend(events=[CalendarEvent("Standup", at_utc(17, 6), at_utc(17, 6, 20))])
        reconciler = Reconciler(backend, clock=clock, require_marker=False)

        reconciler.smart_schedule(full_plan, window, Horizon.WEEK)

        monday = sorted(events_by_day(backend.created)[date(2025, 11, 17)], key=lambda e: e.start)
        assert [(e.summary, e.start) for e in monday] == [
            ("Workout Session", at_utc(17, 6, 30)),
            ("Stretching Break", at_utc(17, 7)),
            ("Stretching Break", at_utc(17, 7, 15)),
            ("Meditation Break", at_utc(17, 7, 30)),
            ("Meditation Break", at_utc(17, 7, 45)),
        ]

    def test_weekends_excluded(self, make_backend, make_clock, window, workout_plan, at_utc):
        backend = make_backend()
        reconciler = Reconciler(backend, clock=make_clock(at_utc(21, 5)), require_marker=False)

        reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        days = [e.start.date() for e in backend.created]
        assert days == [date(2025, 11, d) for d in (21, 24, 25, 26, 27)]
        assert all(day.weekday() < 5 for day in days)

    def test_only_future_slots(self, make_backend, make_clock, window, workout_plan, at_utc):
        """Mid-day runs place today's occurrence at the next aligned start after now."""
        backend = make_backend()
        reconciler = Reconciler(backend, clock=make_clock(at_utc(17, 12, 10)), require_marker=False)

        reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        assert backend.created[0].start == at_utc(17, 12, 15)
        assert all(e.start > at_utc(17, 12, 10) for e in backend.created)

    def test_busy_query_starts_now(self, reconciler, backend, window, workout_plan, at_utc):
        reconciler.smart_schedule(workout_plan, window, Horizon.MONTH)

        busy_calls = [c for c in backend.calls if c[0] == 'query_free_busy']
        assert busy_calls == [('query_free_busy', at_utc(17, 5), at_utc(1, 0, month=12))]
        list_call = backend.calls[0]
        assert list_call[0] == 'list_events'
        assert list_call[1] == at_utc(17, 0)

    def test_disabling_kind_clears_it(self, make_backend, clock, window, workout_plan, at_utc):
        backend = make_backend()
        for day in range(17, 22):
            backend.add_activity(ActivityKind.STRETCHING, at_utc(day, 8))
            backend.add_activity(ActivityKind.STRETCHING, at_utc(day, 15))
        reconciler = Reconciler(backend, clock=clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        assert backend.owned(ActivityKind.STRETCHING) == []
        assert report.removed[ActivityKind.STRETCHING] == 10
        assert len(backend.owned(ActivityKind.WORKOUTS)) == 5

    def test_surplus_removed_latest_first(self, make_backend, friday_clock, window, workout_plan, at_utc):
        backend = make_backend()
        early = backend.add_activity(ActivityKind.WORKOUTS, at_utc(28, 6))
        middle = backend.add_activity(ActivityKind.WORKOUTS, at_utc(28, 12))
        late = backend.add_activity(ActivityKind.WORKOUTS, at_utc(28, 18))
        reconciler = Reconciler(backend, clock=friday_clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.MONTH)

        assert backend.deleted == [late.event_id, middle.event_id]
        assert [e.event_id for e in backend.owned(ActivityKind.WORKOUTS)] == [early.event_id]
        assert report.removed[ActivityKind.WORKOUTS] == 2
        assert report.kept[ActivityKind.WORKOUTS] == 1
        assert backend.created == []

    def test_quota_respected(self, reconciler, backend, window, make_plan):
        plan = make_plan(workouts=0, stretching=3, meditation=1)

        reconciler.smart_schedule(plan, window, Horizon.WEEK)

        for created in events_by_day(backend.created).values():
            summaries = [e.summary for e in created]
            assert summaries.count("Stretching Break") == 3
            assert summaries.count("Meditation Break") == 1
            assert summaries.count("Workout Session") == 0

    def test_no_available_time(self, make_backend, clock, window, workout_plan, at_utc):
        backend = make_backend(busy=[TimeInterval(at_utc(17, 6), at_utc(17, 21, 45))])
        reconciler = Reconciler(backend, clock=clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        result = report.results[ActivityKind.WORKOUTS]
        assert result.failed == 1
        assert result.scheduled == 4
        assert result.days[0] == "Monday (no available time)"
        assert report.success is True

    def test_write_failure_does_not_stop_run(self, reconciler, backend, window, workout_plan):
        backend.fail_create_on = {0}

        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        assert report.success is True
        assert report.total_failed == 1
        assert report.added[ActivityKind.WORKOUTS] == 4
        assert len(report.errors) == 1
        assert "Workout Session" in report.errors[0]

    def test_failed_slot_not_reused_same_day(self, reconciler, backend, window, make_plan, at_utc):
        backend.fail_create_on = {0}

        reconciler.smart_schedule(make_plan(stretching=2), window, Horizon.WEEK)

        monday = [e for e in backend.created if e.start.date() == date(2025, 11, 17)]
        assert [e.start for e in monday] == [at_utc(17, 6, 15)]

    def test_unauthenticated_aborts(self, reconciler, backend, window, workout_plan):
        backend.create_error = Unauthenticated("token expired", 401)

        with pytest.raises(Unauthenticated):
            reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        assert reconciler.state == RunState.ABORTED
        assert len([c for c in backend.calls if c[0] == 'create_event']) == 1

    def test_access_denied_on_delete_aborts(self, reconciler, backend, window, workout_plan, at_utc):
        backend.add_activity(ActivityKind.MEDITATION, at_utc(17, 9))
        backend.delete_error = AccessDenied("forbidden", 403)

        with pytest.raises(AccessDenied):
            reconciler.smart_schedule(workout_plan, window, Horizon.WEEK)

        assert reconciler.state == RunState.ABORTED
        assert backend.created == []

    def test_deadline_returns_partial_report(self, backend, clock, window, workout_plan):
        original_create = backend.create_event

        def slow_create(*args, **kwargs):
            clock.advance(minutes=1)
            return original_create(*args, **kwargs)

        backend.create_event = slow_create
        reconciler = Reconciler(backend, clock=clock, require_marker=False)
        deadline = clock.now + timedelta(minutes=2, seconds=30)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK, deadline=deadline)

        assert report.incomplete is True
        assert report.added[ActivityKind.WORKOUTS] == 3
        assert report.message.endswith("Stopped early: deadline reached.")
        assert reconciler.state == RunState.DONE

    def test_deadline_already_passed(self, reconciler, backend, clock, window, workout_plan):
        report = reconciler.smart_schedule(workout_plan, window, Horizon.WEEK, deadline=clock.now)

        assert report.incomplete is True
        assert backend.calls == []

    def test_busy_read_failure_keeps_removals(self, make_backend, friday_clock, window, workout_plan, at_utc):
        """Free/busy fails after a deselected stretch was deleted: the report still shows it."""
        backend = make_backend()
        stretch = backend.add_activity(ActivityKind.STRETCHING, at_utc(28, 6))
        backend.free_busy_error = TransientBackendError("freebusy.query: 503 backend error", 503)
        reconciler = Reconciler(backend, clock=friday_clock, require_marker=False)

        report = reconciler.smart_schedule(workout_plan, window, Horizon.MONTH)

        assert backend.deleted == [stretch.event_id]
        assert backend.created == []
        assert report.success is False
        assert report.incomplete is True
        assert report.removed[ActivityKind.STRETCHING] == 1
        assert report.errors == ("freebusy.query: 503 backend error",)
        assert report.message == (
            "Smart scheduling failed: freebusy.query: 503 backend error. Removed 1 events."
        )
        assert reconciler.state == RunState.ABORTED


# ==================== Plain scheduling ====================

class TestAutoSchedule:
    """Tests for Reconciler.auto_schedule."""

    def test_refuses_when_already_scheduled(self, reconciler, backend, window, workout_plan, at_utc):
        for day in (17, 18, 19):
            backend.add_activity(ActivityKind.WORKOUTS, at_utc(day, 6))

        report = reconciler.auto_schedule(workout_plan, window, Horizon.WEEK)

        assert report.success is False
        assert "Remove them first" in report.message
        assert backend.write_calls == []

    def test_schedules_empty_period(self, reconciler, backend, window, workout_plan):
        report = reconciler.auto_schedule(workout_plan, window, Horizon.WEEK)

        assert report.success is True
        assert report.added[ActivityKind.WORKOUTS] == 5
        assert report.message == "Scheduled 5 wellness activities for the week"

    def test_foreign_events_do_not_block(self, make_backend, clock, window, workout_plan, at_utc):
        backend = make_backend(events=[CalendarEvent("Dentist", at_utc(17, 6), at_utc(17, 7))])
        reconciler = Reconciler(backend, clock=clock, require_marker=False)

        report = reconciler.auto_schedule(workout_plan, window, Horizon.WEEK)

        assert report.success is True
        assert backend.created[0].start == at_utc(17, 7)

    def test_list_failure_returns_failed_report(self, reconciler, backend, window, workout_plan):
        backend.list_error = TransientBackendError("events.list: 429 rate limited", 429)

        report = reconciler.auto_schedule(workout_plan, window, Horizon.WEEK)

        assert report.success is False
        assert report.incomplete is True
        assert report.errors == ("events.list: 429 rate limited",)
        assert report.message.startswith("Auto-scheduling failed: events.list: 429 rate limited.")
        assert backend.write_calls == []
        assert reconciler.state == RunState.ABORTED


# ==================== Removal and checks ====================

class TestRemoveScheduled:
    """Tests for Reconciler.remove_scheduled."""

    def test_removes_all_owned_in_period(self, reconciler, backend, window, at_utc):
        past = backend.add_activity(ActivityKind.WORKOUTS, at_utc(3, 6))
        backend.add_activity(ActivityKind.STRETCHING, at_utc(17, 8))
        backend.add_activity(ActivityKind.MEDITATION, at_utc(28, 9))
        dentist = backend.add(CalendarEvent("Dentist", at_utc(18, 6), at_utc(18, 7)))

        report = reconciler.remove_scheduled(window, Horizon.MONTH)

        assert past.event_id in backend.deleted
        assert list(backend.events) == [dentist.event_id]
        assert report.total_removed == 3
        assert report.message == "Removed 3 scheduled wellness activities"

    def test_delete_failure_is_reported(self, reconciler, backend, window, at_utc):
        backend.add_activity(ActivityKind.WORKOUTS, at_utc(17, 6))
        backend.delete_error = BackendWriteFailure("events.delete: 500", 500)

        report = reconciler.remove_scheduled(window, Horizon.MONTH)

        assert report.total_removed == 0
        assert len(report.errors) == 1

    def test_list_failure_returns_failed_report(self, reconciler, backend, window, at_utc):
        backend.add_activity(ActivityKind.WORKOUTS, at_utc(17, 6))
        backend.list_error = TransientBackendError("events.list: 503 backend error", 503)

        report = reconciler.remove_scheduled(window, Horizon.MONTH)

        assert report.success is False
        assert report.total_removed == 0
        assert report.errors == ("events.list: 503 backend error",)
        assert report.message == "Removal failed: events.list: 503 backend error."
        assert backend.write_calls == []
        assert reconciler.state == RunState.ABORTED


class TestCheckScheduled:
    """Tests for Reconciler.check_scheduled."""

    def test_counts_and_expectations(self, reconciler, backend, window, workout_plan, at_utc):
        backend.add_activity(ActivityKind.WORKOUTS, at_utc(3, 6))
        backend.add_activity(ActivityKind.WORKOUTS, at_utc(17, 6))

        check = reconciler.check_scheduled(workout_plan, window, Horizon.MONTH)

        assert check.has_scheduled_events is True
        assert check.business_days == 20
        assert check.event_counts[ActivityKind.WORKOUTS] == 2
        assert check.expected_events == {
            ActivityKind.WORKOUTS: 20,
            ActivityKind.STRETCHING: 0,
            ActivityKind.MEDITATION: 0,
        }

    def test_nothing_scheduled(self, reconciler, window, workout_plan):
        check = reconciler.check_scheduled(workout_plan, window, Horizon.WEEK)

        assert check.has_scheduled_events is False
        assert check.business_days == 5
