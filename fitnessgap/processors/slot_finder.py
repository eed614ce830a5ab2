# File: fitnessgap/processors/slot_finder.py
"""
Free-slot discovery.

Two search policies over the same busy-interval model:

- gap_sweep walks busy intervals in start order and yields the earliest
  slot of every gap. Used to enumerate many slots over a horizon.
- interval_probe tries window-start-aligned candidates every
  PROBE_STEP_MINUTES and returns the first that fits. Used by the
  reconciler, which feeds same-run placements back in as busy intervals.

Both treat provider busy periods and same-run placements identically:
half-open overlap, start < busy_end and end > busy_start.
"""

import datetime
from typing import Iterable, List, Optional, Sequence

from fitnessgap.core.config_manager import Config
from fitnessgap.models import DailyWindow, TimeInterval, normalize_busy_periods
from fitnessgap.utils.dates import is_business_day
from fitnessgap.utils.logger import LoggerMixin


class SlotFinder(LoggerMixin):
    """Finds conflict-free intervals inside a day's window."""

    def __init__(self, step_minutes: int = Config.PROBE_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError(f"Step must be positive: {step_minutes}")
        self.step = datetime.timedelta(minutes=step_minutes)

    @staticmethod
    def _is_free(candidate: TimeInterval, busy: Iterable[TimeInterval]) -> bool:
        return not any(candidate.overlaps(interval) for interval in busy)

    def gap_sweep(
        self,
        day: datetime.date,
        window: DailyWindow,
        duration_minutes: int,
        busy: Sequence[TimeInterval],
        not_before: Optional[datetime.datetime] = None
    ) -> List[TimeInterval]:
        """
        Earliest slot of every gap between busy intervals on one day.

        Args:
            day: Calendar day in the window timezone
            window: Daily window
            duration_minutes: Requested slot length
            busy: Busy intervals (any order, overlaps allowed)
            not_before: Slots must start strictly after this instant

        Returns:
            Candidate slots in chronological order (possibly empty)
        """
        bounds = window.bounds(day)
        if bounds is None:
            return []

        duration = datetime.timedelta(minutes=duration_minutes)
        cursor = bounds.start
        if not_before is not None and not_before >= cursor:
            # Same rule as the probe: start strictly after not_before, on a whole minute
            cursor = not_before.replace(second=0, microsecond=0) + datetime.timedelta(minutes=1)

        slots: List[TimeInterval] = []

        for interval in normalize_busy_periods(busy):
            if interval.start >= bounds.end:
                break
            gap_end = min(interval.start, bounds.end)
            if gap_end - cursor >= duration:
                slots.append(TimeInterval(cursor, cursor + duration))
            cursor = max(cursor, interval.end)

        if bounds.end - cursor >= duration:
            slots.append(TimeInterval(cursor, cursor + duration))

        return slots

    def find_free_slots(
        self,
        start_day: datetime.date,
        days: int,
        window: DailyWindow,
        duration_minutes: int,
        busy: Sequence[TimeInterval],
        not_before: Optional[datetime.datetime] = None,
        limit: Optional[int] = None,
        business_days_only: bool = False
    ) -> List[TimeInterval]:
        """Gap-sweep a multi-day horizon, e.g. "the next 30 free slots"."""
        busy = normalize_busy_periods(busy)
        found: List[TimeInterval] = []

        for offset in range(days):
            day = start_day + datetime.timedelta(days=offset)
            if business_days_only and not is_business_day(day):
                continue
            for slot in self.gap_sweep(day, window, duration_minutes, busy, not_before):
                found.append(slot)
                if limit is not None and len(found) >= limit:
                    return found

        self.logger.debug(f"Gap sweep found {len(found)} slots over {days} days")
        return found

    def interval_probe(
        self,
        day: datetime.date,
        window: DailyWindow,
        duration_minutes: int,
        busy: Sequence[TimeInterval],
        not_before: Optional[datetime.datetime] = None
    ) -> Optional[TimeInterval]:
        """
        First step-aligned slot on a day that is free, in the future and
        ends inside the window.

        Returns:
            The slot, or None when the day has no room ("no available time")
        """
        bounds = window.bounds(day)
        if bounds is None:
            return None

        duration = datetime.timedelta(minutes=duration_minutes)
        tz = window.tz
        offset = datetime.timedelta(0)
        window_length = bounds.end - bounds.start

        while offset < window_length:
            start = tz.normalize(bounds.start + offset)
            end = tz.normalize(start + duration)
            offset += self.step

            if end > bounds.end:
                continue
            if not_before is not None and start <= not_before:
                continue

            candidate = TimeInterval(start, end)
            if self._is_free(candidate, busy):
                return candidate

        self.logger.debug(f"No {duration_minutes}-minute slot on {day.isoformat()}")
        return None
