# File: fitnessgap/models/interval.py
"""
Time intervals and free/busy normalization.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Union

from fitnessgap.utils.logger import setup_logger
from .common import parse_iso_datetime

logger = setup_logger(__name__)


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval [start, end)."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(
                f"Interval end must be after start: {self.start.isoformat()} - {self.end.isoformat()}"
            )

    @classmethod
    def of_minutes(cls, start: datetime, minutes: int) -> 'TimeInterval':
        return cls(start, start + timedelta(minutes=minutes))

    def duration_minutes(self) -> int:
        """Calculate interval length in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: 'TimeInterval') -> bool:
        """Check if this interval overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: 'TimeInterval') -> bool:
        return self.start <= other.start and other.end <= self.end

    def to_dict(self) -> dict:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


RawBusyPeriod = Union[TimeInterval, dict]


def normalize_busy_periods(raw_periods: Iterable[RawBusyPeriod]) -> List[TimeInterval]:
    """
    Turn provider free/busy periods into intervals ordered by start.

    Periods may arrive unsorted and may overlap; overlaps are kept because
    the slot finder advances with max(cursor, busy_end).

    Args:
        raw_periods: TimeInterval objects or {'start': iso, 'end': iso} dicts

    Returns:
        Intervals sorted by (start, end)
    """
    intervals: List[TimeInterval] = []

    for period in raw_periods or []:
        if isinstance(period, TimeInterval):
            intervals.append(period)
            continue

        start = parse_iso_datetime(period.get('start'))
        end = parse_iso_datetime(period.get('end'))
        if start is None or end is None:
            logger.warning(f"Skipping unparseable busy period: {period}")
            continue
        try:
            intervals.append(TimeInterval(start, end))
        except ValueError as e:
            logger.warning(f"Skipping empty busy period: {e}")

    intervals.sort(key=lambda interval: (interval.start, interval.end))
    return intervals
