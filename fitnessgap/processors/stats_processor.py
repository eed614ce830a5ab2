# File: fitnessgap/processors/stats_processor.py

import datetime
from typing import Tuple

from fitnessgap.models import ActivityKind, KindStats, StatsPeriod, WellnessStats
from fitnessgap.models.stats import event_entry
from fitnessgap.processors.event_classifier import ClassifiedEvents
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def compute_wellness_stats(
    classified: ClassifiedEvents,
    now: datetime.datetime,
    period: StatsPeriod,
    day_range: Tuple[datetime.date, datetime.date]
) -> WellnessStats:
    """
    Summarize owned activities for a reporting period.

    An activity counts as completed once its end is before now, and as
    upcoming otherwise.

    Args:
        classified: Owned events in the period
        now: Current instant
        period: WEEK, MONTH or YEAR
        day_range: [start, end) of the period

    Returns:
        WellnessStats
    """
    counters = {kind: {'scheduled': 0, 'completed': 0, 'upcoming': 0} for kind in ActivityKind}
    events = []

    for event in sorted(classified.owned, key=lambda e: e.start):
        completed = event.end < now
        bucket = counters[event.kind]
        bucket['scheduled'] += 1
        if completed:
            bucket['completed'] += 1
        else:
            bucket['upcoming'] += 1
        events.append(event_entry(event, completed))

    stats = WellnessStats(
        period=period,
        start_day=day_range[0],
        end_day=day_range[1],
        by_kind={kind: KindStats(**values) for kind, values in counters.items()},
        events=events,
    )
    logger.info(
        f"{period.value} stats: {stats.total_scheduled} scheduled, "
        f"{stats.total_completed} completed ({stats.completion_rate}%)"
    )
    return stats
