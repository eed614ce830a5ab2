from .enums import Horizon, StatsPeriod, Outcome
from .common import parse_iso_datetime, parse_clock_time
from .interval import TimeInterval, normalize_busy_periods
from .activity import ActivityKind, ACTIVITY_METADATA, PlanEntry, ActivityPlan, DailyWindow
from .calendar import CalendarEvent, ScheduledEvent
from .report import KindResult, DayDetail, SchedulingRunReport, RunReportBuilder, ScheduledCheck
from .stats import KindStats, WellnessStats
from .config import UserPreferences

__all__ = [
    "Horizon",
    "StatsPeriod",
    "Outcome",
    "parse_iso_datetime",
    "parse_clock_time",
    "TimeInterval",
    "normalize_busy_periods",
    "ActivityKind",
    "ACTIVITY_METADATA",
    "PlanEntry",
    "ActivityPlan",
    "DailyWindow",
    "CalendarEvent",
    "ScheduledEvent",
    "KindResult",
    "DayDetail",
    "SchedulingRunReport",
    "RunReportBuilder",
    "ScheduledCheck",
    "KindStats",
    "WellnessStats",
    "UserPreferences",
]
