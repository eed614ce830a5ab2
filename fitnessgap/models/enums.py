# File: fitnessgap/models/enums.py

from enum import Enum


class Horizon(Enum):
    """How far ahead a scheduling run reaches."""
    WEEK = "week"    # today + 7 days
    MONTH = "month"  # today until the end of the current month


class StatsPeriod(Enum):
    """Reporting periods for wellness statistics."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Outcome(Enum):
    """Result of trying to place one occurrence."""
    SCHEDULED = "scheduled"
    NO_AVAILABLE_TIME = "no available time"
    WRITE_FAILED = "write failed"
    REMOVED = "removed"
    REMOVE_FAILED = "remove failed"
