# File: fitnessgap/models/common.py

from datetime import datetime, time
from typing import Optional


def parse_iso_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Robustly parse ISO date strings with 'Z' or offsets."""
    if not date_str:
        return None
    try:
        # fromisoformat only accepts 'Z' from Python 3.11 on
        clean_str = date_str.replace('Z', '+00:00')
        return datetime.fromisoformat(clean_str)
    except ValueError:
        # Fallback for simple date strings without time
        try:
            return datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError:
            return None


def parse_clock_time(value) -> time:
    """Parse an "HH:MM" wall-clock string into a time."""
    if isinstance(value, time):
        return value
    try:
        hour, minute = str(value).strip().split(':')[:2]
        return time(int(hour), int(minute))
    except ValueError as e:
        raise ValueError(f"Invalid HH:MM time: {value!r}") from e
