# File: fitnessgap/models/config.py
"""
User preference models for FitnessGap.
"""

from dataclasses import dataclass

from .activity import ActivityPlan, DailyWindow
from .enums import Horizon


@dataclass
class UserPreferences:
    """Preferences supplied by the settings collaborator."""
    plan: ActivityPlan
    window: DailyWindow
    horizon: Horizon = Horizon.MONTH
    preferred_duration: int = 30
    has_completed_onboarding: bool = False

    def __post_init__(self):
        if isinstance(self.horizon, str):
            self.horizon = Horizon(self.horizon)
        if self.preferred_duration <= 0:
            raise ValueError(f"Preferred duration must be positive: {self.preferred_duration}")

    @classmethod
    def from_dict(cls, data: dict) -> 'UserPreferences':
        """
        Create preferences from the settings payload, e.g.:

            {
              "activityPreferences": {"workouts": true, "stretching": false, "meditation": false},
              "earliestWorkoutTime": "06:00",
              "latestWorkoutTime": "22:00",
              "preferredWorkoutDuration": 30,
              "timezone": "UTC",
              "occurrencesPerDay": {"stretching": 2},
              "horizon": "month"
            }
        """
        plan = ActivityPlan.from_selection(
            data.get('activityPreferences', {}),
            data.get('occurrencesPerDay'),
        )
        window = DailyWindow(
            earliest_time=data.get('earliestWorkoutTime', '06:00'),
            latest_time=data.get('latestWorkoutTime', '22:00'),
            timezone=data.get('timezone', 'UTC'),
        )
        return cls(
            plan=plan,
            window=window,
            horizon=Horizon(str(data.get('horizon', 'month')).lower()),
            preferred_duration=int(data.get('preferredWorkoutDuration', 30)),
            has_completed_onboarding=bool(data.get('hasCompletedOnboarding', False)),
        )

    def to_dict(self) -> dict:
        return {
            'hasCompletedOnboarding': self.has_completed_onboarding,
            'activityPreferences': {
                kind.value: entry.enabled for kind, entry in self.plan.entries.items()
            },
            'occurrencesPerDay': {
                kind.value: entry.occurrences_per_day for kind, entry in self.plan.entries.items()
            },
            'earliestWorkoutTime': self.window.earliest_time.strftime('%H:%M'),
            'latestWorkoutTime': self.window.latest_time.strftime('%H:%M'),
            'preferredWorkoutDuration': self.preferred_duration,
            'timezone': self.window.timezone,
            'horizon': self.horizon.value,
        }
