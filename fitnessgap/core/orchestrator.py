# File: fitnessgap/core/orchestrator.py
"""
Main orchestrator module for FitnessGap.
Wires preferences, the calendar backend and the reconciler together for
the command-line scripts.
"""

import datetime
from typing import Callable, List, Optional

from fitnessgap.core.config_manager import Config
from fitnessgap.core.errors import Unauthenticated
from fitnessgap.core.reconciler import Reconciler, utc_now
from fitnessgap.auth.google_auth import get_calendar_service
from fitnessgap.services.service_factory import ServiceFactory
from fitnessgap.processors.event_classifier import EventClassifier
from fitnessgap.processors.slot_finder import SlotFinder
from fitnessgap.processors.stats_processor import compute_wellness_stats
from fitnessgap.models import (
    ScheduledCheck,
    SchedulingRunReport,
    StatsPeriod,
    TimeInterval,
    UserPreferences,
    WellnessStats,
)
from fitnessgap.utils.dates import period_range
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


class Orchestrator:
    """
    Main orchestrator for the wellness scheduler.

    Loads preferences, authenticates with Google and runs the requested
    operation through the Reconciler.
    """

    def __init__(
        self,
        backend=None,
        preferences: Optional[UserPreferences] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        timeout_seconds: Optional[float] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            backend: Calendar backend; built from the stored Google token when omitted
            preferences: User preferences; loaded from Config.PREFERENCES_FILE when omitted
            clock: Callable returning the current aware datetime
            timeout_seconds: Run deadline (default: Config.RUN_TIMEOUT_SECONDS)

        Raises:
            Unauthenticated: If no Google credentials are available
        """
        logger.info("Initializing Orchestrator")

        # 1. Load preferences
        self.preferences = preferences or UserPreferences.from_dict(Config.load_preferences())
        logger.debug(
            f"Enabled activities: {[k.value for k in self.preferences.plan.enabled_kinds()]}"
        )

        # 2. Authenticate with Google
        if backend is None:
            logger.info("Authenticating with Google APIs")
            resource = get_calendar_service()
            if resource is None:
                raise Unauthenticated("Google authentication failed. Run 'python scripts/setup.py' first.")
            backend = ServiceFactory.create_calendar_service(resource)
        self.backend = backend

        # 3. Create helper components
        self.clock = clock or utc_now
        self.timeout_seconds = Config.RUN_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.slot_finder = SlotFinder()
        self.reconciler = Reconciler(self.backend, self.slot_finder, self.clock)

        logger.info("Orchestrator initialized successfully")

    def _deadline(self) -> Optional[datetime.datetime]:
        if not self.timeout_seconds:
            return None
        return self.clock() + datetime.timedelta(seconds=self.timeout_seconds)

    def run_smart_schedule(self) -> SchedulingRunReport:
        """Reconcile the calendar with the current preferences."""
        prefs = self.preferences
        return self.reconciler.smart_schedule(prefs.plan, prefs.window, prefs.horizon, self._deadline())

    def run_auto_schedule(self) -> SchedulingRunReport:
        """Schedule into an empty period, refusing if activities already exist."""
        prefs = self.preferences
        return self.reconciler.auto_schedule(prefs.plan, prefs.window, prefs.horizon, self._deadline())

    def remove_scheduled(self) -> SchedulingRunReport:
        prefs = self.preferences
        return self.reconciler.remove_scheduled(prefs.window, prefs.horizon, self._deadline())

    def check_scheduled(self) -> ScheduledCheck:
        prefs = self.preferences
        return self.reconciler.check_scheduled(prefs.plan, prefs.window, prefs.horizon)

    def wellness_stats(self, period: StatsPeriod = StatsPeriod.WEEK) -> WellnessStats:
        """
        Scheduled, completed and upcoming activity counts for a period.

        Args:
            period: WEEK (Sunday start), MONTH or YEAR
        """
        window = self.preferences.window
        now = self.clock()
        start_day, end_day = period_range(period, window.day_of(now))
        events = self.backend.list_events(
            window.localize(start_day, datetime.time.min),
            window.localize(end_day, datetime.time.min)
        )
        classified = EventClassifier(window).classify(events)
        return compute_wellness_stats(classified, now, period, (start_day, end_day))

    def find_available_slots(
        self,
        days: int = Config.DEFAULT_SLOT_DAYS,
        duration_minutes: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[TimeInterval]:
        """
        Free slots over the next few days, earliest slot of every gap.

        Args:
            days: Number of days to search, starting today
            duration_minutes: Slot length (default: preferred workout duration)
            limit: Stop after this many slots
        """
        window = self.preferences.window
        duration = duration_minutes or self.preferences.preferred_duration
        now = self.clock()
        today = window.day_of(now)
        time_max = window.localize(today + datetime.timedelta(days=days), datetime.time.min)

        busy = self.backend.query_free_busy(now, time_max)
        slots = self.slot_finder.find_free_slots(
            today, days, window, duration, busy, not_before=now, limit=limit
        )
        logger.info(f"Found {len(slots)} available {duration}-minute slots over {days} days")
        return slots


class OrchestratorFactory:
    """Factory for creating Orchestrator instances with dependency injection."""

    @staticmethod
    def create() -> Orchestrator:
        """
        Create a fully initialized Orchestrator instance.

        Returns:
            Orchestrator instance ready to run

        Raises:
            ValueError: If configuration is invalid
            Unauthenticated: If authentication fails
        """
        logger.info("Creating Orchestrator via factory")

        # Validate configuration first
        errors = Config.validate()
        if errors:
            raise ValueError(
                "Configuration validation failed. "
                "Please run 'python scripts/setup.py' first."
            )

        return Orchestrator()
