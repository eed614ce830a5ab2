# File: fitnessgap/core/config_manager.py
"""
Centralized configuration management for FitnessGap.
Loads settings from environment variables and the preferences file.
"""

import os
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

from fitnessgap.utils.logger import setup_logger

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ['yes', 'true', '1', 'on', 'y']


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}")
        return None


class Config:
    """Application configuration singleton."""

    # Base directories
    BASE_DIR = Path(__file__).parent.parent.parent  # Up from fitnessgap/core/

    CONFIG_DIR = BASE_DIR / "config"
    LOGS_DIR = BASE_DIR / "logs"

    # Files
    PREFERENCES_FILE = Path(os.getenv("PREFERENCES_FILE", CONFIG_DIR / "preferences.json"))
    TOKEN_FILE = Path(os.getenv("GOOGLE_TOKEN_FILE", BASE_DIR / "token.json"))
    CREDENTIALS_FILE = Path(os.getenv("GOOGLE_CREDENTIALS_FILE", BASE_DIR / "credentials.json"))
    ENV_FILE = BASE_DIR / ".env"

    # Google Services
    CALENDAR_ID = os.getenv("CALENDAR_ID", "primary")
    GOOGLE_SCOPES = [
        'https://www.googleapis.com/auth/calendar',
    ]

    # Application Settings
    TARGET_TIMEZONE = os.getenv("TIMEZONE", "UTC")
    GENERATOR_ID = "FitnessGap_Auto_Scheduler_v1"
    REQUIRE_OWNERSHIP_MARKER = _env_flag("REQUIRE_OWNERSHIP_MARKER")
    REMINDER_MINUTES = int(os.getenv("REMINDER_MINUTES", "5"))
    PROBE_STEP_MINUTES = 15
    RUN_TIMEOUT_SECONDS = _env_float("RUN_TIMEOUT_SECONDS")
    DEFAULT_SLOT_DAYS = 7

    DEFAULT_PREFERENCES: Dict[str, Any] = {
        'hasCompletedOnboarding': False,
        'activityPreferences': {
            'workouts': True,
            'stretching': False,
            'meditation': False,
        },
        'earliestWorkoutTime': '06:00',
        'latestWorkoutTime': '22:00',
        'preferredWorkoutDuration': 30,
        'timezone': TARGET_TIMEZONE,
        'horizon': 'month',
    }

    @classmethod
    def load_preferences(cls) -> Dict[str, Any]:
        """Load user preferences from JSON, falling back to defaults."""
        if not cls.PREFERENCES_FILE.exists():
            logger.info(f"No preferences file at {cls.PREFERENCES_FILE}, using defaults")
            return dict(cls.DEFAULT_PREFERENCES)

        with open(cls.PREFERENCES_FILE, 'r', encoding='utf-8') as f:
            data = json.load(f)

        merged = dict(cls.DEFAULT_PREFERENCES)
        merged.update(data)
        return merged

    @classmethod
    def save_preferences(cls, preferences: Dict[str, Any]) -> None:
        cls.PREFERENCES_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(cls.PREFERENCES_FILE, 'w', encoding='utf-8') as f:
            json.dump(preferences, f, indent=2)
        logger.info(f"Preferences saved to {cls.PREFERENCES_FILE}")

    @classmethod
    def validate(cls) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors = []

        if not cls.CREDENTIALS_FILE.exists() and not cls.TOKEN_FILE.exists():
            errors.append(f"credentials.json not found at {cls.CREDENTIALS_FILE}")

        if cls.PREFERENCES_FILE.exists():
            try:
                cls.load_preferences()
            except (OSError, json.JSONDecodeError) as e:
                errors.append(f"preferences file unreadable: {e}")

        for error in errors:
            logger.error(f"Configuration Error: {error}")
        return errors
