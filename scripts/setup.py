# File: scripts/setup.py
"""
One-time setup wizard: installs dependencies, connects Google Calendar and
writes config/preferences.json.
"""

import subprocess
import sys
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def install_dependencies() -> bool:
    """
    Install project dependencies from requirements.txt.

    Returns:
        True if successful, False otherwise
    """
    print("Installing project dependencies...")

    requirements_file = PROJECT_ROOT / 'requirements.txt'
    if not requirements_file.exists():
        print(f"requirements.txt not found at {requirements_file}")
        return False

    try:
        subprocess.run(
            [sys.executable, '-m', 'pip', 'install', '-r', str(requirements_file)],
            check=True,
            capture_output=True
        )
        print("Project dependencies installed.")
        return True
    except subprocess.CalledProcessError as e:
        print(f"pip failed: {e}")
        return False


def ask_yes_no(question: str, default: bool) -> bool:
    hint = "Y/n" if default else "y/N"
    answer = input(f"{question} [{hint}]: ").strip().lower()
    if not answer:
        return default
    return answer in ('y', 'yes')


def configure_preferences() -> bool:
    """
    Ask for activity and time-window preferences and save them.

    Returns:
        True if preferences were saved, False otherwise
    """
    # Import inside function to ensure dependencies are installed first
    import pytz
    from fitnessgap.core.config_manager import Config
    from fitnessgap.models import ActivityKind, UserPreferences

    preferences = Config.load_preferences()
    if Config.PREFERENCES_FILE.exists():
        print(f"Existing preferences found at {Config.PREFERENCES_FILE}")
        if not ask_yes_no("Update them?", False):
            return True

    selection = {}
    for kind in ActivityKind:
        current = bool(preferences.get('activityPreferences', {}).get(kind.value, False))
        selection[kind.value] = ask_yes_no(
            f"Schedule {kind.label.lower()}s ({kind.duration_minutes} min, "
            f"{kind.default_per_day}x per business day)?",
            current
        )
    preferences['activityPreferences'] = selection

    earliest = input(f"Earliest start time [{preferences['earliestWorkoutTime']}]: ").strip()
    latest = input(f"Latest end time [{preferences['latestWorkoutTime']}]: ").strip()
    timezone = input(f"Timezone [{preferences['timezone']}]: ").strip()
    if earliest:
        preferences['earliestWorkoutTime'] = earliest
    if latest:
        preferences['latestWorkoutTime'] = latest
    if timezone:
        if timezone not in pytz.all_timezones_set:
            print(f"Unknown timezone '{timezone}', keeping {preferences['timezone']}")
        else:
            preferences['timezone'] = timezone

    preferences['hasCompletedOnboarding'] = True

    try:
        UserPreferences.from_dict(preferences)
    except ValueError as e:
        print(f"Invalid preferences: {e}")
        return False

    Config.save_preferences(preferences)
    print("Preferences saved.")
    return True


def connect_calendar() -> bool:
    """Run the Google consent flow unless a token is already stored."""
    from fitnessgap.auth.google_auth import create_initial_token
    from fitnessgap.core.config_manager import Config

    if Config.TOKEN_FILE.exists():
        print(f"Using stored token at {Config.TOKEN_FILE}")
        return True
    return create_initial_token()


def main() -> int:
    """Run the setup steps in order; stop at the first required one that fails."""
    print("FitnessGap setup")
    print("=" * 60)

    steps = [
        ("Installing dependencies", install_dependencies, True),
        ("Connecting Google Calendar", connect_calendar, True),
        ("Choosing wellness activities", configure_preferences, False),
    ]
    for number, (title, step, required) in enumerate(steps, start=1):
        print(f"\n[{number}/{len(steps)}] {title}")
        if step():
            continue
        if required:
            print(f"Setup stopped: '{title}' did not complete.")
            return 1
        print("Skipped; the defaults in config/preferences.json stay in effect.")

    from fitnessgap.core.config_manager import Config

    problems = Config.validate()
    print("\n" + "=" * 60)
    if problems:
        print("Setup finished with problems:")
        for problem in problems:
            print(f"  - {problem}")
        return 1

    print("Setup complete. Schedule the coming period with:")
    print("  python scripts/schedule.py smart")
    print(f"Preferences live in {Config.PREFERENCES_FILE}; TIMEZONE, CALENDAR_ID and")
    print("RUN_TIMEOUT_SECONDS can be overridden in .env")
    return 0


if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nSetup cancelled.")
        sys.exit(1)
