# File: scripts/schedule.py
"""
Wellness scheduler entry point.
Run this file to fit workouts, stretching and meditation breaks into
the free time on your Google Calendar.
Make sure you have run 'python scripts/setup.py' at least once.
"""

import argparse
import json
import sys
import time
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fitnessgap.core.orchestrator import OrchestratorFactory
from fitnessgap.core.errors import AuthError, CalendarBackendError
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schedule wellness activities into free calendar time")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["smart", "auto", "slots"],
        default="smart",
        help="smart: reconcile with preferences (default); auto: fill an empty period; slots: list free slots",
    )
    parser.add_argument("--days", type=int, default=7, help="Days to search in 'slots' mode")
    parser.add_argument("--duration", type=int, default=None, help="Slot length in minutes for 'slots' mode")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of slots to list")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def print_report(report, as_json: bool) -> None:
    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    print(report.message)
    for kind, result in report.results.items():
        if result.scheduled or result.failed:
            print(f"  {kind.label}: {result.scheduled} scheduled, {result.failed} failed")
            if result.days:
                print(f"    {', '.join(result.days)}")
    for error in report.errors:
        print(f"  ! {error}")


def main(argv=None) -> int:
    """
    Main execution function.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    start_time = time.time()

    logger.info("=" * 60)
    logger.info(f"Starting FitnessGap ({args.mode})")
    logger.info("=" * 60)

    try:
        orchestrator = OrchestratorFactory.create()

        if args.mode == "slots":
            slots = orchestrator.find_available_slots(args.days, args.duration, args.limit)
            if args.json:
                print(json.dumps([slot.to_dict() for slot in slots], indent=2))
            else:
                for slot in slots:
                    print(f"{slot.start:%a %Y-%m-%d %H:%M} - {slot.end:%H:%M}")
            return 0

        if args.mode == "auto":
            report = orchestrator.run_auto_schedule()
        else:
            report = orchestrator.run_smart_schedule()

        print_report(report, args.json)
        return 0 if report.success else 1

    except ValueError as e:
        logger.error(str(e))
        return 1

    except AuthError as e:
        logger.error("Authentication failed", exc_info=True)
        print(e.user_message)
        return 1

    except CalendarBackendError as e:
        logger.error(f"Calendar request failed: {e}", exc_info=True)
        return 1

    except KeyboardInterrupt:
        logger.warning("Scheduling interrupted by user")
        return 1

    finally:
        elapsed = time.time() - start_time
        logger.info(f"Total execution time: {elapsed:.2f} seconds")


if __name__ == "__main__":
    sys.exit(main())
