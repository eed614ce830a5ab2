# File: scripts/status.py
"""
Shows whether wellness activities are scheduled for the current period,
and how many have been completed.
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fitnessgap.core.orchestrator import OrchestratorFactory
from fitnessgap.core.errors import AuthError, CalendarBackendError
from fitnessgap.models import StatsPeriod
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Scheduled and completed wellness activities")
    parser.add_argument(
        "--period",
        choices=[p.value for p in StatsPeriod],
        default=StatsPeriod.WEEK.value,
        help="Statistics period (weeks start on Sunday)",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    args = parser.parse_args(argv)

    try:
        orchestrator = OrchestratorFactory.create()
        check = orchestrator.check_scheduled()
        stats = orchestrator.wellness_stats(StatsPeriod(args.period))
    except AuthError as e:
        logger.error("Authentication failed", exc_info=True)
        print(e.user_message)
        return 1
    except (ValueError, CalendarBackendError) as e:
        logger.error(f"Status check failed: {e}", exc_info=True)
        return 1

    if args.json:
        print(json.dumps({'check': check.to_dict(), 'stats': stats.to_dict()}, indent=2))
        return 0

    print(f"Business days this period: {check.business_days}")
    for kind, count in check.event_counts.items():
        print(f"  {kind.label}: {count} scheduled / {check.expected_events[kind]} expected")

    print(f"\n{stats.period.value.capitalize()} {stats.start_day} - {stats.end_day}:")
    for kind, kind_stats in stats.by_kind.items():
        print(
            f"  {kind.label}: {kind_stats.completed} completed, "
            f"{kind_stats.upcoming} upcoming"
        )
    print(f"  Completion rate: {stats.completion_rate}%")
    return 0


if __name__ == "__main__":
    sys.exit(main())
