# File: scripts/clear.py
"""
Script to remove every wellness activity this application scheduled in
the current period (month or week, per preferences).
"""

import datetime
import sys
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fitnessgap.core.orchestrator import OrchestratorFactory
from fitnessgap.core.errors import AuthError, CalendarBackendError
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def main() -> int:
    """
    Main entry point to clear scheduled wellness activities.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    start_time = datetime.datetime.now()

    logger.info("=" * 60)
    logger.info("Starting FitnessGap Schedule Cleanup")
    logger.info("=" * 60)

    try:
        orchestrator = OrchestratorFactory.create()
        report = orchestrator.remove_scheduled()

        elapsed = (datetime.datetime.now() - start_time).total_seconds()

        logger.info("=" * 60)
        logger.info(f"Cleanup completed in {elapsed:.2f} seconds.")
        logger.info(report.message)
        logger.info("=" * 60)

        print(report.message)
        for error in report.errors:
            print(f"  ! {error}")
        return 0 if report.success and not report.errors else 1

    except AuthError as e:
        logger.error("Authentication failed", exc_info=True)
        print(e.user_message)
        return 1

    except (ValueError, CalendarBackendError) as e:
        elapsed = (datetime.datetime.now() - start_time).total_seconds()
        logger.error("=" * 60)
        logger.error(f"Cleanup failed after {elapsed:.2f} seconds.", exc_info=True)
        logger.error(f"Error: {e}")
        logger.error("=" * 60)
        return 1


if __name__ == '__main__':
    sys.exit(main())
