# File: fitnessgap/services/service_factory.py

from googleapiclient.discovery import Resource

from fitnessgap.core.config_manager import Config
from fitnessgap.utils.logger import setup_logger
from fitnessgap.services.calendar_service import GoogleCalendarService

logger = setup_logger(__name__)


class ServiceFactory:
    """Factory for creating service instances."""

    @staticmethod
    def create_calendar_service(
        calendar_service: Resource,
        calendar_id: str = None
    ) -> GoogleCalendarService:
        """
        Wrap an authenticated Calendar API resource.

        Args:
            calendar_service: Authenticated calendar API resource
            calendar_id: Calendar to schedule into (default: Config.CALENDAR_ID)

        Returns:
            GoogleCalendarService instance
        """
        calendar_id = calendar_id or Config.CALENDAR_ID
        logger.debug(f"Creating calendar service for calendar '{calendar_id}'")
        return GoogleCalendarService(calendar_service, calendar_id)
