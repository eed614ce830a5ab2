# File: fitnessgap/services/calendar_service.py

import datetime
import json
from typing import List, Optional

from google.auth.exceptions import RefreshError, TransportError
from httplib2 import HttpLib2Error
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from fitnessgap.core.config_manager import Config
from fitnessgap.core.errors import (
    AccessDenied,
    BackendWriteFailure,
    CalendarBackendError,
    TransientBackendError,
    Unauthenticated,
)
from fitnessgap.models import CalendarEvent, TimeInterval, normalize_busy_periods
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)

# Exceptions the Google client raises for a failed call
BACKEND_EXCEPTIONS = (HttpError, RefreshError, TransportError, HttpLib2Error, OSError)

RATE_LIMIT_REASONS = {'rateLimitExceeded', 'userRateLimitExceeded', 'quotaExceeded'}


def _error_reason(err: HttpError) -> Optional[str]:
    """Pull the first 'reason' out of a Google API error body."""
    try:
        body = json.loads(err.content.decode('utf-8'))
        errors = body.get('error', {}).get('errors', [])
        if errors:
            return errors[0].get('reason')
    except (ValueError, AttributeError):
        pass
    return None


def translate_error(err: Exception, operation: str) -> CalendarBackendError:
    """Map a Google client exception onto the backend error taxonomy."""
    if isinstance(err, RefreshError):
        return Unauthenticated(f"{operation}: credential refresh failed: {err}", 401)

    if isinstance(err, HttpError):
        status = err.resp.status
        reason = _error_reason(err)
        if status == 401:
            return Unauthenticated(f"{operation}: {err}", status)
        if status == 403 and reason not in RATE_LIMIT_REASONS:
            return AccessDenied(f"{operation}: {err}", status)
        if status in (403, 429) or status >= 500:
            return TransientBackendError(f"{operation}: {err}", status)
        return CalendarBackendError(f"{operation}: {err}", status)

    if isinstance(err, (TransportError, HttpLib2Error, OSError)):
        return TransientBackendError(f"{operation}: {err}")

    return CalendarBackendError(f"{operation}: {err}")


class GoogleCalendarService:
    """Calendar backend on top of the Google Calendar v3 API."""

    def __init__(self, calendar_service: Resource, calendar_id: str = None):
        """
        Initialize calendar service.

        Args:
            calendar_service: Authenticated Google Calendar API resource
            calendar_id: Calendar to work on (default: Config.CALENDAR_ID)
        """
        self.service = calendar_service
        self.calendar_id = calendar_id or Config.CALENDAR_ID
        self.generator_id = Config.GENERATOR_ID

    def query_free_busy(
        self,
        time_min: datetime.datetime,
        time_max: datetime.datetime
    ) -> List[TimeInterval]:
        """
        Busy periods of the calendar between two instants.

        Returns:
            Busy intervals sorted by start
        """
        logger.info(f"Querying free/busy {time_min.isoformat()} - {time_max.isoformat()}")

        try:
            response = self.service.freebusy().query(body={
                'timeMin': time_min.isoformat(),
                'timeMax': time_max.isoformat(),
                'items': [{'id': self.calendar_id}],
            }).execute()
        except BACKEND_EXCEPTIONS as e:
            raise translate_error(e, "freebusy.query") from e

        calendar = response.get('calendars', {}).get(self.calendar_id, {})
        if calendar.get('errors'):
            reason = calendar['errors'][0].get('reason')
            raise CalendarBackendError(f"freebusy.query failed for {self.calendar_id}: {reason}")

        busy = normalize_busy_periods(calendar.get('busy', []))
        logger.info(f"Found {len(busy)} busy periods")
        return busy

    def list_events(
        self,
        time_min: datetime.datetime,
        time_max: datetime.datetime
    ) -> List[CalendarEvent]:
        """
        All single events between two instants, following pagination.

        Returns:
            List of CalendarEvent objects ordered by start time
        """
        logger.info(f"Listing events {time_min.isoformat()} - {time_max.isoformat()}")

        typed_events: List[CalendarEvent] = []
        page_token = None

        while True:
            try:
                events_result = self.service.events().list(
                    calendarId=self.calendar_id,
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    singleEvents=True,
                    orderBy='startTime',
                    pageToken=page_token
                ).execute()
            except BACKEND_EXCEPTIONS as e:
                raise translate_error(e, "events.list") from e

            for event in events_result.get('items', []):
                typed = self._to_calendar_event(event)
                if typed is not None:
                    typed_events.append(typed)

            page_token = events_result.get('nextPageToken')
            if not page_token:
                break

        logger.info(f"Found {len(typed_events)} calendar events")
        return typed_events

    def _to_calendar_event(self, event: dict) -> Optional[CalendarEvent]:
        """Convert a raw API event, skipping ones without usable times."""
        start_raw = event.get('start', {})
        end_raw = event.get('end', {})
        all_day = 'dateTime' not in start_raw

        start_dt = self._parse_gc_time(start_raw.get('dateTime', start_raw.get('date')))
        end_dt = self._parse_gc_time(end_raw.get('dateTime', end_raw.get('date')))

        if not start_dt or not end_dt:
            logger.warning(f"No start or end time for event {event.get('id')}")
            return None

        extended_props = event.get('extendedProperties', {}).get('private', {})
        try:
            return CalendarEvent(
                event_id=event.get('id'),
                summary=event.get('summary', ''),
                start=start_dt,
                end=end_dt,
                description=event.get('description'),
                source_id=extended_props.get('sourceId'),
                html_link=event.get('htmlLink'),
                all_day=all_day,
            )
        except ValueError as e:
            logger.warning(f"Could not parse event data for {event.get('summary')}: {e}")
            return None

    def _parse_gc_time(self, time_str: str) -> Optional[datetime.datetime]:
        """Helper to safely parse Google Calendar date/dateTime strings."""
        if not time_str:
            return None
        try:
            # Date-only format (all-day events), treat as midnight UTC
            date_obj = datetime.datetime.strptime(time_str, "%Y-%m-%d").date()
            return datetime.datetime.combine(date_obj, datetime.time.min).replace(
                tzinfo=datetime.timezone.utc
            )
        except ValueError:
            pass
        try:
            parsed = datetime.datetime.fromisoformat(time_str.replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=datetime.timezone.utc)
        return parsed

    def create_event(
        self,
        label: str,
        description: str,
        interval: TimeInterval,
        reminder_minutes: int = None,
        timezone: str = None
    ) -> CalendarEvent:
        """
        Insert one event.

        Raises:
            Unauthenticated, AccessDenied: credential problems
            BackendWriteFailure: any other failure of this single write
        """
        reminder_minutes = Config.REMINDER_MINUTES if reminder_minutes is None else reminder_minutes
        timezone = timezone or Config.TARGET_TIMEZONE

        body = {
            'summary': label,
            'description': description,
            'start': {
                'dateTime': interval.start.isoformat(),
                'timeZone': timezone,
            },
            'end': {
                'dateTime': interval.end.isoformat(),
                'timeZone': timezone,
            },
            'reminders': {
                'useDefault': False,
                'overrides': [{'method': 'popup', 'minutes': reminder_minutes}],
            },
            'extendedProperties': {
                'private': {
                    'sourceId': self.generator_id,
                }
            },
        }

        try:
            created = self.service.events().insert(
                calendarId=self.calendar_id,
                body=body
            ).execute()
        except BACKEND_EXCEPTIONS as e:
            error = translate_error(e, f"events.insert '{label}'")
            if isinstance(error, (Unauthenticated, AccessDenied)):
                raise error from e
            raise BackendWriteFailure(str(error), error.status) from e

        logger.debug(f"Created '{label}' at {interval.start.isoformat()}")
        return CalendarEvent(
            event_id=created.get('id'),
            summary=label,
            start=interval.start,
            end=interval.end,
            description=description,
            source_id=self.generator_id,
            html_link=created.get('htmlLink'),
        )

    def delete_event(self, event_id: str) -> None:
        """
        Delete one event. An event that is already gone counts as deleted.

        Raises:
            Unauthenticated, AccessDenied: credential problems
            BackendWriteFailure: any other failure of this single write
        """
        try:
            self.service.events().delete(
                calendarId=self.calendar_id,
                eventId=event_id
            ).execute()
        except HttpError as e:
            if e.resp.status in (404, 410):
                logger.info(f"Event {event_id} already deleted")
                return
            error = translate_error(e, f"events.delete {event_id}")
            if isinstance(error, (Unauthenticated, AccessDenied)):
                raise error from e
            raise BackendWriteFailure(str(error), error.status) from e
        except (RefreshError, TransportError, HttpLib2Error, OSError) as e:
            error = translate_error(e, f"events.delete {event_id}")
            if isinstance(error, Unauthenticated):
                raise error from e
            raise BackendWriteFailure(str(error), error.status) from e

        logger.debug(f"Deleted event {event_id}")
