# File: fitnessgap/core/errors.py
"""
Error taxonomy for calendar backend failures.

Unauthenticated and AccessDenied abort a run. BackendWriteFailure is
caught per occurrence and folded into the run report.
"""


class CalendarBackendError(Exception):
    """Base class for failures talking to the calendar backend."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class AuthError(CalendarBackendError):
    """Failures that make the whole run pointless."""


class Unauthenticated(AuthError):
    """No usable credential (missing, expired or revoked token)."""

    user_message = "Not signed in. Run 'python scripts/setup.py' to connect your Google Calendar."


class AccessDenied(AuthError):
    """The backend rejected the request with a permission error."""

    user_message = "Calendar access denied. Please sign in again and grant calendar permissions."


class TransientBackendError(CalendarBackendError):
    """Rate limit, server or network trouble. Not retried automatically."""


class BackendWriteFailure(CalendarBackendError):
    """A single create or delete call failed for a non-auth reason."""


class RunDeadlineExceeded(Exception):
    """The caller's deadline passed before the next backend call."""
