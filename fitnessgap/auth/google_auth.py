# File: fitnessgap/auth/google_auth.py
"""
Google Calendar authentication.

The installed-app OAuth flow runs once from scripts/setup.py and stores
token.json; every later run loads that token and refreshes it when it has
expired. Only the calendar scope is requested.
"""

from typing import Optional
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

from fitnessgap.core.config_manager import Config
from fitnessgap.utils.logger import setup_logger

logger = setup_logger(__name__)


def _save_token(creds: Credentials) -> None:
    Config.TOKEN_FILE.write_text(creds.to_json(), encoding="utf-8")
    logger.debug(f"Token written to {Config.TOKEN_FILE}")


def _load_token() -> Optional[Credentials]:
    """Stored credentials, or None when token.json is absent or unreadable."""
    if not Config.TOKEN_FILE.exists():
        logger.warning(f"No token at {Config.TOKEN_FILE}")
        return None

    try:
        return Credentials.from_authorized_user_file(str(Config.TOKEN_FILE), Config.GOOGLE_SCOPES)
    except ValueError as e:
        logger.error(f"Ignoring malformed token file {Config.TOKEN_FILE}: {e}")
        return None


def _refresh(creds: Credentials) -> bool:
    logger.info("Calendar token expired, refreshing")
    try:
        creds.refresh(Request())
    except (RefreshError, TransportError) as e:
        # A revoked grant cannot be refreshed again; force a new consent
        logger.error(f"Token refresh failed: {e}", exc_info=True)
        Config.TOKEN_FILE.unlink(missing_ok=True)
        return False

    _save_token(creds)
    return True


def _authenticate() -> Optional[Credentials]:
    """Usable credentials from token.json, refreshed if needed."""
    creds = _load_token()
    if creds is None:
        return None
    if creds.valid:
        return creds
    if creds.expired and creds.refresh_token and _refresh(creds):
        return creds

    logger.warning("Stored credentials cannot be used")
    return None


def create_initial_token() -> bool:
    """
    Run the browser consent flow and store the resulting token.

    Returns:
        True if a token was saved
    """
    if not Config.CREDENTIALS_FILE.exists():
        logger.error(f"OAuth client file not found: {Config.CREDENTIALS_FILE}")
        logger.error("Create a Desktop OAuth client in Google Cloud Console and save it there")
        return False

    logger.info(f"Requesting calendar access ({', '.join(Config.GOOGLE_SCOPES)})")
    try:
        flow = InstalledAppFlow.from_client_secrets_file(str(Config.CREDENTIALS_FILE), Config.GOOGLE_SCOPES)
        creds = flow.run_local_server(port=0)
        _save_token(creds)
    except (OSError, ValueError, RefreshError) as e:
        logger.error(f"Consent flow failed: {e}", exc_info=True)
        return False

    logger.info("Calendar access granted")
    return True


def get_calendar_service() -> Optional[Resource]:
    """
    Calendar v3 resource built from the stored token.

    Returns:
        The resource, or None when there are no usable credentials
    """
    creds = _authenticate()
    if creds is None:
        logger.error("Not signed in to Google Calendar. Run 'python scripts/setup.py'.")
        return None

    try:
        return build("calendar", "v3", credentials=creds)
    except HttpError as err:
        logger.error(f"Could not build the Calendar client: {err}", exc_info=True)
        return None
