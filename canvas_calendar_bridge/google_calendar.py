"""Google Calendar client for the user's primary calendar.

Holds one long-lived refresh token and swaps it for an access token on the
first call. The access token is then reused for the life of the client; an
expired one shows up as a 401 CalendarApiError rather than a silent retry.
"""

import logging
from typing import Any

import requests
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from .config import DEFAULT_REDIRECT_URI
from .errors import CalendarApiError, CalendarAuthError, CalendarRequestError

_logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]
AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"


class GoogleCalendarClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str = "",
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token or ""
        self.redirect_uri = redirect_uri or DEFAULT_REDIRECT_URI
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = logger or _logger
        self._access_token: str | None = None

    # ========================================================================
    # OAuth
    # ========================================================================

    def _flow(self) -> Flow:
        client_config = {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }
        # The URL and the code exchange happen in separate tool calls, so no PKCE verifier.
        return Flow.from_client_config(
            client_config,
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def get_auth_url(self) -> str:
        url, _state = self._flow().authorization_url(access_type="offline", prompt="consent")
        return url

    def exchange_code(self, code: str) -> dict[str, str | None]:
        """Trade an authorization code for access + refresh tokens and keep both."""
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise CalendarAuthError(f"Failed to exchange code for tokens: {e}") from e

        creds = flow.credentials
        self._access_token = creds.token
        if creds.refresh_token:
            self.refresh_token = creds.refresh_token
        self.log.info("Google authorization code exchanged")
        return {"access_token": creds.token, "refresh_token": creds.refresh_token}

    def set_refresh_token(self, token: str) -> None:
        self.refresh_token = token
        self._access_token = None

    def _get_access_token(self) -> str:
        if self._access_token:
            return self._access_token

        if not self.refresh_token:
            raise CalendarAuthError(
                "No refresh token available. Please authenticate first using "
                "get_google_auth_url and set_google_auth_code tools."
            )

        creds = Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
        )
        try:
            creds.refresh(Request(session=self.session))
        except (RefreshError, TransportError) as e:
            raise CalendarAuthError(f"Failed to refresh access token: {e}") from e

        if not creds.token:
            raise CalendarAuthError("Failed to obtain access token from Google")
        self.log.debug("Obtained Google access token")
        self._access_token = creds.token
        return self._access_token

    # ========================================================================
    # Events
    # ========================================================================

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        token = self._get_access_token()
        try:
            r = self.session.request(
                method,
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise CalendarRequestError(f"Google Calendar request failed: {e}") from e

        if not r.ok:
            self.log.warning("Google Calendar %s %s -> %s", method, url, r.status_code)
            raise CalendarApiError(r.status_code, r.text)
        return r

    def create_event(self, event: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", EVENTS_URL, json=event).json()

    def list_events(self, time_min: str, time_max: str, max_results: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        if max_results:
            params["maxResults"] = max_results
        return self._request("GET", EVENTS_URL, params=params).json()

    def get_event(self, event_id: str) -> dict[str, Any]:
        return self._request("GET", f"{EVENTS_URL}/{event_id}").json()

    def update_event(self, event_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"{EVENTS_URL}/{event_id}", json=updates).json()

    def delete_event(self, event_id: str) -> dict[str, Any]:
        # 204 No Content on success
        self._request("DELETE", f"{EVENTS_URL}/{event_id}")
        return {"success": True, "message": "Event deleted successfully"}
