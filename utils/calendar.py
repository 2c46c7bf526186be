"""
Google Calendar mirror.

Best-effort: every public method logs and returns ``None``/``False`` on
failure instead of raising. The access token is obtained with the OAuth
refresh-token grant and cached until shortly before it expires.
"""
import logging
import time as _time
from datetime import date, datetime, timedelta
from typing import Optional, Union
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"

When = Union[date, datetime]


class CalendarMirror:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        calendar_id: str = "primary",
        timezone: str = "Asia/Kolkata",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.calendar_id = calendar_id
        self.timezone = timezone
        self._http = httpx.Client(timeout=10.0, transport=transport)
        self._access_token = None
        self._token_expires_at = 0.0

    @classmethod
    def from_config(cls, config, transport=None):
        return cls(
            client_id=config.get("GOOGLE_CLIENT_ID"),
            client_secret=config.get("GOOGLE_CLIENT_SECRET"),
            refresh_token=config.get("GOOGLE_REFRESH_TOKEN"),
            calendar_id=config.get("GOOGLE_CALENDAR_ID") or "primary",
            timezone=config.get("BUSINESS_TIMEZONE", "Asia/Kolkata"),
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def close(self):
        self._http.close()

    # ---------- auth ----------
    def _token(self) -> Optional[str]:
        if self._access_token and _time.monotonic() < self._token_expires_at:
            return self._access_token

        response = self._http.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            logger.error("Google token refresh failed: %s", response.text)
            return None

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            logger.error("No access token in Google refresh response")
            return None

        expires_in = int(tokens.get("expires_in", 3600))
        self._access_token = access_token
        self._token_expires_at = _time.monotonic() + max(expires_in - 60, 0)
        return access_token

    def _request(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        token = self._token()
        if not token:
            return None
        url = f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events{path}"
        response = self._http.request(method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs)
        response.raise_for_status()
        return response

    # ---------- payloads ----------
    def _when(self, value: When) -> dict:
        if isinstance(value, datetime):
            return {"dateTime": value.replace(tzinfo=None).isoformat(timespec="seconds"), "timeZone": self.timezone}
        return {"date": value.isoformat()}

    def _event_body(self, title: str, start: When, end: When, description: Optional[str] = None) -> dict:
        body = {
            "summary": title,
            "start": self._when(start),
            "end": self._when(end),
        }
        if description is not None:
            body["description"] = description
        return body

    # ---------- operations ----------
    def add_event(self, title: str, start: When, end: When, description: Optional[str] = None) -> Optional[str]:
        """Create an event; plain dates make an all-day event. Returns the event id."""
        if not self.enabled:
            logger.info("Google Calendar not configured - skipping event creation")
            return None
        body = self._event_body(title, start, end, description)
        body["reminders"] = {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "email", "minutes": 60},
            ],
        }
        try:
            response = self._request("POST", "", json=body)
        except httpx.HTTPError as exc:
            logger.error("Failed to add event to Google Calendar: %s", exc)
            return None
        if response is None:
            return None
        event_id = response.json().get("id")
        logger.info("Event added to Google Calendar: %s", event_id)
        return event_id

    def update_event(self, event_id: str, title: str, start: When, end: When, description: Optional[str] = None) -> bool:
        if not self.enabled:
            logger.info("Google Calendar not configured - skipping event update")
            return False
        try:
            response = self._request("PATCH", f"/{quote(event_id, safe='')}", json=self._event_body(title, start, end, description))
        except httpx.HTTPError as exc:
            logger.error("Failed to update Google Calendar event %s: %s", event_id, exc)
            return False
        return response is not None

    def remove_event(self, event_id: str) -> bool:
        if not self.enabled:
            logger.info("Google Calendar not configured - skipping event deletion")
            return False
        try:
            response = self._request("DELETE", f"/{quote(event_id, safe='')}")
        except httpx.HTTPError as exc:
            logger.error("Failed to remove Google Calendar event %s: %s", event_id, exc)
            return False
        if response is not None:
            logger.info("Event removed from Google Calendar: %s", event_id)
        return response is not None

    def archive_event(self, event_id: str) -> bool:
        """Flag an event as archived in its private extended properties."""
        if not self.enabled:
            logger.info("Google Calendar not configured - skipping event archival")
            return False
        path = f"/{quote(event_id, safe='')}"
        try:
            current = self._request("GET", path)
            if current is None:
                return False
            event = current.json()
            extended = event.get("extendedProperties") or {}
            private = dict(extended.get("private") or {})
            private["archived"] = "true"
            event["extendedProperties"] = {**extended, "private": private}
            response = self._request("PUT", path, json=event)
        except httpx.HTTPError as exc:
            logger.error("Failed to archive Google Calendar event %s: %s", event_id, exc)
            return False
        if response is not None:
            logger.info("Event archived in Google Calendar: %s", event_id)
        return response is not None


def all_day_span(day: date):
    return day, day + timedelta(days=1)
