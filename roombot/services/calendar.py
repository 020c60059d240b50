import logging
import threading
from typing import Any, Dict, Optional
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error
from roombot.models.booking import Booking
from roombot.models.room import Room


logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Raised by the client for API, auth and transport failures (socket timeouts are OSError).
SYNC_ERRORS = (HttpError, GoogleAuthError, HttpLib2Error, OSError)


class CalendarSyncError(Exception):
    """Mirroring a booking to the external calendar failed."""


class CalendarSync:
    """
    Calendar mirror used when no external calendar is configured.
    Bookings live only in the local database.
    """

    def create_event(self, room: Room, booking: Booking) -> Optional[str]:
        return None

    def update_event(self, room: Room, booking: Booking):
        return None

    def delete_event(self, room: Room, booking: Booking):
        return None


class GoogleCalendarSync(CalendarSync):
    """
    Mirror bookings into each room's Google Calendar using a service account.

    The service object sits on an ``httplib2.Http`` that must not be shared
    between threads, so a fresh one is built for every call. Only the
    credentials are kept.
    """

    def __init__(self, service_account_email: str, private_key: str, timezone: str):
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.timezone = timezone
        self._credentials = None
        self._credentials_lock = threading.Lock()

    def credentials(self):
        with self._credentials_lock:
            if self._credentials is None:
                self._credentials = service_account.Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self.service_account_email,
                        "private_key": self.private_key,
                        "token_uri": "https://oauth2.googleapis.com/token",
                    },
                    scopes=SCOPES,
                )
                logger.info("Google Calendar credentials loaded")
            return self._credentials

    def service(self):
        return build("calendar", "v3", credentials=self.credentials(), cache_discovery=False)

    def _event_times(self, booking: Booking) -> Dict[str, Any]:
        day = booking.date.isoformat()
        return {
            "start": {"dateTime": f"{day}T{booking.start_time.strftime('%H:%M:%S')}", "timeZone": self.timezone},
            "end": {"dateTime": f"{day}T{booking.end_time.strftime('%H:%M:%S')}", "timeZone": self.timezone},
        }

    def create_event(self, room: Room, booking: Booking) -> Optional[str]:
        body = {
            "summary": booking.title,
            "description": f"Booked by {booking.requested_by_name} ({booking.requested_by})",
            "attendees": [{"email": room.email, "resource": True, "displayName": room.display_name}],
            "extendedProperties": {"private": {"bookingId": booking.booking_id}},
        }
        body.update(self._event_times(booking))
        try:
            created = self.service().events().insert(calendarId=room.calendar_id, body=body).execute()
        except SYNC_ERRORS as exc:
            raise CalendarSyncError(f"Failed to create event for {booking.booking_id}: {exc!r}") from exc
        logger.info(f"Created calendar event {created['id']} for room {room.name}")
        return created["id"]

    def update_event(self, room: Room, booking: Booking):
        if booking.event_id == booking.booking_id:
            return None
        try:
            self.service().events().patch(
                calendarId=room.calendar_id,
                eventId=booking.event_id,
                body=self._event_times(booking),
            ).execute()
        except SYNC_ERRORS as exc:
            raise CalendarSyncError(f"Failed to update event {booking.event_id}: {exc!r}") from exc
        logger.info(f"Updated calendar event {booking.event_id}")

    def delete_event(self, room: Room, booking: Booking):
        if booking.event_id == booking.booking_id:
            return None
        try:
            self.service().events().delete(calendarId=room.calendar_id, eventId=booking.event_id).execute()
        except HttpError as exc:
            if exc.resp.status in (404, 410):
                logger.warning(f"Calendar event {booking.event_id} was already deleted")
                return None
            raise CalendarSyncError(f"Failed to delete event {booking.event_id}: {exc!r}") from exc
        except SYNC_ERRORS as exc:
            raise CalendarSyncError(f"Failed to delete event {booking.event_id}: {exc!r}") from exc
        logger.info(f"Deleted calendar event {booking.event_id}")
