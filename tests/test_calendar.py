import pytest
from datetime import date, time
from types import SimpleNamespace
from unittest.mock import MagicMock
from googleapiclient.errors import HttpError
from httplib2 import ServerNotFoundError

from roombot.services.calendar import CalendarSync, CalendarSyncError, GoogleCalendarSync

ROOM = SimpleNamespace(name="A", display_name="Room A", email="room-a@example.com", calendar_id="cal-a")


def make_booking(event_id="R-ABCDE123"):
    return SimpleNamespace(
        booking_id="R-ABCDE123",
        event_id=event_id,
        title="Weekly Sync",
        date=date(2026, 1, 7),
        start_time=time(14, 0),
        end_time=time(15, 0),
        requested_by="alice@example.com",
        requested_by_name="Alice",
    )


def google_sync():
    sync = GoogleCalendarSync("bot@example.iam.gserviceaccount.com", "key", "Asia/Seoul")
    sync.api = MagicMock()
    sync.service = MagicMock(return_value=sync.api)
    return sync


def http_error(code):
    return HttpError(MagicMock(status=code, reason="error"), b"")


def test_local_calendar_is_a_no_op():
    sync = CalendarSync()
    assert sync.create_event(ROOM, make_booking()) is None
    assert sync.update_event(ROOM, make_booking()) is None
    assert sync.delete_event(ROOM, make_booking()) is None


def test_create_event_invites_room_as_resource():
    sync = google_sync()
    events = sync.api.events.return_value
    events.insert.return_value.execute.return_value = {"id": "evt-1"}

    assert sync.create_event(ROOM, make_booking()) == "evt-1"

    kwargs = events.insert.call_args.kwargs
    assert kwargs["calendarId"] == "cal-a"
    body = kwargs["body"]
    assert body["summary"] == "Weekly Sync"
    assert body["attendees"] == [{"email": "room-a@example.com", "resource": True, "displayName": "Room A"}]
    assert body["start"] == {"dateTime": "2026-01-07T14:00:00", "timeZone": "Asia/Seoul"}
    assert body["end"]["dateTime"] == "2026-01-07T15:00:00"


def test_create_event_failure_is_wrapped():
    sync = google_sync()
    sync.api.events.return_value.insert.return_value.execute.side_effect = http_error(500)
    with pytest.raises(CalendarSyncError):
        sync.create_event(ROOM, make_booking())


def test_update_and_delete_skip_unsynced_bookings():
    sync = google_sync()
    booking = make_booking()
    sync.update_event(ROOM, booking)
    sync.delete_event(ROOM, booking)
    sync.api.events.assert_not_called()


def test_update_patches_times():
    sync = google_sync()
    sync.update_event(ROOM, make_booking(event_id="evt-1"))
    kwargs = sync.api.events.return_value.patch.call_args.kwargs
    assert kwargs["eventId"] == "evt-1"
    assert set(kwargs["body"]) == {"start", "end"}


def test_delete_tolerates_missing_event():
    sync = google_sync()
    sync.api.events.return_value.delete.return_value.execute.side_effect = http_error(410)
    assert sync.delete_event(ROOM, make_booking(event_id="evt-1")) is None

    sync.api.events.return_value.delete.return_value.execute.side_effect = http_error(500)
    with pytest.raises(CalendarSyncError):
        sync.delete_event(ROOM, make_booking(event_id="evt-1"))


@pytest.mark.parametrize("error", [TimeoutError("timed out"), ConnectionResetError(), ServerNotFoundError("no dns")])
def test_transport_errors_are_wrapped(error):
    sync = google_sync()
    events = sync.api.events.return_value
    events.insert.return_value.execute.side_effect = error
    events.patch.return_value.execute.side_effect = error
    events.delete.return_value.execute.side_effect = error

    with pytest.raises(CalendarSyncError):
        sync.create_event(ROOM, make_booking())
    with pytest.raises(CalendarSyncError):
        sync.update_event(ROOM, make_booking(event_id="evt-1"))
    with pytest.raises(CalendarSyncError):
        sync.delete_event(ROOM, make_booking(event_id="evt-1"))


def test_service_is_built_per_call_with_shared_credentials(monkeypatch):
    from roombot.services import calendar

    credentials = object()
    built = []
    monkeypatch.setattr(
        calendar.service_account.Credentials,
        "from_service_account_info",
        MagicMock(return_value=credentials),
    )
    monkeypatch.setattr(calendar, "build", lambda *args, **kwargs: built.append(kwargs) or MagicMock())

    sync = GoogleCalendarSync("bot@example.iam.gserviceaccount.com", "key", "Asia/Seoul")
    first, second = sync.service(), sync.service()

    assert first is not second
    assert [kwargs["credentials"] for kwargs in built] == [credentials, credentials]
    calendar.service_account.Credentials.from_service_account_info.assert_called_once()
