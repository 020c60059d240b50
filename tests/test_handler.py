import json
from datetime import date, time
from unittest.mock import MagicMock

from roombot.core.handler import CommandHandler, CommandResult
from roombot.core.store import BookingStore, RoomLocks
from roombot.models.audit_log import AuditLog
from roombot.models.booking import BookingStatus
from roombot.services.audit import AuditLogger
from roombot.services.calendar import CalendarSync, GoogleCalendarSync

# pylint: disable-next=unused-import
from tests.conf_tests import (
    FIXED_NOW,
    TEST_POLICY,
    RecordingCalendar,
    make_request,
    clear_db,
    test_db,
    store,
    room_a,
    room_b,
    calendar,
    handler,
)

BOOK_TEXT = 'book A 2026-01-07 14:00 60 "Weekly Sync"'


def book(handler, text=BOOK_TEXT, **kwargs):
    result = handler.handle(make_request(text, **kwargs))
    assert result.success, result.message
    return result.data["booking_id"]


# pylint: disable-next=redefined-outer-name
def test_help(handler):
    result = handler.handle(make_request(""))
    assert result.success
    assert "예약" in result.message
    assert result.color == "#2ECC71"


# pylint: disable-next=redefined-outer-name
def test_book_creates_booking_and_calendar_event(handler, store, room_a, calendar):
    result = handler.handle(make_request(BOOK_TEXT))
    assert result.success
    assert "Booking confirmed" in result.message
    assert result.data["start_time"] == "14:00"
    assert result.data["end_time"] == "15:00"

    booking = store.get_booking(result.data["booking_id"])
    assert booking.title == "Weekly Sync"
    assert booking.requested_by == "alice@example.com"
    assert booking.requested_by_name == "Alice"
    assert booking.event_id == f"evt-{booking.booking_id}"
    assert calendar.calls == [("create", booking.booking_id)]


# pylint: disable-next=redefined-outer-name
def test_book_unknown_room(handler, room_a, room_b):
    result = handler.handle(make_request("book Z 2026-01-07 14:00 60"))
    assert not result.success
    assert result.error_code == "NOT_FOUND"
    assert "Available rooms: A, B" in result.message
    assert result.color == "#E74C3C"


# pylint: disable-next=redefined-outer-name
def test_book_policy_violations_do_not_write(handler, store, room_a):
    for text in [
        "book A today 08:00 60",
        "book A 2026-01-07 07:00 60",
        "book A 2026-01-07 21:30 120",
        "book A 2026-03-01 10:00 60",
    ]:
        result = handler.handle(make_request(text))
        assert not result.success, text
        assert result.error_code == "POLICY_VIOLATION", text
    assert store.bookings_on(date(2026, 1, 7)) == []


# pylint: disable-next=redefined-outer-name
def test_book_conflict(handler, room_a):
    book(handler)
    result = handler.handle(make_request("book A 2026-01-07 14:30 30", email="bob@example.com"))
    assert result.error_code == "CONFLICT"
    assert "already booked" in result.message


# pylint: disable-next=redefined-outer-name
def test_cancel_by_someone_else_is_unauthorized(handler, store, room_a, calendar):
    booking_id = book(handler)
    result = handler.handle(make_request(f"cancel {booking_id}", email="bob@example.com", name="Bob"))
    assert not result.success
    assert result.error_code == "UNAUTHORIZED"
    assert store.get_booking(booking_id).status == BookingStatus.ACTIVE
    assert ("delete", booking_id) not in calendar.calls


# pylint: disable-next=redefined-outer-name
def test_cancel_and_cancel_again(handler, store, room_a, calendar):
    booking_id = book(handler)
    result = handler.handle(make_request(f"취소 {booking_id.lower()}"))
    assert result.success
    assert "Booking cancelled" in result.message
    assert store.get_booking(booking_id).status == BookingStatus.CANCELLED
    assert calendar.calls[-1] == ("delete", booking_id)

    again = handler.handle(make_request(f"cancel {booking_id}"))
    assert again.error_code == "INVALID_STATUS"


# pylint: disable-next=redefined-outer-name
def test_cancel_unknown_booking(handler, room_a):
    result = handler.handle(make_request("cancel R-NOPE"))
    assert result.error_code == "NOT_FOUND"
    assert "R-NOPE" in result.message


# pylint: disable-next=redefined-outer-name
def test_move(handler, store, room_a, calendar):
    booking_id = book(handler)
    book(handler, "book A 2026-01-08 10:00 30", email="bob@example.com")

    blocked = handler.handle(make_request(f"move {booking_id} 2026-01-08 09:45"))
    assert blocked.error_code == "CONFLICT"
    unchanged = store.get_booking(booking_id)
    assert (unchanged.date, unchanged.start_time) == (date(2026, 1, 7), time(14, 0))

    result = handler.handle(make_request(f"변경 {booking_id} 2026-01-08 10:30"))
    assert result.success
    assert "2026-01-07 14:00-15:00" in result.message
    moved = store.get_booking(booking_id)
    assert (moved.date, moved.start_time, moved.end_time) == (date(2026, 1, 8), time(10, 30), time(11, 30))
    assert calendar.calls[-1] == ("update", booking_id)


# pylint: disable-next=redefined-outer-name
def test_move_into_the_past_is_rejected(handler, room_a):
    booking_id = book(handler)
    result = handler.handle(make_request(f"move {booking_id} today 08:00"))
    assert result.error_code == "POLICY_VIOLATION"


# pylint: disable-next=redefined-outer-name
def test_extend(handler, store, room_a):
    booking_id = book(handler)
    result = handler.handle(make_request(f"연장 {booking_id} 30"))
    assert result.success
    assert "+30 min (total 90 min)" in result.message
    assert store.get_booking(booking_id).end_time == time(15, 30)


# pylint: disable-next=redefined-outer-name
def test_extend_beyond_maximum_is_rejected_without_change(handler, store, room_a):
    booking_id = book(handler, "book A 2026-01-07 10:00 180")
    result = handler.handle(make_request(f"extend {booking_id} 90"))
    assert not result.success
    assert result.error_code == "POLICY_VIOLATION"
    assert "total 270" in result.message
    booking = store.get_booking(booking_id)
    assert booking.end_time == time(13, 0)
    assert booking.duration_minutes == 180


# pylint: disable-next=redefined-outer-name
def test_extend_outside_business_hours_is_rejected(handler, room_a):
    booking_id = book(handler, "book A 2026-01-07 21:00 60")
    result = handler.handle(make_request(f"extend {booking_id} 60"))
    assert result.error_code == "POLICY_VIOLATION"


# pylint: disable-next=redefined-outer-name
def test_status_with_no_bookings_lists_every_room_available(handler, room_a, room_b):
    result = handler.handle(make_request("status 2026-01-07"))
    assert result.success
    assert "All rooms are free" in result.message
    assert [room["name"] for room in result.data["rooms"]] == ["A", "B"]
    assert all(room["available"] for room in result.data["rooms"])
    assert result.data["rooms"][0]["free"] == [["08:00", "22:00"]]


# pylint: disable-next=redefined-outer-name
def test_status_shows_bookings_and_free_windows(handler, room_a, room_b):
    book(handler)
    result = handler.handle(make_request("현황 2026-01-07 13:00-16:00"))
    rooms = {room["name"]: room for room in result.data["rooms"]}
    assert rooms["A"]["available"] is False
    assert rooms["A"]["free"] == [["13:00", "14:00"], ["15:00", "16:00"]]
    assert rooms["B"]["available"] is True
    assert "Weekly Sync (Alice)" in result.message


# pylint: disable-next=redefined-outer-name
def test_status_without_rooms(handler):
    result = handler.handle(make_request("status"))
    assert result.success
    assert "No meeting rooms" in result.message


# pylint: disable-next=redefined-outer-name
def test_my_and_list(handler, room_a, room_b):
    book(handler)
    book(handler, "book B 2026-01-07 09:00 30", email="bob@example.com", name="Bob")

    mine = handler.handle(make_request("내예약"))
    assert [b["title"] for b in mine.data["bookings"]] == ["Weekly Sync"]
    assert "Alice's bookings" in mine.message

    empty = handler.handle(make_request("my today"))
    assert empty.data["bookings"] == []

    rooms = handler.handle(make_request("목록"))
    assert [r["name"] for r in rooms.data["rooms"]] == ["A", "B"]

    day = handler.handle(make_request("목록 2026-01-07"))
    assert [b["start_time"] for b in day.data["bookings"]] == ["09:00", "14:00"]
    assert "Total: 2" in day.message


# pylint: disable-next=redefined-outer-name
def test_every_command_is_audited(handler, test_db, room_a):
    handler.handle(make_request(BOOK_TEXT))
    handler.handle(make_request("frobnicate A"))
    handler.handle(make_request("book A 2026-01-07 14:00 60", email="bob@example.com"))
    handler.handle(make_request("help"))

    entries = test_db.query(AuditLog).order_by(AuditLog.id).all()
    assert [e.command_type for e in entries] == ["book", "unknown", "book", "help"]
    assert [e.status for e in entries] == ["success", "failure", "failure", "success"]
    assert entries[0].user_email == "alice@example.com"
    assert entries[0].command == f"room {BOOK_TEXT}"
    assert entries[0].ip_address == "10.0.0.1"
    assert json.loads(entries[0].parameters)["title"] == "Weekly Sync"
    assert entries[1].response.startswith("❌ Unknown command")
    assert all(e.elapsed_ms >= 0 for e in entries)


# pylint: disable-next=redefined-outer-name
def test_calendar_failure_does_not_fail_booking(store, test_db, room_a):
    failing = RecordingCalendar(fail=True)
    handler = CommandHandler(store, AuditLogger(test_db), TEST_POLICY, calendar=failing, clock=lambda: FIXED_NOW)
    result = handler.handle(make_request(BOOK_TEXT))
    assert result.success
    booking = store.get_booking(result.data["booking_id"])
    assert booking.event_id == booking.booking_id

    cancelled = handler.handle(make_request(f"cancel {booking.booking_id}"))
    assert cancelled.success
    assert [action for action, _ in failing.calls] == ["create", "delete"]


# pylint: disable-next=redefined-outer-name
def test_google_timeout_does_not_fail_booking_or_move(store, test_db, room_a):
    google = GoogleCalendarSync("bot@example.iam.gserviceaccount.com", "key", "Asia/Seoul")
    api = MagicMock()
    google.service = MagicMock(return_value=api)
    api.events.return_value.insert.return_value.execute.return_value = {"id": "evt-1"}
    handler = CommandHandler(store, AuditLogger(test_db), TEST_POLICY, calendar=google, clock=lambda: FIXED_NOW)

    booking_id = book(handler)
    assert store.get_booking(booking_id).event_id == "evt-1"

    api.events.return_value.patch.return_value.execute.side_effect = TimeoutError("timed out")
    moved = handler.handle(make_request(f"move {booking_id} 2026-01-08 10:00"))
    assert moved.success, moved.message
    assert store.get_booking(booking_id).date == date(2026, 1, 8)

    api.events.return_value.insert.return_value.execute.side_effect = TimeoutError("timed out")
    result = handler.handle(make_request("book A 2026-01-09 09:00 30"))
    assert result.success, result.message
    assert result.data["booking_id"].startswith("R-")
    booking = store.get_booking(result.data["booking_id"])
    assert booking.event_id == booking.booking_id


# pylint: disable-next=redefined-outer-name
def test_unexpected_calendar_error_is_logged_not_reported(store, test_db, room_a, caplog):
    broken = MagicMock(spec=CalendarSync)
    broken.create_event.side_effect = RuntimeError("boom")
    handler = CommandHandler(store, AuditLogger(test_db), TEST_POLICY, calendar=broken, clock=lambda: FIXED_NOW)

    result = handler.handle(make_request(BOOK_TEXT))
    assert result.success
    assert store.get_booking(result.data["booking_id"]) is not None
    assert "Unexpected calendar error" in caplog.text


# pylint: disable-next=redefined-outer-name
def test_move_by_someone_else_is_unauthorized(handler, store, room_a, calendar):
    booking_id = book(handler)
    result = handler.handle(make_request(f"move {booking_id} 2026-01-08 10:00", email="bob@example.com", name="Bob"))
    assert not result.success
    assert result.error_code == "UNAUTHORIZED"
    booking = store.get_booking(booking_id)
    assert (booking.date, booking.start_time, booking.end_time) == (date(2026, 1, 7), time(14, 0), time(15, 0))
    assert ("update", booking_id) not in calendar.calls


# pylint: disable-next=redefined-outer-name
def test_extend_by_someone_else_is_unauthorized(handler, store, room_a, calendar):
    booking_id = book(handler)
    result = handler.handle(make_request(f"extend {booking_id} 30", email="bob@example.com", name="Bob"))
    assert not result.success
    assert result.error_code == "UNAUTHORIZED"
    booking = store.get_booking(booking_id)
    assert (booking.end_time, booking.duration_minutes) == (time(15, 0), 60)
    assert ("update", booking_id) not in calendar.calls


# pylint: disable-next=redefined-outer-name
def test_store_failure_returns_generic_message(test_db, room_a):
    store = BookingStore(test_db, locks=RoomLocks(), id_factory=lambda: "R-SAME0000")
    handler = CommandHandler(store, AuditLogger(test_db), TEST_POLICY, clock=lambda: FIXED_NOW)
    assert handler.handle(make_request(BOOK_TEXT)).success

    result = handler.handle(make_request("book A 2026-01-07 16:00 30"))
    assert not result.success
    assert result.error_code == "STORE_FAILURE"
    assert "Something went wrong" in result.message
    assert test_db.query(AuditLog).count() == 2


def test_command_result_failure_helper():
    from roombot.core.errors import Conflict

    result = CommandResult.failure(Conflict("taken", detail="A 09:00"))
    assert result.message == "❌ taken"
    assert (result.error_code, result.error_detail) == ("CONFLICT", "A 09:00")
