"""Request pipeline: parse, validate, execute, audit, respond.

:class:`CommandHandler` never raises. Parse and policy failures stop before
any write reaches the store; every outcome, success or failure, is written to
the audit log with its processing time before the result is returned.
"""
import dataclasses
import logging
import time as _time
from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from roombot.core import messages
from roombot.core.commands import (
    BookCommand,
    CancelCommand,
    ExtendCommand,
    HelpCommand,
    ListBookingsCommand,
    ListRoomsCommand,
    MoveCommand,
    MyCommand,
    StatusCommand,
)
from roombot.core.errors import BookingError, NotFound, StoreFailure, Unauthorized
from roombot.core.parser import command_kind, parse_command
from roombot.core.policy import (
    BookingPolicy,
    check_business_hours,
    check_extension,
    check_same_day,
    evaluate_window,
)
from roombot.core.store import BookingStore, require_active
from roombot.models.booking import Booking
from roombot.services.audit import AuditLogger
from roombot.services.calendar import CalendarSync, CalendarSyncError
from roombot.utils.scheduler import free_windows


logger = logging.getLogger(__name__)

SUCCESS_COLOR = "#2ECC71"
FAILURE_COLOR = "#E74C3C"


@dataclass
class CommandRequest:
    requester_name: str
    requester_id: str
    text: str
    full_text: str = ""
    source_ip: str = ""
    channel: str = ""


@dataclass
class CommandResult:
    success: bool
    message: str
    data: Optional[dict] = None
    error_code: Optional[str] = None
    error_detail: Optional[str] = None

    @property
    def color(self) -> str:
        return SUCCESS_COLOR if self.success else FAILURE_COLOR

    @classmethod
    def failure(cls, error: BookingError) -> "CommandResult":
        return cls(False, f"❌ {error.message}", error_code=error.code, error_detail=error.detail)


def _booking_data(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "room_id": booking.room_id,
        "date": booking.date.isoformat(),
        "start_time": messages.hhmm(booking.start_time),
        "end_time": messages.hhmm(booking.end_time),
        "duration_minutes": booking.duration_minutes,
        "title": booking.title,
        "requested_by_name": booking.requested_by_name,
    }


class CommandHandler:
    def __init__(self, store: BookingStore, audit: AuditLogger, policy: BookingPolicy,
                 calendar: CalendarSync = None, clock: Callable[[], datetime] = None):
        self.store = store
        self.audit = audit
        self.policy = policy
        self.calendar = calendar or CalendarSync()
        self.clock = clock or policy.now
        self._handlers = {
            HelpCommand: self._help,
            StatusCommand: self._status,
            BookCommand: self._book,
            CancelCommand: self._cancel,
            MoveCommand: self._move,
            ExtendCommand: self._extend,
            MyCommand: self._my,
            ListRoomsCommand: self._list_rooms,
            ListBookingsCommand: self._list_bookings,
        }

    def now(self) -> datetime:
        return self.clock().astimezone(self.policy.tzinfo)

    def handle(self, request: CommandRequest) -> CommandResult:
        started = _time.perf_counter()
        logger.info(f"Command received from {request.requester_id}: {request.text!r}")

        kind = command_kind(request.text)
        parameters = {}
        try:
            now = self.now()
            command = parse_command(request.text, self.policy, now.date())
            kind = command.kind
            parameters = dataclasses.asdict(command)
            result = self._handlers[type(command)](command, request, now)
        except StoreFailure as exc:
            self.store.rollback()
            logger.error(f"Store failure while handling {kind}: {exc.message} {exc.detail or ''}")
            result = CommandResult(False, messages.GENERIC_FAILURE, error_code=exc.code, error_detail=exc.detail)
        except BookingError as exc:
            logger.info(f"Command {kind} rejected for {request.requester_id}: {exc.code}")
            result = CommandResult.failure(exc)
        except SQLAlchemyError as exc:
            self.store.rollback()
            logger.exception(f"Database error while handling {kind}")
            result = CommandResult(False, messages.GENERIC_FAILURE, error_code=StoreFailure.code, error_detail=str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected error while handling {kind}")
            result = CommandResult(False, messages.GENERIC_FAILURE, error_code="INTERNAL_ERROR", error_detail=str(exc))

        elapsed_ms = int((_time.perf_counter() - started) * 1000)
        self.audit.record(request, kind, parameters, result, elapsed_ms)
        logger.info(f"Command {kind} for {request.requester_id} finished: success={result.success} ({elapsed_ms}ms)")
        return result

    # Read-only commands

    def _help(self, command: HelpCommand, request: CommandRequest, now: datetime) -> CommandResult:
        return CommandResult(True, messages.help_message())

    def _status(self, command: StatusCommand, request: CommandRequest, now: datetime) -> CommandResult:
        if command.time_range:
            window_start, window_end = command.time_range
            start_hour = window_start.hour
            end_hour = window_end.hour + (1 if window_end.minute else 0)
        else:
            start_hour, end_hour = self.policy.start_hour, self.policy.end_hour
            window_start, window_end = time(start_hour), time(end_hour)

        rooms = self.store.list_rooms()
        data = {
            "date": command.date.isoformat(),
            "window": [messages.hhmm(window_start), messages.hhmm(window_end)],
            "rooms": [],
        }
        if not rooms:
            return CommandResult(True, messages.no_rooms(), data=data)

        bookings_by_room = {}
        for room in rooms:
            bookings = self.store.bookings_on(command.date, room.id)
            bookings_by_room[room.id] = bookings
            data["rooms"].append({
                "name": room.name,
                "display_name": room.display_name,
                "capacity": room.capacity,
                "available": self.store.check_availability(room.id, command.date, window_start, window_end),
                "free": [
                    [messages.hhmm(start), messages.hhmm(end)]
                    for start, end in free_windows(bookings, window_start, window_end)
                ],
                "bookings": [_booking_data(b) for b in bookings],
            })

        message = messages.status_board(command.date, start_hour, end_hour, rooms, bookings_by_room)
        return CommandResult(True, message, data=data)

    def _my(self, command: MyCommand, request: CommandRequest, now: datetime) -> CommandResult:
        bookings = self.store.bookings_for_requester(request.requester_id, command.filter, now.date())
        rooms = {room.id: room for room in self.store.list_rooms()}
        message = messages.my_bookings(request.requester_name, command.filter.value, bookings, rooms)
        return CommandResult(True, message, data={"bookings": [_booking_data(b) for b in bookings]})

    def _list_rooms(self, command: ListRoomsCommand, request: CommandRequest, now: datetime) -> CommandResult:
        rooms = self.store.list_rooms()
        data = {"rooms": [
            {"name": r.name, "display_name": r.display_name, "capacity": r.capacity, "location": r.location}
            for r in rooms
        ]}
        return CommandResult(True, messages.room_list(rooms), data=data)

    def _list_bookings(self, command: ListBookingsCommand, request: CommandRequest, now: datetime) -> CommandResult:
        bookings = self.store.bookings_on(command.date)
        rooms = {room.id: room for room in self.store.list_rooms()}
        message = messages.day_bookings(command.date, bookings, rooms)
        return CommandResult(True, message, data={"bookings": [_booking_data(b) for b in bookings]})

    # Commands that change bookings

    def _book(self, command: BookCommand, request: CommandRequest, now: datetime) -> CommandResult:
        end = evaluate_window(self.policy, command.date, command.start_time, command.duration, now)

        room = self.store.get_room_by_name(command.room_name)
        if not room:
            names = ", ".join(r.name for r in self.store.list_rooms()) or "none"
            raise NotFound(f"Room '{command.room_name}' not found.\nAvailable rooms: {names}")

        booking = self.store.create_booking(
            room,
            command.date,
            command.start_time,
            end,
            command.title,
            requested_by=request.requester_id,
            requested_by_name=request.requester_name,
        )

        event_id = self._sync(self.calendar.create_event, room, booking)
        if event_id:
            try:
                self.store.set_event_id(booking, event_id)
            except StoreFailure as exc:
                logger.warning(f"Could not store calendar event id for {booking.booking_id}: {exc.detail}")

        return CommandResult(True, messages.booking_created(booking, room), data=_booking_data(booking))

    def _cancel(self, command: CancelCommand, request: CommandRequest, now: datetime) -> CommandResult:
        booking = self._owned_booking(command.booking_id, request, "cancel")
        booking = self.store.cancel_booking(booking)
        room = self.store.get_room(booking.room_id)
        if room:
            self._sync(self.calendar.delete_event, room, booking)
        return CommandResult(True, messages.booking_cancelled(booking, room), data=_booking_data(booking))

    def _move(self, command: MoveCommand, request: CommandRequest, now: datetime) -> CommandResult:
        booking = self._owned_booking(command.booking_id, request, "move")
        require_active(booking)
        end = evaluate_window(self.policy, command.date, command.start_time, booking.duration_minutes, now)
        previous = (booking.date, booking.start_time, booking.end_time)

        booking = self.store.move_booking(booking, command.date, command.start_time, end)
        room = self.store.get_room(booking.room_id)
        if room:
            self._sync(self.calendar.update_event, room, booking)
        return CommandResult(True, messages.booking_moved(booking, room, previous), data=_booking_data(booking))

    def _extend(self, command: ExtendCommand, request: CommandRequest, now: datetime) -> CommandResult:
        booking = self._owned_booking(command.booking_id, request, "extend")
        require_active(booking)
        check_extension(self.policy, booking.duration_minutes, command.additional_minutes)
        new_end = check_same_day(
            booking.date, booking.start_time, booking.duration_minutes + command.additional_minutes
        )
        check_business_hours(self.policy, booking.start_time, new_end)

        booking = self.store.extend_booking(booking, command.additional_minutes)
        room = self.store.get_room(booking.room_id)
        if room:
            self._sync(self.calendar.update_event, room, booking)
        message = messages.booking_extended(booking, room, command.additional_minutes)
        return CommandResult(True, message, data=_booking_data(booking))

    def _owned_booking(self, booking_id: str, request: CommandRequest, action: str) -> Booking:
        booking = self.store.get_booking(booking_id)
        if not booking:
            raise NotFound(f"Booking ID '{booking_id}' not found.")
        if booking.requested_by != request.requester_id:
            raise Unauthorized(f"You can only {action} bookings you made yourself.")
        return booking

    def _sync(self, action, room, booking):
        try:
            return action(room, booking)
        except CalendarSyncError as exc:
            logger.warning(f"Calendar sync failed for {booking.booking_id}: {exc}")
            return None
        except Exception:
            # The local write is already committed; the reply must reflect it.
            logger.exception(f"Unexpected calendar error for {booking.booking_id}")
            return None
