"""Authoritative record of rooms and bookings.

Check-then-write sequences (create, move, extend) run while holding the
room's lock from a process-wide :class:`RoomLocks` registry, so two requests
can never both pass the availability check for overlapping windows.
"""
import logging
import random
import string
import threading
import time as _time
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
from sqlalchemy import func, or_, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from roombot.core.commands import MyFilter
from roombot.core.errors import Conflict, InvalidStatus, NotFound, PolicyViolation, StoreFailure
from roombot.core.policy import add_minutes, minutes_between
from roombot.models.booking import Booking, BookingStatus
from roombot.models.room import Room


logger = logging.getLogger(__name__)

BOOKING_ID_ATTEMPTS = 5
_BASE36 = string.digits + string.ascii_uppercase


class RoomLocks:
    """Registry handing out one lock per room id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def for_room(self, room_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(room_id, threading.Lock())


ROOM_LOCKS = RoomLocks()


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_booking_id() -> str:
    """Short, human-typeable id: ``R-`` + 5 time-derived chars + 3 random chars."""
    timestamp = _base36(int(_time.time() * 1000))[-5:]
    suffix = "".join(random.choices(_BASE36, k=3))
    return f"R-{timestamp}{suffix}"


class BookingStore:
    def __init__(self, db: Session, locks: RoomLocks = ROOM_LOCKS, id_factory=generate_booking_id):
        self.db = db
        self.locks = locks
        self.id_factory = id_factory

    # Rooms

    def list_rooms(self) -> List[Room]:
        return self.db.query(Room).order_by(Room.name).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_by_name(self, name: str) -> Optional[Room]:
        return self.db.query(Room).filter(func.lower(Room.name) == name.lower()).first()

    def create_room(self, name: str, display_name: str, email: str, calendar_id: str,
                    capacity: int = 0, location: str = "", auto_accept: bool = True) -> Room:
        existing = self.db.query(Room).filter(
            or_(func.lower(Room.name) == name.lower(), Room.email == email)
        ).first()
        if existing:
            raise Conflict(f"A room named '{name}' or with email '{email}' already exists.")

        room = Room(
            name=name,
            display_name=display_name,
            email=email,
            calendar_id=calendar_id,
            capacity=capacity,
            location=location,
            auto_accept=auto_accept,
        )
        self.db.add(room)
        self._commit(conflict_message=f"A room named '{name}' or with email '{email}' already exists.")
        self.db.refresh(room)
        logger.info(f"Created room: {room.name} ({room.display_name})")
        return room

    def update_room(self, room_id: int, **changes) -> Room:
        room = self.get_room(room_id)
        if not room:
            raise NotFound(f"Room {room_id} not found.")
        for key, value in changes.items():
            setattr(room, key, value)
        self._commit(conflict_message=f"Another room already uses email '{changes.get('email')}'.")
        self.db.refresh(room)
        logger.info(f"Updated room: {room.name}")
        return room

    # Bookings

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.booking_id == booking_id).first()

    def check_availability(self, room_id: int, day: date, start: time, end: time,
                           exclude_booking_id: Optional[str] = None) -> bool:
        """True when no other active booking of the room overlaps ``[start, end)``.

        Touching intervals do not overlap: an existing booking conflicts only if
        it starts before ``end`` and ends after ``start``.
        """
        query = self.db.query(Booking.id).filter(
            Booking.room_id == room_id,
            Booking.date == day,
            Booking.status == BookingStatus.ACTIVE,
            and_(Booking.start_time < end, Booking.end_time > start),
        )
        if exclude_booking_id:
            query = query.filter(Booking.booking_id != exclude_booking_id)
        return query.first() is None

    def create_booking(self, room: Room, day: date, start: time, end: time, title: str,
                       requested_by: str, requested_by_name: str = "") -> Booking:
        _check_interval(start, end)
        with self.locks.for_room(room.id):
            if not self.check_availability(room.id, day, start, end):
                raise Conflict(
                    f"Room '{room.display_name}' is already booked at that time.\n"
                    f"Time: {day.isoformat()} {_fmt(start)}-{_fmt(end)}"
                )
            booking_id = self._new_booking_id()
            booking = Booking(
                booking_id=booking_id,
                room_id=room.id,
                calendar_id=room.calendar_id or "",
                event_id=booking_id,
                title=title,
                date=day,
                start_time=start,
                end_time=end,
                duration_minutes=minutes_between(start, end),
                requested_by=requested_by,
                requested_by_name=requested_by_name,
                status=BookingStatus.ACTIVE,
            )
            self.db.add(booking)
            self._commit()
            self.db.refresh(booking)
        logger.info(f"Created booking {booking.booking_id} for room {room.name} on {day} {_fmt(start)}-{_fmt(end)}")
        return booking

    def move_booking(self, booking: Booking, day: date, start: time, end: time) -> Booking:
        _check_interval(start, end)
        with self.locks.for_room(booking.room_id):
            self.db.refresh(booking)
            require_active(booking)
            if not self.check_availability(booking.room_id, day, start, end, booking.booking_id):
                raise Conflict("The room is already booked at the new time.")
            booking.date = day
            booking.start_time = start
            booking.end_time = end
            booking.duration_minutes = minutes_between(start, end)
            self._commit()
            self.db.refresh(booking)
        logger.info(f"Moved booking {booking.booking_id} to {day} {_fmt(start)}-{_fmt(end)}")
        return booking

    def extend_booking(self, booking: Booking, additional_minutes: int) -> Booking:
        with self.locks.for_room(booking.room_id):
            self.db.refresh(booking)
            require_active(booking)
            new_end = add_minutes(booking.date, booking.end_time, additional_minutes)
            if new_end.date() != booking.date:
                raise PolicyViolation("Bookings cannot run past midnight.")
            new_end = new_end.time()
            # Only the added window needs checking; the booking already owns the rest.
            if not self.check_availability(
                booking.room_id, booking.date, booking.end_time, new_end, booking.booking_id
            ):
                raise Conflict("Another booking already holds the extended time.")
            booking.end_time = new_end
            booking.duration_minutes = minutes_between(booking.start_time, new_end)
            self._commit()
            self.db.refresh(booking)
        logger.info(f"Extended booking {booking.booking_id} to {_fmt(booking.end_time)}")
        return booking

    def cancel_booking(self, booking: Booking) -> Booking:
        return self.set_status(booking, BookingStatus.CANCELLED)

    def set_status(self, booking: Booking, status: BookingStatus) -> Booking:
        with self.locks.for_room(booking.room_id):
            self.db.refresh(booking)
            if not booking.status.can_transition_to(status):
                raise InvalidStatus(f"Booking {booking.booking_id} is already {booking.status.value}.")
            booking.status = status
            self._commit()
            self.db.refresh(booking)
        logger.info(f"Booking {booking.booking_id} is now {status.value}")
        return booking

    def set_event_id(self, booking: Booking, event_id: str) -> Booking:
        booking.event_id = event_id
        self._commit()
        self.db.refresh(booking)
        return booking

    def complete_finished(self, now: datetime) -> int:
        """Mark active bookings that ended before ``now`` (local wall clock) as completed."""
        finished = self.db.query(Booking).filter(
            Booking.status == BookingStatus.ACTIVE,
            or_(
                Booking.date < now.date(),
                and_(Booking.date == now.date(), Booking.end_time <= now.time()),
            ),
        ).all()
        for booking in finished:
            booking.status = BookingStatus.COMPLETED
        self._commit()
        logger.info(f"Marked {len(finished)} bookings as completed")
        return len(finished)

    def bookings_on(self, day: date, room_id: Optional[int] = None) -> List[Booking]:
        query = self.db.query(Booking).filter(
            Booking.date == day,
            Booking.status == BookingStatus.ACTIVE,
        )
        if room_id is not None:
            query = query.filter(Booking.room_id == room_id)
        return query.order_by(Booking.start_time).all()

    def bookings_for_requester(self, requested_by: str, filter: MyFilter, today: date) -> List[Booking]:
        query = self.db.query(Booking).filter(
            Booking.requested_by == requested_by,
            Booking.status == BookingStatus.ACTIVE,
        )
        if filter == MyFilter.TODAY:
            query = query.filter(Booking.date == today)
        elif filter == MyFilter.WEEK:
            query = query.filter(Booking.date >= today, Booking.date < today + timedelta(days=7))
        return query.order_by(Booking.date, Booking.start_time).all()

    def rollback(self):
        self.db.rollback()

    def _new_booking_id(self) -> str:
        for _ in range(BOOKING_ID_ATTEMPTS):
            candidate = self.id_factory()
            if self.get_booking(candidate) is None:
                return candidate
            logger.warning(f"Booking id collision on {candidate}, retrying")
        raise StoreFailure("Could not allocate a unique booking id")

    def _commit(self, conflict_message: str = None):
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if conflict_message:
                raise Conflict(conflict_message) from exc
            logger.error(f"Integrity error while saving: {exc}")
            raise StoreFailure("Failed to save changes", detail=str(exc)) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Database error while saving: {exc}")
            raise StoreFailure("Failed to save changes", detail=str(exc)) from exc


def _fmt(value: time) -> str:
    return value.strftime("%H:%M")


def _check_interval(start: time, end: time):
    if end <= start:
        raise PolicyViolation("A booking must end after it starts.")


def require_active(booking: Booking):
    if booking.status != BookingStatus.ACTIVE:
        raise InvalidStatus(f"Booking {booking.booking_id} is already {booking.status.value}.")
