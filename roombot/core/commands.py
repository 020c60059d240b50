"""Typed intents produced by the command parser.

Each command kind has its own frozen dataclass; ``Command`` is the union the
parser returns and the handler dispatches on.
"""
import enum
from dataclasses import dataclass
from datetime import date, time
from typing import ClassVar, Optional, Tuple, Union


class MyFilter(str, enum.Enum):
    TODAY = "today"
    WEEK = "week"
    ALL = "all"


@dataclass(frozen=True)
class HelpCommand:
    kind: ClassVar[str] = "help"
    raw: str = ""


@dataclass(frozen=True)
class StatusCommand:
    kind: ClassVar[str] = "status"
    date: date
    time_range: Optional[Tuple[time, time]] = None
    raw: str = ""


@dataclass(frozen=True)
class BookCommand:
    kind: ClassVar[str] = "book"
    room_name: str
    date: date
    start_time: time
    duration: int
    title: str
    raw: str = ""


@dataclass(frozen=True)
class CancelCommand:
    kind: ClassVar[str] = "cancel"
    booking_id: str
    raw: str = ""


@dataclass(frozen=True)
class MoveCommand:
    kind: ClassVar[str] = "move"
    booking_id: str
    date: date
    start_time: time
    raw: str = ""


@dataclass(frozen=True)
class ExtendCommand:
    kind: ClassVar[str] = "extend"
    booking_id: str
    additional_minutes: int
    raw: str = ""


@dataclass(frozen=True)
class MyCommand:
    kind: ClassVar[str] = "my"
    filter: MyFilter = MyFilter.ALL
    raw: str = ""


@dataclass(frozen=True)
class ListRoomsCommand:
    kind: ClassVar[str] = "list"
    raw: str = ""


@dataclass(frozen=True)
class ListBookingsCommand:
    kind: ClassVar[str] = "list"
    date: date
    raw: str = ""


Command = Union[
    HelpCommand,
    StatusCommand,
    BookCommand,
    CancelCommand,
    MoveCommand,
    ExtendCommand,
    MyCommand,
    ListRoomsCommand,
    ListBookingsCommand,
]
