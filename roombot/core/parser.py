"""Chat command grammar.

Supported commands (Korean words and their English equivalents)::

    현황 [오늘|내일|YYYY-MM-DD] [HH:mm-HH:mm]
    예약 <room> <date> <HH:mm> <minutes> "<title>"
    취소 <booking id>
    변경 <booking id> <date> <HH:mm>
    연장 <booking id> <minutes>
    내예약 [오늘|이번주|전체]
    목록 [회의실|date]
    도움말

``parse_command`` returns one of the typed intents from
:mod:`roombot.core.commands` or raises :class:`ParseError` with the message to
show the requester.
"""
from datetime import date, timedelta
from typing import List
from roombot.core.commands import (
    BookCommand,
    CancelCommand,
    Command,
    ExtendCommand,
    HelpCommand,
    ListBookingsCommand,
    ListRoomsCommand,
    MoveCommand,
    MyCommand,
    MyFilter,
    StatusCommand,
)
from roombot.core.errors import ParseError, PolicyViolation
from roombot.core.policy import BookingPolicy, check_duration
from roombot.utils.validation_helpers import (
    parse_clock,
    parse_iso_date,
    parse_positive_int,
    parse_time_range,
)


COMMAND_WORDS = {
    "현황": "status",
    "조회": "status",
    "예약": "book",
    "취소": "cancel",
    "변경": "move",
    "연장": "extend",
    "내예약": "my",
    "내꺼": "my",
    "목록": "list",
    "도움말": "help",
    "도움": "help",
    "?": "help",
    "status": "status",
    "book": "book",
    "cancel": "cancel",
    "move": "move",
    "extend": "extend",
    "my": "my",
    "list": "list",
    "help": "help",
}

TODAY_WORDS = ("today", "오늘")
TOMORROW_WORDS = ("tomorrow", "내일")
ROOMS_WORDS = ("rooms", "회의실")
MY_FILTER_WORDS = {
    "today": MyFilter.TODAY,
    "오늘": MyFilter.TODAY,
    "week": MyFilter.WEEK,
    "이번주": MyFilter.WEEK,
    "all": MyFilter.ALL,
    "전체": MyFilter.ALL,
}

DEFAULT_TITLE = "Meeting"
USAGE = "Commands: 현황(status) | 예약(book) | 취소(cancel) | 변경(move) | 연장(extend) | 내예약(my) | 목록(list) | 도움말(help)"


def split_command_parts(text: str) -> List[str]:
    """Split on whitespace, keeping quoted runs together without the quotes."""
    parts = []
    current = []
    quote = None
    for char in text:
        if quote is None and char in "\"'":
            quote = char
        elif char == quote:
            quote = None
        elif quote is None and char.isspace():
            if current:
                parts.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        parts.append("".join(current))
    return parts


def resolve_date(token: str, today: date):
    """Resolve today/tomorrow keywords or an exact YYYY-MM-DD date, else None."""
    lowered = token.lower()
    if lowered in TODAY_WORDS:
        return today
    if lowered in TOMORROW_WORDS:
        return today + timedelta(days=1)
    return parse_iso_date(token)


def _require_date(token: str, today: date, example: str) -> date:
    resolved = resolve_date(token, today)
    if resolved is None:
        raise ParseError(f'Invalid date: "{token}"\nExample: {example}')
    return resolved


def _require_clock(token: str, example: str):
    resolved = parse_clock(token)
    if resolved is None:
        raise ParseError(f'Invalid time: "{token}"\nExample: {example}')
    return resolved


def command_kind(text: str) -> str:
    """Best-effort command kind for text that may not parse."""
    parts = split_command_parts(text.strip())
    if not parts:
        return "help"
    return COMMAND_WORDS.get(parts[0].lower(), "unknown")


def parse_command(text: str, policy: BookingPolicy, today: date) -> Command:
    raw = text.strip()
    if not raw:
        return HelpCommand(raw="")

    parts = split_command_parts(raw)
    if not parts:
        return HelpCommand(raw=raw)
    word = parts[0].lower()
    kind = COMMAND_WORDS.get(word)
    args = parts[1:]

    if kind is None:
        raise ParseError(f'Unknown command: "{word}"\n\n{USAGE}')
    if kind == "help":
        return HelpCommand(raw=raw)
    if kind == "status":
        return _parse_status(args, raw, today)
    if kind == "book":
        return _parse_book(args, raw, today, policy)
    if kind == "cancel":
        return _parse_cancel(args, raw)
    if kind == "move":
        return _parse_move(args, raw, today)
    if kind == "extend":
        return _parse_extend(args, raw)
    if kind == "my":
        return _parse_my(args, raw)
    return _parse_list(args, raw, today)


def _parse_time_range_token(token: str):
    time_range = parse_time_range(token)
    if time_range is None:
        raise ParseError(f'Invalid time range: "{token}"\nExample: 현황 오늘 09:00-18:00')
    return time_range


def _parse_status(args, raw, today):
    if not args:
        return StatusCommand(date=today, raw=raw)

    first = args[0]
    if ":" in first and "-" in first:
        return StatusCommand(date=today, time_range=_parse_time_range_token(first), raw=raw)

    day = _require_date(first, today, "현황 오늘 / 현황 2026-01-07")
    time_range = _parse_time_range_token(args[1]) if len(args) >= 2 else None
    return StatusCommand(date=day, time_range=time_range, raw=raw)


def _parse_book(args, raw, today, policy):
    if len(args) < 4:
        raise ParseError(
            "Invalid booking format.\n\n"
            'Usage: 예약 <room> <date> <HH:mm> <minutes> "<title>"\n'
            'Example: 예약 대 오늘 14:00 60 "Weekly sync"'
        )
    room_name, date_token, start_token, duration_token = args[:4]
    day = _require_date(date_token, today, "오늘, 내일, 2026-01-07")
    start = _require_clock(start_token, "14:00")

    duration = parse_positive_int(duration_token)
    if duration is None:
        raise ParseError(
            f'Invalid duration: "{duration_token}"\nEnter the length in minutes, e.g. 60'
        )
    try:
        check_duration(policy, duration)
    except PolicyViolation as exc:
        raise ParseError(exc.message) from exc

    title = " ".join(args[4:]).strip() or DEFAULT_TITLE
    return BookCommand(
        room_name=room_name,
        date=day,
        start_time=start,
        duration=duration,
        title=title,
        raw=raw,
    )


def _parse_cancel(args, raw):
    if not args:
        raise ParseError(
            "Enter the booking ID to cancel.\n\nUsage: 취소 <booking id>\nExample: 취소 R-12345"
        )
    return CancelCommand(booking_id=args[0].upper(), raw=raw)


def _parse_move(args, raw, today):
    if len(args) < 3:
        raise ParseError(
            "Invalid move format.\n\nUsage: 변경 <booking id> <date> <HH:mm>\n"
            "Example: 변경 R-12345 내일 15:00"
        )
    booking_id, date_token, start_token = args[:3]
    day = _require_date(date_token, today, "오늘, 내일, 2026-01-08")
    start = _require_clock(start_token, "15:00")
    return MoveCommand(booking_id=booking_id.upper(), date=day, start_time=start, raw=raw)


def _parse_extend(args, raw):
    if len(args) < 2:
        raise ParseError(
            "Invalid extend format.\n\nUsage: 연장 <booking id> <minutes>\nExample: 연장 R-12345 30"
        )
    booking_id, minutes_token = args[:2]
    minutes = parse_positive_int(minutes_token)
    if minutes is None:
        raise ParseError(f'Invalid duration: "{minutes_token}"\nEnter the length in minutes.')
    return ExtendCommand(booking_id=booking_id.upper(), additional_minutes=minutes, raw=raw)


def _parse_my(args, raw):
    if not args:
        return MyCommand(raw=raw)
    token = args[0].lower()
    if token not in MY_FILTER_WORDS:
        raise ParseError(f'Invalid filter: "{args[0]}"\nExample: 내예약 오늘 / 내예약 이번주 / 내예약 전체')
    return MyCommand(filter=MY_FILTER_WORDS[token], raw=raw)


def _parse_list(args, raw, today):
    if not args or args[0].lower() in ROOMS_WORDS:
        return ListRoomsCommand(raw=raw)
    day = _require_date(args[0], today, "목록 오늘 / 목록 2026-01-07")
    return ListBookingsCommand(date=day, raw=raw)
