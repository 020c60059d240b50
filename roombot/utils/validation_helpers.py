import re
from datetime import date, time
from typing import Optional, Tuple


TIME_PATTERN = re.compile(r"([01]?[0-9]|2[0-3]):[0-5][0-9]")
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
DIGITS_PATTERN = re.compile(r"[0-9]+")


def parse_clock(value: str) -> Optional[time]:
    """Parse ``HH:mm`` (hour 0-23, minute 0-59) or return None."""
    if not TIME_PATTERN.fullmatch(value):
        return None
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def parse_iso_date(value: str) -> Optional[date]:
    """Parse an exact ``YYYY-MM-DD`` calendar date or return None."""
    if not DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_time_range(value: str) -> Optional[Tuple[time, time]]:
    """Parse ``HH:mm-HH:mm`` with the start strictly before the end."""
    start, sep, end = value.partition("-")
    if not sep:
        return None
    start_time, end_time = parse_clock(start), parse_clock(end)
    if start_time is None or end_time is None or start_time >= end_time:
        return None
    return start_time, end_time


def parse_positive_int(value: str) -> Optional[int]:
    if not DIGITS_PATTERN.fullmatch(value):
        return None
    number = int(value)
    return number if number > 0 else None
