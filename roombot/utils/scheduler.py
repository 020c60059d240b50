from datetime import time
from typing import Iterable, List, Sequence, Tuple
from roombot.models.booking import Booking


SLOT_MINUTES = 30
BUSY = "█"
FREE = "·"


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _clock(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def free_windows(bookings: Iterable[Booking], window_start: time, window_end: time) -> List[Tuple[time, time]]:
    """
    Return the gaps between bookings inside ``[window_start, window_end)``.
    Bookings are expected in start-time order.
    """
    windows = []
    current = _minutes(window_start)
    end = _minutes(window_end)

    for booking in bookings:
        booking_start = _minutes(booking.start_time)
        booking_end = _minutes(booking.end_time)
        if booking_end <= current or booking_start >= end:
            continue
        if booking_start > current:
            windows.append((_clock(current), _clock(booking_start)))
        current = max(current, booking_end)

    if current < end:
        windows.append((_clock(current), _clock(end)))
    return windows


def slot_grid(bookings: Sequence[Booking], start_hour: int, end_hour: int) -> List[bool]:
    """Busy flag for every 30 minute slot between ``start_hour`` and ``end_hour``."""
    grid = []
    for slot_start in range(start_hour * 60, end_hour * 60, SLOT_MINUTES):
        slot_end = slot_start + SLOT_MINUTES
        grid.append(any(
            slot_start < _minutes(b.end_time) and slot_end > _minutes(b.start_time)
            for b in bookings
        ))
    return grid


def render_timetable(rows: Sequence[Tuple[str, Sequence[Booking]]], start_hour: int, end_hour: int) -> str:
    """
    Draw a compact text timetable, one line per room, two cells per hour.
    """
    header = "  ".join(f"{hour:02d}" for hour in range(start_hour, end_hour))
    width = len(header)
    lines = [f"     {header}", f"    ┌{'─' * width}┐"]

    for index, (label, bookings) in enumerate(rows):
        grid = slot_grid(bookings, start_hour, end_hour)
        cells = []
        for hour_index in range(0, len(grid), 2):
            pair = grid[hour_index:hour_index + 2]
            cells.append("".join(BUSY if busy else FREE for busy in pair))
        lines.append(f" {label.ljust(2)} │{' '.join(cells)}│")
        if index < len(rows) - 1:
            lines.append(f"    ├{'─' * width}┤")

    lines.append(f"    └{'─' * width}┘")
    return "\n".join(lines)
