"""Reply texts sent back to the chat room."""
from datetime import date, time
from typing import Dict, Sequence, Tuple
from roombot.models.booking import Booking
from roombot.models.room import Room
from roombot.utils.scheduler import render_timetable


def hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def help_message() -> str:
    return """📋 **Meeting room bot**

🔍 **현황 / status**
`현황` - today's rooms
`현황 내일` - tomorrow
`현황 2026-01-07 09:00-18:00` - a date and time range

📅 **예약 / book**
`예약 대 오늘 14:00 60 "Weekly sync"`
→ room, date, start, minutes, title

❌ **취소 / cancel**
`취소 R-XXXX`

🔄 **변경 / move**
`변경 R-XXXX 내일 15:00`

⏰ **연장 / extend**
`연장 R-XXXX 30`

👤 **내예약 / my**
`내예약` - all, `내예약 오늘` - today, `내예약 이번주` - next 7 days

📝 **목록 / list**
`목록` - rooms, `목록 2026-01-07` - bookings on a date

❓ **도움말 / help**
`도움말` or `?`"""


def no_rooms() -> str:
    return "📋 No meeting rooms are registered.\nAsk an administrator to add one."


def status_board(day: date, start_hour: int, end_hour: int, rooms: Sequence[Room],
                 bookings_by_room: Dict[int, Sequence[Booking]]) -> str:
    rows = [(room.name, bookings_by_room[room.id]) for room in rooms]
    lines = [
        f"📅 **{day.isoformat()} room status**",
        f"⏰ {start_hour:02d}:00 ~ {end_hour:02d}:00 (30 minute slots)",
        "",
        "```",
        render_timetable(rows, start_hour, end_hour),
        "```",
        "",
        "**Legend**: █ booked · free",
        "**Rooms**: " + " | ".join(f"{r.name}({r.display_name}, {r.capacity} people)" for r in rooms),
    ]

    details = []
    for room in rooms:
        bookings = bookings_by_room[room.id]
        if not bookings:
            continue
        details.append(f"📍 {room.display_name}:")
        for booking in bookings:
            details.append(
                f"   • {hhmm(booking.start_time)}-{hhmm(booking.end_time)} "
                f"{booking.title} ({booking.requested_by_name})"
            )
    if details:
        lines += ["", "📋 **Booking details**"] + details
    else:
        lines += ["", "✅ All rooms are free."]
    return "\n".join(lines)


def booking_created(booking: Booking, room: Room) -> str:
    return f"""✅ **Booking confirmed**

📌 **Booking ID**: `{booking.booking_id}`
🏢 **Room**: {room.display_name}
📅 **When**: {booking.date.isoformat()} {hhmm(booking.start_time)}-{hhmm(booking.end_time)} ({booking.duration_minutes} min)
📝 **Title**: {booking.title}
👤 **Booked by**: {booking.requested_by_name}

❌ To cancel: `취소 {booking.booking_id}`"""


def booking_cancelled(booking: Booking, room: Room) -> str:
    return f"""✅ **Booking cancelled**

📌 **Booking ID**: `{booking.booking_id}`
🏢 **Room**: {room.display_name if room else 'unknown'}
📅 **When**: {booking.date.isoformat()} {hhmm(booking.start_time)}-{hhmm(booking.end_time)}
📝 **Title**: {booking.title}"""


def booking_moved(booking: Booking, room: Room, previous: Tuple[date, time, time]) -> str:
    old_day, old_start, old_end = previous
    return f"""✅ **Booking moved**

📌 **Booking ID**: `{booking.booking_id}`
🏢 **Room**: {room.display_name if room else 'unknown'}
📅 **Before**: {old_day.isoformat()} {hhmm(old_start)}-{hhmm(old_end)}
📅 **After**: {booking.date.isoformat()} {hhmm(booking.start_time)}-{hhmm(booking.end_time)}"""


def booking_extended(booking: Booking, room: Room, additional_minutes: int) -> str:
    return f"""✅ **Booking extended**

📌 **Booking ID**: `{booking.booking_id}`
🏢 **Room**: {room.display_name if room else 'unknown'}
📅 **When**: {booking.date.isoformat()} {hhmm(booking.start_time)}-{hhmm(booking.end_time)}
⏱️ **Extended**: +{additional_minutes} min (total {booking.duration_minutes} min)"""


FILTER_LABELS = {"today": "today", "week": "next 7 days", "all": "all"}


def my_bookings(requester_name: str, filter_value: str, bookings: Sequence[Booking],
                rooms: Dict[int, Room]) -> str:
    label = FILTER_LABELS[filter_value]
    if not bookings:
        return f"📋 No bookings found ({label})."

    lines = [f"📋 **{requester_name}'s bookings** ({label})", ""]
    for booking in bookings:
        room = rooms.get(booking.room_id)
        lines.append(
            f"• `{booking.booking_id}` {booking.date.isoformat()} "
            f"{hhmm(booking.start_time)}-{hhmm(booking.end_time)}"
        )
        lines.append(f"  📍 {room.display_name if room else 'unknown'} | {booking.title}")
        lines.append("")
    lines.append(f"Total: {len(bookings)}")
    return "\n".join(lines)


def room_list(rooms: Sequence[Room]) -> str:
    if not rooms:
        return "📋 No meeting rooms are registered."
    lines = ["🏢 **Meeting rooms**", ""]
    for room in rooms:
        lines.append(f"• **{room.name}** - {room.display_name}")
        lines.append(f"  📍 {room.location} | 👥 {room.capacity} people")
        lines.append("")
    return "\n".join(lines).rstrip()


def day_bookings(day: date, bookings: Sequence[Booking], rooms: Dict[int, Room]) -> str:
    if not bookings:
        return f"📋 No bookings on {day.isoformat()}."
    lines = [f"📋 **All bookings on {day.isoformat()}**", ""]
    for booking in bookings:
        room = rooms.get(booking.room_id)
        lines.append(f"• `{booking.booking_id}` {hhmm(booking.start_time)}-{hhmm(booking.end_time)}")
        lines.append(
            f"  📍 {room.display_name if room else 'unknown'} | {booking.title} | {booking.requested_by_name}"
        )
        lines.append("")
    lines.append(f"Total: {len(bookings)}")
    return "\n".join(lines)


GENERIC_FAILURE = "❌ Something went wrong while processing the command.\nPlease try again in a moment."
