"""Business rules bounding when and for how long a room may be booked.

All checks are pure: they take the policy and the values to judge and raise
:class:`PolicyViolation` with the message shown to the requester.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo
from roombot.core.errors import PolicyViolation


@dataclass(frozen=True)
class BookingPolicy:
    max_duration_minutes: int = 240
    min_duration_minutes: int = 15
    # Loaded and validated but not applied to conflict checks.
    buffer_minutes: int = 10
    booking_hours_start: str = "08:00"
    booking_hours_end: str = "22:00"
    allowed_days_ahead: int = 30
    timezone: str = "Asia/Seoul"

    @property
    def start_hour(self) -> int:
        return int(self.booking_hours_start.split(":")[0])

    @property
    def end_hour(self) -> int:
        return int(self.booking_hours_end.split(":")[0])

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tzinfo)

    def localize(self, day: date, clock: time) -> datetime:
        return datetime.combine(day, clock, tzinfo=self.tzinfo)


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def add_minutes(day: date, start: time, minutes: int) -> datetime:
    return datetime.combine(day, start) + timedelta(minutes=minutes)


def check_duration(policy: BookingPolicy, minutes: int):
    if minutes < policy.min_duration_minutes:
        raise PolicyViolation(
            f"The minimum booking length is {policy.min_duration_minutes} minutes."
        )
    if minutes > policy.max_duration_minutes:
        raise PolicyViolation(
            f"The maximum booking length is {policy.max_duration_minutes} minutes."
        )


def check_extension(policy: BookingPolicy, current_minutes: int, additional_minutes: int):
    total = current_minutes + additional_minutes
    if total > policy.max_duration_minutes:
        raise PolicyViolation(
            f"Extending by {additional_minutes} minutes would exceed the maximum "
            f"booking length of {policy.max_duration_minutes} minutes (total {total})."
        )


def check_not_past(policy: BookingPolicy, day: date, start: time, now: datetime):
    if policy.localize(day, start) < now.astimezone(policy.tzinfo):
        raise PolicyViolation("Bookings cannot start in the past.")


def check_same_day(day: date, start: time, minutes: int) -> time:
    """Return the end time, rejecting windows that run past midnight."""
    end = add_minutes(day, start, minutes)
    if end.date() != day:
        raise PolicyViolation("Bookings cannot run past midnight.")
    return end.time()


def check_business_hours(policy: BookingPolicy, start: time, end: time):
    # Hour granularity: minutes inside the boundary hours are not restricted.
    if start.hour < policy.start_hour or end.hour > policy.end_hour:
        raise PolicyViolation(
            f"Rooms can be booked between {policy.booking_hours_start} "
            f"and {policy.booking_hours_end}."
        )


def check_horizon(policy: BookingPolicy, day: date, today: date):
    if day > today + timedelta(days=policy.allowed_days_ahead):
        raise PolicyViolation(
            f"Bookings can be made at most {policy.allowed_days_ahead} days ahead."
        )


def evaluate_window(policy: BookingPolicy, day: date, start: time, minutes: int,
                    now: datetime) -> time:
    """Run every check for a new or moved booking and return its end time."""
    check_duration(policy, minutes)
    check_not_past(policy, day, start, now)
    check_horizon(policy, day, now.astimezone(policy.tzinfo).date())
    end = check_same_day(day, start, minutes)
    check_business_hours(policy, start, end)
    return end
