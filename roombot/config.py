import os
from typing import List
from dotenv import load_dotenv
from roombot.core.policy import BookingPolicy


load_dotenv()

# Server
PORT = int(os.getenv("PORT", "3000"))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# JANDI outgoing webhook
JANDI_OUTGOING_TOKEN = os.getenv("JANDI_OUTGOING_TOKEN", "")

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/bookings.db")

# Admin API
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-room-booking-secret")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH", "")

# Google Calendar (service account)
GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
GOOGLE_CALENDAR_TIMEZONE = os.getenv("GOOGLE_CALENDAR_TIMEZONE", "Asia/Seoul")


def load_policy() -> BookingPolicy:
    """Build the booking policy from the environment."""
    return BookingPolicy(
        max_duration_minutes=int(os.getenv("MAX_BOOKING_DURATION_MINUTES", "240")),
        min_duration_minutes=int(os.getenv("MIN_BOOKING_DURATION_MINUTES", "15")),
        buffer_minutes=int(os.getenv("BUFFER_MINUTES_BETWEEN_MEETINGS", "10")),
        booking_hours_start=os.getenv("BOOKING_HOURS_START", "08:00"),
        booking_hours_end=os.getenv("BOOKING_HOURS_END", "22:00"),
        allowed_days_ahead=int(os.getenv("ALLOWED_DAYS_AHEAD", "30")),
        timezone=GOOGLE_CALENDAR_TIMEZONE,
    )


def google_calendar_enabled() -> bool:
    return bool(GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY)


def validate_config(policy: BookingPolicy) -> List[str]:
    """Return a list of configuration problems, empty when everything is usable."""
    errors = []
    if not JANDI_OUTGOING_TOKEN:
        errors.append("JANDI_OUTGOING_TOKEN is not set")
    if not ADMIN_PASSWORD_HASH:
        errors.append("ADMIN_PASSWORD_HASH is not set, admin login is disabled")
    if policy.min_duration_minutes < 5:
        errors.append("Minimum booking duration must be at least 5 minutes")
    if policy.max_duration_minutes < policy.min_duration_minutes:
        errors.append("Maximum booking duration must not be below the minimum")
    if policy.end_hour > 23:
        errors.append("BOOKING_HOURS_END must be 23:59 or earlier")
    if policy.start_hour >= policy.end_hour:
        errors.append("BOOKING_HOURS_START must be earlier than BOOKING_HOURS_END")
    return errors
