from functools import lru_cache
from fastapi import Depends
from sqlalchemy.orm import Session
from roombot import config
from roombot.core.handler import CommandHandler
from roombot.core.policy import BookingPolicy
from roombot.core.store import BookingStore
from roombot.db import get_db
from roombot.services.audit import AuditLogger
from roombot.services.calendar import CalendarSync, GoogleCalendarSync


@lru_cache
def get_policy() -> BookingPolicy:
    return config.load_policy()


@lru_cache
def get_calendar() -> CalendarSync:
    if config.google_calendar_enabled():
        return GoogleCalendarSync(
            config.GOOGLE_SERVICE_ACCOUNT_EMAIL,
            config.GOOGLE_PRIVATE_KEY,
            config.GOOGLE_CALENDAR_TIMEZONE,
        )
    return CalendarSync()


def get_store(db: Session = Depends(get_db)) -> BookingStore:
    return BookingStore(db)


def get_audit(db: Session = Depends(get_db)) -> AuditLogger:
    return AuditLogger(db)


def get_command_handler(
    store: BookingStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit),
    policy: BookingPolicy = Depends(get_policy),
    calendar: CalendarSync = Depends(get_calendar),
) -> CommandHandler:
    return CommandHandler(store, audit, policy, calendar)
