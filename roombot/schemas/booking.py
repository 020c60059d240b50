from pydantic import BaseModel, ConfigDict
from datetime import date, datetime, time
from typing import Optional
from roombot.models.booking import BookingStatus
from roombot.schemas.room import RoomResponse


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: str
    room_id: int
    event_id: str
    title: str
    date: date
    start_time: time
    end_time: time
    duration_minutes: int
    requested_by: str
    requested_by_name: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingDetailResponse(BookingResponse):
    room: Optional[RoomResponse] = None


class CompletionResponse(BaseModel):
    completed: int


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_email: str
    user_name: str
    command: str
    command_type: str
    parameters: str
    status: str
    response: str
    error_message: Optional[str] = None
    ip_address: str
    room_name: str
    elapsed_ms: int
    timestamp: datetime


class StatsResponse(BaseModel):
    total_rooms: int
    today_bookings: int
    timestamp: datetime
