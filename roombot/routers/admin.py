import logging
from datetime import date, datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from roombot.core.commands import MyFilter
from roombot.core.errors import Conflict, NotFound
from roombot.core.policy import BookingPolicy
from roombot.core.store import BookingStore
from roombot.dependencies import get_audit, get_policy, get_store
from roombot.schemas.booking import (
    AuditLogResponse,
    BookingDetailResponse,
    BookingResponse,
    CompletionResponse,
    StatsResponse,
)
from roombot.schemas.room import RoomCreate, RoomResponse, RoomUpdate
from roombot.services.audit import AuditLogger
from roombot.utils.auth import get_current_admin


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/rooms", response_model=List[RoomResponse])
def get_rooms(store: BookingStore = Depends(get_store)):
    """
    Retrieve every meeting room ordered by short name.
    """
    return store.list_rooms()


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(room: RoomCreate, store: BookingStore = Depends(get_store)):
    """
    Register a new meeting room.
    The short name is unique regardless of case, and so is the calendar email.
    """
    try:
        return store.create_room(**room.model_dump())
    except Conflict as exc:
        logger.error(f"Room registration rejected: {exc.message}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, store: BookingStore = Depends(get_store)):
    room = store.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.put("/rooms/{room_id}", response_model=RoomResponse)
def update_room(room_id: int, room_update: RoomUpdate, store: BookingStore = Depends(get_store)):
    """
    Update a meeting room's details. Rooms are never deleted.
    """
    try:
        return store.update_room(room_id, **room_update.model_dump(exclude_unset=True))
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)


@router.get("/bookings", response_model=List[BookingResponse])
def get_bookings(
    date: Optional[date] = None,
    room_id: Optional[int] = None,
    user_email: Optional[str] = None,
    store: BookingStore = Depends(get_store),
    policy: BookingPolicy = Depends(get_policy),
):
    """
    List active bookings for a date (optionally one room), or every active
    booking of one requester. Defaults to today's bookings.
    """
    if date:
        return store.bookings_on(date, room_id)
    today = policy.now().date()
    if user_email:
        return store.bookings_for_requester(user_email, MyFilter.ALL, today)
    return store.bookings_on(today)


@router.post("/bookings/complete", response_model=CompletionResponse)
def complete_bookings(store: BookingStore = Depends(get_store), policy: BookingPolicy = Depends(get_policy)):
    """
    Mark every active booking that has already ended as completed.
    """
    return {"completed": store.complete_finished(policy.now())}


@router.get("/bookings/{booking_id}", response_model=BookingDetailResponse)
def get_booking(booking_id: str, store: BookingStore = Depends(get_store)):
    booking = store.get_booking(booking_id.upper())
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.get("/logs", response_model=List[AuditLogResponse])
def get_logs(limit: int = Query(default=100, ge=1, le=1000), audit: AuditLogger = Depends(get_audit)):
    return audit.recent(limit)


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: BookingStore = Depends(get_store), policy: BookingPolicy = Depends(get_policy)):
    return {
        "total_rooms": len(store.list_rooms()),
        "today_bookings": len(store.bookings_on(policy.now().date())),
        "timestamp": datetime.now(timezone.utc),
    }
