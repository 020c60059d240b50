import enum
from datetime import datetime
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship
from roombot.db import Base


class BookingStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return self is BookingStatus.ACTIVE and target in (
            BookingStatus.CANCELLED,
            BookingStatus.COMPLETED,
        )


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String, unique=True, index=True, nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), index=True, nullable=False)
    calendar_id = Column(String, nullable=False, default="")
    event_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    requested_by = Column(String, index=True, nullable=False)
    requested_by_name = Column(String, nullable=False, default="")
    status = Column(
        Enum(BookingStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        index=True,
        nullable=False,
        default=BookingStatus.ACTIVE,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="bookings")
