"""Create the tables and seed the sample meeting rooms.

Run with ``roombot-init-db`` or ``python -m roombot.scripts.init_db``.
"""
import logging
from roombot.core.errors import Conflict
from roombot.core.store import BookingStore
from roombot.db import SessionLocal, init_database


logger = logging.getLogger(__name__)

SAMPLE_ROOMS = [
    {
        "name": "대",
        "display_name": "대 회의실",
        "email": "room-large@your-domain.com",
        "calendar_id": "room-large@your-domain.com",
        "capacity": 12,
        "location": "2F",
        "auto_accept": True,
    },
    {
        "name": "소",
        "display_name": "소 회의실",
        "email": "room-small@your-domain.com",
        "calendar_id": "room-small@your-domain.com",
        "capacity": 4,
        "location": "2F",
        "auto_accept": True,
    },
]


def seed_rooms(store: BookingStore, rooms=SAMPLE_ROOMS) -> int:
    """Insert the sample rooms unless rooms already exist. Returns how many were added."""
    existing = store.list_rooms()
    if existing:
        logger.info(f"Found {len(existing)} existing rooms, skipping sample data")
        for room in existing:
            logger.info(f"  - {room.name}: {room.display_name} ({room.location})")
        return 0

    added = 0
    for data in rooms:
        try:
            room = store.create_room(**data)
        except Conflict as exc:
            logger.warning(f"Skipping room {data['name']}: {exc.message}")
            continue
        logger.info(f"Added room {room.name}: {room.display_name}")
        added += 1
    return added


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    init_database()
    logger.info("Database tables created")
    db = SessionLocal()
    try:
        added = seed_rooms(BookingStore(db))
    finally:
        db.close()
    logger.info(f"Done, {added} rooms added")


if __name__ == "__main__":
    main()
