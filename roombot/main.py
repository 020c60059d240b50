import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uvicorn
from fastapi import FastAPI
from roombot import config
from roombot.db import init_database
from roombot.dependencies import get_policy
from roombot.routers import admin, auth, webhook


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for checking configuration and initing database"
    for problem in config.validate_config(get_policy()):
        logger.warning(f"Configuration: {problem}")
    if not config.google_calendar_enabled():
        logger.info("Google Calendar is not configured, bookings are stored locally only")
    init_database()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="JANDI room booking bot",
    description="Book shared meeting rooms with chat commands.",
    version="1.0.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


@app.get("/")
def root():
    return {
        "name": "JANDI Room Booking Bot",
        "version": app.version,
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(webhook.router)
app.include_router(auth.router)
app.include_router(admin.router)


def run():
    uvicorn.run("roombot.main:app", host="0.0.0.0", port=config.PORT)
