import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError

from .config import settings
from .redis_client import redis_client
from .routers import availability, bookings, calendar, services, waitlist
from .services.slots import get_booking_config, get_business_calendar, get_capacity_config

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # static configuration is loaded once, at startup
    get_booking_config()
    get_capacity_config()
    calendar_ = get_business_calendar()
    logger.info(f"Calendar ready: {len(calendar_.overrides)} date overrides")
    yield


app = FastAPI(title="Washbay Booking API", lifespan=lifespan)

app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(waitlist.router)
app.include_router(calendar.router)
app.include_router(services.router)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
