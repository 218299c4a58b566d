"""
Pydantic schemas for calendar and service catalogue endpoints.
"""

from datetime import date
from pydantic import BaseModel


class CalendarDay(BaseModel):
    """Effective hours of one day."""
    date: date
    weekday: str
    is_closed: bool
    open: str | None = None
    close: str | None = None
    name: str | None = None  # holiday / special day name
    message: str | None = None


class CalendarResponse(BaseModel):
    start_date: date
    end_date: date
    days: list[CalendarDay]
    slot_step_minutes: int


class ServiceRead(BaseModel):
    id: str
    name: str
    price: float
    duration_minutes: int
    capacity_limit: int

    model_config = {"from_attributes": True}
