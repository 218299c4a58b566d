# backend/washbay/routers/calendar.py
"""
Calendar API endpoint.

GET /calendar/ - Effective opening hours per day (holidays, early closes)
"""

from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_now
from ..schemas.calendar import CalendarDay, CalendarResponse
from ..services.slots import get_booking_config, get_business_calendar
from ..services.slots.config import WEEKDAY_NAMES


router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/", response_model=CalendarResponse)
def get_calendar(
    start_date: date | None = None,
    days: int = Query(14, ge=1, le=60),
    now: datetime = Depends(get_now),
):
    config = get_booking_config()
    calendar = get_business_calendar()

    today = now.date()
    if start_date is None or start_date < today:
        start_date = today
    max_date = today + timedelta(days=config.horizon_days)
    if start_date > max_date:
        raise HTTPException(
            status_code=400,
            detail=f"Date cannot be more than {config.horizon_days} days ahead",
        )
    if start_date + timedelta(days=days - 1) > max_date:
        days = (max_date - start_date).days + 1

    result = []
    for day, hours in calendar.calendar_view(start_date, days):
        result.append(CalendarDay(
            date=day,
            weekday=WEEKDAY_NAMES[day.weekday()],
            is_closed=hours.is_closed,
            open=None if hours.is_closed else hours.open,
            close=None if hours.is_closed else hours.close,
            name=hours.name,
            message=None if hours.is_closed else hours.message,
        ))

    return CalendarResponse(
        start_date=start_date,
        end_date=start_date + timedelta(days=len(result) - 1),
        days=result,
        slot_step_minutes=config.slot_step_minutes,
    )
