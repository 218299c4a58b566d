# backend/washbay/services/slots/generator.py
"""
Candidate start times for a service on a date.

A start time t is a candidate when:
✓ the day is not closed
✓ open <= t < close, on the slot grid
✓ t + service duration <= close
✓ same day only: t >= now + lead buffer, rounded up to the grid

Empty result is a normal outcome (closed day, all slots passed).
"""

from datetime import date, datetime
from math import ceil

from .calendar import BusinessCalendar, get_business_calendar
from .config import BookingConfig, ServiceDefinition, get_booking_config, minutes_to_time_str


def candidate_slots(
    target_date: date,
    service: ServiceDefinition,
    now: datetime | None = None,
    calendar: BusinessCalendar | None = None,
    config: BookingConfig | None = None,
) -> list[str]:
    """
    Ordered "HH:MM" start times at which `service` can be booked.

    Recomputed on every call.
    """
    config = config or get_booking_config()
    calendar = calendar or get_business_calendar()
    now = now or datetime.now()

    if target_date < now.date():
        return []

    hours = calendar.effective_hours(target_date)
    if hours.is_closed:
        return []

    step = config.slot_step_minutes
    start = hours.open_minutes
    close = hours.close_minutes

    if target_date == now.date():
        start = max(start, earliest_same_day_start(now, config, origin=start))

    slots: list[str] = []
    t = start
    while t < close:
        if t + service.duration_minutes <= close:
            slots.append(minutes_to_time_str(t))
        t += step

    return slots


def earliest_same_day_start(
    now: datetime,
    config: BookingConfig | None = None,
    origin: int = 0,
) -> int:
    """
    now + lead buffer, rounded up to the next grid boundary (minutes since midnight).

    The grid runs from `origin` (the day's opening time) in slot steps.
    Sub-second precision counts: 10:00:00.5 is already past 10:00.
    """
    config = config or get_booking_config()
    step_seconds = config.slot_step_minutes * 60
    seconds = (
        now.hour * 3600
        + now.minute * 60
        + now.second
        + now.microsecond / 1_000_000
        + config.lead_buffer_minutes * 60
        - origin * 60
    )
    return origin + ceil(seconds / step_seconds) * config.slot_step_minutes
