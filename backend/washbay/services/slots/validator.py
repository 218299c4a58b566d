# backend/washbay/services/slots/validator.py
"""
Submission-time check for a (date, time, service) request.

This is the correctness gate for booking times; the availability view is
only a hint for the UI. Rules are the same for every customer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from ..exceptions import UnknownServiceError
from .calendar import BusinessCalendar, get_business_calendar
from .config import (
    SERVICES,
    BookingConfig,
    ServiceDefinition,
    get_booking_config,
    get_service,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .generator import candidate_slots, earliest_same_day_start


class RejectionCategory(str, Enum):
    CLOSED_DAY = "closed_day"
    BEFORE_OPENING = "before_opening"
    OFF_GRID = "off_grid"
    TOO_SOON = "too_soon"
    ENDS_AFTER_CLOSING = "ends_after_closing"


@dataclass(frozen=True)
class ServiceSuggestion:
    service_id: str
    name: str
    duration_minutes: int
    price: float


@dataclass(frozen=True)
class ValidationOk:
    date: date
    time: str
    service_id: str
    end_time: str

    ok = True


@dataclass(frozen=True)
class ValidationRejected:
    category: RejectionCategory
    reason: str
    suggestions: list[ServiceSuggestion] = field(default_factory=list)
    nearest_times: list[str] = field(default_factory=list)
    next_business_day: date | None = None

    ok = False


def validate_booking_time(
    target_date: date,
    time_slot: str,
    service_id: str,
    now: datetime | None = None,
    calendar: BusinessCalendar | None = None,
    config: BookingConfig | None = None,
) -> ValidationOk | ValidationRejected:
    config = config or get_booking_config()
    calendar = calendar or get_business_calendar()
    now = now or datetime.now()

    service = get_service(service_id)
    if service is None:
        raise UnknownServiceError(service_id)

    hours = calendar.effective_hours(target_date)
    if hours.is_closed:
        label = f" ({hours.name})" if hours.name else ""
        return ValidationRejected(
            category=RejectionCategory.CLOSED_DAY,
            reason=f"business closed on {target_date.isoformat()}{label}",
            next_business_day=calendar.next_open_day(target_date, now),
        )

    start = time_str_to_minutes(time_slot)
    if start < hours.open_minutes:
        return ValidationRejected(
            category=RejectionCategory.BEFORE_OPENING,
            reason=f"opens at {hours.open}",
            next_business_day=calendar.next_open_day(target_date, now),
        )

    step = config.slot_step_minutes
    offset = (start - hours.open_minutes) % step
    if offset:
        below = start - offset
        return ValidationRejected(
            category=RejectionCategory.OFF_GRID,
            reason=f"start times are every {step} minutes from {hours.open}",
            nearest_times=bookable_times(
                (below, below + step), target_date, service, now, calendar, config
            ),
            next_business_day=calendar.next_open_day(target_date, now),
        )

    today = now.date()
    if target_date < today or (
        target_date == today
        and start < earliest_same_day_start(now, config, origin=hours.open_minutes)
    ):
        if target_date < today:
            reason = f"{target_date.isoformat()} has already passed"
        else:
            reason = f"must be booked at least {config.lead_buffer_minutes} minutes ahead"
        return ValidationRejected(
            category=RejectionCategory.TOO_SOON,
            reason=reason,
            nearest_times=candidate_slots(today, service, now, calendar, config)[:1],
            next_business_day=calendar.next_open_day(today, now),
        )

    end = start + service.duration_minutes
    if end > hours.close_minutes:
        overrun = end - hours.close_minutes
        return ValidationRejected(
            category=RejectionCategory.ENDS_AFTER_CLOSING,
            reason=f"would end {overrun} minutes after closing",
            suggestions=fitting_services(start, hours.close_minutes, exclude=service_id),
            next_business_day=calendar.next_open_day(target_date, now),
        )

    return ValidationOk(
        date=target_date,
        time=time_slot,
        service_id=service_id,
        end_time=minutes_to_time_str(end),
    )


def fitting_services(start: int, close: int, exclude: str | None = None) -> list[ServiceSuggestion]:
    """Services that finish by `close` when started at `start`, longest first."""
    fitting = [
        s for s in SERVICES.values()
        if s.id != exclude and start + s.duration_minutes <= close
    ]
    fitting.sort(key=lambda s: s.duration_minutes, reverse=True)
    return [
        ServiceSuggestion(
            service_id=s.id,
            name=s.name,
            duration_minutes=s.duration_minutes,
            price=s.price,
        )
        for s in fitting
    ]


def bookable_times(
    times: tuple[int, ...],
    target_date: date,
    service: ServiceDefinition,
    now: datetime,
    calendar: BusinessCalendar,
    config: BookingConfig,
) -> list[str]:
    """The subset of `times` (minutes) the generator would offer, as "HH:MM"."""
    offered = set(candidate_slots(target_date, service, now, calendar, config))
    return [minutes_to_time_str(t) for t in times if minutes_to_time_str(t) in offered]
