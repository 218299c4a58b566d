# backend/washbay/services/slots/availability.py
"""
Availability view for a service on a day.

Takes into account:
- Candidate start times (business calendar + service duration + lead time)
- Current booking counts per slot (Capacity Scorer)

When the requested day has nothing bookable, scans forward day by day
(config.search_days) and returns the first bookable slot as a fallback.
Nothing is cached between calls: every call reflects the latest bookings.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .calendar import BusinessCalendar, get_business_calendar
from .capacity import CapacityScorer, SlotAvailability, SnapshotReader
from .config import (
    BookingConfig,
    CapacityConfig,
    ServiceDefinition,
    get_booking_config,
    get_capacity_config,
)
from .generator import candidate_slots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackSlot:
    date: date
    time: str
    remaining_capacity: int


@dataclass(frozen=True)
class AvailabilityView:
    date: date
    service_id: str
    slots: list[SlotAvailability] = field(default_factory=list)
    fallback: FallbackSlot | None = None
    waitlist_suggested: bool = False
    warning: str | None = None

    @property
    def has_availability(self) -> bool:
        return any(s.available for s in self.slots)


class AvailabilityService:
    """Composes the slot generator and the capacity scorer."""

    def __init__(
        self,
        reader: SnapshotReader,
        calendar: BusinessCalendar | None = None,
        config: BookingConfig | None = None,
        capacity_config: CapacityConfig | None = None,
    ):
        self.config = config or get_booking_config()
        self.calendar = calendar or get_business_calendar()
        self.capacity_config = capacity_config or get_capacity_config()
        self.scorer = CapacityScorer(reader, self.capacity_config)

    def day_slots(
        self,
        target_date: date,
        service: ServiceDefinition,
        now: datetime,
    ) -> list[SlotAvailability]:
        times = candidate_slots(target_date, service, now, self.calendar, self.config)
        return self.scorer.score_day(target_date, times, service.id)

    def availability_for(
        self,
        target_date: date,
        service: ServiceDefinition,
        now: datetime | None = None,
    ) -> AvailabilityView:
        now = now or datetime.now()

        slots = self.day_slots(target_date, service, now)
        warning = next((s.warning for s in slots if s.warning), None)

        if any(s.available for s in slots):
            return AvailabilityView(
                date=target_date,
                service_id=service.id,
                slots=slots,
                warning=warning,
            )

        fallback = self.find_fallback(target_date, service, now)
        if fallback is None:
            logger.info(
                "No availability for %s within %d days after %s",
                service.id,
                self.config.search_days,
                target_date.isoformat(),
            )

        return AvailabilityView(
            date=target_date,
            service_id=service.id,
            slots=slots,
            fallback=fallback,
            waitlist_suggested=fallback is None,
            warning=warning,
        )

    def find_fallback(
        self,
        after: date,
        service: ServiceDefinition,
        now: datetime,
    ) -> FallbackSlot | None:
        """First bookable slot on the following `search_days` days, chronological."""
        for offset in range(1, self.config.search_days + 1):
            day = after + timedelta(days=offset)
            for slot in self.day_slots(day, service, now):
                if slot.available:
                    return FallbackSlot(
                        date=day,
                        time=slot.time,
                        remaining_capacity=slot.remaining_capacity,
                    )
        return None

    def batch(
        self,
        dates: list[date],
        time_slots: list[str],
        service: ServiceDefinition,
        now: datetime | None = None,
    ) -> list[SlotAvailability]:
        """
        Score an explicit (dates × time_slots) grid.

        Cells that are not valid start times for the service on that day
        (closed, past, would run past closing) are left out.
        """
        now = now or datetime.now()
        wanted = set(time_slots)

        result: list[SlotAvailability] = []
        for day in sorted(set(dates)):
            times = [
                t for t in candidate_slots(day, service, now, self.calendar, self.config)
                if t in wanted
            ]
            result.extend(self.scorer.score_day(day, times, service.id))
        return result
