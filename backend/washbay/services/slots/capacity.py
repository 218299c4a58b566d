# backend/washbay/services/slots/capacity.py
"""
Capacity scoring for a single (date, slot, service).

Rule order (fixed, the final number depends on it):
  1. base = normal_capacity
  2. peak slot → peak_capacity
  3. per-service ceiling, if lower
  4. existing bookings present:
       any other service  → max(min_capacity, cap - mixed_service_penalty)
       only this service  → min(max_capacity, service ceiling, cap + same_service_bonus)
  5. clamp to [min_capacity, max_capacity]
  remaining = max(0, cap - booked_count)

`capacity_for` / `score` are pure. `CapacityScorer` adds the storage read
and degrades to a conservative default when the read fails.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from .config import CapacityConfig, get_capacity_config

logger = logging.getLogger(__name__)

DEGRADED_WARNING = "Live booking counts unavailable; showing estimated availability"


@dataclass(frozen=True)
class SlotSnapshot:
    """Non-cancelled bookings currently in a slot."""
    count: int = 0
    service_ids: tuple[str, ...] = ()

    @classmethod
    def from_service_ids(cls, service_ids: Iterable[str]) -> "SlotSnapshot":
        ids = tuple(service_ids)
        return cls(count=len(ids), service_ids=ids)


@dataclass(frozen=True)
class SlotAvailability:
    date: date
    time: str
    service_id: str
    total_capacity: int
    booked_count: int
    remaining_capacity: int
    is_peak: bool
    available: bool
    warning: str | None = None


class SnapshotReader(Protocol):
    def count_active_bookings(self, target_date: date, time_slot: str) -> SlotSnapshot: ...

    def day_snapshots(self, target_date: date) -> dict[str, SlotSnapshot]: ...


def capacity_for(
    time_slot: str,
    service_id: str,
    existing_service_ids: Iterable[str] = (),
    config: CapacityConfig | None = None,
) -> int:
    """Max concurrent bookings allowed in `time_slot` for a `service_id` request."""
    config = config or get_capacity_config()

    cap = config.normal_capacity
    if config.is_peak(time_slot):
        cap = config.peak_capacity

    limit = config.service_capacity_limits.get(service_id)
    if limit is not None and limit < cap:
        cap = limit

    existing = set(existing_service_ids)
    if existing:
        if existing - {service_id}:
            cap = max(config.min_capacity, cap - config.mixed_service_penalty)
        else:
            # bonus never lifts a slot past the service's own ceiling
            ceiling = config.max_capacity if limit is None else min(config.max_capacity, limit)
            cap = min(ceiling, cap + config.same_service_bonus)

    return max(config.min_capacity, min(config.max_capacity, cap))


def score(
    target_date: date,
    time_slot: str,
    service_id: str,
    snapshot: SlotSnapshot,
    config: CapacityConfig | None = None,
) -> SlotAvailability:
    config = config or get_capacity_config()
    total = capacity_for(time_slot, service_id, snapshot.service_ids, config)
    remaining = max(0, total - snapshot.count)
    return SlotAvailability(
        date=target_date,
        time=time_slot,
        service_id=service_id,
        total_capacity=total,
        booked_count=snapshot.count,
        remaining_capacity=remaining,
        is_peak=config.is_peak(time_slot),
        available=remaining > 0,
    )


def degraded(
    target_date: date,
    time_slot: str,
    service_id: str,
    config: CapacityConfig | None = None,
) -> SlotAvailability:
    """Conservative default used when booking counts cannot be read."""
    config = config or get_capacity_config()
    return SlotAvailability(
        date=target_date,
        time=time_slot,
        service_id=service_id,
        total_capacity=config.normal_capacity,
        booked_count=0,
        remaining_capacity=config.normal_capacity,
        is_peak=config.is_peak(time_slot),
        available=config.normal_capacity > 0,
        warning=DEGRADED_WARNING,
    )


class CapacityScorer:
    """Reads slot snapshots from the booking store and applies `score`."""

    def __init__(self, reader: SnapshotReader, config: CapacityConfig | None = None):
        self.reader = reader
        self.config = config or get_capacity_config()

    def score_slot(self, target_date: date, time_slot: str, service_id: str) -> SlotAvailability:
        try:
            snapshot = self.reader.count_active_bookings(target_date, time_slot)
        except SQLAlchemyError:
            logger.warning(
                "Booking count read failed for %s %s, using default capacity",
                target_date.isoformat(),
                time_slot,
                exc_info=True,
            )
            return degraded(target_date, time_slot, service_id, self.config)

        return score(target_date, time_slot, service_id, snapshot, self.config)

    def score_day(
        self,
        target_date: date,
        time_slots: list[str],
        service_id: str,
    ) -> list[SlotAvailability]:
        """Score every slot of a day from one grouped read."""
        if not time_slots:
            return []

        try:
            snapshots = self.reader.day_snapshots(target_date)
        except SQLAlchemyError:
            logger.warning(
                "Day booking read failed for %s, using default capacity for %d slots",
                target_date.isoformat(),
                len(time_slots),
                exc_info=True,
            )
            return [degraded(target_date, t, service_id, self.config) for t in time_slots]

        empty = SlotSnapshot()
        return [
            score(target_date, t, service_id, snapshots.get(t, empty), self.config)
            for t in time_slots
        ]
