# backend/washbay/services/slots/config.py
"""
Booking and capacity configuration for the slots engine.

Everything here is static, process-wide configuration: loaded once,
never mutated at runtime.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# weekday name → (open, close)
DEFAULT_BUSINESS_HOURS: Mapping[str, tuple[str, str]] = MappingProxyType({
    "monday": ("08:00", "18:00"),
    "tuesday": ("08:00", "18:00"),
    "wednesday": ("08:00", "18:00"),
    "thursday": ("08:00", "18:00"),
    "friday": ("08:00", "18:00"),
    "saturday": ("08:00", "17:00"),
    "sunday": ("09:00", "14:00"),
})


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class ServiceDefinition:
    id: str
    name: str
    price: float
    duration_minutes: int


SERVICES: Mapping[str, ServiceDefinition] = MappingProxyType({
    "express": ServiceDefinition("express", "Express Exterior Wash", 80, 15),
    "premium": ServiceDefinition("premium", "Premium Wash & Wax", 150, 30),
    "deluxe": ServiceDefinition("deluxe", "Deluxe Interior & Exterior", 200, 60),
    "executive": ServiceDefinition("executive", "Executive Detail Package", 300, 120),
})


def get_service(service_id: str) -> ServiceDefinition | None:
    return SERVICES.get(service_id)


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for slot generation and day search.

    Attributes:
        slot_step_minutes: Grid step for candidate start times (15/30/60)
        lead_buffer_minutes: Same-day minimum notice before a start time
        horizon_days: How far ahead the API accepts dates
        search_days: Days scanned forward when a date is saturated
        late_sunday_cutoff: After this time on a Sunday, that Sunday is
            no longer offered as the next business day
        business_hours: weekday name → (open, close)
    """
    slot_step_minutes: int = 30
    lead_buffer_minutes: int = 30
    horizon_days: int = 60
    search_days: int = 7
    late_sunday_cutoff: str = "12:00"
    business_hours: Mapping[str, tuple[str, str]] = field(
        default_factory=lambda: DEFAULT_BUSINESS_HOURS
    )

    def __post_init__(self):
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.lead_buffer_minutes < 0:
            raise ValueError(f"lead_buffer_minutes must be >= 0, got {self.lead_buffer_minutes}")
        if self.search_days < 1:
            raise ValueError(f"search_days must be >= 1, got {self.search_days}")
        for day, (open_, close) in self.business_hours.items():
            if day not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday in business_hours: {day!r}")
            if time_str_to_minutes(open_) >= time_str_to_minutes(close):
                raise ValueError(f"{day}: open {open_} must be before close {close}")


@dataclass(frozen=True)
class CapacityConfig:
    """
    Concurrency limits per slot.

    Order of application is fixed: base → peak → per-service ceiling →
    mixed/same-service adjustment, clamped to [min_capacity, max_capacity].
    """
    normal_capacity: int = 5
    peak_capacity: int = 3
    service_capacity_limits: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({
            "express": 5,
            "premium": 4,
            "deluxe": 3,
            "executive": 2,
        })
    )
    peak_hours: frozenset[str] = frozenset({"12:00", "12:30", "13:00", "13:30"})
    mixed_service_penalty: int = 1
    same_service_bonus: int = 1
    min_capacity: int = 2
    max_capacity: int = 6

    def __post_init__(self):
        if not 0 < self.min_capacity <= self.max_capacity:
            raise ValueError(
                f"capacity bounds must satisfy 0 < min <= max, got {self.min_capacity}..{self.max_capacity}"
            )
        if self.peak_capacity < 1 or self.normal_capacity < 1:
            raise ValueError("normal_capacity and peak_capacity must be >= 1")
        if self.mixed_service_penalty < 0 or self.same_service_bonus < 0:
            raise ValueError("penalty and bonus must be >= 0")

    def is_peak(self, time_slot: str) -> bool:
        return time_slot in self.peak_hours


@lru_cache
def get_booking_config() -> BookingConfig:
    return BookingConfig()


@lru_cache
def get_capacity_config() -> CapacityConfig:
    return CapacityConfig()
