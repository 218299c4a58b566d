# backend/washbay/services/slots/__init__.py
"""
Slot availability and capacity engine.

calendar     → effective opening hours for a date
generator    → candidate start times for a service
capacity     → per-slot capacity and headroom
availability → day view + forward fallback search
validator    → submission-time gate
"""

from .config import (
    BookingConfig,
    CapacityConfig,
    ServiceDefinition,
    SERVICES,
    get_booking_config,
    get_capacity_config,
    get_service,
)
from .calendar import BusinessCalendar, ClosedDay, OpeningHours, get_business_calendar
from .generator import candidate_slots
from .capacity import CapacityScorer, SlotAvailability, SlotSnapshot, capacity_for
from .availability import AvailabilityService, AvailabilityView, FallbackSlot
from .validator import RejectionCategory, ValidationOk, ValidationRejected, validate_booking_time

__all__ = [
    "BookingConfig",
    "CapacityConfig",
    "ServiceDefinition",
    "SERVICES",
    "get_booking_config",
    "get_capacity_config",
    "get_service",
    "BusinessCalendar",
    "ClosedDay",
    "OpeningHours",
    "get_business_calendar",
    "candidate_slots",
    "CapacityScorer",
    "SlotAvailability",
    "SlotSnapshot",
    "capacity_for",
    "AvailabilityService",
    "AvailabilityView",
    "FallbackSlot",
    "RejectionCategory",
    "ValidationOk",
    "ValidationRejected",
    "validate_booking_time",
]
