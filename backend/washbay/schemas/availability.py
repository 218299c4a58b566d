"""
Pydantic schemas for availability API.
"""

import re
from datetime import date
from pydantic import BaseModel, Field, field_validator

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def check_time_str(v: str) -> str:
    if not TIME_RE.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


class SlotAvailabilityRead(BaseModel):
    """Capacity status of one start time."""
    date: date
    time: str  # "HH:MM"
    service_id: str
    total_capacity: int
    booked_count: int
    remaining_capacity: int
    is_peak: bool
    available: bool
    warning: str | None = None

    model_config = {"from_attributes": True}


class FallbackRead(BaseModel):
    """Next bookable slot after a saturated day."""
    date: date
    time: str
    remaining_capacity: int

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    date: date
    service_id: str
    slots: list[SlotAvailabilityRead]
    fallback: FallbackRead | None = None
    waitlist_suggested: bool = Field(
        False, description="True when nothing was found in the forward search window"
    )
    warning: str | None = None

    model_config = {"from_attributes": True}


class BatchAvailabilityRequest(BaseModel):
    dates: list[date] = Field(min_length=1, max_length=14)
    time_slots: list[str] = Field(min_length=1)
    service_id: str

    @field_validator("time_slots")
    @classmethod
    def validate_time_slots(cls, v: list[str]) -> list[str]:
        return [check_time_str(t) for t in v]


class BatchAvailabilityResponse(BaseModel):
    service_id: str
    availability: list[SlotAvailabilityRead]


class ValidateRequest(BaseModel):
    date: date
    time_slot: str = Field(description="Time in HH:MM format")
    service_id: str

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        return check_time_str(v)


class ServiceSuggestionRead(BaseModel):
    service_id: str
    name: str
    duration_minutes: int
    price: float

    model_config = {"from_attributes": True}


class ValidationResponse(BaseModel):
    """Either ok=true with end_time, or ok=false with a machine-readable category."""
    ok: bool
    end_time: str | None = None
    category: str | None = None
    reason: str | None = None
    suggestions: list[ServiceSuggestionRead] = []
    nearest_times: list[str] = []
    next_business_day: date | None = None

    @classmethod
    def from_result(cls, result) -> "ValidationResponse":
        if result.ok:
            return cls(ok=True, end_time=result.end_time)
        return cls(
            ok=False,
            category=result.category.value,
            reason=result.reason,
            suggestions=[ServiceSuggestionRead.model_validate(s) for s in result.suggestions],
            nearest_times=result.nearest_times,
            next_business_day=result.next_business_day,
        )
