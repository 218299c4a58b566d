# backend/washbay/schemas/waitlist.py

import json
from datetime import date
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .availability import check_time_str


class WaitlistCreate(BaseModel):
    customer_name: str = Field(min_length=2)
    email: EmailStr
    phone: Optional[str] = None

    preferred_date: date
    preferred_time: Optional[str] = None
    service_id: str
    alternative_times: list[str] = []

    membership_tier: Optional[str] = None

    @field_validator("preferred_time")
    @classmethod
    def validate_preferred_time(cls, v: Optional[str]) -> Optional[str]:
        return check_time_str(v) if v is not None else v

    @field_validator("alternative_times")
    @classmethod
    def validate_alternative_times(cls, v: list[str]) -> list[str]:
        return [check_time_str(t) for t in v]


class WaitlistTicketRead(BaseModel):
    id: int
    position: int
    priority: int
    preferred_date: date
    preferred_time: Optional[str] = None
    service_id: str
    message: str = "We'll notify you as soon as a slot becomes available"

    model_config = {"from_attributes": True}


class WaitlistEntryRead(BaseModel):
    id: int
    customer_name: str
    email: str
    preferred_date: date
    preferred_time: Optional[str] = None
    service_id: str
    service_name: str
    alternative_times: list[str]
    status: str
    priority: int
    position: int
    created_at: str

    model_config = {"from_attributes": True}

    @field_validator("alternative_times", mode="before")
    @classmethod
    def parse_alternative_times(cls, v):
        if isinstance(v, str):
            return json.loads(v or "[]")
        return v


class WaitlistListResponse(BaseModel):
    waitlists: list[WaitlistEntryRead]
    count: int
