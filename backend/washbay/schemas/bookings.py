# backend/washbay/schemas/bookings.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .availability import check_time_str


class BookingCreate(BaseModel):
    date: date
    time_slot: str = Field(description="Time in HH:MM format")
    service_id: str

    customer_name: str = Field(min_length=2)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        return check_time_str(v)


class BookingCreated(BaseModel):
    booking_id: int
    status: str = "confirmed"


class BookingRead(BaseModel):
    id: int

    booking_date: str
    time_slot: str
    service_id: str
    status: str

    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None

    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    reason: Optional[str] = None
