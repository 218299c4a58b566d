# backend/washbay/routers/availability.py
"""
Availability API endpoints.

GET  /availability/          - Per-slot capacity for a service on a day (+ fallback)
POST /availability/batch     - Capacity for an explicit dates × times grid
POST /availability/validate  - Submission-time check for (date, time, service)
"""

from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..schemas.availability import (
    AvailabilityResponse,
    BatchAvailabilityRequest,
    BatchAvailabilityResponse,
    SlotAvailabilityRead,
    ValidateRequest,
    ValidationResponse,
)
from ..services.booking_store import BookingStore
from ..services.slots import (
    AvailabilityService,
    BookingConfig,
    ServiceDefinition,
    get_booking_config,
    get_service,
    validate_booking_time,
)


router = APIRouter(prefix="/availability", tags=["availability"])


def resolve_service(service_id: str) -> ServiceDefinition:
    service = get_service(service_id)
    if not service:
        raise HTTPException(status_code=400, detail=f"Unknown service: {service_id}")
    return service


def check_date_window(target_date: date, now: datetime, config: BookingConfig) -> None:
    today = now.date()
    max_date = today + timedelta(days=config.horizon_days)

    if target_date < today:
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    if target_date > max_date:
        raise HTTPException(status_code=400, detail=f"Date cannot be more than {config.horizon_days} days ahead")


@router.get("/", response_model=AvailabilityResponse)
def get_availability(
    service_id: str,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Slots for a service on a day, with the next bookable slot when the day is full."""
    config = get_booking_config()
    service = resolve_service(service_id)
    check_date_window(target_date, now, config)

    availability = AvailabilityService(BookingStore(db), config=config)
    view = availability.availability_for(target_date, service, now)

    return AvailabilityResponse.model_validate(view)


@router.post("/batch", response_model=BatchAvailabilityResponse)
def get_batch_availability(
    data: BatchAvailabilityRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Capacity for several dates and times at once (bookable cells only)."""
    config = get_booking_config()
    service = resolve_service(data.service_id)
    for target_date in data.dates:
        check_date_window(target_date, now, config)

    availability = AvailabilityService(BookingStore(db), config=config)
    slots = availability.batch(data.dates, data.time_slots, service, now)

    return BatchAvailabilityResponse(
        service_id=service.id,
        availability=[SlotAvailabilityRead.model_validate(s) for s in slots],
    )


@router.post("/validate", response_model=ValidationResponse, status_code=status.HTTP_200_OK)
def validate_time(
    data: ValidateRequest,
    now: datetime = Depends(get_now),
):
    """Check that the service fits the day's hours at the requested time."""
    resolve_service(data.service_id)
    check_date_window(data.date, now, get_booking_config())

    result = validate_booking_time(data.date, data.time_slot, data.service_id, now)
    return ValidationResponse.from_result(result)
