# backend/washbay/routers/bookings.py
# API.md: PATCH = 405, DELETE = 405 (cancel via POST /{id}/cancel)

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..schemas.availability import ValidationResponse
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingCreated,
    BookingRead,
)
from ..services.booking_store import BookingStore, CustomerInfo
from ..services.events import emit_event
from ..services.exceptions import (
    BookingNotFoundError,
    BookingRejectedError,
    BookingStateError,
    CapacityExceededError,
    SlotContentionError,
)
from ..services.slots import get_booking_config
from .availability import check_date_window, resolve_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Commit a booking.

    Errors:
        422: time not bookable (structured rejection with suggestions)
        409: slot just filled (re-query availability) or slot busy (retry)
    """
    service = resolve_service(data.service_id)
    check_date_window(data.date, now, get_booking_config())

    store = BookingStore(db)
    customer = CustomerInfo(
        name=data.customer_name,
        email=data.customer_email,
        phone=data.customer_phone,
        notes=data.notes,
    )

    try:
        booking = store.commit_booking(data.date, data.time_slot, service.id, customer, now)
    except BookingRejectedError as e:
        raise HTTPException(
            status_code=422,
            detail=ValidationResponse.from_result(e.rejection).model_dump(mode="json"),
        )
    except CapacityExceededError as e:
        logger.info(f"Slot just filled: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "slot_just_filled",
                "message": "This slot just filled. Please choose another time.",
                "date": data.date.isoformat(),
                "time_slot": data.time_slot,
                "service_id": service.id,
            },
        )
    except SlotContentionError as e:
        logger.warning(f"Slot contention: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "slot_busy",
                "message": "Many customers are booking this slot right now. Please try again.",
                "date": data.date.isoformat(),
                "time_slot": data.time_slot,
                "service_id": service.id,
            },
        )

    emit_event("booking_created", {
        "booking_id": booking.id,
        "date": booking.booking_date,
        "time_slot": booking.time_slot,
        "service_id": booking.service_id,
        "email": booking.customer_email,
    })

    return BookingCreated(booking_id=booking.id, status=booking.status)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    try:
        return BookingStore(db).get_booking(id)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
):
    """Cancel a booking; its capacity is released immediately."""
    try:
        booking = BookingStore(db).cancel_booking(id, data.reason if data else None)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except BookingStateError as e:
        raise HTTPException(status_code=400, detail=str(e))

    emit_event("booking_cancelled", {
        "booking_id": booking.id,
        "date": booking.booking_date,
        "time_slot": booking.time_slot,
    })

    return booking


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
