# backend/washbay/routers/waitlist.py
# API.md: PATCH = 405, DELETE = soft-delete (status=cancelled)

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..schemas.waitlist import (
    WaitlistCreate,
    WaitlistEntryRead,
    WaitlistListResponse,
    WaitlistTicketRead,
)
from ..services.booking_store import CustomerInfo
from ..services.exceptions import AlreadyWaitlistedError, WaitlistEntryNotFoundError
from ..services.slots import SERVICES
from ..services.waitlist import WaitlistRegistrar
from .availability import resolve_service

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.post("/", response_model=WaitlistTicketRead, status_code=status.HTTP_201_CREATED)
def join_waitlist(
    data: WaitlistCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    resolve_service(data.service_id)
    if data.preferred_date < now.date():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    registrar = WaitlistRegistrar(db)
    try:
        ticket = registrar.register(
            CustomerInfo(name=data.customer_name, email=data.email, phone=data.phone),
            desired_date=data.preferred_date,
            service_id=data.service_id,
            alternative_times=data.alternative_times,
            desired_time=data.preferred_time,
            membership_tier=data.membership_tier,
        )
    except AlreadyWaitlistedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return WaitlistTicketRead.model_validate(ticket)


@router.get("/", response_model=WaitlistListResponse)
def list_waitlist(
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    entries = WaitlistRegistrar(db).list_active(email)
    waitlists = [
        WaitlistEntryRead(
            id=entry.id,
            customer_name=entry.customer_name,
            email=entry.email,
            preferred_date=date.fromisoformat(entry.preferred_date),
            preferred_time=entry.preferred_time,
            service_id=entry.service_id,
            service_name=SERVICES[entry.service_id].name if entry.service_id in SERVICES else "Unknown Service",
            alternative_times=entry.alternative_times,
            status=entry.status,
            priority=entry.priority,
            position=position,
            created_at=entry.created_at,
        )
        for entry, position in entries
    ]
    return WaitlistListResponse(waitlists=waitlists, count=len(waitlists))


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def leave_waitlist(
    id: int,
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    try:
        WaitlistRegistrar(db).cancel(id, email)
    except WaitlistEntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
