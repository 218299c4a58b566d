# backend/washbay/services/waitlist.py
"""
Waitlist registrar.

Records a standby request when no slot is available and hands it to the
notification consumer via a `waitlist_joined` event. Matching waitlist
entries against freed capacity is not done here.

Priority (higher is served first):
  1 base
  +3 premium members
  +2 five or more non-cancelled bookings
  +1 ten or more non-cancelled bookings

Position among active entries for the same (date, time, service):
  1 + entries with higher priority, or same priority and an earlier id.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.generated import Waitlist
from .booking_store import BookingStore, CustomerInfo
from .events import emit_event
from .exceptions import AlreadyWaitlistedError, UnknownServiceError, WaitlistEntryNotFoundError
from .slots.config import get_service

logger = logging.getLogger(__name__)

PREMIUM_TIER = "premium"
DUPLICATE_MESSAGE = "You are already on the waitlist for this time slot"


@dataclass(frozen=True)
class WaitlistTicket:
    id: int
    position: int
    priority: int
    preferred_date: date
    preferred_time: str | None
    service_id: str


class WaitlistRegistrar:

    def __init__(self, db: Session, store: BookingStore | None = None):
        self.db = db
        self.store = store or BookingStore(db)

    def register(
        self,
        contact: CustomerInfo,
        desired_date: date,
        service_id: str,
        alternative_times: list[str] | None = None,
        desired_time: str | None = None,
        membership_tier: str | None = None,
    ) -> WaitlistTicket:
        service = get_service(service_id)
        if service is None:
            raise UnknownServiceError(service_id)

        date_str = desired_date.isoformat()

        if self.find_active(contact.email, date_str, desired_time, service_id):
            raise AlreadyWaitlistedError(DUPLICATE_MESSAGE)

        entry = Waitlist(
            customer_name=contact.name,
            email=contact.email,
            phone=contact.phone,
            preferred_date=date_str,
            preferred_time=desired_time,
            service_id=service_id,
            alternative_times=json.dumps(alternative_times or []),
            membership_tier=membership_tier,
            status="active",
            priority=self.priority_for(contact.email, membership_tier),
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent request inserted the same entry after our check
            self.db.rollback()
            raise AlreadyWaitlistedError(DUPLICATE_MESSAGE)
        self.db.refresh(entry)

        position = self.position(entry)

        logger.info(
            f"Waitlist entry created: id={entry.id}, date={date_str}, "
            f"time={desired_time or 'any'}, service={service_id}, "
            f"priority={entry.priority}, position={position}"
        )

        emit_event("waitlist_joined", {
            "waitlist_id": entry.id,
            "customer_name": contact.name,
            "email": contact.email,
            "preferred_date": date_str,
            "preferred_time": desired_time,
            "service": service.name,
            "position": position,
        })

        return WaitlistTicket(
            id=entry.id,
            position=position,
            priority=entry.priority,
            preferred_date=desired_date,
            preferred_time=desired_time,
            service_id=service_id,
        )

    def find_active(
        self,
        email: str,
        date_str: str,
        desired_time: str | None,
        service_id: str,
    ) -> Waitlist | None:
        return (
            self.db.query(Waitlist)
            .filter(
                func.lower(Waitlist.email) == email.lower(),
                Waitlist.preferred_date == date_str,
                Waitlist.preferred_time.is_(None) if desired_time is None
                else Waitlist.preferred_time == desired_time,
                Waitlist.service_id == service_id,
                Waitlist.status == "active",
            )
            .first()
        )

    def priority_for(self, email: str, membership_tier: str | None) -> int:
        priority = 1
        if membership_tier and membership_tier.lower() == PREMIUM_TIER:
            priority += 3

        bookings = self.store.count_customer_bookings(email)
        if bookings >= 5:
            priority += 2
        if bookings >= 10:
            priority += 1

        return priority

    def position(self, entry: Waitlist) -> int:
        ahead = (
            self.db.query(func.count(Waitlist.id))
            .filter(
                Waitlist.preferred_date == entry.preferred_date,
                Waitlist.preferred_time.is_(None) if entry.preferred_time is None
                else Waitlist.preferred_time == entry.preferred_time,
                Waitlist.service_id == entry.service_id,
                Waitlist.status == "active",
                or_(
                    Waitlist.priority > entry.priority,
                    and_(Waitlist.priority == entry.priority, Waitlist.id < entry.id),
                ),
            )
            .scalar()
        ) or 0
        return ahead + 1

    def list_active(self, email: str) -> list[tuple[Waitlist, int]]:
        entries = (
            self.db.query(Waitlist)
            .filter(
                func.lower(Waitlist.email) == email.lower(),
                Waitlist.status == "active",
            )
            .order_by(Waitlist.id.desc())
            .all()
        )
        return [(entry, self.position(entry)) for entry in entries]

    def cancel(self, entry_id: int, email: str) -> Waitlist:
        entry = self.db.get(Waitlist, entry_id)
        if (
            not entry
            or entry.email.lower() != email.lower()
            or entry.status != "active"
        ):
            raise WaitlistEntryNotFoundError("Waitlist entry not found or already cancelled")

        entry.status = "cancelled"
        entry.cancelled_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.db.commit()
        self.db.refresh(entry)

        logger.info(f"Waitlist entry cancelled: id={entry.id}")
        return entry
