# backend/washbay/services/booking_store.py
"""
Booking storage for the slots engine.

Read path:
  count_active_bookings / day_snapshots: non-cancelled bookings per slot.

Write path:
  commit_booking: re-runs submission-time validation, then the capacity
  rules against the freshest counts, inside the same transaction as the
  insert. Writers for one (date, slot) are serialised through a
  compare-and-swap on slot_ledger.version:

    read ledger.version → read counts → score →
    UPDATE slot_ledger SET version = v + 1 WHERE id = ? AND version = v

  0 rows updated means another booking landed in between: roll back and
  retry with fresh counts. No headroom → CapacityExceededError; still
  losing after MAX_COMMIT_ATTEMPTS → SlotContentionError.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.generated import Bookings, SlotLedger
from .exceptions import (
    BookingNotFoundError,
    BookingRejectedError,
    BookingStateError,
    CapacityExceededError,
    SlotContentionError,
)
from .slots.calendar import BusinessCalendar
from .slots.capacity import SlotSnapshot, score
from .slots.config import CapacityConfig, get_capacity_config
from .slots.validator import validate_booking_time

logger = logging.getLogger(__name__)

ACTIVE_EXCLUDED_STATUSES = ("cancelled",)
MAX_COMMIT_ATTEMPTS = 5


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None


class BookingStore:
    """SQLAlchemy-backed booking store bound to one session."""

    def __init__(self, db: Session, capacity_config: CapacityConfig | None = None):
        self.db = db
        self.capacity_config = capacity_config or get_capacity_config()

    # ── Read ─────────────────────────────────────────────────────────────

    def count_active_bookings(self, target_date: date, time_slot: str) -> SlotSnapshot:
        """Non-cancelled bookings in one slot."""
        try:
            rows = (
                self.db.query(Bookings.service_id)
                .filter(
                    Bookings.booking_date == target_date.isoformat(),
                    Bookings.time_slot == time_slot,
                    Bookings.status.notin_(ACTIVE_EXCLUDED_STATUSES),
                )
                .all()
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return SlotSnapshot.from_service_ids(service_id for (service_id,) in rows)

    def day_snapshots(self, target_date: date) -> dict[str, SlotSnapshot]:
        """Non-cancelled bookings for every slot of a day, keyed by "HH:MM"."""
        try:
            rows = (
                self.db.query(Bookings.time_slot, Bookings.service_id)
                .filter(
                    Bookings.booking_date == target_date.isoformat(),
                    Bookings.status.notin_(ACTIVE_EXCLUDED_STATUSES),
                )
                .all()
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise

        by_slot: dict[str, list[str]] = {}
        for time_slot, service_id in rows:
            by_slot.setdefault(time_slot, []).append(service_id)

        return {
            time_slot: SlotSnapshot.from_service_ids(service_ids)
            for time_slot, service_ids in by_slot.items()
        }

    def count_customer_bookings(self, email: str) -> int:
        return (
            self.db.query(func.count(Bookings.id))
            .filter(
                func.lower(Bookings.customer_email) == email.lower(),
                Bookings.status.notin_(ACTIVE_EXCLUDED_STATUSES),
            )
            .scalar()
        ) or 0

    def get_booking(self, booking_id: int) -> Bookings:
        booking = self.db.get(Bookings, booking_id)
        if not booking:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    # ── Write ────────────────────────────────────────────────────────────

    def commit_booking(
        self,
        target_date: date,
        time_slot: str,
        service_id: str,
        customer: CustomerInfo,
        now: datetime | None = None,
        calendar: BusinessCalendar | None = None,
    ) -> Bookings:
        """
        Persist a booking if the slot still has headroom.

        Raises:
            BookingRejectedError: the time itself is not bookable
            CapacityExceededError: the slot filled up
            SlotContentionError: every attempt lost the version check
        """
        verdict = validate_booking_time(target_date, time_slot, service_id, now, calendar)
        if not verdict.ok:
            raise BookingRejectedError(verdict)

        date_str = target_date.isoformat()

        for attempt in range(1, MAX_COMMIT_ATTEMPTS + 1):
            try:
                ledger = self._ledger_row(date_str, time_slot)
                seen_version = ledger.version

                snapshot = self.count_active_bookings(target_date, time_slot)
                result = score(target_date, time_slot, service_id, snapshot, self.capacity_config)
                if not result.available:
                    self.db.rollback()
                    raise CapacityExceededError(target_date, time_slot, service_id)

                claimed = self.db.execute(
                    update(SlotLedger)
                    .where(
                        SlotLedger.id == ledger.id,
                        SlotLedger.version == seen_version,
                    )
                    .values(version=seen_version + 1)
                    .execution_options(synchronize_session=False)
                ).rowcount
                if claimed != 1:
                    self.db.rollback()
                    logger.info(
                        f"Slot {date_str} {time_slot} changed during commit "
                        f"(attempt {attempt}), retrying"
                    )
                    continue

                booking = Bookings(
                    booking_date=date_str,
                    time_slot=time_slot,
                    service_id=service_id,
                    customer_name=customer.name,
                    customer_email=customer.email,
                    customer_phone=customer.phone,
                    notes=customer.notes,
                    status="confirmed",
                )
                self.db.add(booking)
                self.db.commit()
                self.db.refresh(booking)
            except IntegrityError:
                # concurrent ledger row creation for the same slot
                self.db.rollback()
                continue

            logger.info(
                f"Booking committed: booking_id={booking.id}, slot={date_str} {time_slot}, "
                f"service={service_id}, remaining={result.remaining_capacity - 1}"
            )
            return booking

        logger.warning(
            f"Gave up committing {date_str} {time_slot} after {MAX_COMMIT_ATTEMPTS} attempts"
        )
        raise SlotContentionError(target_date, time_slot, MAX_COMMIT_ATTEMPTS)

    def cancel_booking(self, booking_id: int, reason: str | None = None) -> Bookings:
        booking = self.get_booking(booking_id)

        if booking.status == "cancelled":
            raise BookingStateError("Booking is already cancelled")
        if booking.status == "completed":
            raise BookingStateError("Cannot cancel a completed booking")

        now_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        booking.status = "cancelled"
        booking.cancelled_at = now_str
        booking.updated_at = now_str
        booking.cancel_reason = reason or "Cancelled by customer"
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking cancelled: booking_id={booking.id}")
        return booking

    # ── Helpers ──────────────────────────────────────────────────────────

    def _ledger_row(self, date_str: str, time_slot: str) -> SlotLedger:
        ledger = (
            self.db.query(SlotLedger)
            .filter(
                SlotLedger.booking_date == date_str,
                SlotLedger.time_slot == time_slot,
            )
            .first()
        )
        if ledger is None:
            ledger = SlotLedger(booking_date=date_str, time_slot=time_slot, version=0)
            self.db.add(ledger)
            self.db.flush()
        return ledger
