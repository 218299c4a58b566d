"""Tests for the booking store: counts, commit-time capacity checks, cancellation."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import Update, create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from washbay.models import Base, Bookings, SlotLedger
from washbay.services.booking_store import MAX_COMMIT_ATTEMPTS, BookingStore
from washbay.services.exceptions import (
    BookingNotFoundError,
    BookingRejectedError,
    BookingStateError,
    CapacityExceededError,
    SlotContentionError,
)
from washbay.services.slots import RejectionCategory

from conftest import CHRISTMAS, TUESDAY, customer


def book(store, service_id, n, time_slot="10:00", now=None, calendar=None):
    return store.commit_booking(TUESDAY, time_slot, service_id, customer(n), now, calendar)


class TestCounts:

    def test_cancelled_bookings_do_not_count(self, store, now, calendar):
        first = book(store, "premium", 1, now=now, calendar=calendar)
        book(store, "express", 2, now=now, calendar=calendar)
        store.cancel_booking(first.id)

        snapshot = store.count_active_bookings(TUESDAY, "10:00")

        assert snapshot.count == 1
        assert snapshot.service_ids == ("express",)

    def test_day_snapshots_group_by_slot(self, store, now, calendar):
        book(store, "premium", 1, "09:00", now, calendar)
        book(store, "premium", 2, "09:00", now, calendar)
        book(store, "express", 3, "11:30", now, calendar)

        snapshots = store.day_snapshots(TUESDAY)

        assert snapshots["09:00"].count == 2
        assert snapshots["11:30"].service_ids == ("express",)
        assert "10:00" not in snapshots

    def test_customer_bookings_case_insensitive(self, store, now, calendar):
        store.commit_booking(TUESDAY, "10:00", "express", customer(1, email="Ann@Example.com"), now, calendar)
        store.commit_booking(TUESDAY, "11:00", "express", customer(1, email="ann@example.com"), now, calendar)
        assert store.count_customer_bookings("ANN@example.com") == 2

    def test_read_error_rolls_back_and_raises(self, store, monkeypatch):
        def broken_query(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        rolled_back = []
        monkeypatch.setattr(store.db, "query", broken_query)
        monkeypatch.setattr(store.db, "rollback", lambda: rolled_back.append(True))

        with pytest.raises(OperationalError):
            store.count_active_bookings(TUESDAY, "10:00")
        assert rolled_back


class TestCommitBooking:

    def test_persists_confirmed_booking(self, store, db_session, now, calendar):
        booking = book(store, "premium", 1, now=now, calendar=calendar)

        assert booking.id is not None
        assert booking.status == "confirmed"
        assert booking.booking_date == "2026-10-20"
        assert booking.customer_email == "customer1@example.com"
        assert db_session.query(SlotLedger).one().version == 1

    def test_fills_up_to_capacity_then_refuses(self, store, db_session, now, calendar):
        for n in range(4):
            book(store, "premium", n, now=now, calendar=calendar)

        with pytest.raises(CapacityExceededError):
            book(store, "premium", 99, now=now, calendar=calendar)

        assert db_session.query(Bookings).count() == 4

    def test_mixed_services_lower_the_cap(self, store, now, calendar):
        book(store, "express", 1, now=now, calendar=calendar)
        book(store, "express", 2, now=now, calendar=calendar)

        with pytest.raises(CapacityExceededError):
            book(store, "deluxe", 3, now=now, calendar=calendar)

    def test_cancel_releases_capacity(self, store, now, calendar):
        first = book(store, "executive", 1, now=now, calendar=calendar)
        book(store, "executive", 2, now=now, calendar=calendar)
        with pytest.raises(CapacityExceededError):
            book(store, "executive", 3, now=now, calendar=calendar)

        store.cancel_booking(first.id)

        assert book(store, "executive", 3, now=now, calendar=calendar).status == "confirmed"

    def test_rejects_time_that_does_not_fit(self, store, db_session, now, calendar):
        with pytest.raises(BookingRejectedError) as exc:
            book(store, "executive", 1, "17:00", now, calendar)

        assert exc.value.rejection.category == RejectionCategory.ENDS_AFTER_CLOSING
        assert db_session.query(Bookings).count() == 0

    def test_rejects_closed_day(self, store, now, calendar):
        with pytest.raises(BookingRejectedError) as exc:
            store.commit_booking(CHRISTMAS, "10:00", "express", customer(1), now, calendar)
        assert exc.value.rejection.category == RejectionCategory.CLOSED_DAY


class TestConcurrentCommit:

    @pytest.fixture
    def sessions(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(engine)
        Session = sessionmaker(bind=engine, autoflush=False)
        first, second = Session(), Session()
        yield first, second
        first.close()
        second.close()
        engine.dispose()

    def test_last_unit_goes_to_exactly_one_writer(self, sessions, now, calendar, monkeypatch):
        session_a, session_b = sessions
        store_a, store_b = BookingStore(session_a), BookingStore(session_b)

        # three premium bookings: one unit left at 10:00
        for n in range(3):
            book(store_b, "premium", n, now=now, calendar=calendar)

        read_counts = store_a.count_active_bookings
        calls = []

        def racing_read(target_date, time_slot):
            snapshot = read_counts(target_date, time_slot)
            if not calls:
                # B takes the last unit after A has read the counts
                book(store_b, "premium", 10, now=now, calendar=calendar)
            calls.append(snapshot)
            return snapshot

        monkeypatch.setattr(store_a, "count_active_bookings", racing_read)

        with pytest.raises(CapacityExceededError):
            book(store_a, "premium", 20, now=now, calendar=calendar)

        # A retried with fresh counts after losing the version check
        assert [s.count for s in calls] == [3, 4]
        assert session_a.query(Bookings).count() == 4
        assert session_a.query(SlotLedger).one().version == 4


class TestCancelBooking:

    def test_cancel(self, store, now, calendar):
        booking = book(store, "premium", 1, now=now, calendar=calendar)

        cancelled = store.cancel_booking(booking.id, "Car in service")

        assert cancelled.status == "cancelled"
        assert cancelled.cancel_reason == "Car in service"
        assert cancelled.cancelled_at is not None

    def test_default_reason(self, store, now, calendar):
        booking = book(store, "premium", 1, now=now, calendar=calendar)
        assert store.cancel_booking(booking.id).cancel_reason == "Cancelled by customer"

    def test_cancel_twice(self, store, now, calendar):
        booking = book(store, "premium", 1, now=now, calendar=calendar)
        store.cancel_booking(booking.id)
        with pytest.raises(BookingStateError):
            store.cancel_booking(booking.id)

    def test_cannot_cancel_completed(self, store, db_session, now, calendar):
        booking = book(store, "premium", 1, now=now, calendar=calendar)
        booking.status = "completed"
        db_session.commit()
        with pytest.raises(BookingStateError):
            store.cancel_booking(booking.id)

    def test_missing_booking(self, store):
        with pytest.raises(BookingNotFoundError):
            store.cancel_booking(404)


class TestCommitGate:

    def test_off_grid_starts_cannot_dodge_the_slot_cap(self, store, db_session, now, calendar):
        book(store, "executive", 1, now=now, calendar=calendar)
        book(store, "executive", 2, now=now, calendar=calendar)

        for n, time_slot in enumerate(["10:01", "10:02", "10:15", "10:29"], start=3):
            with pytest.raises(BookingRejectedError) as exc:
                book(store, "executive", n, time_slot, now, calendar)
            assert exc.value.rejection.category == RejectionCategory.OFF_GRID

        assert db_session.query(Bookings).count() == 2
        assert [row.time_slot for row in db_session.query(SlotLedger)] == ["10:00"]

    def test_same_day_start_that_already_passed(self, store, db_session, calendar):
        today = date(2026, 10, 19)
        evening = datetime(2026, 10, 19, 17, 0)

        with pytest.raises(BookingRejectedError) as exc:
            store.commit_booking(today, "08:00", "express", customer(1), evening, calendar)

        assert exc.value.rejection.category == RejectionCategory.TOO_SOON
        assert db_session.query(Bookings).count() == 0
        assert store.commit_booking(today, "17:30", "express", customer(1), evening, calendar).id

    def test_endless_contention_is_not_reported_as_full(self, store, db_session, now, calendar, monkeypatch):
        attempts = []
        execute = db_session.execute

        def lost_version_check(statement, *args, **kwargs):
            if not isinstance(statement, Update):
                return execute(statement, *args, **kwargs)
            attempts.append(statement)
            return SimpleNamespace(rowcount=0)

        monkeypatch.setattr(db_session, "execute", lost_version_check)

        with pytest.raises(SlotContentionError) as exc:
            book(store, "premium", 1, now=now, calendar=calendar)

        assert exc.value.attempts == MAX_COMMIT_ATTEMPTS
        assert len(attempts) == MAX_COMMIT_ATTEMPTS
        assert not isinstance(exc.value, CapacityExceededError)
        monkeypatch.undo()
        assert db_session.query(Bookings).count() == 0
