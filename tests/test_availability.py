"""Tests for the availability view, forward fallback and batch grid."""

from datetime import date, datetime, timedelta

from sqlalchemy.exc import OperationalError

from washbay.services.slots import SERVICES, AvailabilityService, BookingConfig, candidate_slots
from washbay.services.slots.capacity import DEGRADED_WARNING

from conftest import CHRISTMAS, SATURDAY, TUESDAY, FakeReader


def saturate(days, service_id, calendar, now, booked_service="express"):
    """Bookings that fill every candidate slot of `days` for `service_id`."""
    bookings = {}
    for day in days:
        for t in candidate_slots(day, SERVICES[service_id], now, calendar):
            bookings[(day, t)] = [booked_service] * 6
    return bookings


def make_service(reader, calendar, booking_config, capacity_config):
    return AvailabilityService(reader, calendar, booking_config, capacity_config)


class TestAvailabilityFor:

    def test_open_day(self, calendar, booking_config, capacity_config, now):
        availability = make_service(FakeReader(), calendar, booking_config, capacity_config)

        view = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert view.has_availability
        assert view.fallback is None
        assert not view.waitlist_suggested
        assert view.slots[0].time == "08:00"
        by_time = {s.time: s for s in view.slots}
        assert by_time["10:00"].total_capacity == 4
        assert by_time["12:00"].total_capacity == 3
        assert by_time["12:00"].is_peak

    def test_closed_day_falls_back_to_next_open_day(self, calendar, booking_config, capacity_config, now):
        availability = make_service(FakeReader(), calendar, booking_config, capacity_config)

        view = availability.availability_for(CHRISTMAS, SERVICES["deluxe"], now)

        assert view.slots == []
        assert view.fallback.date == date(2026, 12, 27)
        assert view.fallback.time == "09:00"
        assert view.fallback.remaining_capacity == 3
        assert not view.waitlist_suggested

    def test_saturated_day_falls_back_in_order(self, calendar, booking_config, capacity_config, now):
        # Tuesday and Wednesday full, Thursday open from 08:00
        wednesday = TUESDAY + timedelta(days=1)
        reader = FakeReader(saturate([TUESDAY, wednesday], "premium", calendar, now))
        availability = make_service(reader, calendar, booking_config, capacity_config)

        view = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert not view.has_availability
        assert all(s.remaining_capacity == 0 for s in view.slots)
        assert view.fallback.date == TUESDAY + timedelta(days=2)
        assert view.fallback.time == "08:00"

    def test_partially_full_fallback_day(self, calendar, booking_config, capacity_config, now):
        wednesday = TUESDAY + timedelta(days=1)
        bookings = saturate([TUESDAY], "premium", calendar, now)
        bookings[(wednesday, "08:00")] = ["express"] * 6
        bookings[(wednesday, "08:30")] = ["premium"]
        availability = make_service(FakeReader(bookings), calendar, booking_config, capacity_config)

        view = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert view.fallback.date == wednesday
        assert view.fallback.time == "08:30"
        assert view.fallback.remaining_capacity == 3

    def test_nothing_in_search_window_suggests_waitlist(self, calendar, capacity_config, now):
        config = BookingConfig(search_days=3)
        days = [TUESDAY + timedelta(days=i) for i in range(4)]
        reader = FakeReader(saturate(days, "express", calendar, now))
        availability = make_service(reader, calendar, config, capacity_config)

        view = availability.availability_for(TUESDAY, SERVICES["express"], now)

        assert view.fallback is None
        assert view.waitlist_suggested

    def test_same_day_after_last_slot(self, calendar, booking_config, capacity_config):
        late = datetime(2026, 10, 19, 17, 45)
        availability = make_service(FakeReader(), calendar, booking_config, capacity_config)

        view = availability.availability_for(late.date(), SERVICES["premium"], late)

        assert view.slots == []
        assert view.fallback.date == TUESDAY
        assert view.fallback.time == "08:00"

    def test_degraded_read_is_flagged(self, calendar, booking_config, capacity_config, now):
        reader = FakeReader(error=OperationalError("SELECT", {}, Exception("locked")))
        availability = make_service(reader, calendar, booking_config, capacity_config)

        view = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert view.warning == DEGRADED_WARNING
        assert all(s.total_capacity == capacity_config.normal_capacity for s in view.slots)

    def test_repeated_calls_match(self, calendar, booking_config, capacity_config, now):
        reader = FakeReader({(TUESDAY, "10:00"): ["premium", "express"]})
        availability = make_service(reader, calendar, booking_config, capacity_config)

        first = availability.availability_for(TUESDAY, SERVICES["premium"], now)
        second = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert first == second

    def test_reflects_latest_bookings(self, calendar, booking_config, capacity_config, now):
        reader = FakeReader()
        availability = make_service(reader, calendar, booking_config, capacity_config)
        before = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        reader.bookings[(TUESDAY, "10:00")] = ["premium"]
        after = availability.availability_for(TUESDAY, SERVICES["premium"], now)

        assert {s.time: s.booked_count for s in before.slots}["10:00"] == 0
        assert {s.time: s.booked_count for s in after.slots}["10:00"] == 1


class TestBatch:

    def test_skips_cells_that_cannot_be_booked(self, calendar, booking_config, capacity_config, now):
        availability = make_service(FakeReader(), calendar, booking_config, capacity_config)

        cells = availability.batch(
            [SATURDAY, TUESDAY, CHRISTMAS],
            ["10:00", "17:00"],
            SERVICES["deluxe"],
            now,
        )

        assert [(c.date, c.time) for c in cells] == [
            (TUESDAY, "10:00"),
            (TUESDAY, "17:00"),
            (SATURDAY, "10:00"),
        ]

    def test_one_read_per_day(self, calendar, booking_config, capacity_config, now):
        reader = FakeReader({(TUESDAY, "10:00"): ["premium", "premium"]})
        availability = make_service(reader, calendar, booking_config, capacity_config)

        cells = availability.batch([TUESDAY], ["09:00", "10:00", "11:00"], SERVICES["premium"], now)

        assert reader.day_reads == 1
        assert [c.remaining_capacity for c in cells] == [4, 2, 4]
