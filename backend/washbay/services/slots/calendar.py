# backend/washbay/services/slots/calendar.py
"""
Business calendar: effective opening hours for a date.

Resolution order:
✓ date override (public holiday → closed, early close → special hours)
✓ weekly business hours by weekday name
✓ weekday with no configured hours → closed

Does NOT contain:
✗ Bookings (Capacity Scorer)
✗ Lead time / slot grid (Slot Generator)
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Union

from .config import (
    WEEKDAY_NAMES,
    BookingConfig,
    get_booking_config,
    time_str_to_minutes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpeningHours:
    open: str
    close: str
    name: str | None = None
    message: str | None = None

    is_closed = False

    @property
    def open_minutes(self) -> int:
        return time_str_to_minutes(self.open)

    @property
    def close_minutes(self) -> int:
        return time_str_to_minutes(self.close)


@dataclass(frozen=True)
class ClosedDay:
    name: str | None = None

    is_closed = True


DayHours = Union[OpeningHours, ClosedDay]


def _closed(name: str) -> ClosedDay:
    return ClosedDay(name=name)


def _early_close(name: str) -> OpeningHours:
    return OpeningHours("08:00", "14:00", name, "Early closing at 14:00")


# South African public holidays (observed dates) and early-closing days
DEFAULT_OVERRIDES: Mapping[date, DayHours] = {
    # 2025
    date(2025, 1, 1): _closed("New Year's Day"),
    date(2025, 3, 21): _closed("Human Rights Day"),
    date(2025, 4, 18): _closed("Good Friday"),
    date(2025, 4, 21): _closed("Family Day"),
    date(2025, 4, 28): _closed("Freedom Day (observed)"),
    date(2025, 5, 1): _closed("Workers' Day"),
    date(2025, 6, 16): _closed("Youth Day"),
    date(2025, 8, 9): _closed("National Women's Day"),
    date(2025, 9, 24): _closed("Heritage Day"),
    date(2025, 12, 16): _closed("Day of Reconciliation"),
    date(2025, 12, 24): _early_close("Christmas Eve"),
    date(2025, 12, 25): _closed("Christmas Day"),
    date(2025, 12, 26): _closed("Day of Goodwill"),
    date(2025, 12, 31): _early_close("New Year's Eve"),
    # 2026
    date(2026, 1, 1): _closed("New Year's Day"),
    date(2026, 3, 21): _closed("Human Rights Day"),
    date(2026, 4, 3): _closed("Good Friday"),
    date(2026, 4, 6): _closed("Family Day"),
    date(2026, 4, 27): _closed("Freedom Day"),
    date(2026, 5, 1): _closed("Workers' Day"),
    date(2026, 6, 16): _closed("Youth Day"),
    date(2026, 8, 10): _closed("National Women's Day (observed)"),
    date(2026, 9, 24): _closed("Heritage Day"),
    date(2026, 12, 16): _closed("Day of Reconciliation"),
    date(2026, 12, 24): _early_close("Christmas Eve"),
    date(2026, 12, 25): _closed("Christmas Day"),
    date(2026, 12, 26): _closed("Day of Goodwill"),
    date(2026, 12, 31): _early_close("New Year's Eve"),
    # 2027
    date(2027, 1, 1): _closed("New Year's Day"),
    date(2027, 3, 22): _closed("Human Rights Day (observed)"),
    date(2027, 3, 26): _closed("Good Friday"),
    date(2027, 3, 29): _closed("Family Day"),
    date(2027, 4, 27): _closed("Freedom Day"),
    date(2027, 5, 1): _closed("Workers' Day"),
    date(2027, 6, 16): _closed("Youth Day"),
    date(2027, 8, 9): _closed("National Women's Day"),
    date(2027, 9, 24): _closed("Heritage Day"),
    date(2027, 12, 16): _closed("Day of Reconciliation"),
    date(2027, 12, 24): _early_close("Christmas Eve"),
    date(2027, 12, 25): _closed("Christmas Day"),
    date(2027, 12, 27): _closed("Day of Goodwill (observed)"),
    date(2027, 12, 31): _early_close("New Year's Eve"),
}


class BusinessCalendar:
    """Weekly hours plus per-date overrides. Immutable after construction."""

    def __init__(
        self,
        business_hours: Mapping[str, tuple[str, str]] | None = None,
        overrides: Mapping[date, DayHours] | None = None,
        config: BookingConfig | None = None,
    ):
        self.config = config or get_booking_config()
        self.business_hours = dict(
            business_hours if business_hours is not None else self.config.business_hours
        )
        self.overrides = dict(overrides if overrides is not None else DEFAULT_OVERRIDES)

    def effective_hours(self, target_date: date) -> DayHours:
        override = self.overrides.get(target_date)
        if override is not None:
            return override

        day_name = WEEKDAY_NAMES[target_date.weekday()]
        hours = self.business_hours.get(day_name)
        if not hours:
            return ClosedDay()

        open_, close = hours
        return OpeningHours(open_, close)

    def is_open(self, target_date: date) -> bool:
        return not self.effective_hours(target_date).is_closed

    def next_open_day(
        self,
        after: date,
        now: datetime | None = None,
        max_days: int = 366,
    ) -> date | None:
        """
        First date strictly after `after` with non-closed hours.

        A Sunday candidate is skipped once `now` has passed that Sunday's
        late cutoff (config.late_sunday_cutoff). Only Sundays get this
        treatment.
        """
        now = now or datetime.now()
        cutoff = time_str_to_minutes(self.config.late_sunday_cutoff)

        candidate = after
        for _ in range(max_days):
            candidate += timedelta(days=1)
            if not self.is_open(candidate):
                continue
            if candidate.weekday() == 6 and _past_cutoff(candidate, cutoff, now):
                continue
            return candidate
        return None

    def calendar_view(self, start: date, days: int) -> list[tuple[date, DayHours]]:
        """Effective hours for `days` consecutive dates from `start`."""
        return [
            (start + timedelta(days=offset), self.effective_hours(start + timedelta(days=offset)))
            for offset in range(days)
        ]


def _past_cutoff(day: date, cutoff_minutes: int, now: datetime) -> bool:
    cutoff_dt = datetime.combine(day, datetime.min.time()) + timedelta(minutes=cutoff_minutes)
    return now >= cutoff_dt


# ── Loading ──────────────────────────────────────────────────────────────


def load_overrides(path: Path) -> dict[date, DayHours]:
    """
    Load date overrides from a JSON file.

    Format:
        {
          "2026-12-25": {"kind": "day_off", "name": "Christmas Day"},
          "2026-12-24": {"kind": "special_hours", "open": "08:00",
                         "close": "14:00", "name": "Christmas Eve",
                         "message": "Early closing"}
        }
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    overrides: dict[date, DayHours] = {}
    for date_str, item in raw.items():
        day = date.fromisoformat(date_str)
        kind = item.get("kind")
        if kind == "day_off":
            overrides[day] = ClosedDay(name=item.get("name"))
        elif kind == "special_hours":
            hours = OpeningHours(
                open=item["open"],
                close=item["close"],
                name=item.get("name"),
                message=item.get("message"),
            )
            if hours.open_minutes >= hours.close_minutes:
                raise ValueError(f"{date_str}: open {hours.open} must be before close {hours.close}")
            overrides[day] = hours
        else:
            raise ValueError(f"{date_str}: unknown override kind {kind!r}")

    return overrides


@lru_cache
def get_business_calendar() -> BusinessCalendar:
    """
    Process-wide calendar (singleton).

    Reads CALENDAR_OVERRIDES_FILE once if configured, otherwise uses the
    built-in holiday table.
    """
    from ...config import settings

    overrides = None
    if settings.calendar_overrides_file:
        overrides = load_overrides(settings.calendar_overrides_file)
        logger.info(
            "Loaded %d calendar overrides from %s",
            len(overrides),
            settings.calendar_overrides_file,
        )
    return BusinessCalendar(overrides=overrides)
