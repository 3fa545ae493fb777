from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
DEFAULT_WEEKEND_DAYS = frozenset({"Saturday", "Sunday"})

_WEEKDAY_BY_KEY = {name.casefold(): name for name in WEEKDAY_NAMES}


def weekday_name(day_date: date) -> str:
    # date.weekday() is locale and timezone independent
    return WEEKDAY_NAMES[day_date.weekday()]


def normalize_weekend_days(names: Iterable[str]) -> frozenset[str]:
    normalized: set[str] = set()
    for raw in names:
        key = (raw or "").strip().casefold()
        if key not in _WEEKDAY_BY_KEY:
            raise ValueError(f"Unknown weekday name: {raw!r}")
        normalized.add(_WEEKDAY_BY_KEY[key])
    return frozenset(normalized)


def is_weekend(day_date: date, weekend_days: frozenset[str]) -> bool:
    return weekday_name(day_date) in weekend_days


def month_bounds(year: int, month: int) -> tuple[date, date, int]:
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12")
    days_in_month = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month), days_in_month


def iter_dates(start_date: date, end_date: date) -> Iterable[date]:
    cursor = start_date
    while cursor <= end_date:
        yield cursor
        cursor += timedelta(days=1)


@dataclass(frozen=True)
class MonthCalendar:
    """Weekend and holiday policy for one calendar month.

    Built from the company settings row and the holidays of the month; every
    engine step receives it explicitly.
    """

    year: int
    month: int
    weekend_days: frozenset[str]
    holidays: dict[date, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        year: int,
        month: int,
        *,
        weekend_days: Iterable[str],
        holidays: Iterable[tuple[date, str]] = (),
    ) -> MonthCalendar:
        start_date, end_date, _ = month_bounds(year, month)
        holiday_map = {
            holiday_date: name
            for holiday_date, name in holidays
            if start_date <= holiday_date <= end_date
        }
        return cls(
            year=year,
            month=month,
            weekend_days=normalize_weekend_days(weekend_days),
            holidays=holiday_map,
        )

    @property
    def start_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end_date(self) -> date:
        return month_bounds(self.year, self.month)[1]

    @property
    def days_in_month(self) -> int:
        return month_bounds(self.year, self.month)[2]

    def dates(self) -> list[date]:
        return list(iter_dates(self.start_date, self.end_date))

    def is_weekend(self, day_date: date) -> bool:
        return is_weekend(day_date, self.weekend_days)

    def holiday_name(self, day_date: date) -> str | None:
        # A holiday on a weekend day is not a separate day off.
        if self.is_weekend(day_date):
            return None
        return self.holidays.get(day_date)

    @property
    def working_days(self) -> int:
        return sum(1 for day_date in self.dates() if not self.is_weekend(day_date))
