from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from attendance_payroll.errors import LeaveOverlapError
from attendance_payroll.models import LeaveSession
from attendance_payroll.services.calendar_policy import is_weekend, iter_dates

FULL_DAY_WEIGHT = 1.0
HALF_DAY_WEIGHT = 0.5


@dataclass(frozen=True)
class LeaveDay:
    day_date: date
    is_paid: bool
    is_full_day: bool
    session: LeaveSession

    @property
    def weight(self) -> float:
        return FULL_DAY_WEIGHT if self.is_full_day else HALF_DAY_WEIGHT


@dataclass(frozen=True)
class ApprovedLeave:
    from_date: date
    to_date: date
    from_session: LeaveSession
    to_session: LeaveSession
    is_paid: bool
    leave_id: int | None = None


def _single_day_entry(day_date: date, from_session: LeaveSession, to_session: LeaveSession, is_paid: bool) -> LeaveDay:
    is_full_day = from_session == LeaveSession.FULL and to_session == LeaveSession.FULL
    if is_full_day:
        session = LeaveSession.FULL
    elif from_session != LeaveSession.FULL:
        session = from_session
    else:
        session = to_session
    return LeaveDay(day_date=day_date, is_paid=is_paid, is_full_day=is_full_day, session=session)


def expand_leave(
    *,
    from_date: date,
    to_date: date,
    from_session: LeaveSession,
    to_session: LeaveSession,
    is_paid: bool,
    weekend_days: frozenset[str],
) -> dict[date, LeaveDay]:
    """Expand a leave request into one entry per working date it covers.

    Weekend dates get no entry. On a single-day request the to_session only
    matters when from_session is full; on a multi-day request an afternoon
    start and a morning end turn the boundary dates into half days.
    """
    if to_date < from_date:
        raise ValueError("to_date must be greater than or equal to from_date")

    result: dict[date, LeaveDay] = {}
    if from_date == to_date:
        if not is_weekend(from_date, weekend_days):
            result[from_date] = _single_day_entry(from_date, from_session, to_session, is_paid)
        return result

    for day_date in iter_dates(from_date, to_date):
        if is_weekend(day_date, weekend_days):
            continue
        if day_date == from_date and from_session == LeaveSession.AFTERNOON:
            result[day_date] = LeaveDay(day_date, is_paid, False, LeaveSession.AFTERNOON)
        elif day_date == to_date and to_session == LeaveSession.MORNING:
            result[day_date] = LeaveDay(day_date, is_paid, False, LeaveSession.MORNING)
        else:
            result[day_date] = LeaveDay(day_date, is_paid, True, LeaveSession.FULL)
    return result


def leave_day_count(
    *,
    from_date: date,
    to_date: date,
    from_session: LeaveSession,
    to_session: LeaveSession,
    weekend_days: frozenset[str],
) -> float:
    expanded = expand_leave(
        from_date=from_date,
        to_date=to_date,
        from_session=from_session,
        to_session=to_session,
        is_paid=True,
        weekend_days=weekend_days,
    )
    return sum(entry.weight for entry in expanded.values())


def merge_leave_days(
    leaves: Iterable[ApprovedLeave],
    *,
    weekend_days: frozenset[str],
    start_date: date | None = None,
    end_date: date | None = None,
    employee_id: int | None = None,
) -> dict[date, LeaveDay]:
    merged: dict[date, LeaveDay] = {}
    for leave in leaves:
        expanded = expand_leave(
            from_date=leave.from_date,
            to_date=leave.to_date,
            from_session=leave.from_session,
            to_session=leave.to_session,
            is_paid=leave.is_paid,
            weekend_days=weekend_days,
        )
        for day_date, entry in expanded.items():
            if start_date is not None and day_date < start_date:
                continue
            if end_date is not None and day_date > end_date:
                continue
            if day_date in merged:
                raise LeaveOverlapError(employee_id, day_date)
            merged[day_date] = entry
    return merged
