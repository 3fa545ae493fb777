from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time

from attendance_payroll.models import AttendanceStatus
from attendance_payroll.services.calendar_policy import MonthCalendar
from attendance_payroll.services.leave_expansion import LeaveDay

STANDARD_WORKDAY_HOURS = 8.5
LUNCH_BREAK_HOURS = 1.0
LUNCH_BREAK_THRESHOLD_HOURS = 5.0


class DayStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    WEEKEND = "Weekend"
    HOLIDAY = "Holiday"
    PAID_LEAVE = "Paid Leave"
    UNPAID_LEAVE = "Unpaid Leave"
    OVERTIME = "Overtime"
    UPCOMING = "Upcoming"


_LEAVE_STATUSES = {DayStatus.PAID_LEAVE, DayStatus.UNPAID_LEAVE}
_WEEKEND_STATUSES = {DayStatus.WEEKEND, DayStatus.OVERTIME}


@dataclass(frozen=True)
class AttendanceDay:
    day_date: date
    clock_in: time | None
    clock_out: time | None
    status: AttendanceStatus

    @property
    def is_complete(self) -> bool:
        return self.clock_in is not None and self.clock_out is not None


@dataclass(frozen=True)
class OvertimeEntry:
    day_date: date
    hours_worked: float


@dataclass(frozen=True)
class DayClassification:
    day_date: date
    status: DayStatus
    hours: float = 0.0
    deficit_hours: float = 0.0
    leave_weight: float = 0.0
    is_half_day: bool = False
    overtime_hours: float = 0.0
    clock_in: time | None = None
    clock_out: time | None = None
    holiday_name: str | None = None


@dataclass
class MonthlyAggregate:
    year: int
    month: int
    days_in_month: int
    working_days: int
    present_days: int = 0
    absent_days: int = 0
    weekend_days: int = 0
    holiday_days: int = 0
    upcoming_days: int = 0
    overtime_days: int = 0
    paid_leave_days: float = 0.0
    unpaid_leave_days: float = 0.0
    leave_calendar_days: int = 0
    half_days: int = 0
    total_hours_worked: float = 0.0
    deficit_hours: float = 0.0
    overtime_hours: float = 0.0
    daily_breakdown: list[DayClassification] = field(default_factory=list)

    @property
    def leave_days(self) -> float:
        return self.paid_leave_days + self.unpaid_leave_days

    @property
    def effective_days(self) -> float:
        if self.total_hours_worked == 0:
            return 0.0
        return self.total_hours_worked / STANDARD_WORKDAY_HOURS


def span_hours(clock_in: time, clock_out: time) -> float:
    anchor = date(2000, 1, 1)
    delta = datetime.combine(anchor, clock_out) - datetime.combine(anchor, clock_in)
    return delta.total_seconds() / 3600


def net_hours(clock_in: time, clock_out: time, *, half_day_leave: bool = False) -> float:
    raw = span_hours(clock_in, clock_out)
    if raw > LUNCH_BREAK_THRESHOLD_HOURS and not half_day_leave:
        return raw - LUNCH_BREAK_HOURS
    return raw


_WORKED_STATUSES = {AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY}


def _worked_attendance(attendance: AttendanceDay | None) -> AttendanceDay | None:
    if attendance is None or attendance.status not in _WORKED_STATUSES:
        return None
    return attendance


def classify_day(
    day_date: date,
    *,
    calendar: MonthCalendar,
    today: date,
    attendance: AttendanceDay | None = None,
    leave: LeaveDay | None = None,
    overtime_hours: float = 0.0,
) -> DayClassification:
    """Resolve one calendar date to a single status and its hour contribution.

    Order: weekend, half-day leave, full-day leave, worked attendance, any other
    attendance record, holiday, future date, absence. A holiday only applies to a
    date without an attendance record.
    """
    worked = _worked_attendance(attendance)
    clock_in = worked.clock_in if worked else None
    clock_out = worked.clock_out if worked else None

    if calendar.is_weekend(day_date):
        status = DayStatus.OVERTIME if overtime_hours > 0 else DayStatus.WEEKEND
        return DayClassification(
            day_date=day_date,
            status=status,
            overtime_hours=overtime_hours,
            clock_in=clock_in,
            clock_out=clock_out,
        )

    if leave is not None and not leave.is_full_day:
        worked_hours = 0.0
        if worked is not None and worked.is_complete:
            worked_hours = max(0.0, net_hours(worked.clock_in, worked.clock_out, half_day_leave=True))  # type: ignore[arg-type]
        hours = worked_hours
        if leave.is_paid:
            hours = worked_hours + max(0.0, STANDARD_WORKDAY_HOURS - worked_hours)
        return DayClassification(
            day_date=day_date,
            status=DayStatus.PAID_LEAVE if leave.is_paid else DayStatus.UNPAID_LEAVE,
            hours=hours,
            leave_weight=leave.weight,
            is_half_day=True,
            overtime_hours=overtime_hours,
            clock_in=clock_in,
            clock_out=clock_out,
        )

    if leave is not None:
        # Approved full-day leave outranks any punch on the same date.
        return DayClassification(
            day_date=day_date,
            status=DayStatus.PAID_LEAVE if leave.is_paid else DayStatus.UNPAID_LEAVE,
            hours=STANDARD_WORKDAY_HOURS if leave.is_paid else 0.0,
            leave_weight=leave.weight,
            overtime_hours=overtime_hours,
            clock_in=clock_in,
            clock_out=clock_out,
        )

    if worked is not None:
        hours = 0.0
        deficit = 0.0
        # Without a clock-out the day is still in progress.
        if worked.is_complete:
            hours = max(0.0, net_hours(worked.clock_in, worked.clock_out))  # type: ignore[arg-type]
            deficit = max(0.0, STANDARD_WORKDAY_HOURS - hours)
        return DayClassification(
            day_date=day_date,
            status=DayStatus.PRESENT,
            hours=hours,
            deficit_hours=deficit,
            is_half_day=worked.status == AttendanceStatus.HALF_DAY,
            overtime_hours=overtime_hours,
            clock_in=clock_in,
            clock_out=clock_out,
        )

    if attendance is not None and attendance.status == AttendanceStatus.LEAVE:
        # Marked as leave without an approved request behind it: unpaid.
        return DayClassification(
            day_date=day_date,
            status=DayStatus.UNPAID_LEAVE,
            leave_weight=1.0,
            overtime_hours=overtime_hours,
        )

    if attendance is not None:
        return DayClassification(day_date=day_date, status=DayStatus.ABSENT, overtime_hours=overtime_hours)

    holiday_name = calendar.holiday_name(day_date)
    if holiday_name is not None:
        return DayClassification(
            day_date=day_date,
            status=DayStatus.HOLIDAY,
            hours=STANDARD_WORKDAY_HOURS,
            overtime_hours=overtime_hours,
            holiday_name=holiday_name,
        )

    if day_date > today:
        return DayClassification(day_date=day_date, status=DayStatus.UPCOMING)

    return DayClassification(day_date=day_date, status=DayStatus.ABSENT)


def aggregate_month(
    calendar: MonthCalendar,
    *,
    today: date,
    attendance: Iterable[AttendanceDay] = (),
    leave_days: dict[date, LeaveDay] | None = None,
    overtime: Iterable[OvertimeEntry] = (),
) -> MonthlyAggregate:
    attendance_by_day = {item.day_date: item for item in attendance}
    leave_by_day = leave_days or {}
    overtime_by_day: dict[date, float] = {}
    for entry in overtime:
        overtime_by_day[entry.day_date] = overtime_by_day.get(entry.day_date, 0.0) + entry.hours_worked

    result = MonthlyAggregate(
        year=calendar.year,
        month=calendar.month,
        days_in_month=calendar.days_in_month,
        working_days=calendar.working_days,
    )

    for day_date in calendar.dates():
        day = classify_day(
            day_date,
            calendar=calendar,
            today=today,
            attendance=attendance_by_day.get(day_date),
            leave=leave_by_day.get(day_date),
            overtime_hours=overtime_by_day.get(day_date, 0.0),
        )
        result.daily_breakdown.append(day)
        result.total_hours_worked += day.hours
        result.deficit_hours += day.deficit_hours
        result.overtime_hours += day.overtime_hours

        if day.status == DayStatus.PRESENT:
            result.present_days += 1
            if day.is_half_day:
                result.half_days += 1
        elif day.status == DayStatus.HOLIDAY:
            result.holiday_days += 1
        elif day.status == DayStatus.UPCOMING:
            result.upcoming_days += 1
        elif day.status in _WEEKEND_STATUSES:
            result.weekend_days += 1
            if day.status == DayStatus.OVERTIME:
                result.overtime_days += 1
        elif day.status in _LEAVE_STATUSES:
            result.leave_calendar_days += 1
            if day.is_half_day:
                result.half_days += 1
            if day.status == DayStatus.PAID_LEAVE:
                result.paid_leave_days += day.leave_weight
            else:
                result.unpaid_leave_days += day.leave_weight

    result.absent_days = max(
        0,
        result.working_days
        - result.present_days
        - result.leave_calendar_days
        - result.holiday_days
        - result.upcoming_days,
    )
    return result
