from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.errors import ApiError, LeaveOverlapError
from attendance_payroll.models import (
    AttendanceRecord,
    Employee,
    LeaveRequest,
    LeaveType,
    OvertimeRecord,
    RequestStatus,
)
from attendance_payroll.schemas import MonthlyDayRead, MonthlyEmployeeReportResponse, MonthlyReportRowRead
from attendance_payroll.services.attendance import local_today
from attendance_payroll.services.calendar_policy import MonthCalendar, weekday_name
from attendance_payroll.services.company_settings import require_company_settings
from attendance_payroll.services.holidays import list_holidays_for_month
from attendance_payroll.services.leave_expansion import ApprovedLeave, merge_leave_days
from attendance_payroll.services.monthly_calc import (
    AttendanceDay,
    MonthlyAggregate,
    OvertimeEntry,
    aggregate_month,
)
from attendance_payroll.services.salary_calc import SalaryComputation, calculate_salary
from attendance_payroll.settings import get_settings

logger = logging.getLogger("attendance_payroll.monthly")


@dataclass(frozen=True)
class EmployeeMonthInput:
    employee_id: int
    full_name: str
    email: str
    monthly_salary: float | None
    attendance: tuple[AttendanceDay, ...] = ()
    leaves: tuple[ApprovedLeave, ...] = ()
    overtime: tuple[OvertimeEntry, ...] = ()


@dataclass(frozen=True)
class MonthlyReportRow:
    employee_id: int
    full_name: str
    email: str
    aggregate: MonthlyAggregate
    salary: SalaryComputation


def _sort_key(item: EmployeeMonthInput) -> tuple[str, int]:
    return (item.full_name.casefold(), item.employee_id)


def assemble_employee_row(
    calendar: MonthCalendar,
    item: EmployeeMonthInput,
    *,
    today: date,
) -> MonthlyReportRow:
    leave_days = merge_leave_days(
        item.leaves,
        weekend_days=calendar.weekend_days,
        start_date=calendar.start_date,
        end_date=calendar.end_date,
        employee_id=item.employee_id,
    )
    aggregate = aggregate_month(
        calendar,
        today=today,
        attendance=item.attendance,
        leave_days=leave_days,
        overtime=item.overtime,
    )
    salary = calculate_salary(
        aggregate,
        monthly_salary=item.monthly_salary,
        overtime_hours=[entry.hours_worked for entry in item.overtime],
    )
    return MonthlyReportRow(
        employee_id=item.employee_id,
        full_name=item.full_name,
        email=item.email,
        aggregate=aggregate,
        salary=salary,
    )


def assemble_monthly_report(
    calendar: MonthCalendar,
    employees: Iterable[EmployeeMonthInput],
    *,
    today: date,
) -> list[MonthlyReportRow]:
    """Build one report row per employee, ordered by name then id.

    Pure: the same calendar, inputs and ``today`` always give the same rows.
    Employees without any attendance, leave or overtime still get a row.
    """
    return [
        assemble_employee_row(calendar, item, today=today)
        for item in sorted(employees, key=_sort_key)
    ]


def _fetch_attendance(db: Session, *, employee_id: int, start_date: date, end_date: date) -> tuple[AttendanceDay, ...]:
    records = db.scalars(
        select(AttendanceRecord)
        .where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date,
        )
        .order_by(AttendanceRecord.attendance_date.asc())
    ).all()
    return tuple(
        AttendanceDay(
            day_date=record.attendance_date,
            clock_in=record.clock_in,
            clock_out=record.clock_out,
            status=record.status,
        )
        for record in records
    )


def _fetch_approved_leaves(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> tuple[ApprovedLeave, ...]:
    rows = db.execute(
        select(LeaveRequest, LeaveType.is_paid)
        .join(LeaveType, LeaveType.id == LeaveRequest.leave_type_id)
        .where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == RequestStatus.APPROVED,
            LeaveRequest.from_date <= end_date,
            LeaveRequest.to_date >= start_date,
        )
        .order_by(LeaveRequest.from_date.asc(), LeaveRequest.id.asc())
    ).all()
    return tuple(
        ApprovedLeave(
            from_date=leave.from_date,
            to_date=leave.to_date,
            from_session=leave.from_session,
            to_session=leave.to_session,
            is_paid=bool(is_paid),
            leave_id=leave.id,
        )
        for leave, is_paid in rows
    )


def _fetch_approved_overtime(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> tuple[OvertimeEntry, ...]:
    records = db.scalars(
        select(OvertimeRecord)
        .where(
            OvertimeRecord.employee_id == employee_id,
            OvertimeRecord.status == RequestStatus.APPROVED,
            OvertimeRecord.overtime_date >= start_date,
            OvertimeRecord.overtime_date <= end_date,
        )
        .order_by(OvertimeRecord.overtime_date.asc())
    ).all()
    return tuple(
        OvertimeEntry(day_date=record.overtime_date, hours_worked=record.hours_worked or 0.0)
        for record in records
    )


def _load_month_calendar(db: Session, *, year: int, month: int) -> MonthCalendar:
    if month < 1 or month > 12:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="month must be between 1 and 12",
        )
    settings_row = require_company_settings(db)
    holidays = list_holidays_for_month(db, year=year, month=month)
    return MonthCalendar.build(
        year,
        month,
        weekend_days=settings_row.weekend_days,
        holidays=[(holiday.holiday_date, holiday.name) for holiday in holidays],
    )


def _load_employee_input(db: Session, employee: Employee, calendar: MonthCalendar) -> EmployeeMonthInput:
    start_date, end_date = calendar.start_date, calendar.end_date
    return EmployeeMonthInput(
        employee_id=employee.id,
        full_name=employee.full_name,
        email=employee.email,
        monthly_salary=employee.monthly_salary,
        attendance=_fetch_attendance(db, employee_id=employee.id, start_date=start_date, end_date=end_date),
        leaves=_fetch_approved_leaves(db, employee_id=employee.id, start_date=start_date, end_date=end_date),
        overtime=_fetch_approved_overtime(db, employee_id=employee.id, start_date=start_date, end_date=end_date),
    )


def _assemble_or_conflict(
    calendar: MonthCalendar,
    items: list[EmployeeMonthInput],
    *,
    today: date,
) -> list[MonthlyReportRow]:
    try:
        return assemble_monthly_report(calendar, items, today=today)
    except LeaveOverlapError as exc:
        logger.warning(
            "monthly_report_leave_overlap",
            extra={"employee_id": exc.employee_id, "date": exc.day_date},
        )
        raise ApiError(
            status_code=409,
            code="LEAVE_OVERLAP",
            message=f"Employee {exc.employee_id} has overlapping approved leaves on {exc.day_date.isoformat()}.",
        ) from exc


def build_monthly_report(
    db: Session,
    *,
    year: int,
    month: int,
    employee_id: int | None = None,
    include_inactive: bool | None = None,
    today: date | None = None,
) -> list[MonthlyReportRow]:
    calendar = _load_month_calendar(db, year=year, month=month)
    if include_inactive is None:
        include_inactive = get_settings().report_include_inactive

    employee_stmt = select(Employee).order_by(Employee.id.asc())
    if employee_id is not None:
        employee_stmt = employee_stmt.where(Employee.id == employee_id)
    elif not include_inactive:
        employee_stmt = employee_stmt.where(Employee.is_active.is_(True))
    employees = list(db.scalars(employee_stmt).all())

    items = [_load_employee_input(db, employee, calendar) for employee in employees]
    rows = _assemble_or_conflict(calendar, items, today=today or local_today())
    logger.info(
        "monthly_report_built",
        extra={"year": year, "month": month, "employee_count": len(rows), "employee_id": employee_id},
    )
    return rows


def build_employee_monthly_report(
    db: Session,
    *,
    employee_id: int,
    year: int,
    month: int,
    today: date | None = None,
) -> MonthlyEmployeeReportResponse:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    rows = build_monthly_report(db, year=year, month=month, employee_id=employee_id, today=today)
    row = rows[0]
    return MonthlyEmployeeReportResponse(row=to_report_row_read(row), days=to_day_reads(row))


def _money(value: float) -> float:
    return round(value, 2)


def to_report_row_read(row: MonthlyReportRow) -> MonthlyReportRowRead:
    aggregate = row.aggregate
    salary = row.salary
    return MonthlyReportRowRead(
        employee_id=row.employee_id,
        full_name=row.full_name,
        email=row.email,
        year=aggregate.year,
        month=aggregate.month,
        total_days=aggregate.days_in_month,
        working_days=aggregate.working_days,
        present_days=aggregate.present_days,
        absent_days=aggregate.absent_days,
        leave_days=aggregate.leave_days,
        paid_leave_days=aggregate.paid_leave_days,
        unpaid_leave_days=aggregate.unpaid_leave_days,
        half_days=aggregate.half_days,
        holiday_days=aggregate.holiday_days,
        weekend_days=aggregate.weekend_days,
        upcoming_days=aggregate.upcoming_days,
        total_hours_worked=round(aggregate.total_hours_worked, 2),
        deficit_hours=round(aggregate.deficit_hours, 2),
        effective_days=round(aggregate.effective_days, 2),
        overtime_hours=round(aggregate.overtime_hours, 2),
        monthly_salary=None if salary.monthly_salary is None else _money(salary.monthly_salary),
        daily_rate=_money(salary.daily_rate),
        calculated_salary=_money(salary.calculated_salary),
        overtime_pay=_money(salary.overtime_pay),
        total_salary_with_overtime=_money(salary.total_salary_with_overtime),
    )


def to_day_reads(row: MonthlyReportRow) -> list[MonthlyDayRead]:
    return [
        MonthlyDayRead(
            date=day.day_date,
            weekday=weekday_name(day.day_date),
            status=day.status,
            clock_in=day.clock_in,
            clock_out=day.clock_out,
            hours=round(day.hours, 2),
            deficit_hours=round(day.deficit_hours, 2),
            overtime_hours=round(day.overtime_hours, 2),
            leave_days=day.leave_weight,
            is_half_day=day.is_half_day,
            holiday_name=day.holiday_name,
        )
        for day in row.aggregate.daily_breakdown
    ]
