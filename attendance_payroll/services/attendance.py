from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.errors import ApiError
from attendance_payroll.models import AttendanceRecord, AttendanceStatus, Employee
from attendance_payroll.services.calendar_policy import month_bounds
from attendance_payroll.settings import get_settings

logger = logging.getLogger("attendance_payroll.attendance")


@lru_cache
def _attendance_timezone() -> ZoneInfo:
    raw_name = (get_settings().attendance_timezone or "").strip() or "Asia/Singapore"
    try:
        return ZoneInfo(raw_name)
    except ZoneInfoNotFoundError:
        logger.warning("attendance_timezone_invalid", extra={"attendance_timezone": raw_name})
        return ZoneInfo("Asia/Singapore")


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone(_attendance_timezone())


def local_today() -> date:
    return local_now().date()


def _to_local(ts_local: datetime | None) -> datetime:
    if ts_local is None:
        return local_now()
    if ts_local.tzinfo is None:
        return ts_local.replace(tzinfo=_attendance_timezone())
    return ts_local.astimezone(_attendance_timezone())


def _minute_precision(value: datetime) -> time:
    return time(value.hour, value.minute)


def _active_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if not employee.is_active:
        raise ApiError(status_code=403, code="EMPLOYEE_INACTIVE", message="Employee is inactive.")
    return employee


def _record_for_day(db: Session, *, employee_id: int, day_date: date) -> AttendanceRecord | None:
    return db.scalar(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day_date,
        )
    )


def clock_in(db: Session, *, employee_id: int, ts_local: datetime | None = None) -> AttendanceRecord:
    _active_employee(db, employee_id)
    now_local = _to_local(ts_local)
    record = _record_for_day(db, employee_id=employee_id, day_date=now_local.date())

    if record is not None and record.clock_in is not None:
        raise ApiError(status_code=409, code="ALREADY_CLOCKED_IN", message="Already clocked in for this date.")

    if record is None:
        record = AttendanceRecord(employee_id=employee_id, attendance_date=now_local.date())
        db.add(record)

    record.clock_in = _minute_precision(now_local)
    record.status = AttendanceStatus.PRESENT
    db.commit()
    db.refresh(record)
    logger.info(
        "attendance_clock_in",
        extra={"employee_id": employee_id, "date": record.attendance_date, "clock_in": record.clock_in},
    )
    return record


def clock_out(db: Session, *, employee_id: int, ts_local: datetime | None = None) -> AttendanceRecord:
    _active_employee(db, employee_id)
    now_local = _to_local(ts_local)
    record = _record_for_day(db, employee_id=employee_id, day_date=now_local.date())

    if record is None or record.clock_in is None:
        raise ApiError(status_code=409, code="NOT_CLOCKED_IN", message="Clock in before clocking out.")
    if record.clock_out is not None:
        raise ApiError(status_code=409, code="ALREADY_CLOCKED_OUT", message="Already clocked out for this date.")

    out_time = _minute_precision(now_local)
    if out_time < record.clock_in:
        raise ApiError(
            status_code=422,
            code="INVALID_CLOCK_OUT",
            message="Clock-out time cannot be before clock-in time.",
        )

    record.clock_out = out_time
    db.commit()
    db.refresh(record)
    logger.info(
        "attendance_clock_out",
        extra={"employee_id": employee_id, "date": record.attendance_date, "clock_out": record.clock_out},
    )
    return record


def list_attendance(
    db: Session,
    *,
    employee_id: int | None,
    year: int,
    month: int,
) -> list[AttendanceRecord]:
    start_date, end_date, _ = month_bounds(year, month)
    stmt = (
        select(AttendanceRecord)
        .where(
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date,
        )
        .order_by(AttendanceRecord.attendance_date.asc(), AttendanceRecord.employee_id.asc())
    )
    if employee_id is not None:
        stmt = stmt.where(AttendanceRecord.employee_id == employee_id)
    return list(db.scalars(stmt).all())
