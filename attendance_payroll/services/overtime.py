from __future__ import annotations

import logging
from datetime import datetime, time, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.errors import ApiError
from attendance_payroll.models import Employee, OvertimeRecord, OvertimeType, RequestStatus
from attendance_payroll.schemas import OvertimeCreateRequest
from attendance_payroll.services.calendar_policy import is_weekend, month_bounds, normalize_weekend_days
from attendance_payroll.services.company_settings import require_company_settings
from attendance_payroll.services.holidays import is_holiday
from attendance_payroll.services.monthly_calc import span_hours

logger = logging.getLogger("attendance_payroll.overtime")


def overtime_hours(time_from: time, time_to: time) -> float:
    if time_to <= time_from:
        return 0.0
    return round(span_hours(time_from, time_to), 2)


def record_overtime(db: Session, *, employee_id: int, payload: OvertimeCreateRequest) -> OvertimeRecord:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    settings_row = require_company_settings(db)
    weekend_days = normalize_weekend_days(settings_row.weekend_days)
    if is_holiday(db, payload.overtime_date):
        overtime_type = OvertimeType.HOLIDAY
    elif is_weekend(payload.overtime_date, weekend_days):
        overtime_type = OvertimeType.WEEKEND
    else:
        raise ApiError(
            status_code=422,
            code="OVERTIME_NOT_ALLOWED",
            message="Overtime can only be recorded on weekends or holidays.",
        )

    existing = db.scalar(
        select(OvertimeRecord).where(
            OvertimeRecord.employee_id == employee_id,
            OvertimeRecord.overtime_date == payload.overtime_date,
            OvertimeRecord.status.in_((RequestStatus.PENDING, RequestStatus.APPROVED)),
        )
    )
    if existing is not None:
        raise ApiError(
            status_code=409,
            code="OVERTIME_EXISTS",
            message="Overtime is already recorded for this date.",
        )

    record = OvertimeRecord(
        employee_id=employee_id,
        overtime_date=payload.overtime_date,
        time_from=payload.time_from,
        time_to=payload.time_to,
        hours_worked=overtime_hours(payload.time_from, payload.time_to),
        overtime_type=overtime_type,
        status=RequestStatus.PENDING,
        description=payload.description,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "overtime_recorded",
        extra={
            "employee_id": employee_id,
            "overtime_id": record.id,
            "overtime_type": overtime_type.value,
            "hours_worked": record.hours_worked,
        },
    )
    return record


def list_overtime(
    db: Session,
    *,
    employee_id: int | None = None,
    year: int | None = None,
    month: int | None = None,
    status_filter: RequestStatus | None = None,
) -> list[OvertimeRecord]:
    if (year is None) != (month is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="year and month must be provided together",
        )

    stmt = select(OvertimeRecord).order_by(OvertimeRecord.overtime_date.desc(), OvertimeRecord.id.desc())
    if employee_id is not None:
        stmt = stmt.where(OvertimeRecord.employee_id == employee_id)
    if status_filter is not None:
        stmt = stmt.where(OvertimeRecord.status == status_filter)
    if year is not None and month is not None:
        start, end, _ = month_bounds(year, month)
        stmt = stmt.where(OvertimeRecord.overtime_date >= start, OvertimeRecord.overtime_date <= end)
    return list(db.scalars(stmt).all())


def _review_overtime(db: Session, overtime_id: int, new_status: RequestStatus) -> OvertimeRecord:
    record = db.get(OvertimeRecord, overtime_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Overtime record not found")
    if record.status != RequestStatus.PENDING:
        raise ApiError(
            status_code=409,
            code="OVERTIME_NOT_PENDING",
            message="Only pending overtime can be reviewed.",
        )

    record.status = new_status
    record.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    return record


def approve_overtime(db: Session, overtime_id: int) -> OvertimeRecord:
    return _review_overtime(db, overtime_id, RequestStatus.APPROVED)


def reject_overtime(db: Session, overtime_id: int) -> OvertimeRecord:
    return _review_overtime(db, overtime_id, RequestStatus.REJECTED)
