from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.errors import ApiError
from attendance_payroll.models import Employee, LeaveBalance, LeaveRequest, LeaveType, RequestStatus
from attendance_payroll.schemas import LeaveApplyRequest, LeaveBalanceUpsert, LeaveTypeCreate
from attendance_payroll.services.calendar_policy import month_bounds, normalize_weekend_days
from attendance_payroll.services.company_settings import require_company_settings
from attendance_payroll.services.leave_expansion import leave_day_count

logger = logging.getLogger("attendance_payroll.leaves")

_BLOCKING_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)


def create_leave_type(db: Session, payload: LeaveTypeCreate) -> LeaveType:
    existing = db.scalar(select(LeaveType).where(LeaveType.name == payload.name.strip()))
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Leave type already exists")

    leave_type = LeaveType(name=payload.name.strip(), is_paid=payload.is_paid, is_active=payload.is_active)
    db.add(leave_type)
    db.commit()
    db.refresh(leave_type)
    return leave_type


def list_leave_types(db: Session, *, include_inactive: bool = False) -> list[LeaveType]:
    stmt = select(LeaveType).order_by(LeaveType.name.asc())
    if not include_inactive:
        stmt = stmt.where(LeaveType.is_active.is_(True))
    return list(db.scalars(stmt).all())


def upsert_leave_balance(db: Session, payload: LeaveBalanceUpsert) -> LeaveBalance:
    if db.get(Employee, payload.employee_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if db.get(LeaveType, payload.leave_type_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave type not found")

    balance = db.scalar(
        select(LeaveBalance).where(
            LeaveBalance.employee_id == payload.employee_id,
            LeaveBalance.leave_type_id == payload.leave_type_id,
            LeaveBalance.year == payload.year,
        )
    )
    if balance is None:
        balance = LeaveBalance(
            employee_id=payload.employee_id,
            leave_type_id=payload.leave_type_id,
            year=payload.year,
            used_days=0.0,
        )
        db.add(balance)
    elif payload.total_days < (balance.used_days or 0.0):
        raise ApiError(
            status_code=409,
            code="BALANCE_BELOW_USED",
            message="total_days cannot be lower than the days already used.",
        )

    balance.total_days = payload.total_days
    db.commit()
    db.refresh(balance)
    return balance


def list_leave_balances(
    db: Session,
    *,
    employee_id: int | None = None,
    year: int | None = None,
) -> list[LeaveBalance]:
    stmt = select(LeaveBalance).order_by(LeaveBalance.employee_id.asc(), LeaveBalance.leave_type_id.asc())
    if employee_id is not None:
        stmt = stmt.where(LeaveBalance.employee_id == employee_id)
    if year is not None:
        stmt = stmt.where(LeaveBalance.year == year)
    return list(db.scalars(stmt).all())


def _find_overlapping_leave(db: Session, *, employee_id: int, payload: LeaveApplyRequest) -> LeaveRequest | None:
    return db.scalar(
        select(LeaveRequest)
        .where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(_BLOCKING_STATUSES),
            LeaveRequest.from_date <= payload.to_date,
            LeaveRequest.to_date >= payload.from_date,
        )
        .order_by(LeaveRequest.from_date.asc())
    )


def apply_leave(db: Session, *, employee_id: int, payload: LeaveApplyRequest) -> LeaveRequest:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if not employee.is_active:
        raise ApiError(status_code=403, code="EMPLOYEE_INACTIVE", message="Employee is inactive.")

    leave_type = db.get(LeaveType, payload.leave_type_id)
    if leave_type is None or not leave_type.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave type not found")

    overlapping = _find_overlapping_leave(db, employee_id=employee_id, payload=payload)
    if overlapping is not None:
        raise ApiError(
            status_code=409,
            code="LEAVE_OVERLAP",
            message=(
                f"Leave overlaps an existing request from {overlapping.from_date.isoformat()} "
                f"to {overlapping.to_date.isoformat()}."
            ),
        )

    settings_row = require_company_settings(db)
    total_days = leave_day_count(
        from_date=payload.from_date,
        to_date=payload.to_date,
        from_session=payload.from_session,
        to_session=payload.to_session,
        weekend_days=normalize_weekend_days(settings_row.weekend_days),
    )
    if total_days <= 0:
        raise ApiError(
            status_code=422,
            code="LEAVE_NO_WORKING_DAYS",
            message="The requested range contains no working days.",
        )

    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type_id=leave_type.id,
        from_date=payload.from_date,
        to_date=payload.to_date,
        from_session=payload.from_session,
        to_session=payload.to_session,
        total_days=total_days,
        status=RequestStatus.PENDING,
        reason=payload.reason,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    logger.info(
        "leave_applied",
        extra={"employee_id": employee_id, "leave_id": leave.id, "total_days": total_days},
    )
    return leave


def list_leaves(
    db: Session,
    *,
    employee_id: int | None,
    year: int | None,
    month: int | None,
    status_filter: RequestStatus | None = None,
) -> list[LeaveRequest]:
    if (year is None) != (month is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="year and month must be provided together",
        )

    stmt = select(LeaveRequest).order_by(LeaveRequest.from_date.asc(), LeaveRequest.id.asc())
    if employee_id is not None:
        stmt = stmt.where(LeaveRequest.employee_id == employee_id)
    if status_filter is not None:
        stmt = stmt.where(LeaveRequest.status == status_filter)

    if year is not None and month is not None:
        start, end, _ = month_bounds(year, month)
        stmt = stmt.where(
            LeaveRequest.from_date <= end,
            LeaveRequest.to_date >= start,
        )

    return list(db.scalars(stmt).all())


def _get_leave(db: Session, leave_id: int) -> LeaveRequest:
    leave = db.get(LeaveRequest, leave_id)
    if leave is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave not found")
    return leave


def _balance_for(db: Session, leave: LeaveRequest) -> LeaveBalance | None:
    # Only paid leave draws on an allocation, tracked per year of the leave start date.
    leave_type = db.get(LeaveType, leave.leave_type_id)
    if leave_type is None or not leave_type.is_paid:
        return None
    return db.scalar(
        select(LeaveBalance).where(
            LeaveBalance.employee_id == leave.employee_id,
            LeaveBalance.leave_type_id == leave.leave_type_id,
            LeaveBalance.year == leave.from_date.year,
        )
    )


def approve_leave(db: Session, leave_id: int) -> LeaveRequest:
    leave = _get_leave(db, leave_id)
    if leave.status != RequestStatus.PENDING:
        raise ApiError(status_code=409, code="LEAVE_NOT_PENDING", message="Only pending leaves can be approved.")

    balance = _balance_for(db, leave)
    if balance is not None:
        if balance.remaining_days < leave.total_days:
            raise ApiError(
                status_code=409,
                code="INSUFFICIENT_LEAVE_BALANCE",
                message=f"Only {balance.remaining_days:g} day(s) remain for this leave type.",
            )
        balance.used_days = (balance.used_days or 0.0) + leave.total_days

    leave.status = RequestStatus.APPROVED
    leave.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(leave)
    logger.info(
        "leave_approved",
        extra={"leave_id": leave.id, "employee_id": leave.employee_id, "total_days": leave.total_days},
    )
    return leave


def reject_leave(db: Session, leave_id: int) -> LeaveRequest:
    leave = _get_leave(db, leave_id)
    if leave.status != RequestStatus.PENDING:
        raise ApiError(status_code=409, code="LEAVE_NOT_PENDING", message="Only pending leaves can be rejected.")

    leave.status = RequestStatus.REJECTED
    leave.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(leave)
    return leave


def delete_leave(db: Session, leave_id: int) -> None:
    leave = _get_leave(db, leave_id)
    if leave.status == RequestStatus.APPROVED:
        balance = _balance_for(db, leave)
        if balance is not None:
            balance.used_days = max(0.0, (balance.used_days or 0.0) - leave.total_days)

    db.delete(leave)
    db.commit()
