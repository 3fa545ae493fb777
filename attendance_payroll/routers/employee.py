from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from attendance_payroll.audit import log_request_audit
from attendance_payroll.db import get_db
from attendance_payroll.models import AuditActorType, RequestStatus
from attendance_payroll.schemas import (
    AttendanceRead,
    ClockRequest,
    LeaveApplyRequest,
    LeaveBalanceRead,
    LeaveRead,
    MonthlyEmployeeReportResponse,
    OvertimeCreateRequest,
    OvertimeRead,
)
from attendance_payroll.services.attendance import clock_in, clock_out, list_attendance
from attendance_payroll.services.leaves import apply_leave, list_leave_balances, list_leaves
from attendance_payroll.services.monthly import build_employee_monthly_report
from attendance_payroll.services.overtime import list_overtime, record_overtime

router = APIRouter(tags=["employee"])


@router.post("/api/employees/{employee_id}/clock-in", response_model=AttendanceRead)
def clock_in_endpoint(
    employee_id: int,
    request: Request,
    payload: ClockRequest | None = None,
    db: Session = Depends(get_db),
) -> AttendanceRead:
    request.state.employee_id = employee_id
    record = clock_in(db, employee_id=employee_id, ts_local=payload.ts_local if payload else None)
    return record


@router.post("/api/employees/{employee_id}/clock-out", response_model=AttendanceRead)
def clock_out_endpoint(
    employee_id: int,
    request: Request,
    payload: ClockRequest | None = None,
    db: Session = Depends(get_db),
) -> AttendanceRead:
    request.state.employee_id = employee_id
    record = clock_out(db, employee_id=employee_id, ts_local=payload.ts_local if payload else None)
    return record


@router.get("/api/employees/{employee_id}/attendance", response_model=list[AttendanceRead])
def list_own_attendance(
    employee_id: int,
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
) -> list[AttendanceRead]:
    return list_attendance(db, employee_id=employee_id, year=year, month=month)


@router.post(
    "/api/employees/{employee_id}/leaves",
    response_model=LeaveRead,
    status_code=status.HTTP_201_CREATED,
)
def apply_leave_endpoint(
    employee_id: int,
    payload: LeaveApplyRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveRead:
    request.state.employee_id = employee_id
    leave = apply_leave(db, employee_id=employee_id, payload=payload)
    log_request_audit(
        db,
        request,
        actor_type=AuditActorType.EMPLOYEE,
        actor_id=str(employee_id),
        action="LEAVE_APPLIED",
        entity_type="leave",
        entity_id=str(leave.id),
        details={
            "from_date": leave.from_date.isoformat(),
            "to_date": leave.to_date.isoformat(),
            "total_days": leave.total_days,
        },
    )
    return leave


@router.get("/api/employees/{employee_id}/leaves", response_model=list[LeaveRead])
def list_own_leaves(
    employee_id: int,
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[LeaveRead]:
    return list_leaves(db, employee_id=employee_id, year=year, month=month, status_filter=status_filter)


@router.get("/api/employees/{employee_id}/leave-balances", response_model=list[LeaveBalanceRead])
def list_own_leave_balances(
    employee_id: int,
    year: int | None = Query(default=None, ge=1970),
    db: Session = Depends(get_db),
) -> list[LeaveBalanceRead]:
    return list_leave_balances(db, employee_id=employee_id, year=year)


@router.post(
    "/api/employees/{employee_id}/overtime",
    response_model=OvertimeRead,
    status_code=status.HTTP_201_CREATED,
)
def record_overtime_endpoint(
    employee_id: int,
    payload: OvertimeCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> OvertimeRead:
    request.state.employee_id = employee_id
    record = record_overtime(db, employee_id=employee_id, payload=payload)
    log_request_audit(
        db,
        request,
        actor_type=AuditActorType.EMPLOYEE,
        actor_id=str(employee_id),
        action="OVERTIME_RECORDED",
        entity_type="overtime",
        entity_id=str(record.id),
        details={"overtime_date": record.overtime_date.isoformat(), "hours_worked": record.hours_worked},
    )
    return record


@router.get("/api/employees/{employee_id}/overtime", response_model=list[OvertimeRead])
def list_own_overtime(
    employee_id: int,
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    db: Session = Depends(get_db),
) -> list[OvertimeRead]:
    return list_overtime(db, employee_id=employee_id, year=year, month=month)


@router.get("/api/employees/{employee_id}/reports/monthly", response_model=MonthlyEmployeeReportResponse)
def own_monthly_report(
    employee_id: int,
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
) -> MonthlyEmployeeReportResponse:
    return build_employee_monthly_report(db, employee_id=employee_id, year=year, month=month)
