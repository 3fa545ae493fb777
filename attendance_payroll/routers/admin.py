from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from attendance_payroll.audit import log_request_audit
from attendance_payroll.db import get_db
from attendance_payroll.models import AuditActorType, RequestStatus
from attendance_payroll.schemas import (
    AttendanceRead,
    CompanySettingsRead,
    CompanySettingsUpsert,
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
    HolidayCreate,
    HolidayRead,
    LeaveBalanceRead,
    LeaveBalanceUpsert,
    LeaveRead,
    LeaveTypeCreate,
    LeaveTypeRead,
    MonthlyEmployeeReportResponse,
    MonthlyReportRowRead,
    OvertimeRead,
)
from attendance_payroll.services.attendance import list_attendance
from attendance_payroll.services.company_settings import get_company_settings, upsert_company_settings
from attendance_payroll.services.employees import create_employee, list_employees, update_employee
from attendance_payroll.services.exports import (
    build_monthly_report_csv,
    build_monthly_report_xlsx_bytes,
    monthly_export_filename,
)
from attendance_payroll.services.holidays import create_holiday, delete_holiday, list_holidays
from attendance_payroll.services.leaves import (
    approve_leave,
    create_leave_type,
    delete_leave,
    list_leave_balances,
    list_leave_types,
    list_leaves,
    reject_leave,
    upsert_leave_balance,
)
from attendance_payroll.services.monthly import (
    build_employee_monthly_report,
    build_monthly_report,
    to_report_row_read,
)
from attendance_payroll.services.overtime import approve_overtime, list_overtime, reject_overtime

router = APIRouter(tags=["admin"])
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _admin_audit(
    db: Session,
    request: Request,
    *,
    action: str,
    entity_type: str,
    entity_id: str,
    details: dict | None = None,
) -> None:
    log_request_audit(
        db,
        request,
        actor_type=AuditActorType.ADMIN,
        actor_id="admin",
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )


@router.get("/api/admin/employees", response_model=list[EmployeeRead])
def list_employees_endpoint(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[EmployeeRead]:
    return list_employees(db, include_inactive=include_inactive)


@router.post("/api/admin/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee_endpoint(
    payload: EmployeeCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = create_employee(db, payload)
    _admin_audit(db, request, action="EMPLOYEE_CREATED", entity_type="employee", entity_id=str(employee.id))
    return employee


@router.patch("/api/admin/employees/{employee_id}", response_model=EmployeeRead)
def update_employee_endpoint(
    employee_id: int,
    payload: EmployeeUpdate,
    request: Request,
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = update_employee(db, employee_id, payload)
    _admin_audit(
        db,
        request,
        action="EMPLOYEE_UPDATED",
        entity_type="employee",
        entity_id=str(employee_id),
        details=payload.model_dump(mode="json", exclude_unset=True),
    )
    return employee


@router.get("/api/admin/company-settings", response_model=CompanySettingsRead)
def get_company_settings_endpoint(db: Session = Depends(get_db)) -> CompanySettingsRead:
    settings_row = get_company_settings(db)
    if settings_row is None:
        raise HTTPException(status_code=404, detail="Company settings not configured")
    return settings_row


@router.put("/api/admin/company-settings", response_model=CompanySettingsRead)
def upsert_company_settings_endpoint(
    payload: CompanySettingsUpsert,
    request: Request,
    db: Session = Depends(get_db),
) -> CompanySettingsRead:
    settings_row = upsert_company_settings(db, payload)
    _admin_audit(
        db,
        request,
        action="COMPANY_SETTINGS_UPDATED",
        entity_type="company_settings",
        entity_id=str(settings_row.id),
        details={"weekend_days": list(payload.weekend_days)},
    )
    return settings_row


@router.get("/api/admin/holidays", response_model=list[HolidayRead])
def list_holidays_endpoint(
    year: int | None = Query(default=None, ge=1970),
    db: Session = Depends(get_db),
) -> list[HolidayRead]:
    if year is None:
        return list_holidays(db)
    return list_holidays(db, start_date=date(year, 1, 1), end_date=date(year, 12, 31))


@router.post("/api/admin/holidays", response_model=HolidayRead, status_code=status.HTTP_201_CREATED)
def create_holiday_endpoint(
    payload: HolidayCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> HolidayRead:
    holiday = create_holiday(db, payload)
    _admin_audit(
        db,
        request,
        action="HOLIDAY_CREATED",
        entity_type="holiday",
        entity_id=str(holiday.id),
        details={"holiday_date": holiday.holiday_date.isoformat(), "name": holiday.name},
    )
    return holiday


@router.delete("/api/admin/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday_endpoint(
    holiday_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> None:
    delete_holiday(db, holiday_id)
    _admin_audit(db, request, action="HOLIDAY_DELETED", entity_type="holiday", entity_id=str(holiday_id))


@router.get("/api/admin/leave-types", response_model=list[LeaveTypeRead])
def list_leave_types_endpoint(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[LeaveTypeRead]:
    return list_leave_types(db, include_inactive=include_inactive)


@router.post("/api/admin/leave-types", response_model=LeaveTypeRead, status_code=status.HTTP_201_CREATED)
def create_leave_type_endpoint(
    payload: LeaveTypeCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveTypeRead:
    leave_type = create_leave_type(db, payload)
    _admin_audit(
        db,
        request,
        action="LEAVE_TYPE_CREATED",
        entity_type="leave_type",
        entity_id=str(leave_type.id),
        details={"name": leave_type.name, "is_paid": leave_type.is_paid},
    )
    return leave_type


@router.get("/api/admin/leave-balances", response_model=list[LeaveBalanceRead])
def list_leave_balances_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    year: int | None = Query(default=None, ge=1970),
    db: Session = Depends(get_db),
) -> list[LeaveBalanceRead]:
    return list_leave_balances(db, employee_id=employee_id, year=year)


@router.put("/api/admin/leave-balances", response_model=LeaveBalanceRead)
def upsert_leave_balance_endpoint(
    payload: LeaveBalanceUpsert,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveBalanceRead:
    balance = upsert_leave_balance(db, payload)
    _admin_audit(
        db,
        request,
        action="LEAVE_BALANCE_SET",
        entity_type="leave_balance",
        entity_id=str(balance.id),
        details=payload.model_dump(mode="json"),
    )
    return balance


@router.get("/api/admin/leaves", response_model=list[LeaveRead])
def list_leaves_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[LeaveRead]:
    return list_leaves(
        db,
        employee_id=employee_id,
        year=year,
        month=month,
        status_filter=status_filter,
    )


@router.post("/api/admin/leaves/{leave_id}/approve", response_model=LeaveRead)
def approve_leave_endpoint(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = approve_leave(db, leave_id)
    _admin_audit(
        db,
        request,
        action="LEAVE_APPROVED",
        entity_type="leave",
        entity_id=str(leave_id),
        details={"employee_id": leave.employee_id, "total_days": leave.total_days},
    )
    return leave


@router.post("/api/admin/leaves/{leave_id}/reject", response_model=LeaveRead)
def reject_leave_endpoint(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = reject_leave(db, leave_id)
    _admin_audit(
        db,
        request,
        action="LEAVE_REJECTED",
        entity_type="leave",
        entity_id=str(leave_id),
        details={"employee_id": leave.employee_id},
    )
    return leave


@router.delete("/api/admin/leaves/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_endpoint(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> None:
    delete_leave(db, leave_id)
    _admin_audit(db, request, action="LEAVE_DELETED", entity_type="leave", entity_id=str(leave_id))


@router.get("/api/admin/overtime", response_model=list[OvertimeRead])
def list_overtime_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[OvertimeRead]:
    return list_overtime(
        db,
        employee_id=employee_id,
        year=year,
        month=month,
        status_filter=status_filter,
    )


@router.post("/api/admin/overtime/{overtime_id}/approve", response_model=OvertimeRead)
def approve_overtime_endpoint(
    overtime_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> OvertimeRead:
    record = approve_overtime(db, overtime_id)
    _admin_audit(
        db,
        request,
        action="OVERTIME_APPROVED",
        entity_type="overtime",
        entity_id=str(overtime_id),
        details={"employee_id": record.employee_id, "hours_worked": record.hours_worked},
    )
    return record


@router.post("/api/admin/overtime/{overtime_id}/reject", response_model=OvertimeRead)
def reject_overtime_endpoint(
    overtime_id: int,
    request: Request,
    db: Session = Depends(get_db),
) -> OvertimeRead:
    record = reject_overtime(db, overtime_id)
    _admin_audit(
        db,
        request,
        action="OVERTIME_REJECTED",
        entity_type="overtime",
        entity_id=str(overtime_id),
        details={"employee_id": record.employee_id},
    )
    return record


@router.get("/api/admin/attendance", response_model=list[AttendanceRead])
def list_attendance_endpoint(
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    employee_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[AttendanceRead]:
    return list_attendance(db, employee_id=employee_id, year=year, month=month)


@router.get("/api/admin/reports/monthly", response_model=list[MonthlyReportRowRead])
def monthly_report_endpoint(
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    employee_id: int | None = Query(default=None, ge=1),
    include_inactive: bool | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[MonthlyReportRowRead]:
    rows = build_monthly_report(
        db,
        year=year,
        month=month,
        employee_id=employee_id,
        include_inactive=include_inactive,
    )
    return [to_report_row_read(row) for row in rows]


@router.get("/api/admin/reports/monthly/employee", response_model=MonthlyEmployeeReportResponse)
def monthly_employee_report_endpoint(
    employee_id: int = Query(..., ge=1),
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
) -> MonthlyEmployeeReportResponse:
    return build_employee_monthly_report(db, employee_id=employee_id, year=year, month=month)


@router.get("/api/admin/export/monthly.csv")
def export_monthly_csv(
    request: Request,
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    employee_id: int | None = Query(default=None, ge=1),
    include_inactive: bool | None = Query(default=None),
    db: Session = Depends(get_db),
) -> Response:
    rows = build_monthly_report(
        db,
        year=year,
        month=month,
        employee_id=employee_id,
        include_inactive=include_inactive,
    )
    payload = build_monthly_report_csv(rows)
    _admin_audit(
        db,
        request,
        action="MONTHLY_EXPORT_CSV",
        entity_type="export",
        entity_id=f"{year}-{month:02d}",
        details={"employee_id": employee_id, "row_count": len(rows)},
    )
    return Response(
        content=payload,
        media_type=CSV_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{monthly_export_filename(year, month, "csv")}"',
        },
    )


@router.get("/api/admin/export/monthly.xlsx")
def export_monthly_xlsx(
    request: Request,
    year: int = Query(..., ge=1970),
    month: int = Query(..., ge=1, le=12),
    employee_id: int | None = Query(default=None, ge=1),
    include_inactive: bool | None = Query(default=None),
    include_daily_sheet: bool = Query(default=True),
    db: Session = Depends(get_db),
) -> Response:
    rows = build_monthly_report(
        db,
        year=year,
        month=month,
        employee_id=employee_id,
        include_inactive=include_inactive,
    )
    payload = build_monthly_report_xlsx_bytes(
        rows,
        year=year,
        month=month,
        include_daily_sheet=include_daily_sheet,
    )
    _admin_audit(
        db,
        request,
        action="MONTHLY_EXPORT_XLSX",
        entity_type="export",
        entity_id=f"{year}-{month:02d}",
        details={"employee_id": employee_id, "row_count": len(rows)},
    )
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{monthly_export_filename(year, month, "xlsx")}"',
        },
    )
