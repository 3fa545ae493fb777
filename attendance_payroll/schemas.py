from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from attendance_payroll.models import (
    AttendanceStatus,
    EmployeeRole,
    LeaveSession,
    OvertimeType,
    RequestStatus,
)
from attendance_payroll.services.calendar_policy import normalize_weekend_days
from attendance_payroll.services.monthly_calc import DayStatus


class EmployeeRead(BaseModel):
    id: int
    full_name: str
    email: str
    role: EmployeeRole
    monthly_salary: float | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class EmployeeCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: EmployeeRole = EmployeeRole.USER
    monthly_salary: float | None = Field(default=None, ge=0)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if "@" not in normalized:
            raise ValueError("email must contain '@'.")
        return normalized


class EmployeeUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: EmployeeRole | None = None
    monthly_salary: float | None = Field(default=None, ge=0)
    is_active: bool | None = None


class CompanySettingsUpsert(BaseModel):
    weekend_days: list[str] = Field(default_factory=lambda: ["Saturday", "Sunday"])
    mark_from_time: time = time(9, 0)
    work_start_time: time = time(9, 30)
    work_end_time: time = time(19, 0)

    @field_validator("weekend_days")
    @classmethod
    def _validate_weekend_days(cls, value: list[str]) -> list[str]:
        normalized = normalize_weekend_days(value)
        if len(normalized) >= 7:
            raise ValueError("At least one working day is required.")
        return sorted(normalized)

    @model_validator(mode="after")
    def _validate_work_hours(self) -> "CompanySettingsUpsert":
        if self.work_end_time <= self.work_start_time:
            raise ValueError("work_end_time must be after work_start_time.")
        return self


class CompanySettingsRead(BaseModel):
    id: int
    weekend_days: list[str]
    mark_from_time: time
    work_start_time: time
    work_end_time: time

    model_config = ConfigDict(from_attributes=True)


class HolidayCreate(BaseModel):
    holiday_date: date
    name: str = Field(min_length=1, max_length=255)


class HolidayRead(BaseModel):
    id: int
    holiday_date: date
    name: str

    model_config = ConfigDict(from_attributes=True)


class LeaveTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    is_paid: bool = True
    is_active: bool = True


class LeaveTypeRead(BaseModel):
    id: int
    name: str
    is_paid: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class LeaveBalanceUpsert(BaseModel):
    employee_id: int = Field(ge=1)
    leave_type_id: int = Field(ge=1)
    year: int = Field(ge=1970)
    total_days: float = Field(ge=0, multiple_of=0.5)


class LeaveBalanceRead(BaseModel):
    id: int
    employee_id: int
    leave_type_id: int
    year: int
    total_days: float
    used_days: float
    remaining_days: float

    model_config = ConfigDict(from_attributes=True)


class LeaveApplyRequest(BaseModel):
    leave_type_id: int = Field(ge=1)
    from_date: date
    to_date: date
    from_session: LeaveSession = LeaveSession.FULL
    to_session: LeaveSession = LeaveSession.FULL
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_range(self) -> "LeaveApplyRequest":
        if self.to_date < self.from_date:
            raise ValueError("to_date must be greater than or equal to from_date.")
        return self


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    leave_type_id: int
    from_date: date
    to_date: date
    from_session: LeaveSession
    to_session: LeaveSession
    total_days: float
    status: RequestStatus
    reason: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OvertimeCreateRequest(BaseModel):
    overtime_date: date
    time_from: time
    time_to: time
    description: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_times(self) -> "OvertimeCreateRequest":
        if self.time_to <= self.time_from:
            raise ValueError("time_to must be after time_from.")
        return self


class OvertimeRead(BaseModel):
    id: int
    employee_id: int
    overtime_date: date
    time_from: time
    time_to: time
    hours_worked: float
    overtime_type: OvertimeType
    status: RequestStatus
    description: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClockRequest(BaseModel):
    ts_local: datetime | None = None


class AttendanceRead(BaseModel):
    id: int
    employee_id: int
    attendance_date: date = Field(serialization_alias="date")
    clock_in: time | None = None
    clock_out: time | None = None
    status: AttendanceStatus

    model_config = ConfigDict(from_attributes=True)


class MonthlyDayRead(BaseModel):
    date: date
    weekday: str
    status: DayStatus
    clock_in: time | None = None
    clock_out: time | None = None
    hours: float
    deficit_hours: float
    overtime_hours: float
    leave_days: float = 0.0
    is_half_day: bool = False
    holiday_name: str | None = None


class MonthlyReportRowRead(BaseModel):
    employee_id: int
    full_name: str
    email: str
    year: int
    month: int
    total_days: int
    working_days: int
    present_days: int
    absent_days: int
    leave_days: float
    paid_leave_days: float
    unpaid_leave_days: float
    half_days: int
    holiday_days: int
    weekend_days: int
    upcoming_days: int
    total_hours_worked: float
    deficit_hours: float
    effective_days: float
    overtime_hours: float
    monthly_salary: float | None = None
    daily_rate: float
    calculated_salary: float
    overtime_pay: float
    total_salary_with_overtime: float


class MonthlyEmployeeReportResponse(BaseModel):
    row: MonthlyReportRowRead
    days: list[MonthlyDayRead] = Field(default_factory=list)
