from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from attendance_payroll.services.monthly_calc import STANDARD_WORKDAY_HOURS, MonthlyAggregate

OVERTIME_MULTIPLIER = 1.5


@dataclass(frozen=True)
class SalaryComputation:
    monthly_salary: float | None
    daily_rate: float
    hourly_rate: float
    overtime_hourly_rate: float
    calculated_salary: float
    overtime_pay: float

    @property
    def total_salary_with_overtime(self) -> float:
        return self.calculated_salary + self.overtime_pay


def daily_rate(monthly_salary: float | None, working_days: int) -> float:
    # Singapore MOM: monthly salary / working days in the month.
    if not monthly_salary or working_days <= 0:
        return 0.0
    return monthly_salary / working_days


def overtime_hourly_rate(rate_per_day: float) -> float:
    return rate_per_day / STANDARD_WORKDAY_HOURS * OVERTIME_MULTIPLIER


def calculate_salary(
    aggregate: MonthlyAggregate,
    *,
    monthly_salary: float | None,
    overtime_hours: Iterable[float] = (),
) -> SalaryComputation:
    rate_per_day = daily_rate(monthly_salary, aggregate.working_days)
    hourly = rate_per_day / STANDARD_WORKDAY_HOURS
    ot_rate = overtime_hourly_rate(rate_per_day)
    overtime_pay = 0.0
    for hours in overtime_hours:
        overtime_pay += ot_rate * hours
    return SalaryComputation(
        monthly_salary=monthly_salary,
        daily_rate=rate_per_day,
        hourly_rate=hourly,
        overtime_hourly_rate=ot_rate,
        calculated_salary=aggregate.effective_days * rate_per_day,
        overtime_pay=overtime_pay,
    )
