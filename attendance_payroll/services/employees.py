from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.models import Employee
from attendance_payroll.schemas import EmployeeCreate, EmployeeUpdate


def list_employees(db: Session, *, include_inactive: bool = False) -> list[Employee]:
    stmt = select(Employee).order_by(Employee.full_name.asc(), Employee.id.asc())
    if not include_inactive:
        stmt = stmt.where(Employee.is_active.is_(True))
    return list(db.scalars(stmt).all())


def create_employee(db: Session, payload: EmployeeCreate) -> Employee:
    existing = db.scalar(select(Employee).where(Employee.email == payload.email))
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    employee = Employee(
        full_name=payload.full_name.strip(),
        email=payload.email,
        role=payload.role,
        monthly_salary=payload.monthly_salary,
        is_active=True,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def update_employee(db: Session, employee_id: int, payload: EmployeeUpdate) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    # monthly_salary may be explicitly cleared with null
    changes = payload.model_dump(exclude_unset=True)
    if "full_name" in changes and changes["full_name"] is not None:
        employee.full_name = changes["full_name"].strip()
    if changes.get("role") is not None:
        employee.role = changes["role"]
    if "monthly_salary" in changes:
        employee.monthly_salary = changes["monthly_salary"]
    if changes.get("is_active") is not None:
        employee.is_active = changes["is_active"]

    db.commit()
    db.refresh(employee)
    return employee
