from __future__ import annotations

from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.models import Holiday
from attendance_payroll.schemas import HolidayCreate
from attendance_payroll.services.calendar_policy import month_bounds


def create_holiday(db: Session, payload: HolidayCreate) -> Holiday:
    existing = db.scalar(select(Holiday).where(Holiday.holiday_date == payload.holiday_date))
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A holiday already exists for this date",
        )

    holiday = Holiday(holiday_date=payload.holiday_date, name=payload.name.strip())
    db.add(holiday)
    db.commit()
    db.refresh(holiday)
    return holiday


def list_holidays(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Holiday]:
    stmt = select(Holiday).order_by(Holiday.holiday_date.asc())
    if start_date is not None:
        stmt = stmt.where(Holiday.holiday_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Holiday.holiday_date <= end_date)
    return list(db.scalars(stmt).all())


def list_holidays_for_month(db: Session, *, year: int, month: int) -> list[Holiday]:
    start_date, end_date, _ = month_bounds(year, month)
    return list_holidays(db, start_date=start_date, end_date=end_date)


def is_holiday(db: Session, day_date: date) -> bool:
    return db.scalar(select(Holiday.id).where(Holiday.holiday_date == day_date)) is not None


def delete_holiday(db: Session, holiday_id: int) -> None:
    holiday = db.get(Holiday, holiday_id)
    if holiday is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Holiday not found")

    db.delete(holiday)
    db.commit()
