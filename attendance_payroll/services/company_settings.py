from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_payroll.errors import ApiError
from attendance_payroll.models import CompanySettings
from attendance_payroll.schemas import CompanySettingsUpsert


def get_company_settings(db: Session) -> CompanySettings | None:
    return db.scalar(select(CompanySettings).order_by(CompanySettings.id.asc()))


def require_company_settings(db: Session) -> CompanySettings:
    settings_row = get_company_settings(db)
    if settings_row is None:
        raise ApiError(
            status_code=409,
            code="COMPANY_SETTINGS_MISSING",
            message="Company settings are not configured; weekends cannot be resolved.",
        )
    return settings_row


def upsert_company_settings(db: Session, payload: CompanySettingsUpsert) -> CompanySettings:
    settings_row = get_company_settings(db)
    if settings_row is None:
        settings_row = CompanySettings()
        db.add(settings_row)

    settings_row.weekend_days = list(payload.weekend_days)
    settings_row.mark_from_time = payload.mark_from_time
    settings_row.work_start_time = payload.work_start_time
    settings_row.work_end_time = payload.work_end_time

    db.commit()
    db.refresh(settings_row)
    return settings_row
