from __future__ import annotations

import unittest
from datetime import date, time

from fastapi import HTTPException

from attendance_payroll.errors import ApiError
from attendance_payroll.models import (
    CompanySettings,
    Employee,
    OvertimeRecord,
    OvertimeType,
    RequestStatus,
)
from attendance_payroll.schemas import OvertimeCreateRequest
from attendance_payroll.services.overtime import approve_overtime, overtime_hours, record_overtime


class _FakeDB:
    def __init__(
        self,
        *,
        objects: dict[tuple[type, int], object] | None = None,
        scalar_results: list[object | None] | None = None,
    ):
        self._objects = objects or {}
        self._scalar_results = list(scalar_results or [])
        self.added: list[object] = []
        self.commits = 0

    def get(self, model, pk):  # type: ignore[no-untyped-def]
        return self._objects.get((model, pk))

    def scalar(self, _statement):  # type: ignore[no-untyped-def]
        if not self._scalar_results:
            return None
        return self._scalar_results.pop(0)

    def add(self, obj) -> None:  # type: ignore[no-untyped-def]
        obj.id = 200 + len(self.added)
        self.added.append(obj)

    def commit(self) -> None:
        self.commits += 1

    def refresh(self, _obj) -> None:  # type: ignore[no-untyped-def]
        return None


def _employee() -> Employee:
    return Employee(id=1, full_name="Alice Tan", email="alice@example.com", is_active=True)


def _settings() -> CompanySettings:
    return CompanySettings(id=1, weekend_days=["Saturday", "Sunday"])


def _payload(overtime_date: date) -> OvertimeCreateRequest:
    return OvertimeCreateRequest(overtime_date=overtime_date, time_from=time(9, 0), time_to=time(13, 0))


class OvertimeHoursTests(unittest.TestCase):
    def test_hours_between_times(self) -> None:
        self.assertEqual(overtime_hours(time(9, 0), time(13, 30)), 4.5)

    def test_non_positive_span_is_zero(self) -> None:
        self.assertEqual(overtime_hours(time(13, 0), time(9, 0)), 0.0)


class RecordOvertimeTests(unittest.TestCase):
    def test_weekend_overtime_is_recorded_pending(self) -> None:
        # settings, holiday lookup, existing record lookup
        db = _FakeDB(objects={(Employee, 1): _employee()}, scalar_results=[_settings(), None, None])

        record = record_overtime(db, employee_id=1, payload=_payload(date(2026, 1, 10)))  # type: ignore[arg-type]

        self.assertEqual(record.overtime_type, OvertimeType.WEEKEND)
        self.assertEqual(record.status, RequestStatus.PENDING)
        self.assertEqual(record.hours_worked, 4.0)
        self.assertEqual(db.commits, 1)

    def test_holiday_overtime_is_typed_holiday(self) -> None:
        db = _FakeDB(objects={(Employee, 1): _employee()}, scalar_results=[_settings(), 12, None])

        record = record_overtime(db, employee_id=1, payload=_payload(date(2026, 1, 1)))  # type: ignore[arg-type]

        self.assertEqual(record.overtime_type, OvertimeType.HOLIDAY)

    def test_weekday_overtime_is_rejected(self) -> None:
        db = _FakeDB(objects={(Employee, 1): _employee()}, scalar_results=[_settings(), None])

        with self.assertRaises(ApiError) as ctx:
            record_overtime(db, employee_id=1, payload=_payload(date(2026, 1, 7)))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(ctx.exception.code, "OVERTIME_NOT_ALLOWED")
        self.assertEqual(db.added, [])

    def test_duplicate_overtime_for_date_conflicts(self) -> None:
        existing = OvertimeRecord(id=5, employee_id=1, overtime_date=date(2026, 1, 10), status=RequestStatus.PENDING)
        db = _FakeDB(objects={(Employee, 1): _employee()}, scalar_results=[_settings(), None, existing])

        with self.assertRaises(ApiError) as ctx:
            record_overtime(db, employee_id=1, payload=_payload(date(2026, 1, 10)))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "OVERTIME_EXISTS")

    def test_unknown_employee(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            record_overtime(_FakeDB(), employee_id=99, payload=_payload(date(2026, 1, 10)))  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 404)


class ReviewOvertimeTests(unittest.TestCase):
    def test_approve_pending(self) -> None:
        record = OvertimeRecord(id=5, employee_id=1, overtime_date=date(2026, 1, 10), status=RequestStatus.PENDING)
        db = _FakeDB(objects={(OvertimeRecord, 5): record})

        approved = approve_overtime(db, 5)  # type: ignore[arg-type]

        self.assertEqual(approved.status, RequestStatus.APPROVED)
        self.assertIsNotNone(approved.reviewed_at)

    def test_cannot_review_twice(self) -> None:
        record = OvertimeRecord(id=5, employee_id=1, overtime_date=date(2026, 1, 10), status=RequestStatus.APPROVED)
        db = _FakeDB(objects={(OvertimeRecord, 5): record})

        with self.assertRaises(ApiError) as ctx:
            approve_overtime(db, 5)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "OVERTIME_NOT_PENDING")


if __name__ == "__main__":
    unittest.main()
