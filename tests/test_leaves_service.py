from __future__ import annotations

import unittest
from datetime import date

from fastapi import HTTPException

from attendance_payroll.errors import ApiError
from attendance_payroll.models import (
    CompanySettings,
    Employee,
    LeaveBalance,
    LeaveRequest,
    LeaveSession,
    LeaveType,
    RequestStatus,
)
from attendance_payroll.schemas import LeaveApplyRequest, LeaveBalanceUpsert
from attendance_payroll.services.leaves import (
    apply_leave,
    approve_leave,
    delete_leave,
    reject_leave,
    upsert_leave_balance,
)


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
        self.deleted: list[object] = []
        self.commits = 0

    def get(self, model, pk):  # type: ignore[no-untyped-def]
        return self._objects.get((model, pk))

    def scalar(self, _statement):  # type: ignore[no-untyped-def]
        if not self._scalar_results:
            return None
        return self._scalar_results.pop(0)

    def add(self, obj) -> None:  # type: ignore[no-untyped-def]
        if getattr(obj, "id", None) is None:
            obj.id = 100 + len(self.added)
        self.added.append(obj)

    def delete(self, obj) -> None:  # type: ignore[no-untyped-def]
        self.deleted.append(obj)

    def commit(self) -> None:
        self.commits += 1

    def refresh(self, _obj) -> None:  # type: ignore[no-untyped-def]
        return None


def _employee(is_active: bool = True) -> Employee:
    return Employee(id=1, full_name="Alice Tan", email="alice@example.com", is_active=is_active)


def _annual_leave() -> LeaveType:
    return LeaveType(id=3, name="Annual Leave", is_paid=True, is_active=True)


def _settings() -> CompanySettings:
    return CompanySettings(id=1, weekend_days=["Saturday", "Sunday"])


def _pending_leave(total_days: float = 3.0) -> LeaveRequest:
    return LeaveRequest(
        id=50,
        employee_id=1,
        leave_type_id=3,
        from_date=date(2026, 1, 5),
        to_date=date(2026, 1, 7),
        from_session=LeaveSession.FULL,
        to_session=LeaveSession.FULL,
        total_days=total_days,
        status=RequestStatus.PENDING,
    )


class ApplyLeaveTests(unittest.TestCase):
    def test_apply_leave_computes_working_day_total(self) -> None:
        db = _FakeDB(
            objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()},
            scalar_results=[None, _settings()],
        )
        payload = LeaveApplyRequest(
            leave_type_id=3,
            from_date=date(2026, 1, 9),
            to_date=date(2026, 1, 13),
            from_session=LeaveSession.AFTERNOON,
            to_session=LeaveSession.MORNING,
        )

        leave = apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(leave.total_days, 2.0)
        self.assertEqual(leave.status, RequestStatus.PENDING)
        self.assertEqual(db.added, [leave])
        self.assertEqual(db.commits, 1)

    def test_apply_leave_rejects_overlap(self) -> None:
        db = _FakeDB(
            objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()},
            scalar_results=[_pending_leave()],
        )
        payload = LeaveApplyRequest(leave_type_id=3, from_date=date(2026, 1, 7), to_date=date(2026, 1, 8))

        with self.assertRaises(ApiError) as ctx:
            apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.code, "LEAVE_OVERLAP")
        self.assertEqual(db.added, [])

    def test_apply_leave_rejects_weekend_only_range(self) -> None:
        db = _FakeDB(
            objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()},
            scalar_results=[None, _settings()],
        )
        payload = LeaveApplyRequest(leave_type_id=3, from_date=date(2026, 1, 10), to_date=date(2026, 1, 11))

        with self.assertRaises(ApiError) as ctx:
            apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "LEAVE_NO_WORKING_DAYS")

    def test_apply_leave_requires_company_settings(self) -> None:
        db = _FakeDB(
            objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()},
            scalar_results=[None, None],
        )
        payload = LeaveApplyRequest(leave_type_id=3, from_date=date(2026, 1, 5), to_date=date(2026, 1, 5))

        with self.assertRaises(ApiError) as ctx:
            apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "COMPANY_SETTINGS_MISSING")

    def test_apply_leave_rejects_inactive_employee(self) -> None:
        db = _FakeDB(objects={(Employee, 1): _employee(is_active=False), (LeaveType, 3): _annual_leave()})
        payload = LeaveApplyRequest(leave_type_id=3, from_date=date(2026, 1, 5), to_date=date(2026, 1, 5))

        with self.assertRaises(ApiError) as ctx:
            apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 403)

    def test_apply_leave_unknown_leave_type(self) -> None:
        db = _FakeDB(objects={(Employee, 1): _employee()})
        payload = LeaveApplyRequest(leave_type_id=3, from_date=date(2026, 1, 5), to_date=date(2026, 1, 5))

        with self.assertRaises(HTTPException) as ctx:
            apply_leave(db, employee_id=1, payload=payload)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 404)


class ReviewLeaveTests(unittest.TestCase):
    def test_approve_deducts_balance(self) -> None:
        leave = _pending_leave()
        balance = LeaveBalance(id=9, employee_id=1, leave_type_id=3, year=2026, total_days=14.0, used_days=2.0)
        db = _FakeDB(objects={(LeaveRequest, 50): leave, (LeaveType, 3): _annual_leave()}, scalar_results=[balance])

        approved = approve_leave(db, 50)  # type: ignore[arg-type]

        self.assertEqual(approved.status, RequestStatus.APPROVED)
        self.assertIsNotNone(approved.reviewed_at)
        self.assertEqual(balance.used_days, 5.0)
        self.assertEqual(balance.remaining_days, 9.0)

    def test_approve_rejects_insufficient_balance(self) -> None:
        leave = _pending_leave(total_days=3.0)
        balance = LeaveBalance(id=9, employee_id=1, leave_type_id=3, year=2026, total_days=4.0, used_days=2.0)
        db = _FakeDB(objects={(LeaveRequest, 50): leave, (LeaveType, 3): _annual_leave()}, scalar_results=[balance])

        with self.assertRaises(ApiError) as ctx:
            approve_leave(db, 50)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "INSUFFICIENT_LEAVE_BALANCE")
        self.assertEqual(leave.status, RequestStatus.PENDING)
        self.assertEqual(balance.used_days, 2.0)

    def test_approve_without_allocation(self) -> None:
        leave = _pending_leave()
        db = _FakeDB(objects={(LeaveRequest, 50): leave, (LeaveType, 3): _annual_leave()}, scalar_results=[None])

        self.assertEqual(approve_leave(db, 50).status, RequestStatus.APPROVED)  # type: ignore[arg-type]

    def test_unpaid_leave_ignores_allocation(self) -> None:
        leave = _pending_leave(total_days=3.0)
        leave.leave_type_id = 4
        unpaid = LeaveType(id=4, name="Unpaid Leave", is_paid=False, is_active=True)
        balance = LeaveBalance(id=9, employee_id=1, leave_type_id=4, year=2026, total_days=1.0, used_days=1.0)
        db = _FakeDB(objects={(LeaveRequest, 50): leave, (LeaveType, 4): unpaid}, scalar_results=[balance])

        approved = approve_leave(db, 50)  # type: ignore[arg-type]

        self.assertEqual(approved.status, RequestStatus.APPROVED)
        self.assertEqual(balance.used_days, 1.0)

    def test_only_pending_leave_can_be_reviewed(self) -> None:
        leave = _pending_leave()
        leave.status = RequestStatus.REJECTED
        db = _FakeDB(objects={(LeaveRequest, 50): leave})

        with self.assertRaises(ApiError) as ctx:
            reject_leave(db, 50)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.code, "LEAVE_NOT_PENDING")

    def test_delete_approved_leave_restores_balance(self) -> None:
        leave = _pending_leave()
        leave.status = RequestStatus.APPROVED
        balance = LeaveBalance(id=9, employee_id=1, leave_type_id=3, year=2026, total_days=14.0, used_days=5.0)
        db = _FakeDB(objects={(LeaveRequest, 50): leave, (LeaveType, 3): _annual_leave()}, scalar_results=[balance])

        delete_leave(db, 50)  # type: ignore[arg-type]

        self.assertEqual(balance.used_days, 2.0)
        self.assertEqual(db.deleted, [leave])

    def test_delete_missing_leave(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            delete_leave(_FakeDB(), 404)  # type: ignore[arg-type]

        self.assertEqual(ctx.exception.status_code, 404)


class LeaveBalanceTests(unittest.TestCase):
    def test_upsert_creates_balance(self) -> None:
        db = _FakeDB(objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()})

        balance = upsert_leave_balance(
            db,  # type: ignore[arg-type]
            LeaveBalanceUpsert(employee_id=1, leave_type_id=3, year=2026, total_days=14),
        )

        self.assertEqual(balance.total_days, 14)
        self.assertEqual(balance.used_days, 0.0)
        self.assertEqual(db.added, [balance])

    def test_upsert_rejects_total_below_used(self) -> None:
        existing = LeaveBalance(id=9, employee_id=1, leave_type_id=3, year=2026, total_days=14.0, used_days=6.0)
        db = _FakeDB(
            objects={(Employee, 1): _employee(), (LeaveType, 3): _annual_leave()},
            scalar_results=[existing],
        )

        with self.assertRaises(ApiError) as ctx:
            upsert_leave_balance(
                db,  # type: ignore[arg-type]
                LeaveBalanceUpsert(employee_id=1, leave_type_id=3, year=2026, total_days=5),
            )

        self.assertEqual(ctx.exception.code, "BALANCE_BELOW_USED")


if __name__ == "__main__":
    unittest.main()
