from __future__ import annotations

import unittest
from datetime import date, time

from attendance_payroll.models import AttendanceStatus, LeaveSession
from attendance_payroll.services.calendar_policy import MonthCalendar
from attendance_payroll.services.leave_expansion import LeaveDay
from attendance_payroll.services.monthly_calc import (
    STANDARD_WORKDAY_HOURS,
    AttendanceDay,
    DayStatus,
    OvertimeEntry,
    aggregate_month,
    classify_day,
    net_hours,
)

AFTER_JANUARY = date(2026, 12, 31)


def _january(holidays: list[tuple[date, str]] | None = None) -> MonthCalendar:
    return MonthCalendar.build(2026, 1, weekend_days=["Saturday", "Sunday"], holidays=holidays or [])


def _present(day_date: date, clock_in: time | None, clock_out: time | None) -> AttendanceDay:
    return AttendanceDay(day_date=day_date, clock_in=clock_in, clock_out=clock_out, status=AttendanceStatus.PRESENT)


def _leave(day_date: date, *, is_paid: bool, session: LeaveSession = LeaveSession.FULL) -> LeaveDay:
    return LeaveDay(
        day_date=day_date,
        is_paid=is_paid,
        is_full_day=session == LeaveSession.FULL,
        session=session,
    )


def _category_total(result) -> int:  # type: ignore[no-untyped-def]
    return (
        result.present_days
        + result.absent_days
        + result.leave_calendar_days
        + result.holiday_days
        + result.weekend_days
        + result.upcoming_days
    )


class NetHoursTests(unittest.TestCase):
    def test_lunch_deducted_when_span_exceeds_five_hours(self) -> None:
        self.assertEqual(net_hours(time(9, 30), time(19, 0)), 8.5)

    def test_no_lunch_deduction_at_or_below_five_hours(self) -> None:
        self.assertEqual(net_hours(time(9, 0), time(14, 0)), 5.0)

    def test_no_lunch_deduction_on_half_day_leave(self) -> None:
        self.assertEqual(net_hours(time(9, 30), time(16, 30), half_day_leave=True), 7.0)
        self.assertEqual(net_hours(time(9, 30), time(16, 30)), 6.0)


class ClassifyDayTests(unittest.TestCase):
    def test_short_day_records_deficit(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), time(18, 0)),
        )

        self.assertEqual(day.status, DayStatus.PRESENT)
        self.assertEqual(day.hours, 7.5)
        self.assertEqual(day.deficit_hours, 1.0)

    def test_unpaid_full_day_leave_contributes_nothing(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            leave=_leave(date(2026, 1, 7), is_paid=False),
        )

        self.assertEqual(day.status, DayStatus.UNPAID_LEAVE)
        self.assertEqual(day.hours, 0.0)
        self.assertEqual(day.deficit_hours, 0.0)
        self.assertEqual(day.leave_weight, 1.0)

    def test_paid_half_day_leave_tops_up_to_standard_day(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), time(13, 30)),
            leave=_leave(date(2026, 1, 7), is_paid=True, session=LeaveSession.AFTERNOON),
        )

        self.assertEqual(day.status, DayStatus.PAID_LEAVE)
        self.assertTrue(day.is_half_day)
        self.assertEqual(day.hours, STANDARD_WORKDAY_HOURS)
        self.assertEqual(day.deficit_hours, 0.0)
        self.assertEqual(day.leave_weight, 0.5)

    def test_unpaid_half_day_leave_counts_worked_hours_only(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), time(13, 30)),
            leave=_leave(date(2026, 1, 7), is_paid=False, session=LeaveSession.AFTERNOON),
        )

        self.assertEqual(day.status, DayStatus.UNPAID_LEAVE)
        self.assertEqual(day.hours, 4.0)
        self.assertEqual(day.deficit_hours, 0.0)

    def test_weekday_holiday_counts_standard_hours(self) -> None:
        day = classify_day(
            date(2026, 1, 1),
            calendar=_january([(date(2026, 1, 1), "New Year's Day")]),
            today=AFTER_JANUARY,
        )

        self.assertEqual(day.status, DayStatus.HOLIDAY)
        self.assertEqual(day.hours, STANDARD_WORKDAY_HOURS)
        self.assertEqual(day.holiday_name, "New Year's Day")

    def test_attendance_wins_over_holiday(self) -> None:
        day = classify_day(
            date(2026, 1, 1),
            calendar=_january([(date(2026, 1, 1), "New Year's Day")]),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 1), time(9, 30), time(19, 0)),
        )

        self.assertEqual(day.status, DayStatus.PRESENT)
        self.assertEqual(day.hours, 8.5)

    def test_missing_clock_out_is_present_without_hours(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), None),
        )

        self.assertEqual(day.status, DayStatus.PRESENT)
        self.assertEqual(day.hours, 0.0)
        self.assertEqual(day.deficit_hours, 0.0)

    def test_weekend_with_overtime_is_labelled_overtime(self) -> None:
        day = classify_day(
            date(2026, 1, 3),
            calendar=_january(),
            today=AFTER_JANUARY,
            overtime_hours=4.0,
        )

        self.assertEqual(day.status, DayStatus.OVERTIME)
        self.assertEqual(day.hours, 0.0)
        self.assertEqual(day.overtime_hours, 4.0)

    def test_future_working_day_is_upcoming(self) -> None:
        day = classify_day(date(2026, 1, 20), calendar=_january(), today=date(2026, 1, 15))

        self.assertEqual(day.status, DayStatus.UPCOMING)

    def test_explicit_absent_record(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=AttendanceDay(
                day_date=date(2026, 1, 7),
                clock_in=None,
                clock_out=None,
                status=AttendanceStatus.ABSENT,
            ),
        )

        self.assertEqual(day.status, DayStatus.ABSENT)

    def test_full_day_paid_leave_outranks_short_punch(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), time(13, 30)),
            leave=_leave(date(2026, 1, 7), is_paid=True),
        )

        self.assertEqual(day.status, DayStatus.PAID_LEAVE)
        self.assertEqual(day.hours, STANDARD_WORKDAY_HOURS)
        self.assertEqual(day.deficit_hours, 0.0)
        self.assertEqual(day.leave_weight, 1.0)

    def test_full_day_unpaid_leave_outranks_full_punch(self) -> None:
        day = classify_day(
            date(2026, 1, 7),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=_present(date(2026, 1, 7), time(9, 30), time(19, 0)),
            leave=_leave(date(2026, 1, 7), is_paid=False),
        )

        self.assertEqual(day.status, DayStatus.UNPAID_LEAVE)
        self.assertEqual(day.hours, 0.0)
        self.assertEqual(day.deficit_hours, 0.0)

    def test_half_day_record_counts_worked_hours(self) -> None:
        day = classify_day(
            date(2026, 1, 8),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=AttendanceDay(
                day_date=date(2026, 1, 8),
                clock_in=time(9, 30),
                clock_out=time(14, 0),
                status=AttendanceStatus.HALF_DAY,
            ),
        )

        self.assertEqual(day.status, DayStatus.PRESENT)
        self.assertTrue(day.is_half_day)
        self.assertEqual(day.hours, 4.5)
        self.assertEqual(day.deficit_hours, 4.0)

    def test_leave_record_without_request_is_unpaid_leave(self) -> None:
        day = classify_day(
            date(2026, 1, 8),
            calendar=_january(),
            today=AFTER_JANUARY,
            attendance=AttendanceDay(
                day_date=date(2026, 1, 8),
                clock_in=None,
                clock_out=None,
                status=AttendanceStatus.LEAVE,
            ),
        )

        self.assertEqual(day.status, DayStatus.UNPAID_LEAVE)
        self.assertEqual(day.hours, 0.0)
        self.assertEqual(day.leave_weight, 1.0)

    def test_absent_record_outranks_holiday(self) -> None:
        day = classify_day(
            date(2026, 1, 14),
            calendar=_january([(date(2026, 1, 14), "Company Day")]),
            today=AFTER_JANUARY,
            attendance=AttendanceDay(
                day_date=date(2026, 1, 14),
                clock_in=None,
                clock_out=None,
                status=AttendanceStatus.ABSENT,
            ),
        )

        self.assertEqual(day.status, DayStatus.ABSENT)
        self.assertEqual(day.hours, 0.0)
        self.assertIsNone(day.holiday_name)


class AggregateMonthTests(unittest.TestCase):
    def test_full_attendance_month(self) -> None:
        calendar = _january()
        attendance = [
            _present(day_date, time(9, 30), time(19, 0))
            for day_date in calendar.dates()
            if not calendar.is_weekend(day_date)
        ]

        result = aggregate_month(calendar, today=AFTER_JANUARY, attendance=attendance)

        self.assertEqual(result.present_days, 22)
        self.assertEqual(result.absent_days, 0)
        self.assertEqual(result.weekend_days, 9)
        self.assertEqual(result.total_hours_worked, 187.0)
        self.assertEqual(result.effective_days, 22.0)
        self.assertEqual(result.deficit_hours, 0.0)

    def test_paid_leave_week_contributes_standard_hours(self) -> None:
        calendar = _january()
        leave_days = {
            date(2026, 1, day): _leave(date(2026, 1, day), is_paid=True)
            for day in range(5, 10)
        }

        result = aggregate_month(calendar, today=AFTER_JANUARY, leave_days=leave_days)

        self.assertEqual(result.paid_leave_days, 5.0)
        self.assertEqual(result.unpaid_leave_days, 0.0)
        self.assertEqual(result.total_hours_worked, 5 * STANDARD_WORKDAY_HOURS)
        self.assertEqual(result.deficit_hours, 0.0)
        self.assertEqual(result.absent_days, 17)

    def test_paid_leave_week_with_punches_keeps_standard_hours(self) -> None:
        calendar = _january()
        leave_days = {
            date(2026, 1, day): _leave(date(2026, 1, day), is_paid=True)
            for day in range(5, 10)
        }
        attendance = [_present(date(2026, 1, day), time(9, 30), time(12, 0)) for day in range(5, 10)]

        result = aggregate_month(calendar, today=AFTER_JANUARY, attendance=attendance, leave_days=leave_days)

        self.assertEqual(result.present_days, 0)
        self.assertEqual(result.paid_leave_days, 5.0)
        self.assertEqual(result.total_hours_worked, 5 * STANDARD_WORKDAY_HOURS)
        self.assertEqual(result.deficit_hours, 0.0)

    def test_half_day_records_are_present_not_absent(self) -> None:
        attendance = [
            AttendanceDay(
                day_date=date(2026, 1, 8),
                clock_in=time(9, 30),
                clock_out=time(14, 0),
                status=AttendanceStatus.HALF_DAY,
            )
        ]

        result = aggregate_month(_january(), today=AFTER_JANUARY, attendance=attendance)

        self.assertEqual(result.present_days, 1)
        self.assertEqual(result.half_days, 1)
        self.assertEqual(result.absent_days, 21)
        self.assertEqual(result.total_hours_worked, 4.5)

    def test_holiday_on_saturday_is_ignored(self) -> None:
        calendar = _january([(date(2026, 1, 3), "Weekend Holiday")])

        result = aggregate_month(calendar, today=AFTER_JANUARY)

        self.assertEqual(result.holiday_days, 0)
        self.assertEqual(result.total_hours_worked, 0.0)
        saturday = next(day for day in result.daily_breakdown if day.day_date == date(2026, 1, 3))
        self.assertEqual(saturday.status, DayStatus.WEEKEND)

    def test_current_month_splits_absent_and_upcoming(self) -> None:
        result = aggregate_month(_january(), today=date(2026, 1, 15))

        self.assertEqual(result.absent_days, 11)
        self.assertEqual(result.upcoming_days, 11)
        self.assertEqual(result.present_days, 0)

    def test_overtime_is_summed_per_day(self) -> None:
        result = aggregate_month(
            _january(),
            today=AFTER_JANUARY,
            overtime=[
                OvertimeEntry(day_date=date(2026, 1, 3), hours_worked=4.0),
                OvertimeEntry(day_date=date(2026, 1, 10), hours_worked=4.0),
                OvertimeEntry(day_date=date(2026, 1, 17), hours_worked=4.0),
            ],
        )

        self.assertEqual(result.overtime_hours, 12.0)
        self.assertEqual(result.overtime_days, 3)
        self.assertEqual(result.weekend_days, 9)

    def test_categories_cover_every_day_of_month(self) -> None:
        calendar = _january([(date(2026, 1, 1), "New Year's Day"), (date(2026, 1, 3), "Weekend Holiday")])
        attendance = [
            _present(date(2026, 1, 2), time(9, 30), time(18, 0)),
            _present(date(2026, 1, 6), time(9, 30), None),
            _present(date(2026, 1, 7), time(9, 30), time(13, 30)),
            _present(date(2026, 1, 10), time(10, 0), time(14, 0)),
        ]
        leave_days = {
            date(2026, 1, 7): _leave(date(2026, 1, 7), is_paid=True, session=LeaveSession.AFTERNOON),
            date(2026, 1, 8): _leave(date(2026, 1, 8), is_paid=False),
        }

        for today in (date(2025, 12, 31), date(2026, 1, 9), date(2026, 1, 20), AFTER_JANUARY):
            result = aggregate_month(calendar, today=today, attendance=attendance, leave_days=leave_days)
            self.assertEqual(_category_total(result), 31)
            self.assertEqual(len(result.daily_breakdown), 31)
            absent_in_breakdown = sum(1 for day in result.daily_breakdown if day.status == DayStatus.ABSENT)
            self.assertEqual(result.absent_days, absent_in_breakdown)
            self.assertAlmostEqual(result.effective_days, result.total_hours_worked / STANDARD_WORKDAY_HOURS)

    def test_empty_month_has_zero_effective_days(self) -> None:
        result = aggregate_month(_january(), today=AFTER_JANUARY)

        self.assertEqual(result.effective_days, 0.0)
        self.assertEqual(result.absent_days, 22)


if __name__ == "__main__":
    unittest.main()
