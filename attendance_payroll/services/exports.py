from __future__ import annotations

import csv
from datetime import datetime, time, timezone
from io import BytesIO, StringIO

from fastapi import HTTPException, status
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from attendance_payroll.services.monthly import MonthlyReportRow, to_day_reads, to_report_row_read
from attendance_payroll.services.monthly_calc import DayStatus
from attendance_payroll.settings import get_settings

NO_DATA_MESSAGE = "No data available for this period."


def _summary_headers(currency_code: str) -> list[str]:
    return [
        "Employee Name",
        "Email",
        "Total Days",
        "Working Days",
        "Present Days",
        "Absent Days",
        "Leave Days",
        "Paid Leaves",
        "Unpaid Leaves",
        "Half Days",
        "Holiday Days",
        "Hours Worked",
        "Deficit Hours",
        "Effective Days",
        "Overtime Hours",
        f"Monthly Salary ({currency_code})",
        f"Calculated Salary ({currency_code})",
        f"Overtime Pay ({currency_code})",
        f"Total Salary ({currency_code})",
    ]


DAILY_HEADERS = [
    "Date",
    "Day",
    "Status",
    "Clock In",
    "Clock Out",
    "Hours",
    "Deficit Hours",
    "Overtime Hours",
    "Leave Days",
    "Holiday",
]

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
META_LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")
META_VALUE_FILL = PatternFill(fill_type="solid", fgColor="F8FCFF")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
WARNING_FILL = PatternFill(fill_type="solid", fgColor="FFF3CD")
ALERT_FILL = PatternFill(fill_type="solid", fgColor="FDE2E4")
SUCCESS_FILL = PatternFill(fill_type="solid", fgColor="E6F4EA")

HEADER_FONT = Font(bold=True, color="FFFFFF")
BOLD_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)
MUTED_FONT = Font(color="334155")

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)

_STATUS_FILLS = {
    DayStatus.ABSENT.value: ALERT_FILL,
    DayStatus.PAID_LEAVE.value: WARNING_FILL,
    DayStatus.UNPAID_LEAVE.value: WARNING_FILL,
    DayStatus.OVERTIME.value: SUCCESS_FILL,
}


def _require_rows(rows: list[MonthlyReportRow]) -> None:
    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_DATA_MESSAGE)


def _money_or_na(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f}"


def _time_label(value: time | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%H:%M")


def _summary_values(row: MonthlyReportRow) -> list[object]:
    read = to_report_row_read(row)
    return [
        read.full_name,
        read.email,
        read.total_days,
        read.working_days,
        read.present_days,
        read.absent_days,
        read.leave_days,
        read.paid_leave_days,
        read.unpaid_leave_days,
        read.half_days,
        read.holiday_days,
        read.total_hours_worked,
        read.deficit_hours,
        read.effective_days,
        read.overtime_hours,
        _money_or_na(read.monthly_salary),
        _money_or_na(read.calculated_salary),
        _money_or_na(read.overtime_pay),
        _money_or_na(read.total_salary_with_overtime),
    ]


def monthly_export_filename(year: int, month: int, extension: str) -> str:
    month_name = datetime(year, month, 1).strftime("%B")
    return f"attendance_report_{month_name}_{year}.{extension}"


def build_monthly_report_csv(rows: list[MonthlyReportRow]) -> str:
    _require_rows(rows)
    buffer = StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(_summary_headers(get_settings().currency_code))
    for row in rows:
        writer.writerow(_summary_values(row))
    return buffer.getvalue()


def _style_header(ws: Worksheet, row: int = 1) -> None:
    for cell in ws[row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            if cell.coordinate in ws.merged_cells:
                continue
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


def _merge_title(ws: Worksheet, row: int, text: str, *, width: int) -> None:
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)
    cell = ws.cell(row=row, column=1, value=text)
    cell.font = TITLE_FONT
    cell.alignment = Alignment(horizontal="left", vertical="center")


def _style_metadata_rows(ws: Worksheet, *, start_row: int, end_row: int) -> None:
    for row_idx in range(start_row, end_row + 1):
        label_cell = ws.cell(row=row_idx, column=1)
        value_cell = ws.cell(row=row_idx, column=2)
        label_cell.font = BOLD_FONT
        label_cell.fill = META_LABEL_FILL
        label_cell.border = THIN_BORDER
        value_cell.font = MUTED_FONT
        value_cell.fill = META_VALUE_FILL
        value_cell.border = THIN_BORDER


def _style_data_rows(ws: Worksheet, *, data_start_row: int, data_end_row: int, status_col: int | None = None) -> None:
    for row_idx in range(data_start_row, data_end_row + 1):
        row_fill = PatternFill(fill_type=None)
        if status_col is not None:
            row_fill = _STATUS_FILLS.get(ws.cell(row=row_idx, column=status_col).value, row_fill)
        if row_fill.fill_type is None and row_idx % 2 == 0:
            row_fill = ZEBRA_FILL

        for col_idx in range(1, ws.max_column + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = THIN_BORDER
            if row_fill.fill_type:
                cell.fill = row_fill
            if isinstance(cell.value, (int, float)):
                cell.alignment = Alignment(horizontal="center", vertical="center")
            else:
                cell.alignment = Alignment(horizontal="left", vertical="center")


def _safe_sheet_title(title: str, fallback: str) -> str:
    cleaned = "".join(ch for ch in title if ch not in ['\\', '/', '*', '?', ':', '[', ']']).strip()
    if not cleaned:
        cleaned = fallback
    return cleaned[:31]


def _build_summary_sheet(ws: Worksheet, *, year: int, month: int, rows: list[MonthlyReportRow]) -> None:
    headers = _summary_headers(get_settings().currency_code)
    ws.title = "Summary"
    _merge_title(ws, 1, f"Attendance report {year}-{month:02d}", width=len(headers))
    ws.append(["Generated (UTC)", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")])
    ws.append(["Employees", len(rows)])
    _style_metadata_rows(ws, start_row=2, end_row=3)

    # one blank row between the metadata block and the table
    header_row = ws.max_row + 2
    for col_idx, header in enumerate(headers, start=1):
        ws.cell(row=header_row, column=col_idx, value=header)
    _style_header(ws, header_row)

    data_start_row = header_row + 1
    for row in rows:
        ws.append(_summary_values(row))

    _style_data_rows(ws, data_start_row=data_start_row, data_end_row=ws.max_row)
    ws.auto_filter.ref = f"A{header_row}:{get_column_letter(len(headers))}{ws.max_row}"
    ws.freeze_panes = f"A{header_row + 1}"
    _auto_width(ws)


def _append_employee_daily_sheet(wb: Workbook, row: MonthlyReportRow) -> None:
    ws = wb.create_sheet(title=_safe_sheet_title(f"{row.employee_id} {row.full_name}", f"Employee {row.employee_id}"))
    _merge_title(ws, 1, f"{row.full_name} ({row.email})", width=len(DAILY_HEADERS))
    ws.append(DAILY_HEADERS)
    _style_header(ws, 2)

    for day in to_day_reads(row):
        ws.append(
            [
                day.date.isoformat(),
                day.weekday,
                day.status.value,
                _time_label(day.clock_in),
                _time_label(day.clock_out),
                day.hours,
                day.deficit_hours,
                day.overtime_hours,
                day.leave_days,
                day.holiday_name or "-",
            ]
        )

    _style_data_rows(ws, data_start_row=3, data_end_row=ws.max_row, status_col=3)
    ws.freeze_panes = "A3"
    _auto_width(ws)


def build_monthly_report_xlsx_bytes(
    rows: list[MonthlyReportRow],
    *,
    year: int,
    month: int,
    include_daily_sheet: bool = True,
) -> bytes:
    _require_rows(rows)
    wb = Workbook()
    _build_summary_sheet(wb.active, year=year, month=month, rows=rows)
    if include_daily_sheet:
        for row in rows:
            _append_employee_daily_sheet(wb, row)

    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()
