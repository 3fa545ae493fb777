#!/usr/bin/env python
from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import create_engine, inspect, text

from attendance_payroll.settings import get_settings

EXPECTED_HEAD = "0001_initial"
REQUIRED_TABLES = (
    "employees",
    "company_settings",
    "attendance",
    "leave_types",
    "leaves",
    "leave_balances",
    "holidays",
    "overtime",
    "audit_logs",
)


def run() -> dict:
    database_url = get_settings().database_url
    engine = create_engine(database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    tables = set(inspect(engine).get_table_names())
    missing_tables = [table for table in REQUIRED_TABLES if table not in tables]
    add("missing_tables", "fail" if missing_tables else "ok", {"tables": missing_tables})

    with engine.connect() as conn:
        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        if "company_settings" in tables:
            settings_rows = conn.execute(text("select count(*) from company_settings")).scalar() or 0
            add(
                "company_settings_present",
                "ok" if settings_rows == 1 else "fail",
                {"rows": settings_rows},
            )

        if "leaves" in tables:
            # Monthly reports refuse to build while these exist.
            overlapping_leaves = conn.execute(
                text(
                    """
                    select a.employee_id, a.id, b.id
                    from leaves a
                    join leaves b
                      on a.employee_id = b.employee_id
                     and a.id < b.id
                     and a.from_date <= b.to_date
                     and b.from_date <= a.to_date
                    where a.status = 'approved' and b.status = 'approved'
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "overlapping_approved_leaves",
                "fail" if overlapping_leaves else "ok",
                {"rows": [list(row) for row in overlapping_leaves]},
            )

        if "attendance" in tables:
            inverted_punches = conn.execute(
                text(
                    """
                    select id, employee_id, date
                    from attendance
                    where clock_in is not null
                      and clock_out is not null
                      and clock_out < clock_in
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "attendance_clock_out_before_clock_in",
                "fail" if inverted_punches else "ok",
                {"rows": [[row[0], row[1], str(row[2])] for row in inverted_punches]},
            )

        if "leave_balances" in tables:
            overdrawn_balances = conn.execute(
                text(
                    """
                    select id, employee_id, leave_type_id, year, total_days, used_days
                    from leave_balances
                    where used_days > total_days
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "leave_balance_overdrawn",
                "warn" if overdrawn_balances else "ok",
                {"rows": [list(row) for row in overdrawn_balances]},
            )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2, default=str))
