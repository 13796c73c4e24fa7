"""
Month handling: YYYY-MM strings, past/current/future classification and the
rule deciding which payroll rows a month shows.
"""
import re
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

from schemas import Employee, PayrollConfig, PayrollRecord, ResolvedMonth
from payroll import calculate, normalize, zeroed_record

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class MonthKind(str, Enum):
    PAST = "past"
    CURRENT = "current"
    FUTURE = "future"


def parse_month(month: str):
    if not month or not re.match(MONTH_PATTERN, month):
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM")
    year, number = month.split("-")
    return int(year), int(number)


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def format_month_label(month: str) -> str:
    """2025-10 -> October-2025"""
    year, number = parse_month(month)
    return f"{MONTH_NAMES[number - 1]}-{year}"


def classify_month(target_month: str, today: date) -> MonthKind:
    target = parse_month(target_month)
    current = (today.year, today.month)
    if target < current:
        return MonthKind.PAST
    if target == current:
        return MonthKind.CURRENT
    return MonthKind.FUTURE


def _matches_status(employee: Employee, status_filter: Optional[str]) -> bool:
    return not status_filter or status_filter == "All" or employee.status == status_filter


def resolve_visible_rows(
    roster: Optional[Iterable[Employee]],
    persisted: Optional[Iterable],
    target_month: str,
    today: date,
    status_filter: Optional[str] = "Active",
    config: Optional[PayrollConfig] = None,
) -> List[PayrollRecord]:
    """Rows to show for a month.

    Past months only show what was stored. Current and future months show the
    stored record of every roster employee, or a zeroed one when nothing is
    stored yet. A stored record always wins over the roster.
    """
    kind = classify_month(target_month, today)
    employees = [e if isinstance(e, Employee) else Employee.model_validate(e) for e in roster or []]
    by_emp_id = {e.empId: e for e in employees}

    stored = {}
    for raw in persisted or []:
        data = raw.model_dump() if isinstance(raw, PayrollRecord) else dict(raw)
        if data.get("month") not in (None, "", target_month):
            continue
        employee = by_emp_id.get(data.get("empId") or data.get("employeeId"))
        record = calculate(normalize(data, employee, target_month), config)
        stored[record.empId] = record

    rows = list(stored.values())
    if kind is MonthKind.PAST:
        return rows

    for employee in employees:
        if employee.empId in stored or not _matches_status(employee, status_filter):
            continue
        rows.append(calculate(zeroed_record(employee, target_month), config))
    return rows


def resolve_month(roster, persisted, target_month: str, today: date,
                  status_filter: Optional[str] = "Active",
                  config: Optional[PayrollConfig] = None) -> ResolvedMonth:
    kind = classify_month(target_month, today)
    rows = resolve_visible_rows(roster, persisted, target_month, today, status_filter, config)
    return ResolvedMonth(
        month=target_month,
        kind=kind.value,
        provisional=kind is MonthKind.FUTURE,
        archival=kind is MonthKind.PAST,
        needs_import=kind is MonthKind.PAST and not rows,
        rows=rows,
    )
