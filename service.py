"""
Payroll operations combining the store with the calculator and month rules.

Past months are archival: their edits and imports go to the lastemployees
collection, never to the monthly payroll collection.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import store
from months import MonthKind, classify_month, format_month_label, month_key, resolve_month
from payroll import calculate, normalize, record_id, zeroed_record
from schemas import DERIVED_FIELDS, Employee, MonthSummary, PayrollConfig, PayrollRecord, ResolvedMonth

logger = logging.getLogger(__name__)

# Keys a caller may not set through an edit
PROTECTED_FIELDS = set(DERIVED_FIELDS) | {"id", "employeeId", "empId", "month", "createdAt", "updatedAt"}


class ImportNotAllowed(Exception):
    pass


def load_month(db, month: str, today: date, status_filter: Optional[str] = "Active",
               config: Optional[PayrollConfig] = None) -> ResolvedMonth:
    kind = classify_month(month, today)
    roster = store.list_employees(db)
    persisted = {}
    for doc in store.list_records_for_month(db, month):
        persisted[doc.get("empId") or doc.get("employeeId")] = doc
    if kind is MonthKind.PAST:
        for doc in store.list_archival_records(db, month):
            persisted[doc.get("empId") or doc.get("employeeId")] = doc

    resolved = resolve_month(roster, list(persisted.values()), month, today, status_filter, config)

    names = {m.mestriId: m.name for m in store.list_mestris(db)}
    for index, row in enumerate(resolved.rows):
        if not row.mestri and row.mestriId in names:
            resolved.rows[index] = row.model_copy(update={"mestri": names[row.mestriId]})
    return resolved


def save_record(db, month: str, emp_id: str, changes: Dict[str, Any], today: date,
                config: Optional[PayrollConfig] = None) -> PayrollRecord:
    """Apply an edit (or a manual entry) to one employee-month and store it."""
    archival = classify_month(month, today) is MonthKind.PAST

    existing = None
    if archival:
        existing = store.get_archival_record(db, emp_id, month)
    if existing is None:
        existing = store.get_record(db, emp_id, month)

    changes = {k: v for k, v in (changes or {}).items() if k not in PROTECTED_FIELDS}
    mestri_changed = False
    if "mestri" in changes or "mestriId" in changes:
        wanted = changes.pop("mestriId", None) or changes.pop("mestri", None)
        changes.pop("mestri", None)
        mestri = store.find_mestri(db, wanted)
        if mestri is not None:
            changes["mestriId"] = mestri.mestriId
            changes["mestri"] = mestri.name
        else:
            changes["mestriId"] = wanted or ""
            changes["mestri"] = ""
        mestri_changed = bool(existing) and changes["mestriId"] != existing.get("mestriId")

    merged = {**(existing or {}), **changes}
    merged.update({"empId": emp_id, "employeeId": emp_id, "month": month, "id": record_id(emp_id, month)})

    record = calculate(normalize(merged, store.get_employee(db, emp_id), month), config)

    if archival:
        return store.upsert_archival_record(db, record.id, record)

    saved = store.upsert_record(db, record)
    if mestri_changed and saved.mestriId:
        store.reassign_future_records(db, emp_id, month, saved.mestriId, saved.mestri)
    return saved


def create_employee(db, employee: Employee, today: date,
                    config: Optional[PayrollConfig] = None) -> Employee:
    """Add an employee and open its zeroed record for the current month."""
    saved = store.add_employee(db, employee)
    month = month_key(today)
    if store.get_record(db, saved.empId, month) is None:
        store.upsert_record(db, calculate(zeroed_record(saved, month), config))
    return saved


def import_roster(db, month: str, today: date, config: Optional[PayrollConfig] = None) -> Dict[str, int]:
    """Seed an empty past month with zeroed archival records for the roster."""
    if classify_month(month, today) is not MonthKind.PAST:
        raise ImportNotAllowed(f"{month} is not a past month")

    existing = {doc.get("empId") for doc in store.list_archival_records(db, month)}
    imported = skipped = 0
    for employee in store.list_employees(db):
        if employee.empId in existing:
            skipped += 1
            continue
        record = calculate(zeroed_record(employee, month), config)
        store.upsert_archival_record(db, record.id, record)
        imported += 1

    logger.info("Imported %s employees into %s (%s skipped)", imported, month, skipped)
    return {"imported": imported, "skipped": skipped}


def month_summaries(db) -> List[MonthSummary]:
    return [
        MonthSummary(label=format_month_label(row["month"]), **row)
        for row in store.monthly_totals(db)
        if row["month"]
    ]
