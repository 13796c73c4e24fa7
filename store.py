"""
Document store access: mestris, employees, monthly payroll and the archival
copies of past months.

Every payroll document is keyed by "{empId}_{month}" so an upsert only ever
touches its own employee-month.
"""
import logging
from typing import List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from schemas import Employee, Mestri, PayrollRecord
from payroll import record_id, utc_now

logger = logging.getLogger(__name__)

MESTRIS = "mestris"
EMPLOYEES = "employees"
PAYROLL = "payroll"
ARCHIVE = "lastemployees"
ARCHIVE_TYPE = "employee_payroll"


class DuplicateEntry(Exception):
    pass


def _strip(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


# --------------------- MESTRIS ---------------------

def list_mestris(db) -> List[Mestri]:
    return [Mestri.model_validate(_strip(d)) for d in db[MESTRIS].find()]


def get_mestri(db, mestri_id: str) -> Optional[Mestri]:
    doc = db[MESTRIS].find_one({"_id": mestri_id})
    return Mestri.model_validate(_strip(doc)) if doc else None


def find_mestri(db, value: str) -> Optional[Mestri]:
    """Look a mestri up by id or by display name."""
    if not value:
        return None
    doc = db[MESTRIS].find_one({"$or": [{"_id": value}, {"name": value}]})
    return Mestri.model_validate(_strip(doc)) if doc else None


def add_mestri(db, mestri: Mestri) -> Mestri:
    now = utc_now()
    mestri_id = mestri.mestriId or str(ObjectId())
    if db[MESTRIS].find_one({"_id": mestri_id}):
        raise DuplicateEntry(f"Mestri {mestri_id} already exists")
    saved = mestri.model_copy(update={"mestriId": mestri_id, "createdAt": now, "updatedAt": now})
    try:
        db[MESTRIS].insert_one({"_id": mestri_id, **saved.model_dump()})
    except DuplicateKeyError as e:
        raise DuplicateEntry(f"Mestri {mestri_id} already exists") from e
    logger.info("Added mestri %s", mestri_id)
    return saved


def update_mestri(db, mestri_id: str, changes: dict) -> Optional[Mestri]:
    changes = {k: v for k, v in changes.items() if v is not None}
    changes["updatedAt"] = utc_now()
    result = db[MESTRIS].update_one({"_id": mestri_id}, {"$set": changes})
    if result.matched_count == 0:
        return None
    return get_mestri(db, mestri_id)


# --------------------- EMPLOYEES ---------------------

def list_employees(db, mestri_id: Optional[str] = None, status: Optional[str] = None) -> List[Employee]:
    query = {}
    if mestri_id:
        query["mestriId"] = mestri_id
    if status and status != "All":
        query["status"] = status
    return [Employee.model_validate(_strip(d)) for d in db[EMPLOYEES].find(query)]


def get_employee(db, emp_id: str) -> Optional[Employee]:
    doc = db[EMPLOYEES].find_one({"_id": emp_id})
    return Employee.model_validate(_strip(doc)) if doc else None


def add_employee(db, employee: Employee) -> Employee:
    if db[EMPLOYEES].find_one({"_id": employee.empId}):
        raise DuplicateEntry(f"Employee {employee.empId} already exists")
    now = utc_now()
    saved = employee.model_copy(update={"createdAt": now, "updatedAt": now})
    try:
        db[EMPLOYEES].insert_one({"_id": saved.empId, **saved.model_dump()})
    except DuplicateKeyError as e:
        raise DuplicateEntry(f"Employee {saved.empId} already exists") from e
    logger.info("Added employee %s", saved.empId)
    return saved


def update_employee(db, emp_id: str, changes: dict) -> Optional[Employee]:
    changes = {k: v for k, v in changes.items() if v is not None}
    changes.pop("empId", None)
    changes["updatedAt"] = utc_now()
    result = db[EMPLOYEES].update_one({"_id": emp_id}, {"$set": changes})
    if result.matched_count == 0:
        return None
    return get_employee(db, emp_id)


# --------------------- PAYROLL ---------------------

def list_records_for_month(db, month: str, mestri_id: Optional[str] = None,
                           employee_id: Optional[str] = None) -> List[dict]:
    query = {"month": month}
    if mestri_id:
        query["mestriId"] = mestri_id
    if employee_id:
        query["employeeId"] = employee_id
    return [_strip(d) for d in db[PAYROLL].find(query)]


def get_record(db, emp_id: str, month: str) -> Optional[dict]:
    return _strip(db[PAYROLL].find_one({"_id": record_id(emp_id, month)}))


def upsert_record(db, record: PayrollRecord) -> PayrollRecord:
    key = record_id(record.empId, record.month)
    if record.id != key:
        record = record.model_copy(update={"id": key})
    db[PAYROLL].replace_one({"_id": key}, {"_id": key, **record.model_dump()}, upsert=True)
    logger.info("Saved payroll %s", key)
    return record


def reassign_future_records(db, emp_id: str, month: str, mestri_id: str, mestri_name: str = "") -> int:
    """Point the employee's records after `month` at a new mestri."""
    result = db[PAYROLL].update_many(
        {"employeeId": emp_id, "month": {"$gt": month}},
        {"$set": {"mestriId": mestri_id, "mestri": mestri_name, "updatedAt": utc_now()}},
    )
    if result.modified_count:
        logger.info("Moved %s later records of %s to mestri %s", result.modified_count, emp_id, mestri_id)
    return result.modified_count


def monthly_totals(db) -> List[dict]:
    pipeline = [
        {"$group": {
            "_id": "$month",
            "employees": {"$sum": 1},
            "paid": {"$sum": {"$cond": ["$paid", 1, 0]}},
            "total_payment": {"$sum": "$totalPayment"},
        }},
        {"$sort": {"_id": -1}},
    ]
    return [
        {
            "month": d["_id"],
            "employees": d["employees"],
            "paid": d["paid"],
            "unpaid": d["employees"] - d["paid"],
            "total_payment": round(d["total_payment"] or 0, 2),
        }
        for d in db[PAYROLL].aggregate(pipeline)
    ]


# --------------------- ARCHIVE (past months) ---------------------

def list_archival_records(db, month: str) -> List[dict]:
    query = {"month": month, "year": month[:4], "type": ARCHIVE_TYPE}
    return [_strip(d) for d in db[ARCHIVE].find(query)]


def get_archival_record(db, emp_id: str, month: str) -> Optional[dict]:
    return _strip(db[ARCHIVE].find_one({"_id": record_id(emp_id, month)}))


def upsert_archival_record(db, id: str, record: PayrollRecord) -> PayrollRecord:
    if record.id != id:
        record = record.model_copy(update={"id": id})
    doc = {"_id": id, **record.model_dump(), "type": ARCHIVE_TYPE, "year": record.month[:4]}
    db[ARCHIVE].replace_one({"_id": id}, doc, upsert=True)
    logger.info("Saved archival payroll %s", id)
    return record
