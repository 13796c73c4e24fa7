"""
Payroll figures for one employee-month: record normalization and the
attendance-to-salary calculation.
"""
from datetime import datetime, timezone
from typing import Optional, Union, Mapping, Any

from schemas import Employee, PayrollConfig, PayrollRecord

# Record field -> roster field, copied only when the record leaves it blank
CARRY_OVER = {
    "empId": "empId",
    "employeeId": "empId",
    "name": "name",
    "dept": "dept",
    "mestriId": "mestriId",
    "joiningDate": "joiningDate",
    "employeeStatus": "status",
    "perDayWage": "perDayWage",
    "phoneNumber": "phoneNumber",
    "accountNumber": "accountNumber",
    "ifsc": "ifsc",
    "bankName": "bankName",
    "bankHolderName": "bankHolderName",
}

# Used when neither the record nor the roster entry has a value
ROSTER_DEFAULTS = {"dept": "General", "designation": "Worker"}

DEDUCTION_FIELDS = ("bus", "food", "eb", "shoes", "karcha", "lastMonth", "advance", "others")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def record_id(emp_id: str, month: str) -> str:
    return f"{emp_id}_{month}"


def _blank(value) -> bool:
    return value is None or value == ""


def normalize(
    record: Optional[Union[Mapping[str, Any], PayrollRecord]] = None,
    employee: Optional[Union[Employee, Mapping[str, Any]]] = None,
    month: Optional[str] = None,
    now: Optional[str] = None,
) -> PayrollRecord:
    """Build a total PayrollRecord out of whatever shape was stored or sent.

    Values already on the record win; the roster employee only fills blanks.
    Timestamps are stamped only when missing.
    """
    if isinstance(record, PayrollRecord):
        data = record.model_dump()
    else:
        data = dict(record or {})

    # Older documents spelled it "kancha"
    if _blank(data.get("karcha")) and "kancha" in data:
        data["karcha"] = data.pop("kancha")

    if employee is not None:
        if not isinstance(employee, Employee):
            employee = Employee.model_validate(employee)
        for field, source in CARRY_OVER.items():
            if _blank(data.get(field)):
                data[field] = getattr(employee, source)
        for field, default in ROSTER_DEFAULTS.items():
            if _blank(data.get(field)):
                data[field] = default

    if month and _blank(data.get("month")):
        data["month"] = month
    if _blank(data.get("employeeId")) and not _blank(data.get("empId")):
        data["employeeId"] = data["empId"]
    if _blank(data.get("empId")) and not _blank(data.get("employeeId")):
        data["empId"] = data["employeeId"]
    if _blank(data.get("id")) and data.get("empId") and data.get("month"):
        data["id"] = record_id(data["empId"], data["month"])

    stamp = now or utc_now()
    if _blank(data.get("createdAt")):
        data["createdAt"] = stamp
    if _blank(data.get("updatedAt")):
        data["updatedAt"] = stamp

    return PayrollRecord.model_validate(data)


def zeroed_record(employee, month: str, now: Optional[str] = None) -> PayrollRecord:
    """Default payroll for an employee with no figures yet for the month."""
    return normalize({}, employee, month, now)


def payment_status(paid: bool, balance: float) -> str:
    if paid:
        return "Paid"
    return "Unpaid" if balance > 0 else "Pending"


def calculate(record, config: Optional[PayrollConfig] = None, now: Optional[str] = None) -> PayrollRecord:
    """Recompute every derived field of a record.

    Never fails: non-numeric inputs count as zero. Only updatedAt changes
    between two calls on the same inputs.
    """
    rec = record if isinstance(record, PayrollRecord) else normalize(record, now=now)
    cfg = config or PayrollConfig()

    total_duties = rec.duties + rec.ot
    salary = total_duties * rec.perDayWage + rec.ph * cfg.ph_rate
    # Overtime is paid at the per-day rate and is already part of salary
    ot_wages = rec.ot * rec.perDayWage
    total_salary = salary
    deductions = sum(getattr(rec, field) for field in DEDUCTION_FIELDS)
    net_salary = total_salary + rec.bonus - deductions
    balance = net_salary - rec.cash

    return rec.model_copy(update={
        "totalDuties": total_duties,
        "dailyWage": rec.perDayWage,
        "salary": salary,
        "otWages": ot_wages,
        "totalSalary": total_salary,
        "deductions": deductions,
        "netSalary": net_salary,
        "totalPayment": net_salary,
        "balance": balance,
        "status": payment_status(rec.paid, balance),
        "updatedAt": now or utc_now(),
    })
