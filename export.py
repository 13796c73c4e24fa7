"""
Spreadsheet export of computed payroll rows.
"""
import io
from typing import Iterable, List, Optional

import pandas as pd

from schemas import PayrollRecord

# Helper to round to 2 decimals; stored figures stay unrounded
rd = lambda x: round(float(x or 0), 2)

# Sheet header -> record field
EXPORT_COLUMNS = [
    ("Month", "month"),
    ("Name", "name"),
    ("EmpId", "empId"),
    ("Dept", "dept"),
    ("Mestri", "mestri"),
    ("Status", "status"),
    ("Duties", "duties"),
    ("OT", "ot"),
    ("TotalDuties", "totalDuties"),
    ("PH", "ph"),
    ("PerDayWage", "perDayWage"),
    ("Wage", "totalSalary"),
    ("Bus", "bus"),
    ("Food", "food"),
    ("EB", "eb"),
    ("Shoes", "shoes"),
    ("Karcha", "karcha"),
    ("LastMonth", "lastMonth"),
    ("Advance", "advance"),
    ("Others", "others"),
    ("Bonus", "bonus"),
    ("Deductions", "deductions"),
    ("Payment", "totalPayment"),
    ("Cash", "cash"),
    ("Balance", "balance"),
    ("CashOrAccount", "cashOrAccount"),
    ("Paid", "paid"),
    ("Remarks", "remarks"),
    ("AccountNumber", "accountNumber"),
    ("IFSC", "ifsc"),
    ("BankHolderName", "bankHolderName"),
]


def filter_rows(rows: Iterable[PayrollRecord], search: Optional[str] = None) -> List[PayrollRecord]:
    """Case-insensitive match on name, employee id or mestri name."""
    rows = list(rows)
    if not search:
        return rows
    q = search.lower()
    return [
        r for r in rows
        if q in r.name.lower() or q in r.empId.lower() or q in (r.mestri or r.mestriId).lower()
    ]


def rows_to_frame(rows: Iterable[PayrollRecord]) -> pd.DataFrame:
    data = []
    for r in rows:
        line = {header: getattr(r, field) for header, field in EXPORT_COLUMNS}
        for header, value in line.items():
            if isinstance(value, float):
                line[header] = rd(value)
        line["Mestri"] = r.mestri or r.mestriId
        line["Paid"] = "Yes" if r.paid else "No"
        data.append(line)
    return pd.DataFrame(data, columns=[header for header, _ in EXPORT_COLUMNS])


def export_to_excel(rows: Iterable[PayrollRecord]) -> bytes:
    buffer = io.BytesIO()
    rows_to_frame(rows).to_excel(buffer, index=False, sheet_name="Payroll", engine="openpyxl")
    return buffer.getvalue()


def export_filename(month: str, search: Optional[str] = None) -> str:
    return f"payroll_{month}_{'filtered' if search else 'all'}.xlsx"
