"""
Database Schemas for Mestri Payroll

Each Pydantic model represents a document shape in the database.
Collections: mestris, employees, payroll (one document per employee per
month) and lastemployees (archival copies for past months).
"""
import math
import os
from typing import Optional, List, Literal, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PH_RATE = 497.65

EMPLOYEE_STATUSES = ("Active", "Left", "Inactive", "On Leave")
EmployeeStatus = Literal["Active", "Left", "Inactive", "On Leave"]
PaymentMethod = Literal["Cash", "Account"]
PaymentStatus = Literal["Paid", "Unpaid", "Pending"]

NUMERIC_FIELDS = (
    "duties", "ot", "ph", "perDayWage", "bus", "food", "eb", "shoes",
    "karcha", "lastMonth", "advance", "others", "bonus", "cash",
    "totalDuties", "dailyWage", "salary", "otWages", "totalSalary",
    "deductions", "netSalary", "totalPayment", "balance",
)

TEXT_FIELDS = (
    "id", "employeeId", "empId", "month", "name", "dept", "designation",
    "mestriId", "mestri", "joiningDate", "employeeStatus", "phoneNumber",
    "accountNumber", "ifsc", "bankName", "bankHolderName", "remarks",
    "createdAt", "updatedAt",
)

# Recomputed on every write, never taken from user input
DERIVED_FIELDS = (
    "totalDuties", "dailyWage", "salary", "otWages", "totalSalary",
    "deductions", "netSalary", "totalPayment", "balance", "status",
)


def to_number(value: Any) -> float:
    """Coerce anything to a finite float; junk becomes 0."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class Mestri(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mestriId: str = Field("", description="Supervisor id")
    name: str = Field(..., description="Display name")
    phoneNumber: str = ""
    createdAt: str = ""
    updatedAt: str = ""


class Employee(BaseModel):
    model_config = ConfigDict(extra="ignore")

    empId: str = Field(..., description="Employee id, unique and stable")
    name: str = Field(..., description="Full name")
    dept: str = "General"
    mestriId: str = Field("", description="Supervisor reference")
    perDayWage: float = Field(0.0, description="Wage for one duty")
    joiningDate: str = ""
    status: EmployeeStatus = "Active"
    phoneNumber: str = ""
    accountNumber: str = ""
    ifsc: str = ""
    bankHolderName: str = ""
    bankName: str = ""
    createdAt: str = ""
    updatedAt: str = ""

    @field_validator("perDayWage", mode="before")
    @classmethod
    def _coerce_wage(cls, value):
        return to_number(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        # Blank means Active; a status we do not know keeps the employee off the active roster
        text = to_text(value).strip()
        if not text:
            return "Active"
        for status in EMPLOYEE_STATUSES:
            if status.lower() == text.lower():
                return status
        return "Inactive"


class PayrollConfig(BaseModel):
    # Paid-holiday rate per PH day; override with PH_RATE in the environment
    ph_rate: float = Field(
        default_factory=lambda: to_number(os.getenv("PH_RATE", DEFAULT_PH_RATE)),
        description="Amount paid per paid-holiday day",
    )


class PayrollRecord(BaseModel):
    """One employee's figures for one month. Every field is always present."""

    model_config = ConfigDict(extra="ignore")

    # Identity / carry-over
    id: str = Field("", description="{empId}_{month}")
    employeeId: str = ""
    empId: str = ""
    month: str = Field("", description="YYYY-MM")
    name: str = ""
    dept: str = ""
    designation: str = ""
    mestriId: str = ""
    mestri: str = Field("", description="Mestri display name")
    joiningDate: str = ""
    employeeStatus: str = ""
    phoneNumber: str = ""
    accountNumber: str = ""
    ifsc: str = ""
    bankName: str = ""
    bankHolderName: str = ""

    # Inputs
    duties: float = 0.0
    ot: float = 0.0
    ph: float = 0.0
    perDayWage: float = 0.0
    bus: float = 0.0
    food: float = 0.0
    eb: float = 0.0
    shoes: float = 0.0
    karcha: float = 0.0
    lastMonth: float = 0.0
    advance: float = 0.0
    others: float = 0.0
    bonus: float = 0.0
    cash: float = 0.0
    remarks: str = ""
    cashOrAccount: PaymentMethod = "Cash"
    paid: bool = False

    # Derived
    totalDuties: float = 0.0
    dailyWage: float = 0.0
    salary: float = 0.0
    otWages: float = 0.0
    totalSalary: float = 0.0
    deductions: float = 0.0
    netSalary: float = 0.0
    totalPayment: float = 0.0
    balance: float = 0.0
    status: PaymentStatus = "Pending"

    createdAt: str = ""
    updatedAt: str = ""

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_number(cls, value):
        return to_number(value)

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return to_text(value)

    @field_validator("cashOrAccount", mode="before")
    @classmethod
    def _coerce_method(cls, value):
        return "Account" if to_text(value).strip().lower() == "account" else "Cash"

    @field_validator("paid", mode="before")
    @classmethod
    def _coerce_paid(cls, value):
        if isinstance(value, str):
            return value.strip().lower() in ("yes", "true", "1", "paid")
        return bool(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        return value if value in ("Paid", "Unpaid", "Pending") else "Pending"


class ResolvedMonth(BaseModel):
    month: str
    kind: Literal["past", "current", "future"]
    provisional: bool = Field(False, description="Future month, figures may be reconciled later")
    archival: bool = Field(False, description="Edits are stored in the archival collection")
    needs_import: bool = Field(False, description="Past month without any record")
    rows: List[PayrollRecord] = []


class MonthSummary(BaseModel):
    month: str
    label: str
    employees: int
    paid: int = 0
    unpaid: int = 0
    total_payment: float


class CalculationRequest(BaseModel):
    record: dict = Field(default_factory=dict)
    config: PayrollConfig = Field(default_factory=PayrollConfig)


class ImportResult(BaseModel):
    month: str
    imported: int
    skipped: int


class MestriUpdate(BaseModel):
    name: Optional[str] = None
    phoneNumber: Optional[str] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    dept: Optional[str] = None
    mestriId: Optional[str] = None
    perDayWage: Optional[float] = None
    joiningDate: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    phoneNumber: Optional[str] = None
    accountNumber: Optional[str] = None
    ifsc: Optional[str] = None
    bankHolderName: Optional[str] = None
    bankName: Optional[str] = None
