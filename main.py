import logging
import os
from datetime import date
from typing import Annotated, Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Path, Query, Response
from fastapi.middleware.cors import CORSMiddleware

import database
import service
import store
from export import export_filename, export_to_excel, filter_rows
from months import MONTH_PATTERN
from payroll import calculate
from schemas import (
    CalculationRequest, Employee, EmployeeUpdate, ImportResult, Mestri, MestriUpdate,
    MonthSummary, PayrollConfig, PayrollRecord, ResolvedMonth,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Mestri Payroll API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_db():
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    return database.db


def get_today() -> date:
    return date.today()


def get_config() -> PayrollConfig:
    return PayrollConfig()


MonthParam = Annotated[str, Path(pattern=MONTH_PATTERN, description="YYYY-MM")]


@app.get("/")
def read_root():
    return {"message": "Payroll API Running"}


# --------------------- MESTRIS ---------------------

@app.get("/api/mestris", response_model=List[Mestri])
def list_mestris(db=Depends(get_db)):
    return store.list_mestris(db)


@app.post("/api/mestris", response_model=Mestri, status_code=201)
def add_mestri(payload: Mestri, db=Depends(get_db)):
    try:
        return store.add_mestri(db, payload)
    except store.DuplicateEntry as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.put("/api/mestris/{mestri_id}", response_model=Mestri)
def update_mestri(mestri_id: str, payload: MestriUpdate, db=Depends(get_db)):
    mestri = store.update_mestri(db, mestri_id, payload.model_dump())
    if mestri is None:
        raise HTTPException(status_code=404, detail=f"Mestri {mestri_id} not found")
    return mestri


# --------------------- EMPLOYEES ---------------------

@app.get("/api/employees", response_model=List[Employee])
def list_employees(
    mestri_id: Optional[str] = None,
    status: Optional[str] = None,
    db=Depends(get_db),
):
    return store.list_employees(db, mestri_id=mestri_id, status=status)


@app.post("/api/employees", response_model=Employee, status_code=201)
def add_employee(
    payload: Employee,
    db=Depends(get_db),
    today: date = Depends(get_today),
    config: PayrollConfig = Depends(get_config),
):
    try:
        return service.create_employee(db, payload, today, config)
    except store.DuplicateEntry as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.put("/api/employees/{emp_id}", response_model=Employee)
def update_employee(emp_id: str, payload: EmployeeUpdate, db=Depends(get_db)):
    employee = store.update_employee(db, emp_id, payload.model_dump())
    if employee is None:
        raise HTTPException(status_code=404, detail=f"Employee {emp_id} not found")
    return employee


# --------------------- PAYROLL ---------------------

@app.post("/api/payroll/calculate", response_model=PayrollRecord)
def calculate_payroll(payload: CalculationRequest):
    return calculate(payload.record, payload.config)


@app.get("/api/payroll/summary", response_model=List[MonthSummary])
def payroll_summary(db=Depends(get_db)):
    return service.month_summaries(db)


@app.get("/api/payroll/{month}", response_model=ResolvedMonth)
def get_month(
    month: MonthParam,
    status: str = Query("Active", description="Active, Left, Inactive, On Leave or All"),
    db=Depends(get_db),
    today: date = Depends(get_today),
    config: PayrollConfig = Depends(get_config),
):
    return service.load_month(db, month, today, status, config)


@app.put("/api/payroll/{month}/{emp_id}", response_model=PayrollRecord)
def save_payroll(
    emp_id: str,
    month: MonthParam,
    changes: Dict[str, Any] = Body(...),
    db=Depends(get_db),
    today: date = Depends(get_today),
    config: PayrollConfig = Depends(get_config),
):
    return service.save_record(db, month, emp_id, changes, today, config)


@app.post("/api/payroll/{month}/import", response_model=ImportResult)
def import_month(
    month: MonthParam,
    db=Depends(get_db),
    today: date = Depends(get_today),
    config: PayrollConfig = Depends(get_config),
):
    try:
        counts = service.import_roster(db, month, today, config)
    except service.ImportNotAllowed as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ImportResult(month=month, **counts)


@app.get("/api/payroll/{month}/export")
def export_month(
    month: MonthParam,
    status: str = Query("Active"),
    search: Optional[str] = None,
    db=Depends(get_db),
    today: date = Depends(get_today),
    config: PayrollConfig = Depends(get_config),
):
    rows = filter_rows(service.load_month(db, month, today, status, config).rows, search)
    return Response(
        content=export_to_excel(rows),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(month, search)}"'},
    )


@app.get("/test")
def test_database():
    """Test endpoint to check if database is available and accessible"""
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }

    db = database.db
    if db is None:
        return response

    response["database"] = "✅ Available"
    response["connection_status"] = "Connected"
    try:
        collections = db.list_collection_names()
        response["collections"] = collections[:10]  # Show first 10 collections
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
