import pytest
import mongomock
from datetime import date
from fastapi.testclient import TestClient

from schemas import Employee, PayrollConfig

TODAY = date(2025, 6, 15)


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def config():
    return PayrollConfig(ph_rate=497.65)


@pytest.fixture
def roster():
    return [
        Employee(empId="E001", name="Ravi", dept="Loading", mestriId="M1", perDayWage=500, status="Active"),
        Employee(empId="E002", name="Selvam", dept="Loading", mestriId="M1", perDayWage=600, status="Active"),
        Employee(empId="E003", name="Murugan", mestriId="M2", perDayWage=450, status="Left"),
    ]


@pytest.fixture
def seeded(db, roster):
    db.mestris.insert_many([
        {"_id": "M1", "mestriId": "M1", "name": "Kannan", "phoneNumber": "9000000001"},
        {"_id": "M2", "mestriId": "M2", "name": "Arul", "phoneNumber": "9000000002"},
    ])
    db.employees.insert_many([{"_id": e.empId, **e.model_dump()} for e in roster])
    return db


@pytest.fixture
def client(seeded):
    from main import app, get_config, get_db, get_today

    app.dependency_overrides[get_db] = lambda: seeded
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_config] = lambda: PayrollConfig(ph_rate=497.65)
    yield TestClient(app)
    app.dependency_overrides.clear()
