import mongomock
import pytest

import store
from payroll import calculate, normalize
from schemas import Employee, Mestri


def make(emp_id, month, **values):
    return calculate(normalize({"empId": emp_id, "month": month, **values}))


def test_upsert_is_keyed_by_employee_and_month(db):
    store.upsert_record(db, make("emp1", "2025-06", duties=10))
    store.upsert_record(db, make("emp2", "2025-05", duties=7))
    store.upsert_record(db, make("emp2", "2025-06", duties=3))
    store.upsert_record(db, make("emp2", "2025-06", duties=4))

    assert store.get_record(db, "emp1", "2025-06")["duties"] == 10
    assert store.get_record(db, "emp2", "2025-05")["duties"] == 7
    assert store.get_record(db, "emp2", "2025-06")["duties"] == 4
    assert db.payroll.count_documents({}) == 3


def test_upsert_fixes_a_mismatched_id(db):
    record = make("emp1", "2025-06").model_copy(update={"id": "emp2_2025-06"})
    saved = store.upsert_record(db, record)
    assert saved.id == "emp1_2025-06"
    assert store.get_record(db, "emp2", "2025-06") is None


def test_list_records_for_month_filters(db):
    store.upsert_record(db, make("emp1", "2025-06", mestriId="M1"))
    store.upsert_record(db, make("emp2", "2025-06", mestriId="M2"))
    store.upsert_record(db, make("emp1", "2025-07", mestriId="M1"))

    assert len(store.list_records_for_month(db, "2025-06")) == 2
    assert [r["empId"] for r in store.list_records_for_month(db, "2025-06", mestri_id="M2")] == ["emp2"]
    assert [r["month"] for r in store.list_records_for_month(db, "2025-06", employee_id="emp1")] == ["2025-06"]
    assert all("_id" not in r for r in store.list_records_for_month(db, "2025-06"))


def test_archival_records_live_in_their_own_collection(db):
    record = make("emp1", "2025-04", duties=20)
    store.upsert_archival_record(db, record.id, record)

    assert store.get_record(db, "emp1", "2025-04") is None
    archived = store.list_archival_records(db, "2025-04")
    assert len(archived) == 1
    assert archived[0]["type"] == "employee_payroll"
    assert archived[0]["year"] == "2025"
    assert store.get_archival_record(db, "emp1", "2025-04")["duties"] == 20


def test_reassign_future_records_only_touches_later_months(db):
    for month in ("2025-05", "2025-06", "2025-07", "2025-08"):
        store.upsert_record(db, make("emp1", month, mestriId="M1"))
    store.upsert_record(db, make("emp2", "2025-07", mestriId="M1"))

    moved = store.reassign_future_records(db, "emp1", "2025-06", "M2", "Arul")

    assert moved == 2
    assert store.get_record(db, "emp1", "2025-06")["mestriId"] == "M1"
    assert store.get_record(db, "emp1", "2025-07")["mestriId"] == "M2"
    assert store.get_record(db, "emp1", "2025-08")["mestri"] == "Arul"
    assert store.get_record(db, "emp2", "2025-07")["mestriId"] == "M1"


def test_monthly_totals(db):
    store.upsert_record(db, make("emp1", "2025-06", duties=2, perDayWage=500))
    store.upsert_record(db, make("emp2", "2025-06", duties=1, perDayWage=300, paid=True))
    store.upsert_record(db, make("emp1", "2025-05", duties=1, perDayWage=500))

    totals = store.monthly_totals(db)
    assert totals[0] == {"month": "2025-06", "employees": 2, "paid": 1, "unpaid": 1, "total_payment": 1300}
    assert totals[1]["paid"] == 0
    assert totals[1]["month"] == "2025-05"


def test_employees_roundtrip(db):
    store.add_employee(db, Employee(empId="E010", name="Bala", mestriId="M1", perDayWage=520))
    store.add_employee(db, Employee(empId="E011", name="Kumar", mestriId="M2", status="Left"))

    assert store.get_employee(db, "E010").perDayWage == 520
    assert [e.empId for e in store.list_employees(db, mestri_id="M1")] == ["E010"]
    assert [e.empId for e in store.list_employees(db, status="Left")] == ["E011"]
    assert len(store.list_employees(db, status="All")) == 2

    with pytest.raises(store.DuplicateEntry):
        store.add_employee(db, Employee(empId="E010", name="Again"))


def test_update_employee(db):
    store.add_employee(db, Employee(empId="E010", name="Bala"))
    updated = store.update_employee(db, "E010", {"status": "Left", "name": None, "empId": "X"})
    assert updated.status == "Left"
    assert updated.name == "Bala"
    assert updated.empId == "E010"
    assert store.update_employee(db, "missing", {"status": "Left"}) is None


def test_mestris(db):
    generated = store.add_mestri(db, Mestri(name="Kannan"))
    store.add_mestri(db, Mestri(mestriId="M2", name="Arul"))

    assert generated.mestriId
    assert store.find_mestri(db, "Arul").mestriId == "M2"
    assert store.find_mestri(db, generated.mestriId).name == "Kannan"
    assert store.find_mestri(db, "nobody") is None
    assert store.update_mestri(db, "M2", {"phoneNumber": "123"}).phoneNumber == "123"
    assert store.update_mestri(db, "M9", {"name": "x"}) is None
    with pytest.raises(store.DuplicateEntry):
        store.add_mestri(db, Mestri(mestriId="M2", name="Other"))


def test_insert_race_is_reported_as_duplicate(db, monkeypatch):
    db.employees.insert_one({"_id": "E010", "empId": "E010", "name": "Bala"})
    db.mestris.insert_one({"_id": "M9", "mestriId": "M9", "name": "Pandi"})
    # Another writer got in between the existence check and the insert
    monkeypatch.setattr(mongomock.Collection, "find_one", lambda self, *args, **kwargs: None)

    with pytest.raises(store.DuplicateEntry):
        store.add_employee(db, Employee(empId="E010", name="Again"))
    with pytest.raises(store.DuplicateEntry):
        store.add_mestri(db, Mestri(mestriId="M9", name="Again"))
