import io

import pandas as pd

from export import export_filename, export_to_excel, filter_rows, rows_to_frame
from payroll import calculate, normalize


def rows():
    return [
        calculate(normalize({"empId": "E001", "name": "Ravi", "month": "2025-06", "mestri": "Kannan",
                             "duties": 10, "perDayWage": 500, "paid": True})),
        calculate(normalize({"empId": "E002", "name": "Selvam", "month": "2025-06", "mestriId": "M2",
                             "duties": 5, "perDayWage": 600})),
    ]


def test_filter_rows_by_name_id_or_mestri():
    assert [r.empId for r in filter_rows(rows(), "ravi")] == ["E001"]
    assert [r.empId for r in filter_rows(rows(), "e002")] == ["E002"]
    assert [r.empId for r in filter_rows(rows(), "kann")] == ["E001"]
    assert [r.empId for r in filter_rows(rows(), "m2")] == ["E002"]
    assert len(filter_rows(rows(), "")) == 2


def test_frame_columns_and_values():
    frame = rows_to_frame(rows())
    assert list(frame.columns)[:3] == ["Month", "Name", "EmpId"]
    assert frame.loc[0, "Wage"] == 5000
    assert frame.loc[0, "Paid"] == "Yes"
    assert frame.loc[1, "Paid"] == "No"
    assert frame.loc[1, "Mestri"] == "M2"


def test_export_to_excel_reads_back():
    content = export_to_excel(rows())
    sheet = pd.read_excel(io.BytesIO(content), sheet_name="Payroll")
    assert list(sheet["EmpId"]) == ["E001", "E002"]
    assert list(sheet["Payment"]) == [5000, 3000]


def test_export_filename():
    assert export_filename("2025-06") == "payroll_2025-06_all.xlsx"
    assert export_filename("2025-06", "ravi") == "payroll_2025-06_filtered.xlsx"


def test_frame_rounds_figures_to_two_decimals():
    rec = calculate(normalize({"empId": "E003", "month": "2025-06", "ph": 1.5}))
    frame = rows_to_frame([rec])
    assert frame.loc[0, "Wage"] == round(1.5 * 497.65, 2)
    assert frame.loc[0, "PH"] == 1.5
