from io import BytesIO
from openpyxl import load_workbook
from grades.analysis import analyze
from grades.export import (
    SHEET_ACTIVITIES,
    SHEET_AVERAGES,
    SHEET_BEST,
    SHEET_RISK,
    export_to_excel_bytes,
    snapshot_to_frames,
)
from conftest import make_record


def _snapshot():
    recs = [
        make_record("Ana", {"D1": ("T1", "L"), "D2": ("T2", "ML")}),
        make_record("Beto", {"D1": ("T1", ""), "D2": ("T2", "2")}),
    ]
    return analyze(recs, ["D1", "D2"])


def test_frames():
    frames = snapshot_to_frames(_snapshot())
    avg = frames["averages"]
    assert list(avg["Студент"]) == ["Ana", "Beto"]
    assert list(avg["Средний (с прогнозом)"]) == [7.5, 2.5]
    assert list(frames["at_risk"]["Студент"]) == ["Beto"]
    assert list(frames["categories"]["Количество"]) == [1, 1, 0]
    assert list(frames["group_series"]["Дата"]) == ["D1", "D2"]


def test_frames_empty_snapshot():
    frames = snapshot_to_frames(analyze([], []))
    assert frames["averages"].empty
    assert frames["best_series"].empty


def test_excel_report():
    data = export_to_excel_bytes(_snapshot())
    wb = load_workbook(BytesIO(data))
    assert SHEET_AVERAGES in wb.sheetnames
    assert SHEET_RISK in wb.sheetnames
    assert SHEET_BEST in wb.sheetnames

    ws = wb[SHEET_ACTIVITIES]
    rows = [tuple(c.value for c in row) for row in ws.iter_rows(min_row=2)]
    topics = [r[1] for r in rows if r[1]]
    assert topics[:2] == ["T2", "T1"]
    students = [r[3] for r in rows if r[3] and not str(r[3]).startswith("студентов")]
    assert "Beto" in students


def test_excel_report_without_students():
    wb = load_workbook(BytesIO(export_to_excel_bytes(analyze([], []))))
    assert SHEET_BEST not in wb.sheetnames
