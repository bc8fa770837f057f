import datetime as dt
from io import BytesIO
from openpyxl import Workbook
from grades.ingest import grid_from_matrix, load_grids_from_uploads
from grades.pipeline import analyze_sheet


class FakeUpload:
    def __init__(self, name, data):
        self.name = name
        self._data = data

    def getvalue(self):
        return self._data


def test_grid_from_matrix_text_and_trim():
    matrix = [
        [None, dt.datetime(2024, 3, 1), "D2", None],
        [None, " T1 ", "T2", None],
        ["Ana", 7.0, "ML", None],
        [None, None, None, None],
        ["Beto", 8.5, None],
        [None, None, None, None],
    ]
    assert grid_from_matrix(matrix) == [
        ["", "2024-03-01", "D2"],
        ["", "T1", "T2"],
        ["Ana", "7", "ML"],
        ["", "", ""],
        ["Beto", "8.5", ""],
    ]


def test_grid_from_empty_matrix():
    assert grid_from_matrix([]) == []
    assert grid_from_matrix([[None, None]]) == []


def test_load_csv():
    data = ",D1,D2\n,T1,T2\nAna,L,ML\nBeto,,7\n".encode("utf-8")
    tables = load_grids_from_uploads([FakeUpload("notas.csv", data)])
    assert len(tables) == 1
    assert tables[0]["source_name"] == "notas.csv"
    assert tables[0]["sheet_name"] == "CSV"
    assert tables[0]["grid"] == [
        ["", "D1", "D2"],
        ["", "T1", "T2"],
        ["Ana", "L", "ML"],
        ["Beto", "", "7"],
    ]


def test_load_xlsx_all_sheets():
    wb = Workbook()
    ws = wb.active
    ws.title = "4A"
    ws.append([None, dt.datetime(2024, 3, 1), dt.datetime(2024, 3, 8)])
    ws.append([None, "Fracciones", "Decimales"])
    ws.append(["Ana", "L", 85])
    ws2 = wb.create_sheet("4B")
    ws2.append(["", "D1"])
    bio = BytesIO()
    wb.save(bio)

    tables = load_grids_from_uploads([FakeUpload("curso.xlsx", bio.getvalue())])
    assert [t["sheet_name"] for t in tables] == ["4A", "4B"]
    assert tables[0]["grid"] == [
        ["", "2024-03-01", "2024-03-08"],
        ["", "Fracciones", "Decimales"],
        ["Ana", "L", "85"],
    ]
    assert tables[1]["grid"] == [["", "D1"]]


def test_load_xlsx_percent_cells_as_displayed():
    wb = Workbook()
    ws = wb.active
    ws.append([None, "D1", "D2", "D3"])
    ws.append([None, "T1", "T2", "T3"])
    ws.append(["Ana", 0.85, 0.5, 0.855])
    ws["B3"].number_format = "0%"
    ws["D3"].number_format = "0.0%"
    bio = BytesIO()
    wb.save(bio)

    grid = load_grids_from_uploads([FakeUpload("pct.xlsx", bio.getvalue())])[0]["grid"]
    assert grid[2] == ["Ana", "85%", "0.5", "85.5%"]


def test_percent_cell_grade_is_not_at_risk():
    wb = Workbook()
    ws = wb.active
    ws.append([None, "D1"])
    ws.append([None, "T1"])
    ws.append(["Ana", 0.85])
    ws["B3"].number_format = "0%"
    bio = BytesIO()
    wb.save(bio)

    grid = load_grids_from_uploads([FakeUpload("pct.xlsx", bio.getvalue())])[0]["grid"]
    snapshot = analyze_sheet(grid)["snapshot"]
    assert snapshot.student_averages["Ana"].current_average == "8.50"
    assert snapshot.students_at_risk == ()
