import pytest
from grades.models import GradeEntry, StudentRecord


def make_record(name, entries):
    # entries: {дата: (тема, оценка)}
    return StudentRecord(student_name=name, grades={d: GradeEntry(t, g) for d, (t, g) in entries.items()})


@pytest.fixture
def scenario_grid():
    return [
        ["", "D1", "D2"],
        ["", "T1", "T2"],
        ["Ana", "L", "ML"],
        ["Beto", "", "7"],
    ]
