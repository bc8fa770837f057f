from __future__ import annotations
from typing import List, Sequence
from .models import ChartPoint, PendingActivity, QuantitativeAverage, StudentRecord
from .normalize import is_qualitative_grade, is_quantitative_grade, normalize_grade
from .utils import format_grade


def find_student(records: Sequence[StudentRecord], student_name: str) -> StudentRecord | None:
    # первая строка с этим именем
    for r in records:
        if r.student_name == student_name:
            return r
    return None


def pending_activities(record: StudentRecord, selected_dates: Sequence[str]) -> List[PendingActivity]:
    # несданные работы: ни число, ни L/ML/NL (включая пустые ячейки)
    out: List[PendingActivity] = []
    for date in selected_dates:
        entry = record.grades.get(date)
        if entry is None:
            continue
        if normalize_grade(entry.grade) is None and not is_qualitative_grade(entry.grade):
            out.append(PendingActivity(date=date, topic=entry.topic, grade=entry.grade))
    return out


def student_progress(record: StudentRecord, selected_dates: Sequence[str]) -> List[ChartPoint]:
    # точки без распознанной оценки не рисуем
    out: List[ChartPoint] = []
    for date in selected_dates:
        entry = record.grades.get(date)
        if entry is None:
            continue
        g = normalize_grade(entry.grade)
        if g is not None:
            out.append(ChartPoint(date=date, grade=float(format_grade(g))))
    return out


def quantitative_averages(
    records: Sequence[StudentRecord],
    selected_dates: Sequence[str],
) -> List[QuantitativeAverage]:
    """
    Средний только по числовым оценкам (без L/ML/NL и без несданных).
    Студенты без числовых оценок не попадают в список.
    """
    out: List[QuantitativeAverage] = []
    for student in records:
        total = 0.0
        count = 0
        details = []
        for date in selected_dates:
            entry = student.grades.get(date)
            if entry is None or not is_quantitative_grade(entry.grade):
                continue
            total += normalize_grade(entry.grade)
            count += 1
            details.append((entry.topic, entry.grade.upper()))

        if count > 0:
            out.append(QuantitativeAverage(
                student_name=student.student_name,
                average=format_grade(total / count),
                details=tuple(details),
            ))
    return out
