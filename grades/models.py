from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Tuple

# Сырые данные листа: строки × колонки, каждая ячейка уже текст
Grid = List[List[str]]


class GradeEntry(NamedTuple):
    topic: str
    grade: str  # как в ячейке (trim), без перевода в число


@dataclass(frozen=True)
class StudentRecord:
    """Одна строка студента: дата -> (тема, исходная оценка), только колонки-активности."""
    student_name: str
    grades: Mapping[str, GradeEntry] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if not isinstance(self.grades, MappingProxyType):
            object.__setattr__(self, "grades", MappingProxyType(dict(self.grades)))


class ChartPoint(NamedTuple):
    date: str
    grade: Optional[float]


class StudentGradeDetail(NamedTuple):
    student_name: str
    grade: str


class StudentAverage(NamedTuple):
    current_average: str
    missing_activities: int
    low_grade_topics: Tuple[str, ...]


class ActivityRanking(NamedTuple):
    topic: str
    average: str
    students: Tuple[StudentGradeDetail, ...]


class StudentAtRisk(NamedTuple):
    name: str
    projected_average: str
    missing: int
    details: Tuple[str, ...]


class CategoryCount(NamedTuple):
    name: str
    value: int


@dataclass(frozen=True)
class AnalysisSnapshot:
    """
    Результат одного прогона анализа для (лист, диапазон дат).
    best_student_name = None, если студентов нет.
    """
    selected_dates: Tuple[str, ...]
    student_averages: Mapping[str, StudentAverage]
    lowest_activities: Tuple[ActivityRanking, ...]
    highest_activities: Tuple[ActivityRanking, ...]
    students_at_risk: Tuple[StudentAtRisk, ...]
    category_counts: Tuple[CategoryCount, ...]
    best_student_name: Optional[str]
    best_student_series: Tuple[ChartPoint, ...]
    group_series: Tuple[ChartPoint, ...]

    def __post_init__(self):
        if not isinstance(self.student_averages, MappingProxyType):
            object.__setattr__(self, "student_averages", MappingProxyType(dict(self.student_averages)))


class PendingActivity(NamedTuple):
    date: str
    topic: str
    grade: str


class QuantitativeAverage(NamedTuple):
    student_name: str
    average: str
    details: Tuple[Tuple[str, str], ...]  # (тема, оценка)
