from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence
from .models import (
    ActivityRanking,
    AnalysisSnapshot,
    CategoryCount,
    ChartPoint,
    StudentAtRisk,
    StudentAverage,
    StudentGradeDetail,
    StudentRecord,
)
from .normalize import CATEGORY_ORDER, normalize_grade, qualitative_category
from .utils import format_grade

logger = logging.getLogger(__name__)

# Несданная/нераспознанная работа в прогнозе считается как NL
MISSING_GRADE_FALLBACK = 3.0
RISK_THRESHOLD = 5.0
LOW_GRADE_BELOW = 6.0
HIGH_GRADE_FROM = 8.0
TOP_ACTIVITIES = 5


def _params(params: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    params = params or {}
    return {
        "missing_fallback": float(params.get("missing_fallback", MISSING_GRADE_FALLBACK)),
        "risk_threshold": float(params.get("risk_threshold", RISK_THRESHOLD)),
        "low_grade_below": float(params.get("low_grade_below", LOW_GRADE_BELOW)),
        "high_grade_from": float(params.get("high_grade_from", HIGH_GRADE_FROM)),
        "top_n": int(params.get("top_n", TOP_ACTIVITIES)),
    }


def _rounded(value: float) -> float:
    return float(format_grade(value))


def _rank_activities(
    activity_sums: Dict[str, List[float]],
    details: Dict[str, List[StudentGradeDetail]],
    descending: bool,
    top_n: int,
) -> tuple:
    avgs = []
    for topic, (total, count) in activity_sums.items():
        avgs.append((topic, format_grade(total / count) if count > 0 else "0.00"))

    # sorted стабилен и при reverse=True: равные средние остаются в порядке появления тем
    ordered = sorted(avgs, key=lambda x: float(x[1]), reverse=descending)[:top_n]
    return tuple(
        ActivityRanking(topic=topic, average=avg, students=tuple(details.get(topic, [])))
        for topic, avg in ordered
    )


def _group_series(records: Sequence[StudentRecord], dates: Sequence[str]) -> tuple:
    out = []
    for date in dates:
        total = 0.0
        count = 0
        for student in records:
            entry = student.grades.get(date)
            if entry is None:
                continue
            g = normalize_grade(entry.grade)
            if g is not None:
                total += g
                count += 1
        out.append(ChartPoint(date=date, grade=_rounded(total / count) if count > 0 else None))
    return tuple(out)


def analyze(
    records: Sequence[StudentRecord],
    selected_dates: Sequence[str],
    params: Optional[Mapping[str, Any]] = None,
) -> AnalysisSnapshot:
    """
    Один проход по студентам и выбранным датам.

    Для каждой записи студента на выбранную дату:
      - оценка распознана: идёт в сумму прогноза; L/ML/NL ещё и в счётчик категорий
      - не распознана (пусто/текст): +1 несданная, в сумму идёт missing_fallback
      - в среднее по теме идут только распознанные оценки
      - < low_grade_below -> список "слабых" по теме, >= high_grade_from -> "сильных"

    Средний балл = сумма прогноза / число записей (0, если записей нет).
    Лучший студент - первый со строго максимальным средним.
    Группа риска: средний < risk_threshold и есть хотя бы одна запись.

    Ошибок на уровне ячеек нет: нераспознанная оценка - это данные.
    """
    p = _params(params)
    fallback = p["missing_fallback"]
    low_below = p["low_grade_below"]
    high_from = p["high_grade_from"]

    student_averages: Dict[str, StudentAverage] = {}
    activity_sums: Dict[str, List[float]] = {}
    low_details: Dict[str, List[StudentGradeDetail]] = {}
    high_details: Dict[str, List[StudentGradeDetail]] = {}
    at_risk: List[StudentAtRisk] = []
    categories = {name: 0 for name in CATEGORY_ORDER}

    best_name: Optional[str] = None
    best_series: tuple = ()
    highest_average = -1.0

    for student in records:
        projection_sum = 0.0
        missing = 0
        activities = 0
        series: List[ChartPoint] = []
        low_topics: List[str] = []
        pending_details: List[str] = []

        for date in selected_dates:
            entry = student.grades.get(date)
            if entry is None:
                continue

            activities += 1
            grade = normalize_grade(entry.grade)

            if grade is not None:
                projection_sum += grade
                category = qualitative_category(entry.grade)
                if category is not None:
                    categories[category] += 1
            else:
                missing += 1
                projection_sum += fallback
                pending_details.append(f"{entry.topic} ({date})")

            # бакет темы создаётся даже для несданных
            bucket = activity_sums.setdefault(entry.topic, [0.0, 0])
            if grade is not None:
                bucket[0] += grade
                bucket[1] += 1

            series.append(ChartPoint(date=date, grade=_rounded(grade) if grade is not None else None))

            if grade is not None and grade < low_below:
                low_details.setdefault(entry.topic, []).append(
                    StudentGradeDetail(student_name=student.student_name, grade=entry.grade)
                )
                if entry.topic not in low_topics:
                    low_topics.append(entry.topic)

            if grade is not None and grade >= high_from:
                high_details.setdefault(entry.topic, []).append(
                    StudentGradeDetail(student_name=student.student_name, grade=entry.grade)
                )

        average = projection_sum / activities if activities > 0 else 0.0
        average_text = format_grade(average)

        # одинаковые имена: последняя запись перезаписывает предыдущую
        student_averages[student.student_name] = StudentAverage(
            current_average=average_text,
            missing_activities=missing,
            low_grade_topics=tuple(low_topics),
        )

        if average > highest_average:
            highest_average = average
            best_name = student.student_name
            best_series = tuple(series)

        if average < p["risk_threshold"] and activities > 0:
            at_risk.append(StudentAtRisk(
                name=student.student_name,
                projected_average=average_text,
                missing=missing,
                details=tuple(pending_details),
            ))

    snapshot = AnalysisSnapshot(
        selected_dates=tuple(selected_dates),
        student_averages=student_averages,
        lowest_activities=_rank_activities(activity_sums, low_details, descending=False, top_n=p["top_n"]),
        highest_activities=_rank_activities(activity_sums, high_details, descending=True, top_n=p["top_n"]),
        students_at_risk=tuple(at_risk),
        category_counts=tuple(CategoryCount(name=n, value=categories[n]) for n in CATEGORY_ORDER),
        best_student_name=best_name,
        best_student_series=best_series,
        group_series=_group_series(records, selected_dates),
    )
    logger.debug(
        "Анализ: студентов %d, дат %d, тем %d, в группе риска %d",
        len(records), len(selected_dates), len(activity_sums), len(at_risk),
    )
    return snapshot


def build_feedback_request(snapshot: AnalysisSnapshot, student_name: str) -> Dict[str, Any]:
    """
    Данные для генерации отзыва (ключи - как в протоколе сервиса).
    KeyError, если студента нет в снимке.
    """
    avg = snapshot.student_averages[student_name]
    return {
        "studentName": student_name,
        "currentAverage": avg.current_average,
        "missingActivities": int(avg.missing_activities),
        "lowGradeTopics": list(avg.low_grade_topics),
    }
