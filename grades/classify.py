from __future__ import annotations
import logging
from typing import Dict, List, Sequence
from .normalize import normalize_grade, is_qualitative_grade

logger = logging.getLogger(__name__)

FIRST_STUDENT_ROW = 2


def _cell(row: Sequence[str], j: int) -> str:
    # строки бывают короче шапки
    if j < len(row) and row[j] is not None:
        return str(row[j]).strip()
    return ""


def is_grade_cell(value: str) -> bool:
    return normalize_grade(value) is not None or is_qualitative_grade(value)


def active_column_indexes(grid: Sequence[Sequence[str]], n_columns: int) -> List[int]:
    """
    Индексы колонок (1..n_columns-1), где хотя бы у одного студента
    стоит распознаваемая оценка. Достаточно одной ячейки.
    """
    active = []
    for j in range(1, n_columns):
        for row in grid[FIRST_STUDENT_ROW:]:
            if is_grade_cell(_cell(row, j)):
                active.append(j)
                break
    return active


def classify_activity_columns(grid: Sequence[Sequence[str]], dates: Sequence[str]) -> Dict[str, bool]:
    """
    Возвращает mapping: дата -> это колонка-активность?
    Колонки без единой оценки (инструкции, разделители) получают False.
    Для повторяющейся даты действует последняя колонка с этой датой.
    """
    active = set(active_column_indexes(grid, len(dates) + 1))
    flags: Dict[str, bool] = {}
    for j, date in enumerate(dates, start=1):
        flags[date] = j in active

    logger.debug("Колонки-активности: %d из %d", len(active), len(dates))
    return flags
