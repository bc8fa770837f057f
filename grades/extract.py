from __future__ import annotations
import logging
from typing import Dict, List, Sequence, Tuple
from .classify import FIRST_STUDENT_ROW, classify_activity_columns
from .errors import FormatError
from .models import GradeEntry, StudentRecord
from .utils import cell_text

logger = logging.getLogger(__name__)

MIN_SHEET_ROWS = 3
# =========================

# Лист -> записи студентов
# =========================
def _cell(row: Sequence, j: int) -> str:
    return cell_text(row[j]) if j < len(row) else ""


def extract_dates(grid: Sequence[Sequence]) -> List[str]:
    # строка 0: даты, колонка 0 не используется
    return [cell_text(v) for v in list(grid[0])[1:]]


def extract_student_records(
    grid: Sequence[Sequence],
    min_rows: int = MIN_SHEET_ROWS,
) -> Tuple[List[StudentRecord], List[str]]:
    """
    Формат листа:
      строка 0 - даты (колонка 0 пустая/заголовок)
      строка 1 - темы активностей
      строки 2.. - "ФИО, оценка1, оценка2, ..."

    Возвращает (записи студентов по порядку строк, ось дат по порядку колонок).
    В запись попадают только колонки-активности; пустая ячейка хранится как "",
    чтобы анализ считал её несданной работой.
    Строки без имени пропускаются. Одинаковые имена НЕ склеиваются.
    """
    if len(grid) < min_rows:
        raise FormatError(
            f"В листе {len(grid)} строк(и), нужно минимум {min_rows}: "
            "строка дат, строка тем и хотя бы одна строка студента."
        )

    headers = list(grid[0])
    topics = list(grid[1])
    dates = extract_dates(grid)
    flags = classify_activity_columns(grid, dates)

    records: List[StudentRecord] = []
    for i in range(FIRST_STUDENT_ROW, len(grid)):
        row = list(grid[i] or [])
        name = _cell(row, 0)
        if not name:
            logger.debug("Строка %d пропущена: пустое имя студента", i + 1)
            continue

        grades: Dict[str, GradeEntry] = {}
        for j in range(1, len(headers)):
            date = dates[j - 1]
            if not flags.get(date):
                continue
            # повтор даты: последняя колонка перезаписывает
            grades[date] = GradeEntry(topic=_cell(topics, j), grade=_cell(row, j))

        records.append(StudentRecord(student_name=name, grades=grades))

    logger.debug("Студентов: %d, дат: %d", len(records), len(dates))
    return records, dates
