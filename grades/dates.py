from __future__ import annotations
import logging
from typing import List, Sequence, Tuple
from .errors import RangeError
from .models import StudentRecord

logger = logging.getLogger(__name__)


def default_date_range(dates: Sequence[str]) -> Tuple[str, str]:
    # по умолчанию - весь лист
    if not dates:
        raise RangeError("На листе нет дат.")
    return dates[0], dates[-1]


def select_date_positions(
    dates: Sequence[str],
    records: Sequence[StudentRecord],
    i0: int,
    i1: int,
) -> List[str]:
    """
    Включительный срез оси дат по позициям колонок [i0..i1],
    затем только даты, по которым хотя бы у одного студента есть запись.
    """
    dates = list(dates)
    n = len(dates)
    if not (0 <= i0 < n and 0 <= i1 < n):
        raise RangeError(f"Позиция даты вне листа: {i0 if not 0 <= i0 < n else i1}")
    if i0 > i1:
        raise RangeError(f"Начало диапазона ({dates[i0]}) позже конца ({dates[i1]}).")

    selected = [d for d in dates[i0:i1 + 1] if any(d in r.grades for r in records)]
    logger.debug("Диапазон %s..%s: %d дат с данными", dates[i0], dates[i1], len(selected))
    return selected


def select_date_range(
    dates: Sequence[str],
    records: Sequence[StudentRecord],
    start: str,
    end: str,
) -> List[str]:
    # повторяющаяся метка берётся по первому вхождению; для точного выбора - select_date_positions
    dates = list(dates)
    if start not in dates or end not in dates:
        raise RangeError(f"Дата не найдена на листе: {start if start not in dates else end}")
    return select_date_positions(dates, records, dates.index(start), dates.index(end))
