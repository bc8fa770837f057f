from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from .analysis import analyze
from .dates import default_date_range, select_date_positions, select_date_range
from .extract import extract_student_records
from .models import AnalysisSnapshot, StudentRecord

logger = logging.getLogger(__name__)


def load_sheet(grid: Sequence[Sequence]) -> Tuple[List[StudentRecord], List[str]]:
    return extract_student_records(grid)


def _run(records, dates, selected, params) -> Dict[str, Any]:
    snapshot: AnalysisSnapshot = analyze(records, selected, params)
    logger.info(
        "Анализ листа: студентов %d, дат в диапазоне %d, в группе риска %d",
        len(records), len(selected), len(snapshot.students_at_risk),
    )
    return {"records": records, "dates": dates, "selected_dates": selected, "snapshot": snapshot}


def analyze_sheet(
    grid: Sequence[Sequence],
    start: Optional[str] = None,
    end: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Весь конвейер для одного листа: сетка -> записи -> выбранные даты -> снимок.
    Состояния между вызовами нет. start/end по умолчанию - первая/последняя дата листа.

    Возвращает {"records", "dates", "selected_dates", "snapshot"}.
    FormatError / RangeError пробрасываются вызывающему.
    """
    records, dates = load_sheet(grid)
    if start is None or end is None:
        d0, d1 = default_date_range(dates)
        start = d0 if start is None else start
        end = d1 if end is None else end

    return _run(records, dates, select_date_range(dates, records, start, end), params)


def analyze_sheet_positions(
    grid: Sequence[Sequence],
    start_index: int,
    end_index: int,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    # то же, но диапазон задан позициями дат (выбор в интерфейсе при повторяющихся метках)
    records, dates = load_sheet(grid)
    return _run(records, dates, select_date_positions(dates, records, start_index, end_index), params)
