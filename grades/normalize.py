from __future__ import annotations
import math
import re
from typing import Any, Optional
from .utils import cell_text, norm_text

# Качественная шкала -> каноническая 1..9
QUALITATIVE_GRADES = {"L": 9.0, "ML": 6.0, "NL": 3.0}

CATEGORY_NAMES = {
    "L": "Achieved",
    "ML": "Partially Achieved",
    "NL": "Not Achieved",
}
CATEGORY_ORDER = ("Achieved", "Partially Achieved", "Not Achieved")

# всё, что больше, считаем процентами (0..100) и переводим в 0..10
PERCENT_ABOVE = 10.0

# числовой префикс ячейки: "85", "7.5", "-2", ".5", "1e2", "85 pts"
_LEADING_NUM_RE = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def _parse_number(s: str) -> Optional[float]:
    m = _LEADING_NUM_RE.match(s)
    if not m:
        return None
    try:
        value = float(m.group(0))
    except ValueError:
        return None
    # "1e400" -> inf: такую оценку не считаем распознанной
    return value if math.isfinite(value) else None


def is_qualitative_grade(raw: Any) -> bool:
    return norm_text(raw) in QUALITATIVE_GRADES


def normalize_grade(raw: Any) -> Optional[float]:
    """
    Ячейка -> оценка на шкале 1..9 или None (не распознано).
    L/ML/NL (без учёта регистра) -> 9/6/3; число > 10 считается процентом.
    Единственное место, где задаётся смысл оценок.
    """
    code = norm_text(raw)
    if code in QUALITATIVE_GRADES:
        return QUALITATIVE_GRADES[code]

    value = _parse_number(cell_text(raw))
    if value is None:
        return None
    if value > PERCENT_ABOVE:
        return value / 100 * 10
    return value


def is_quantitative_grade(raw: Any) -> bool:
    # чисто числовая оценка (не L/ML/NL)
    if is_qualitative_grade(raw):
        return False
    return _parse_number(cell_text(raw)) is not None


def qualitative_category(raw: Any) -> Optional[str]:
    return CATEGORY_NAMES.get(norm_text(raw))
