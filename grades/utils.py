import re
import json
import math
import datetime as dt
from copy import deepcopy
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Dict, Optional

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

# Значения по умолчанию, если data/rules.json отсутствует или неполный
DEFAULT_RULES: Dict[str, Any] = {
    "analysis": {
        "missing_fallback": 3.0,
        "risk_threshold": 5.0,
        "low_grade_below": 6.0,
        "high_grade_from": 8.0,
        "top_n": 5,
    },
    "feedback": {
        "endpoint": "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        "model": "gemini-2.0-flash",
        "timeout": 30,
    },
}


def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def rules_path() -> Path:
    return DEFAULT_DATA_DIR / "rules.json"


def load_rules(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Читает rules.json и накладывает его поверх DEFAULT_RULES (по секциям).
    Неизвестные секции сохраняются как есть.
    """
    raw = load_json(path or rules_path(), {})
    rules = deepcopy(DEFAULT_RULES)
    if not isinstance(raw, dict):
        return rules
    for section, values in raw.items():
        if isinstance(values, dict) and isinstance(rules.get(section), dict):
            rules[section].update(values)
        else:
            rules[section] = values
    return rules


_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP варианты


def cell_text(v: Any) -> str:
    """
    Текст ячейки на границе ввода:
    - None/NaN -> ""
    - BOM и неразрывные пробелы
    - strip
    Регистр НЕ меняется: имена и темы показываются как есть.
    """
    if v is None:
        return ""
    if isinstance(v, float) and v != v:
        return ""
    s = str(v)
    s = s.replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    return s.strip()


def norm_text(s: Any) -> str:
    # для сравнения кодов: верхний регистр, схлопнутые пробелы
    return re.sub(r"\s+", " ", cell_text(s)).upper()


def value_to_text(v: Any) -> str:
    # значение из декодера таблиц -> текст, как его показывает Excel
    if v is None:
        return ""
    if isinstance(v, dt.datetime):
        if v.hour or v.minute or v.second:
            return v.strftime("%Y-%m-%d %H:%M")
        return v.strftime("%Y-%m-%d")
    if isinstance(v, dt.date):
        return v.strftime("%Y-%m-%d")
    if isinstance(v, float):
        if v != v:
            return ""
        if v.is_integer():
            return str(int(v))
    return cell_text(v)


_CENT = Decimal("0.01")


def format_grade(value: float) -> str:
    # 2 знака, округление половины вверх от точного двоичного значения float
    if not math.isfinite(value):
        return str(value)
    return str(Decimal(value + 0.0).quantize(_CENT, rounding=ROUND_HALF_UP))
