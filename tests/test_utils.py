import datetime as dt
from grades.utils import cell_text, format_grade, load_rules, value_to_text, DEFAULT_RULES


def test_format_grade_rounds_half_up_on_exact_value():
    assert format_grade(7.5) == "7.50"
    assert format_grade(0.125) == "0.13"
    assert format_grade(7.125) == "7.13"
    # 2.675 в двоичном виде чуть меньше 2.675
    assert format_grade(2.675) == "2.67"
    assert format_grade(0.0) == "0.00"
    assert format_grade(-0.0) == "0.00"


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(float("nan")) == ""
    assert cell_text("\ufeff Ana\u00a0") == "Ana"
    assert cell_text(" Ml ") == "Ml"


def test_value_to_text():
    assert value_to_text(None) == ""
    assert value_to_text(7.0) == "7"
    assert value_to_text(8.5) == "8.5"
    assert value_to_text(dt.datetime(2024, 3, 1)) == "2024-03-01"
    assert value_to_text(dt.date(2024, 3, 2)) == "2024-03-02"
    assert value_to_text(" L ") == "L"


def test_load_rules_merges_sections(tmp_path):
    p = tmp_path / "rules.json"
    p.write_text('{"analysis": {"risk_threshold": 4.0}, "extra": [1]}', encoding="utf-8")
    rules = load_rules(p)
    assert rules["analysis"]["risk_threshold"] == 4.0
    assert rules["analysis"]["missing_fallback"] == DEFAULT_RULES["analysis"]["missing_fallback"]
    assert rules["feedback"] == DEFAULT_RULES["feedback"]
    assert rules["extra"] == [1]


def test_load_rules_broken_file_gives_defaults(tmp_path):
    p = tmp_path / "rules.json"
    p.write_text("{not json", encoding="utf-8")
    assert load_rules(p) == DEFAULT_RULES
    assert load_rules(tmp_path / "missing.json") == DEFAULT_RULES
