import pytest
from grades.normalize import (
    normalize_grade,
    is_qualitative_grade,
    is_quantitative_grade,
    qualitative_category,
)


def test_qualitative_codes_case_insensitive():
    assert normalize_grade("L") == 9
    assert normalize_grade("ml") == 6
    assert normalize_grade("NL") == 3
    assert normalize_grade(" l ") == 9


def test_numeric_and_percentage():
    assert normalize_grade("7") == 7
    assert normalize_grade("10") == 10
    assert normalize_grade("85") == pytest.approx(8.5)
    assert normalize_grade("100") == pytest.approx(10.0)
    assert normalize_grade("4.5") == pytest.approx(4.5)


def test_leading_number_prefix():
    assert normalize_grade("85 pts") == pytest.approx(8.5)
    assert normalize_grade("7,5") == 7


def test_uninterpretable():
    for raw in ["abc", "", "--", "x", None, "   "]:
        assert normalize_grade(raw) is None


def test_is_qualitative_only_exact_codes():
    assert is_qualitative_grade("l")
    assert is_qualitative_grade("Ml")
    assert is_qualitative_grade("NL")
    assert not is_qualitative_grade("LL")
    assert not is_qualitative_grade("9")
    assert not is_qualitative_grade("")


def test_is_quantitative():
    assert is_quantitative_grade("7")
    assert is_quantitative_grade("85")
    assert not is_quantitative_grade("L")
    assert not is_quantitative_grade("")
    assert not is_quantitative_grade("pendiente")


def test_qualitative_category():
    assert qualitative_category("l") == "Achieved"
    assert qualitative_category("ML") == "Partially Achieved"
    assert qualitative_category("nl") == "Not Achieved"
    assert qualitative_category("7") is None


def test_repeated_calls_identical():
    values = ["L", "85", "7.25", "abc", ""]
    first = [normalize_grade(v) for v in values]
    for _ in range(3):
        assert [normalize_grade(v) for v in values] == first


def test_overflowing_number_is_uninterpretable():
    assert normalize_grade("1e400") is None
    assert normalize_grade("-1e400") is None
    assert not is_quantitative_grade("1e400")
