import pytest
from grades.dates import default_date_range, select_date_positions, select_date_range
from grades.errors import RangeError
from conftest import make_record


def _records():
    return [
        make_record("Ana", {"D1": ("T1", "7"), "D3": ("T3", "L")}),
        make_record("Beto", {"D1": ("T1", ""), "D4": ("T4", "5")}),
    ]


DATES = ["D1", "D2", "D3", "D4"]


def test_full_range_is_filtered_axis():
    assert select_date_range(DATES, _records(), "D1", "D4") == ["D1", "D3", "D4"]


def test_inclusive_subrange():
    assert select_date_range(DATES, _records(), "D2", "D3") == ["D3"]
    assert select_date_range(DATES, _records(), "D4", "D4") == ["D4"]


def test_start_after_end():
    with pytest.raises(RangeError):
        select_date_range(DATES, _records(), "D3", "D1")


def test_unknown_dates():
    with pytest.raises(RangeError):
        select_date_range(DATES, _records(), "D0", "D3")
    with pytest.raises(RangeError):
        select_date_range(DATES, _records(), "D1", "D9")


def test_no_records_gives_empty_selection():
    assert select_date_range(DATES, [], "D1", "D4") == []


def test_default_date_range():
    assert default_date_range(DATES) == ("D1", "D4")
    with pytest.raises(RangeError):
        default_date_range([])


def test_select_by_positions():
    assert select_date_positions(DATES, _records(), 1, 2) == ["D3"]
    with pytest.raises(RangeError):
        select_date_positions(DATES, _records(), -1, 2)
    with pytest.raises(RangeError):
        select_date_positions(DATES, _records(), 3, 1)
