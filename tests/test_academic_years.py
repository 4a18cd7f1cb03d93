from datetime import date

import pytest

from catechism_app.models import TermWindow
from catechism_app.services import AcademicYearError, build_academic_year, resolve_term_window, weeks_between


def _year(**overrides):
    values = dict(
        start_date="2024-09-01",
        end_date="2025-05-31",
        semester1_start="2024-09-01",
        semester1_end="2025-01-11",
        semester2_start="2025-01-13",
        semester2_end="2025-05-31",
    )
    values.update(overrides)
    return build_academic_year("2024-2025", **values)


def test_weeks_between_rounds_up_partial_weeks():
    assert weeks_between(date(2025, 1, 6), date(2025, 1, 12)) == 1
    assert weeks_between(date(2025, 1, 6), date(2025, 1, 13)) == 2
    assert weeks_between(date(2025, 1, 6), date(2025, 1, 6)) == 1
    assert weeks_between(date(2025, 1, 6), date(2025, 1, 1)) == 1


def test_week_counts_are_derived_from_dates():
    year = _year()

    assert year.name == "2024-2025"
    assert year.total_weeks == weeks_between(date(2024, 9, 1), date(2025, 5, 31))
    assert year.semester1_weeks == 19
    assert year.semester2_weeks == 20


def test_explicit_week_counts_win_and_are_rounded():
    year = _year(total_weeks=30.4, semester1_weeks="15", semester2_weeks=0)

    assert year.total_weeks == 30
    assert year.semester1_weeks == 15
    assert year.semester2_weeks == 1


def test_term_window_by_semester():
    year = _year(total_weeks=32, semester1_weeks=16, semester2_weeks=17)

    assert resolve_term_window(year) == TermWindow(32, date(2024, 9, 1), date(2025, 5, 31))
    assert resolve_term_window(year, 1) == TermWindow(16, date(2024, 9, 1), date(2025, 1, 11))
    assert resolve_term_window(year, 2) == TermWindow(17, date(2025, 1, 13), date(2025, 5, 31))
    assert resolve_term_window(None, 1) is None
    with pytest.raises(AcademicYearError):
        resolve_term_window(year, 3)


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_date": "2025-06-01"},
        {"semester1_start": "2024-08-01"},
        {"semester2_start": "2025-01-10"},
        {"semester2_end": "2025-06-30"},
        {"end_date": "not a date"},
    ],
)
def test_inconsistent_dates_are_rejected(overrides):
    with pytest.raises(AcademicYearError):
        _year(**overrides)


def test_name_is_required():
    with pytest.raises(AcademicYearError):
        build_academic_year(
            "  ",
            start_date="2024-09-01",
            end_date="2025-05-31",
            semester1_start="2024-09-01",
            semester1_end="2025-01-11",
            semester2_start="2025-01-13",
            semester2_end="2025-05-31",
        )
