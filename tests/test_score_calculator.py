from datetime import date, timedelta

import pytest

from catechism_app.models import Category, Presence
from catechism_app.services import (
    compute_attendance_score,
    compute_catechism_average,
    compute_session_rate,
    compute_total_score,
)
from catechism_app.utils import round_half_up, to_number_or_null


def _thursdays(count: int, first: date = date(2025, 1, 2)) -> dict[str, Presence]:
    return {(first + timedelta(weeks=offset)).isoformat(): Presence.PRESENT for offset in range(count)}


def test_catechism_average_weights_exams_twice():
    assert compute_catechism_average(8.5, 9.0, 8.0, 8.5) == 8.58


def test_catechism_average_treats_missing_components_as_zero():
    assert compute_catechism_average(None, 9.0, None, None) == 3.0
    assert compute_catechism_average(0, None, None, None) == 0.0


def test_catechism_average_is_none_without_any_component():
    assert compute_catechism_average(None, None, None, None) is None


def test_attendance_score_counts_weeks_over_term_length():
    result = compute_attendance_score(_thursdays(15), 20)

    assert result.weeks_present == 15
    assert result.weeks_with_primary == 15
    assert result.weeks_with_secondary == 0
    assert result.score == 7.5


def test_attendance_week_counts_once_for_both_sessions():
    presence = {
        "2025-03-06": Presence.PRESENT,  # Thursday
        "2025-03-09": Presence.PRESENT,  # Sunday of the same ISO week
        "2025-03-13": Presence.ABSENT,
    }
    result = compute_attendance_score(presence, 10)

    assert result.weeks_with_primary == 1
    assert result.weeks_with_secondary == 1
    assert result.weeks_present == 1
    assert result.score == 1.0


def test_attendance_uses_given_categories_before_calendar():
    # A Saturday session recorded as primary still counts.
    presence = {"2025-03-08": Presence.PRESENT, "2025-03-10": True}
    categories = {"2025-03-08": Category.PRIMARY, "2025-03-10": Category.OTHER}

    result = compute_attendance_score(presence, 4, categories)

    assert result.weeks_with_primary == 1
    assert result.weeks_present == 1
    assert result.score == 2.5


@pytest.mark.parametrize("total_weeks", [None, 0, -3])
def test_attendance_score_is_none_without_positive_term_length(total_weeks):
    result = compute_attendance_score(_thursdays(3), total_weeks)

    assert result.score is None
    assert result.weeks_present == 3


def test_attendance_score_for_empty_presence_is_zero():
    result = compute_attendance_score({}, 20)
    assert result.weeks_present == 0
    assert result.score == 0.0


def test_total_score_blends_catechism_and_attendance():
    assert compute_total_score(8.58, 7.5) == 8.15


def test_total_score_null_rules():
    assert compute_total_score(None, None) is None
    assert compute_total_score(None, 10) == 4.0
    assert compute_total_score(10, None) == 6.0


def test_session_rate():
    assert compute_session_rate(3, 4) == 7.5
    assert compute_session_rate(0, 4) == 0.0
    assert compute_session_rate(2, 0) is None
    assert compute_session_rate(None, 4) is None


def test_scores_are_idempotent():
    presence = _thursdays(7)
    assert compute_attendance_score(presence, 12) == compute_attendance_score(presence, 12)
    assert compute_total_score(6.25, 5.83) == compute_total_score(6.25, 5.83)


def test_round_half_up_rounds_away_from_zero():
    assert round_half_up(2.675) == 2.68
    assert round_half_up(1.005) == 1.01
    assert round_half_up(8.5833333) == 8.58


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("8.5", 8.5),
        (" 7 ", 7.0),
        (9, 9.0),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ("inf", None),
    ],
)
def test_to_number_or_null(raw, expected):
    assert to_number_or_null(raw) == expected
