from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from catechism_app.models import AttendanceResult, Category, Presence
from catechism_app.services.attendance_normalizer import category_for_date
from catechism_app.utils import coerce_date, iso_week_key, round_half_up

MAX_SCORE = 10
HALF_TERM_WEIGHT = 1
EXAM_WEIGHT = 2
CATECHISM_WEIGHT_SUM = 2 * HALF_TERM_WEIGHT + 2 * EXAM_WEIGHT
CATECHISM_SHARE = Decimal("0.6")
ATTENDANCE_SHARE = Decimal("0.4")


def compute_attendance_score(
    presence_map: Mapping[str, Presence | bool],
    total_weeks: int | None,
    categories: Mapping[str, Category] | None = None,
) -> AttendanceResult:
    """Score attendance by distinct weeks attended over the configured term length.

    A week counts once when the student was present at a primary or a
    secondary session during it. ``categories`` maps iso dates to their
    session category; dates it does not cover are classified from the
    calendar. The score is None when ``total_weeks`` is missing or not
    positive.
    """
    primary_weeks: set[str] = set()
    secondary_weeks: set[str] = set()

    for iso_date, presence in presence_map.items():
        if presence is not Presence.PRESENT and presence is not True:
            continue
        event_date = coerce_date(iso_date)
        if event_date is None:
            continue

        category = categories.get(iso_date) if categories else None
        if category is None:
            category = category_for_date(event_date)

        week_key = iso_week_key(event_date)
        if category is Category.PRIMARY:
            primary_weeks.add(week_key)
        elif category is Category.SECONDARY:
            secondary_weeks.add(week_key)

    weeks_present = len(primary_weeks | secondary_weeks)

    score = None
    if total_weeks and total_weeks > 0:
        score = round_half_up(weeks_present / total_weeks * MAX_SCORE)

    return AttendanceResult(
        weeks_with_primary=len(primary_weeks),
        weeks_with_secondary=len(secondary_weeks),
        score=score,
        weeks_present=weeks_present,
        total_weeks=total_weeks,
    )


def compute_session_rate(present: float | None, total: float | None) -> float | None:
    if present is None or not total:
        return None
    return round_half_up(present / total * MAX_SCORE)


def compute_catechism_average(
    half1: float | None,
    exam1: float | None,
    half2: float | None,
    exam2: float | None,
) -> float | None:
    if half1 is None and exam1 is None and half2 is None and exam2 is None:
        return None

    weighted_sum = (
        (half1 or 0) * HALF_TERM_WEIGHT
        + (half2 or 0) * HALF_TERM_WEIGHT
        + (exam1 or 0) * EXAM_WEIGHT
        + (exam2 or 0) * EXAM_WEIGHT
    )
    return round_half_up(weighted_sum / CATECHISM_WEIGHT_SUM)


def compute_total_score(catechism_avg: float | None, attendance_avg: float | None) -> float | None:
    if catechism_avg is None and attendance_avg is None:
        return None
    # 8.58 * 0.6 + 7.5 * 0.4 must be 8.148, not 8.1479999.
    weighted = (
        Decimal(repr(float(catechism_avg or 0))) * CATECHISM_SHARE
        + Decimal(repr(float(attendance_avg or 0))) * ATTENDANCE_SHARE
    )
    return round_half_up(weighted)
