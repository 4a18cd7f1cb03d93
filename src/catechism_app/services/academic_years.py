from __future__ import annotations

import math
from datetime import date

from catechism_app.models import AcademicYear, TermWindow
from catechism_app.utils import coerce_date


class AcademicYearError(ValueError):
    """Raised when an academic year definition is incomplete or inconsistent."""


def weeks_between(start: date, end: date) -> int:
    days = (end - start).days
    return max(1, math.ceil((days + 1) / 7))


def _normalize_weeks(value: float | int | None, fallback: int) -> int:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return max(1, int(math.floor(number + 0.5)))


def build_academic_year(
    name: str,
    *,
    start_date: date | str,
    end_date: date | str,
    semester1_start: date | str,
    semester1_end: date | str,
    semester2_start: date | str,
    semester2_end: date | str,
    total_weeks: float | int | None = None,
    semester1_weeks: float | int | None = None,
    semester2_weeks: float | int | None = None,
    is_current: bool = False,
    id: int | None = None,
) -> AcademicYear:
    """Validate a term definition and fill in week counts derived from its dates."""
    cleaned_name = (name or "").strip()
    if not cleaned_name:
        raise AcademicYearError("Academic year name is required.")

    start = coerce_date(start_date)
    end = coerce_date(end_date)
    sem1_start = coerce_date(semester1_start)
    sem1_end = coerce_date(semester1_end)
    sem2_start = coerce_date(semester2_start)
    sem2_end = coerce_date(semester2_end)

    if None in (start, end, sem1_start, sem1_end, sem2_start, sem2_end):
        raise AcademicYearError("Academic year dates are invalid.")

    if start > end:
        raise AcademicYearError("The academic year must start before it ends.")

    if sem1_start < start or sem1_end < sem1_start:
        raise AcademicYearError("Semester 1 dates are invalid.")

    if sem2_start <= sem1_end or sem2_end < sem2_start:
        raise AcademicYearError("Semester 2 must follow semester 1 and have valid dates.")

    if sem2_end > end:
        raise AcademicYearError("Semester 2 must end within the academic year.")

    return AcademicYear(
        id=id,
        name=cleaned_name,
        start_date=start,
        end_date=end,
        semester1_start=sem1_start,
        semester1_end=sem1_end,
        semester2_start=sem2_start,
        semester2_end=sem2_end,
        total_weeks=_normalize_weeks(total_weeks, weeks_between(start, end)),
        semester1_weeks=_normalize_weeks(semester1_weeks, weeks_between(sem1_start, sem1_end)),
        semester2_weeks=_normalize_weeks(semester2_weeks, weeks_between(sem2_start, sem2_end)),
        is_current=bool(is_current),
    )


def resolve_term_window(year: AcademicYear | None, semester: int | None = None) -> TermWindow | None:
    """Return the week count and date range of the whole year or of one semester."""
    if year is None:
        return None
    if semester == 1:
        return TermWindow(year.semester1_weeks, year.semester1_start, year.semester1_end)
    if semester == 2:
        return TermWindow(year.semester2_weeks, year.semester2_start, year.semester2_end)
    if semester is not None:
        raise AcademicYearError(f"Unknown semester: {semester!r}")
    return TermWindow(year.total_weeks, year.start_date, year.end_date)
