from __future__ import annotations

from datetime import date, datetime

UNKNOWN_RANGE_LABEL = "Không xác định"


def coerce_date(value: date | datetime | str | None) -> date | None:
    """Return the calendar date of ``value`` with any time component stripped.

    Strings are read from their ``YYYY-MM-DD`` prefix so that timestamps such
    as ``2025-03-06T08:00:00+07:00`` resolve to the day they were recorded.
    Returns None for missing or unparseable values.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        candidate = value.strip()[:10]
        if not candidate:
            return None
        try:
            return date.fromisoformat(candidate)
        except ValueError:
            return None

    return None


def iso_week_key(value: date) -> str:
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def format_short_date(value: date | str) -> str:
    parsed = coerce_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%d/%m")


def format_date(value: date | str | None) -> str:
    parsed = coerce_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def format_generated_at(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y %H:%M")


def build_range_label(start: date | str | None, end: date | str | None) -> str:
    start_label = format_date(start)
    end_label = format_date(end)

    if start_label and end_label:
        if start_label == end_label:
            return start_label
        return f"{start_label} - {end_label}"

    return start_label or end_label or UNKNOWN_RANGE_LABEL
