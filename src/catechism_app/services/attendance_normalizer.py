from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from catechism_app.models import (
    AttendanceRecord,
    Category,
    NormalizedAttendance,
    NormalizedSession,
    Presence,
)
from catechism_app.utils import coerce_date, format_short_date, normalize_text

logger = logging.getLogger(__name__)

PRESENT_TOKENS = frozenset({"PRESENT", "YES", "TRUE", "1", "ATTEND", "ATTENDED", "CO", "X", "P"})
ABSENT_TOKENS = frozenset({"ABSENT", "NO", "FALSE", "0", "VANG", "NGHI"})

_SECONDARY_SUBSTRINGS = ("SUNDAY", "CHUNHAT")
_SECONDARY_EXACT = frozenset({"CN", "SUN"})
_PRIMARY_SUBSTRINGS = ("THURSDAY", "THUNAM", "THU5")
_PRIMARY_EXACT = frozenset({"T5"})

# date.weekday(): Monday is 0, so Thursday is 3 and Sunday is 6.
_PRIMARY_WEEKDAY = 3
_SECONDARY_WEEKDAY = 6


def parse_presence(status: str | None) -> Presence:
    if not status:
        return Presence.ABSENT
    token = normalize_text(status)
    if token in PRESENT_TOKENS:
        return Presence.PRESENT
    if token not in ABSENT_TOKENS:
        logger.debug("Unrecognised attendance status %r read as absent", status)
    return Presence.ABSENT


def _category_from_label(weekday: str | None) -> Category | None:
    if not weekday:
        return None
    token = normalize_text(weekday)
    if not token:
        return None
    if token in _SECONDARY_EXACT or any(part in token for part in _SECONDARY_SUBSTRINGS):
        return Category.SECONDARY
    if token in _PRIMARY_EXACT or any(part in token for part in _PRIMARY_SUBSTRINGS):
        return Category.PRIMARY
    return None


def category_for_date(event_date: date) -> Category:
    weekday_index = event_date.weekday()
    if weekday_index == _SECONDARY_WEEKDAY:
        return Category.SECONDARY
    if weekday_index == _PRIMARY_WEEKDAY:
        return Category.PRIMARY
    return Category.OTHER


def resolve_category(weekday: str | None, event_date: date | datetime | str | None) -> Category:
    """Classify a session, preferring an explicit weekday label over the calendar date."""
    from_label = _category_from_label(weekday)
    if from_label is not None:
        return from_label

    parsed = coerce_date(event_date)
    if parsed is None:
        return Category.OTHER
    return category_for_date(parsed)


def normalize_attendance(records: Iterable[AttendanceRecord]) -> NormalizedAttendance:
    """Reduce raw attendance records to session columns and per-student presence.

    Records without a student id or a readable date are dropped. For a given
    student and date the first marker is kept unless a later one is a
    presence marker: presence is never downgraded to absence.
    """
    session_categories: dict[str, Category] = {}
    presence_by_student: dict[str, dict[str, Presence]] = {}
    dropped = 0

    for record in records:
        student_id = (record.student_id or "").strip()
        event_date = coerce_date(record.event_date)
        if not student_id or event_date is None:
            dropped += 1
            continue

        iso_date = event_date.isoformat()
        if iso_date not in session_categories:
            session_categories[iso_date] = resolve_category(record.weekday, event_date)

        statuses = presence_by_student.setdefault(student_id, {})
        existing = statuses.get(iso_date)
        if existing is Presence.PRESENT:
            continue

        presence = parse_presence(record.status)
        if presence is Presence.PRESENT or existing is None:
            statuses[iso_date] = presence

    if dropped:
        logger.debug("Dropped %d attendance records without student id or date", dropped)

    sessions = [
        NormalizedSession(
            iso_date=iso_date,
            display_label=format_short_date(iso_date),
            weekday_label=category.label,
            category=category,
        )
        for iso_date, category in sorted(session_categories.items())
    ]
    return NormalizedAttendance(sessions=sessions, presence_by_student=presence_by_student)
