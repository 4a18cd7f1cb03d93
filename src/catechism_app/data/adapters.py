from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

from catechism_app.models import AcademicYear, AttendanceRecord, ScoreDetail, StudentBasic
from catechism_app.utils import coerce_date, to_number_or_null

STUDENT_ID_FIELDS = ("id", "student_id")
FULL_NAME_FIELDS = ("full_name", "name", "student_name")
CLASS_ID_FIELDS = ("class_id", "student_class_id")
CLASS_NAME_FIELDS = ("class_name", "student_class_name")

HALF1_FIELDS = ("academic_hk1_fortyfive", "semester1_45", "hk1_fortyfive")
EXAM1_FIELDS = ("academic_hk1_exam", "semester1_exam", "hk1_exam")
HALF2_FIELDS = ("academic_hk2_fortyfive", "semester2_45", "hk2_fortyfive")
EXAM2_FIELDS = ("academic_hk2_exam", "semester2_exam", "hk2_exam")


def first_value(row: Mapping[str, Any], fields: Iterable[str]) -> Any:
    """Return the first non-blank value among the aliases ``fields``."""
    available = set(row.keys())
    for name in fields:
        if name not in available:
            continue
        value = row[name]
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def student_from_row(row: Mapping[str, Any]) -> StudentBasic | None:
    student_id = _text(first_value(row, STUDENT_ID_FIELDS))
    if not student_id:
        return None
    return StudentBasic(
        id=student_id,
        saint_name=_text(first_value(row, ("saint_name",))),
        first_name=_text(first_value(row, ("first_name",))),
        last_name=_text(first_value(row, ("last_name",))),
        full_name=_text(first_value(row, FULL_NAME_FIELDS)),
        class_id=_text(first_value(row, CLASS_ID_FIELDS)),
        status=_text(first_value(row, ("status",))),
    )


def attendance_from_row(row: Mapping[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        student_id=_text(first_value(row, ("student_id",))),
        event_date=first_value(row, ("event_date", "date")),
        weekday=_text(first_value(row, ("weekday",))),
        status=_text(first_value(row, ("status",))),
        class_id=_text(first_value(row, CLASS_ID_FIELDS)),
        class_name=_text(first_value(row, CLASS_NAME_FIELDS)),
    )


def score_detail_from_row(row: Mapping[str, Any]) -> ScoreDetail | None:
    student_id = _text(first_value(row, STUDENT_ID_FIELDS))
    if not student_id:
        return None
    return ScoreDetail(
        id=student_id,
        half1=to_number_or_null(first_value(row, HALF1_FIELDS)),
        exam1=to_number_or_null(first_value(row, EXAM1_FIELDS)),
        half2=to_number_or_null(first_value(row, HALF2_FIELDS)),
        exam2=to_number_or_null(first_value(row, EXAM2_FIELDS)),
    )


def academic_year_from_row(row: Mapping[str, Any]) -> AcademicYear:
    def _date(*names: str):
        return coerce_date(first_value(row, names))

    def _weeks(*names: str) -> int:
        value = to_number_or_null(first_value(row, names))
        return int(value) if value is not None else 0

    start_date = _date("start_date")
    end_date = _date("end_date")
    return AcademicYear(
        id=first_value(row, ("id",)),
        name=str(first_value(row, ("name",)) or ""),
        start_date=start_date,
        end_date=end_date,
        semester1_start=_date("semester1_start") or start_date,
        semester1_end=_date("semester1_end") or end_date,
        semester2_start=_date("semester2_start") or start_date,
        semester2_end=_date("semester2_end") or end_date,
        total_weeks=_weeks("total_weeks"),
        semester1_weeks=_weeks("semester1_weeks", "total_weeks"),
        semester2_weeks=_weeks("semester2_weeks", "total_weeks"),
        is_current=bool(first_value(row, ("is_current",))),
    )


def students_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[StudentBasic]:
    return [student for student in map(student_from_row, rows) if student is not None]


def attendance_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[AttendanceRecord]:
    return [attendance_from_row(row) for row in rows]


def score_details_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[ScoreDetail]:
    return [detail for detail in map(score_detail_from_row, rows) if detail is not None]


class StudentDirectory:
    """Lookup table over the students and score details fetched for one request."""

    def __init__(
        self,
        students: Iterable[StudentBasic],
        score_details: Iterable[ScoreDetail] = (),
    ) -> None:
        self._students: dict[str, StudentBasic] = {}
        for student in students:
            self._students.setdefault(student.id, student)
        self._scores = {detail.id: detail for detail in score_details}

    def __iter__(self) -> Iterator[StudentBasic]:
        return iter(self._students.values())

    @property
    def student_ids(self) -> list[str]:
        return list(self._students)

    def score_for(self, student_id: str) -> ScoreDetail | None:
        return self._scores.get(student_id)
