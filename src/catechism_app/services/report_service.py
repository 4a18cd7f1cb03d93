from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable

from catechism_app.data import RowSource, StudentDirectory
from catechism_app.models import (
    AttendanceReport,
    AttendanceReportRow,
    AttendanceSummary,
    Category,
    Presence,
    ScoreReport,
    ScoreRow,
    ScoreSummary,
    TermWindow,
)
from catechism_app.services.academic_years import resolve_term_window
from catechism_app.services.attendance_normalizer import normalize_attendance
from catechism_app.services.ranker import rank_students
from catechism_app.services.score_calculator import (
    compute_attendance_score,
    compute_catechism_average,
    compute_session_rate,
    compute_total_score,
)
from catechism_app.utils import build_range_label, coerce_date, format_generated_at

logger = logging.getLogger(__name__)


class ReportError(RuntimeError):
    """Raised when a report cannot be built from the requested parameters."""


def _resolve_date(value: date | str | None, label: str) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = coerce_date(value)
    if parsed is None:
        raise ReportError(f"Invalid {label}: {value!r}")
    return parsed


class ReportService:
    def __init__(
        self,
        source: RowSource,
        *,
        total_weeks_override: int | None = None,
        default_total_weeks: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._total_weeks_override = total_weeks_override
        self._default_total_weeks = default_total_weeks
        self._clock = clock

    def _load_directory(self, class_id: str, *, with_scores: bool) -> tuple[str, StudentDirectory]:
        cleaned_id = (class_id or "").strip()
        if not cleaned_id:
            raise ReportError("A class must be selected.")

        class_name = self._source.fetch_class_name(cleaned_id)
        students = self._source.fetch_students_by_class(cleaned_id)
        if class_name is None and not students:
            raise ReportError(f"Class {cleaned_id!r} not found.")

        score_details = (
            self._source.fetch_score_details([student.id for student in students])
            if with_scores and students
            else []
        )
        return class_name or cleaned_id, StudentDirectory(students, score_details)

    def resolve_term(self, semester: int | None = None) -> TermWindow:
        """Week count and attendance window of the current year or one of its semesters.

        An explicit ``total_weeks_override`` replaces the configured week count
        but keeps the year's dates. Without a current academic year the window
        is open and ``default_total_weeks`` is used.
        """
        term = resolve_term_window(self._source.fetch_current_academic_year(), semester)
        if term is None:
            if self._total_weeks_override is None:
                logger.warning(
                    "No current academic year configured; falling back to %s weeks",
                    self._default_total_weeks,
                )
            term = TermWindow(total_weeks=self._default_total_weeks)
        if self._total_weeks_override is not None:
            term = replace(term, total_weeks=self._total_weeks_override)
        return term

    def build_attendance_report(
        self,
        class_id: str,
        start_date: date | str | None,
        end_date: date | str | None,
    ) -> AttendanceReport:
        start = _resolve_date(start_date, "start date")
        end = _resolve_date(end_date, "end date")
        if start is None or end is None:
            raise ReportError("An attendance report needs both a start and an end date.")
        if start > end:
            raise ReportError("The start date must not be after the end date.")

        class_name, directory = self._load_directory(class_id, with_scores=False)
        records = self._source.fetch_attendance_records(directory.student_ids, start, end)
        normalized = normalize_attendance(records)
        categories = normalized.categories()

        primary_present = 0
        secondary_present = 0
        total_marks = 0
        for statuses in normalized.presence_by_student.values():
            for iso_date, presence in statuses.items():
                if presence is not Presence.PRESENT:
                    continue
                category = categories.get(iso_date)
                if category is Category.PRIMARY:
                    primary_present += 1
                elif category is Category.SECONDARY:
                    secondary_present += 1
                total_marks += 1

        rows = [
            AttendanceReportRow(
                student=student,
                statuses=dict(normalized.presence_by_student.get(student.id, {})),
            )
            for student in directory
        ]
        missing_count = sum(1 for row in rows if not row.statuses)

        logger.info(
            "Built attendance report for %s: %d students, %d sessions",
            class_name,
            len(rows),
            len(normalized.sessions),
        )
        return AttendanceReport(
            class_name=class_name,
            date_range_label=build_range_label(start, end),
            generated_at_label=format_generated_at(self._clock()),
            columns=normalized.sessions,
            rows=rows,
            summary=AttendanceSummary(
                primary_present=primary_present,
                secondary_present=secondary_present,
                missing_count=missing_count,
                total_marks=total_marks,
                total_students=len(rows),
            ),
            start_date=start,
            end_date=end,
        )

    def build_score_report(
        self,
        class_id: str,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        semester: int | None = None,
    ) -> ScoreReport:
        """Score every roster student over the requested dates.

        Missing dates are taken from the resolved term so that attendance is
        only counted inside the weeks it is divided by.
        """
        start = _resolve_date(start_date, "start date")
        end = _resolve_date(end_date, "end date")

        class_name, directory = self._load_directory(class_id, with_scores=True)
        term = self.resolve_term(semester)
        total_weeks = term.total_weeks
        start = start or term.start_date
        end = end or term.end_date
        if start is not None and end is not None and start > end:
            raise ReportError("The start date must not be after the end date.")

        records = self._source.fetch_attendance_records(directory.student_ids, start, end)
        normalized = normalize_attendance(records)
        categories = normalized.categories()

        primary_dates = [s.iso_date for s in normalized.sessions if s.category is Category.PRIMARY]
        secondary_dates = [s.iso_date for s in normalized.sessions if s.category is Category.SECONDARY]

        rows: list[ScoreRow] = []
        for student in directory:
            presence = normalized.presence_by_student.get(student.id, {})
            primary_present = sum(1 for d in primary_dates if presence.get(d) is Presence.PRESENT)
            secondary_present = sum(1 for d in secondary_dates if presence.get(d) is Presence.PRESENT)
            attendance = compute_attendance_score(presence, total_weeks, categories)

            detail = directory.score_for(student.id)
            half1 = detail.half1 if detail else None
            exam1 = detail.exam1 if detail else None
            half2 = detail.half2 if detail else None
            exam2 = detail.exam2 if detail else None
            catechism_average = compute_catechism_average(half1, exam1, half2, exam2)

            rows.append(
                ScoreRow(
                    student_id=student.id,
                    full_name=student.display_name,
                    saint_name=student.saint_name,
                    status=student.status,
                    attendance=attendance,
                    primary_present=primary_present,
                    primary_total=len(primary_dates),
                    primary_rate=compute_session_rate(primary_present, len(primary_dates)),
                    secondary_present=secondary_present,
                    secondary_total=len(secondary_dates),
                    secondary_rate=compute_session_rate(secondary_present, len(secondary_dates)),
                    half1=half1,
                    exam1=exam1,
                    half2=half2,
                    exam2=exam2,
                    catechism_average=catechism_average,
                    total_score=compute_total_score(catechism_average, attendance.score),
                )
            )

        ranked = rank_students(rows)
        logger.info(
            "Built score report for %s: %d students, %d ranked",
            class_name,
            len(ranked),
            sum(1 for row in ranked if row.rank is not None),
        )
        return ScoreReport(
            class_name=class_name,
            date_range_label=build_range_label(start, end),
            generated_at_label=format_generated_at(self._clock()),
            rows=ranked,
            summary=ScoreSummary(
                primary_sessions=len(primary_dates),
                secondary_sessions=len(secondary_dates),
                total_sessions=len(primary_dates) + len(secondary_dates),
                total_students=len(ranked),
                total_weeks=total_weeks,
            ),
            start_date=start,
            end_date=end,
        )

    def build_class_roster(self, class_id: str, semester: int | None = None) -> list[ScoreRow]:
        """Ranked score rows over the current year, or one semester of it."""
        return self.build_score_report(class_id, semester=semester).rows
