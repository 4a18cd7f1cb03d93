from datetime import date, datetime, timedelta

import pytest

from catechism_app.data import Database, SqliteRowSource
from catechism_app.export import ExportError, attendance_worksheet
from catechism_app.models import (
    AttendanceRecord,
    Category,
    Presence,
    ScoreDetail,
    StudentBasic,
    TermWindow,
)
from catechism_app.services import ReportError, ReportService, build_academic_year


def _clock() -> datetime:
    return datetime(2025, 4, 1, 8, 0)


@pytest.fixture
def source(tmp_path):
    source = SqliteRowSource(Database(tmp_path / "catechism.db"))
    source.initialize()

    source.add_class("c1", "Ấu Nhi 1")
    source.add_class("c2", "Lớp trống")
    for student in (
        StudentBasic(id="s1", class_id="c1", saint_name="Phêrô", full_name="Nguyễn Văn An"),
        StudentBasic(id="s2", class_id="c1", saint_name="Maria", full_name="Trần Thị Bình"),
        StudentBasic(id="s3", class_id="c1", full_name="Lê Chi", status="DELETED"),
        StudentBasic(id="s4", class_id="c1", first_name="Dung", last_name="Phạm"),
    ):
        source.add_student(student)

    for student_id, event_date, weekday, status in (
        ("s1", "2025-03-06", "Thứ 5", "present"),
        ("s1", "2025-03-09", "Chủ nhật", "present"),
        ("s1", "2025-03-13", "Thứ 5", "present"),
        ("s1", "2025-04-03", "Thứ 5", "present"),
        ("s2", "2025-03-06", "Thứ 5", "absent"),
        ("s2", "2025-03-06", "Thứ 5", "present"),
        ("s2", "2025-03-13", "Thứ 5", "absent"),
        ("s3", "2025-03-06", "Thứ 5", "present"),
    ):
        source.record_attendance(AttendanceRecord(student_id, event_date, weekday=weekday, status=status))

    source.save_score_detail(ScoreDetail(id="s1", half1=8.5, exam1=9.0, half2=8.0, exam2=8.5))
    source.save_score_detail(ScoreDetail(id="s2", half1=10, exam1=10))
    return source


def test_attendance_report(source):
    service = ReportService(source, clock=_clock)
    report = service.build_attendance_report("c1", "2025-03-01", "2025-03-31")

    assert report.class_name == "Ấu Nhi 1"
    assert report.date_range_label == "01/03/2025 - 31/03/2025"
    assert report.generated_at_label == "01/04/2025 08:00"
    assert [column.iso_date for column in report.columns] == ["2025-03-06", "2025-03-09", "2025-03-13"]
    assert [column.category for column in report.columns] == [
        Category.PRIMARY,
        Category.SECONDARY,
        Category.PRIMARY,
    ]

    assert [row.student.id for row in report.rows] == ["s1", "s2", "s4"]
    statuses = {row.student.id: row.statuses for row in report.rows}
    assert statuses["s2"] == {"2025-03-06": Presence.PRESENT, "2025-03-13": Presence.ABSENT}
    assert statuses["s4"] == {}

    summary = report.summary
    assert summary.primary_present == 3
    assert summary.secondary_present == 1
    assert summary.total_marks == 4
    assert summary.missing_count == 1
    assert summary.total_students == 3


def test_attendance_report_requires_ordered_dates(source):
    service = ReportService(source)

    with pytest.raises(ReportError):
        service.build_attendance_report("c1", "2025-03-31", "2025-03-01")
    with pytest.raises(ReportError):
        service.build_attendance_report("c1", "2025-03-01", None)
    with pytest.raises(ReportError):
        service.build_attendance_report("c1", "2025-13-01", "2025-03-31")


def test_unknown_or_blank_class_is_rejected(source):
    service = ReportService(source)

    with pytest.raises(ReportError):
        service.build_attendance_report("missing", date(2025, 3, 1), date(2025, 3, 31))
    with pytest.raises(ReportError):
        service.build_score_report("   ")


def test_empty_class_builds_empty_report_that_cannot_be_exported(source):
    report = ReportService(source).build_attendance_report("c2", "2025-03-01", "2025-03-31")

    assert report.rows == []
    assert report.summary.total_students == 0
    with pytest.raises(ExportError):
        attendance_worksheet(report)


def test_score_report_ranks_students(source):
    service = ReportService(source, total_weeks_override=4, clock=_clock)
    report = service.build_score_report("c1", "2025-03-01", "2025-03-31")

    rows = {row.student_id: row for row in report.rows}
    assert [row.student_id for row in report.rows] == ["s1", "s2", "s4"]

    first = rows["s1"]
    assert first.catechism_average == 8.58
    assert first.attendance.weeks_present == 2
    assert first.attendance_score == 5.0
    assert first.total_score == 7.15
    assert first.primary_present == 2
    assert first.primary_total == 2
    assert first.primary_rate == 10.0
    assert first.secondary_present == 1
    assert first.secondary_rate == 10.0
    assert first.rank == 1

    second = rows["s2"]
    assert second.catechism_average == 5.0
    assert second.attendance_score == 2.5
    assert second.total_score == 4.0
    assert second.primary_rate == 5.0
    assert second.secondary_rate == 0.0
    assert second.rank == 2

    # No scores and no attendance still yields a zero total once the term length is known.
    assert rows["s4"].full_name == "Phạm Dung"
    assert rows["s4"].total_score == 0.0
    assert rows["s4"].rank == 3

    assert report.summary.primary_sessions == 2
    assert report.summary.secondary_sessions == 1
    assert report.summary.total_sessions == 3
    assert report.summary.total_students == 3
    assert report.summary.total_weeks == 4


def test_score_report_without_term_length_leaves_students_unscored(source):
    report = ReportService(source).build_score_report("c1")

    rows = {row.student_id: row for row in report.rows}
    assert rows["s1"].attendance_score is None
    assert rows["s1"].total_score == 5.15
    assert rows["s4"].total_score is None
    assert rows["s4"].rank is None
    assert report.rows[-1].student_id == "s4"
    assert report.summary.total_weeks is None


def _save_current_year(source, **weeks):
    source.save_academic_year(
        build_academic_year(
            "2024-2025",
            start_date="2024-09-01",
            end_date="2025-05-31",
            semester1_start="2024-09-01",
            semester1_end="2025-01-11",
            semester2_start="2025-01-13",
            semester2_end="2025-05-31",
            is_current=True,
            **weeks,
        )
    )


def test_term_comes_from_current_academic_year(source):
    _save_current_year(source, total_weeks=32, semester1_weeks=16, semester2_weeks=16)
    service = ReportService(source, default_total_weeks=40)

    assert service.resolve_term() == TermWindow(32, date(2024, 9, 1), date(2025, 5, 31))
    assert service.resolve_term(2) == TermWindow(16, date(2025, 1, 13), date(2025, 5, 31))
    assert ReportService(source, total_weeks_override=10).resolve_term(1) == TermWindow(
        10, date(2024, 9, 1), date(2025, 1, 11)
    )


def test_semester_roster_only_counts_attendance_inside_the_semester(source):
    _save_current_year(source, semester1_weeks=4, semester2_weeks=16)
    # Eight Thursdays, all in the second semester.
    for offset in range(8):
        source.record_attendance(
            AttendanceRecord("s4", date(2025, 1, 16) + timedelta(weeks=offset), status="present")
        )
    service = ReportService(source)

    first = {row.student_id: row for row in service.build_class_roster("c1", semester=1)}
    assert first["s4"].attendance.weeks_present == 0
    assert first["s4"].attendance_score == 0.0
    assert first["s1"].attendance_score == 0.0

    second = {row.student_id: row for row in service.build_class_roster("c1", semester=2)}
    assert second["s4"].attendance.weeks_present == 8
    assert second["s4"].attendance_score == 5.0
    assert second["s1"].attendance.weeks_present == 3
    assert second["s1"].attendance_score == 1.88

    for row in [*first.values(), *second.values()]:
        assert 0 <= row.attendance_score <= 10


def test_score_report_defaults_to_the_academic_year_dates(source):
    _save_current_year(source, total_weeks=32)
    source.record_attendance(AttendanceRecord("s1", "2025-06-05", status="present"))

    report = ReportService(source).build_score_report("c1")

    assert report.start_date == date(2024, 9, 1)
    assert report.end_date == date(2025, 5, 31)
    assert report.date_range_label == "01/09/2024 - 31/05/2025"
    s1 = next(row for row in report.rows if row.student_id == "s1")
    assert s1.attendance.weeks_present == 3
    assert s1.attendance_score == 0.94


def test_explicit_dates_narrow_the_semester(source):
    _save_current_year(source, semester2_weeks=16)
    service = ReportService(source)

    report = service.build_score_report("c1", "2025-03-10", None, semester=2)

    assert report.start_date == date(2025, 3, 10)
    assert report.end_date == date(2025, 5, 31)
    s1 = next(row for row in report.rows if row.student_id == "s1")
    assert s1.attendance.weeks_present == 2
    with pytest.raises(ReportError):
        service.build_score_report("c1", "2025-03-01", None, semester=1)


def test_default_term_length_is_used_without_academic_year(source):
    service = ReportService(source, default_total_weeks=20)

    assert service.resolve_term() == TermWindow(20)
    roster = service.build_class_roster("c1")
    assert [row.rank for row in roster] == [1, 2, 3]
