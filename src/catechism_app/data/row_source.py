from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator, Protocol, Sequence

from catechism_app.data.adapters import (
    academic_year_from_row,
    attendance_from_rows,
    score_details_from_rows,
    students_from_rows,
)
from catechism_app.data.database import Database
from catechism_app.models import AcademicYear, AttendanceRecord, ScoreDetail, StudentBasic
from catechism_app.utils import coerce_date

# Keeps bound parameters well under SQLite and URL length limits.
IN_QUERY_CHUNK = 100


class RowSourceError(RuntimeError):
    """Raised when a row source cannot serve a query."""


class RowSource(Protocol):
    def fetch_class_name(self, class_id: str) -> str | None: ...

    def fetch_students_by_class(self, class_id: str) -> list[StudentBasic]: ...

    def fetch_attendance_records(
        self,
        student_ids: Sequence[str],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AttendanceRecord]: ...

    def fetch_score_details(self, student_ids: Sequence[str]) -> list[ScoreDetail]: ...

    def fetch_current_academic_year(self) -> AcademicYear | None: ...


def clean_ids(student_ids: Iterable[str]) -> list[str]:
    return [value.strip() for value in student_ids if value and value.strip()]


def chunked(values: Sequence[str], size: int | None = None) -> Iterator[list[str]]:
    """Split ``values`` into ``IN`` filter batches of at most ``IN_QUERY_CHUNK`` ids."""
    size = size or IN_QUERY_CHUNK
    for index in range(0, len(values), size):
        yield list(values[index : index + size])


class SqliteRowSource:
    def __init__(self, database: Database) -> None:
        self._database = database

    def initialize(self) -> None:
        self._database.initialize()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch_class_name(self, class_id: str) -> str | None:
        with self._database.connect() as connection:
            row = connection.execute(
                "SELECT name FROM classes WHERE id = ?",
                (class_id.strip(),),
            ).fetchone()
        return row["name"] if row else None

    def fetch_students_by_class(self, class_id: str) -> list[StudentBasic]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT id, class_id, saint_name, first_name, last_name, full_name, status
                  FROM students
                 WHERE class_id = ?
                   AND COALESCE(status, '') <> 'DELETED'
              ORDER BY full_name IS NULL, full_name ASC, id ASC
                """,
                (class_id.strip(),),
            ).fetchall()
        return students_from_rows(rows)

    def fetch_attendance_records(
        self,
        student_ids: Sequence[str],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AttendanceRecord]:
        ids = clean_ids(student_ids)
        date_filters: list[str] = []
        date_params: list[str] = []
        if start_date is not None:
            date_filters.append("   AND date(event_date) >= date(?)")
            date_params.append(start_date.isoformat())
        if end_date is not None:
            date_filters.append("   AND date(event_date) <= date(?)")
            date_params.append(end_date.isoformat())

        rows = []
        with self._database.connect() as connection:
            for chunk in chunked(ids):
                placeholders = ", ".join(["?"] * len(chunk))
                query_parts = [
                    "SELECT student_id, event_date, status, weekday, student_class_id, student_class_name",
                    "  FROM attendance_records",
                    f" WHERE student_id IN ({placeholders})",
                    *date_filters,
                    " ORDER BY event_date ASC, student_id ASC, id ASC",
                ]
                rows.extend(
                    connection.execute("\n".join(query_parts), (*chunk, *date_params)).fetchall()
                )
        return attendance_from_rows(rows)

    def fetch_score_details(self, student_ids: Sequence[str]) -> list[ScoreDetail]:
        rows = []
        with self._database.connect() as connection:
            for chunk in chunked(clean_ids(student_ids)):
                placeholders = ", ".join(["?"] * len(chunk))
                rows.extend(
                    connection.execute(
                        f"""
                        SELECT id,
                               academic_hk1_fortyfive,
                               academic_hk1_exam,
                               academic_hk2_fortyfive,
                               academic_hk2_exam
                          FROM student_scores
                         WHERE id IN ({placeholders})
                        """,
                        tuple(chunk),
                    ).fetchall()
                )
        return score_details_from_rows(rows)

    def fetch_current_academic_year(self) -> AcademicYear | None:
        with self._database.connect() as connection:
            row = connection.execute(
                """
                SELECT *
                  FROM academic_years
                 WHERE is_current = 1
              ORDER BY start_date DESC
                 LIMIT 1
                """
            ).fetchone()
        return academic_year_from_row(row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def add_class(self, class_id: str, name: str, sector: str | None = None) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT INTO classes (id, name, sector) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name, sector = excluded.sector
                """,
                (class_id.strip(), name.strip(), sector),
            )

    def add_student(self, student: StudentBasic) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT INTO students (
                    id, class_id, saint_name, first_name, last_name, full_name, status
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    student.id.strip(),
                    student.class_id,
                    student.saint_name,
                    student.first_name,
                    student.last_name,
                    student.full_name,
                    student.status,
                ),
            )

    def record_attendance(self, record: AttendanceRecord) -> int:
        event_date = coerce_date(record.event_date)
        if not record.student_id or event_date is None:
            raise RowSourceError("Attendance records need a student id and a valid date.")

        with self._database.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO attendance_records (
                    student_id, event_date, weekday, status, student_class_id, student_class_name
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.student_id.strip(),
                    event_date.isoformat(),
                    record.weekday,
                    record.status,
                    record.class_id,
                    record.class_name,
                ),
            )
            return int(cursor.lastrowid)

    def save_score_detail(self, detail: ScoreDetail) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT INTO student_scores (
                    id, academic_hk1_fortyfive, academic_hk1_exam,
                    academic_hk2_fortyfive, academic_hk2_exam
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    academic_hk1_fortyfive = excluded.academic_hk1_fortyfive,
                    academic_hk1_exam = excluded.academic_hk1_exam,
                    academic_hk2_fortyfive = excluded.academic_hk2_fortyfive,
                    academic_hk2_exam = excluded.academic_hk2_exam,
                    updated_at = datetime('now')
                """,
                (detail.id.strip(), detail.half1, detail.exam1, detail.half2, detail.exam2),
            )

    def save_academic_year(self, year: AcademicYear) -> int:
        with self._database.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO academic_years (
                    name, start_date, end_date,
                    semester1_start, semester1_end, semester2_start, semester2_end,
                    total_weeks, semester1_weeks, semester2_weeks, is_current
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    year.name,
                    year.start_date.isoformat(),
                    year.end_date.isoformat(),
                    year.semester1_start.isoformat(),
                    year.semester1_end.isoformat(),
                    year.semester2_start.isoformat(),
                    year.semester2_end.isoformat(),
                    year.total_weeks,
                    year.semester1_weeks,
                    year.semester2_weeks,
                    int(year.is_current),
                ),
            )
            return int(cursor.lastrowid)

    def set_current_academic_year(self, year_id: int) -> AcademicYear:
        with self._database.connect() as connection:
            connection.execute(
                "UPDATE academic_years SET is_current = 1 WHERE id = ?",
                (year_id,),
            )
            row = connection.execute(
                "SELECT * FROM academic_years WHERE id = ?",
                (year_id,),
            ).fetchone()

        if not row:
            raise RowSourceError(f"Academic year {year_id} not found.")
        return academic_year_from_row(row)
