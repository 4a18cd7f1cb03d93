from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .records import NormalizedSession, Presence, ScoreRow, StudentBasic


@dataclass(slots=True)
class AttendanceReportRow:
    student: StudentBasic
    statuses: dict[str, Presence] = field(default_factory=dict)

    def is_present(self, iso_date: str) -> bool:
        return self.statuses.get(iso_date) is Presence.PRESENT


@dataclass(slots=True, frozen=True)
class AttendanceSummary:
    primary_present: int
    secondary_present: int
    missing_count: int
    total_marks: int
    total_students: int


@dataclass(slots=True)
class AttendanceReport:
    class_name: str
    date_range_label: str
    generated_at_label: str
    columns: list[NormalizedSession]
    rows: list[AttendanceReportRow]
    summary: AttendanceSummary
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(slots=True, frozen=True)
class ScoreSummary:
    primary_sessions: int
    secondary_sessions: int
    total_sessions: int
    total_students: int
    total_weeks: Optional[int] = None


@dataclass(slots=True)
class ScoreReport:
    class_name: str
    date_range_label: str
    generated_at_label: str
    rows: list[ScoreRow]
    summary: ScoreSummary
    start_date: Optional[date] = None
    end_date: Optional[date] = None
