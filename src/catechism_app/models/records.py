from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Category(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


class Presence(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


CATEGORY_LABELS = {
    Category.PRIMARY: "Thứ 5",
    Category.SECONDARY: "Chủ nhật",
    Category.OTHER: "Khác",
}


@dataclass(slots=True)
class StudentBasic:
    id: str
    saint_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    class_id: Optional[str] = None
    status: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        parts = [self.last_name or "", self.first_name or ""]
        name = " ".join(part.strip() for part in parts if part and part.strip()).strip()
        return name if name else self.id

    def name_parts(self) -> tuple[str, str]:
        """Return ``(last_name, first_name)``, splitting the full name when parts are missing."""
        full_name = (self.full_name or "").strip()
        first_name = (self.first_name or "").strip()
        last_name = (self.last_name or "").strip()

        if not full_name:
            return last_name, first_name

        if not first_name:
            tokens = full_name.split()
            first_name = tokens.pop() if tokens else ""
            last_name = " ".join(tokens).strip()
        elif not last_name and full_name.lower().endswith(first_name.lower()):
            last_name = full_name[: len(full_name) - len(first_name)].strip()

        if not last_name:
            tokens = full_name.split()
            last_name = " ".join(tokens[:-1]).strip() if len(tokens) > 1 else full_name

        return last_name, first_name


@dataclass(slots=True)
class AttendanceRecord:
    student_id: Optional[str]
    event_date: date | datetime | str | None
    weekday: Optional[str] = None
    status: Optional[str] = None
    class_id: Optional[str] = None
    class_name: Optional[str] = None


@dataclass(slots=True)
class ScoreDetail:
    id: str
    half1: Optional[float] = None
    exam1: Optional[float] = None
    half2: Optional[float] = None
    exam2: Optional[float] = None


@dataclass(slots=True)
class AcademicYear:
    name: str
    start_date: date
    end_date: date
    semester1_start: date
    semester1_end: date
    semester2_start: date
    semester2_end: date
    total_weeks: int
    semester1_weeks: int
    semester2_weeks: int
    is_current: bool = False
    id: Optional[int] = None


@dataclass(slots=True, frozen=True)
class TermWindow:
    """Configured week count of a term and the dates its attendance is read from."""

    total_weeks: Optional[int]
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(slots=True, frozen=True)
class NormalizedSession:
    iso_date: str
    display_label: str
    weekday_label: str
    category: Category


@dataclass(slots=True)
class NormalizedAttendance:
    sessions: list[NormalizedSession] = field(default_factory=list)
    presence_by_student: dict[str, dict[str, Presence]] = field(default_factory=dict)

    def categories(self) -> dict[str, Category]:
        return {session.iso_date: session.category for session in self.sessions}


@dataclass(slots=True, frozen=True)
class AttendanceResult:
    weeks_with_primary: int
    weeks_with_secondary: int
    score: Optional[float]
    weeks_present: int = 0
    total_weeks: Optional[int] = None


@dataclass(slots=True)
class ScoreRow:
    student_id: str
    full_name: Optional[str] = None
    saint_name: Optional[str] = None
    status: Optional[str] = None
    attendance: Optional[AttendanceResult] = None
    primary_present: int = 0
    primary_total: int = 0
    primary_rate: Optional[float] = None
    secondary_present: int = 0
    secondary_total: int = 0
    secondary_rate: Optional[float] = None
    half1: Optional[float] = None
    exam1: Optional[float] = None
    half2: Optional[float] = None
    exam2: Optional[float] = None
    catechism_average: Optional[float] = None
    total_score: Optional[float] = None
    rank: Optional[int] = None

    @property
    def attendance_score(self) -> Optional[float]:
        return self.attendance.score if self.attendance else None
