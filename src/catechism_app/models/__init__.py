from .records import (
	CATEGORY_LABELS,
	AcademicYear,
	AttendanceRecord,
	AttendanceResult,
	Category,
	NormalizedAttendance,
	NormalizedSession,
	Presence,
	ScoreDetail,
	ScoreRow,
	StudentBasic,
	TermWindow,
)
from .reports import (
	AttendanceReport,
	AttendanceReportRow,
	AttendanceSummary,
	ScoreReport,
	ScoreSummary,
)

__all__ = [
	"CATEGORY_LABELS",
	"AcademicYear",
	"AttendanceRecord",
	"AttendanceReport",
	"AttendanceReportRow",
	"AttendanceResult",
	"AttendanceSummary",
	"Category",
	"NormalizedAttendance",
	"NormalizedSession",
	"Presence",
	"ScoreDetail",
	"ScoreReport",
	"ScoreRow",
	"ScoreSummary",
	"StudentBasic",
	"TermWindow",
]
