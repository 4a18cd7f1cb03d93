from .academic_years import AcademicYearError, build_academic_year, resolve_term_window, weeks_between
from .attendance_normalizer import normalize_attendance, parse_presence, resolve_category
from .ranker import rank_students, vietnamese_sort_key
from .report_service import ReportError, ReportService
from .score_calculator import (
	compute_attendance_score,
	compute_catechism_average,
	compute_session_rate,
	compute_total_score,
)

__all__ = [
	"AcademicYearError",
	"ReportError",
	"ReportService",
	"build_academic_year",
	"compute_attendance_score",
	"compute_catechism_average",
	"compute_session_rate",
	"compute_total_score",
	"normalize_attendance",
	"parse_presence",
	"rank_students",
	"resolve_category",
	"resolve_term_window",
	"vietnamese_sort_key",
	"weeks_between",
]
