from .colors import UnsupportedColor, parse_color
from .image import ReportTheme, render_report_image
from .spreadsheet import (
	ExportError,
	WorksheetData,
	attendance_worksheet,
	build_report_filename,
	score_worksheet,
	write_workbook,
)

__all__ = [
	"ExportError",
	"ReportTheme",
	"UnsupportedColor",
	"WorksheetData",
	"attendance_worksheet",
	"build_report_filename",
	"parse_color",
	"render_report_image",
	"score_worksheet",
	"write_workbook",
]
