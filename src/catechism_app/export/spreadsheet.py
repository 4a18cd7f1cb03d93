from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from catechism_app.models import AttendanceReport, ScoreReport
from catechism_app.utils import slugify

logger = logging.getLogger(__name__)

ReportType = Literal["attendance", "score"]

FILENAME_PREFIXES = {
    "attendance": "bao-cao-diem-danh",
    "score": "bao-cao-diem-so",
}
SHEET_TITLES = {
    "attendance": "BaoCaoDiemDanh",
    "score": "BangDiem",
}
PRESENT_MARK = "X"


class ExportError(RuntimeError):
    """Raised when a report cannot be exported."""


@dataclass(slots=True)
class WorksheetData:
    sheet_title: str
    rows: list[list[Any]]
    column_widths: list[int]
    header_row_index: int = 3
    data_row_count: int = 0
    title_lines: list[str] = field(default_factory=list)


def build_report_filename(
    report_type: ReportType,
    class_name: str,
    start_date: date | None,
    end_date: date | None,
    extension: str,
    *,
    now: datetime | None = None,
) -> str:
    start_segment = start_date.strftime("%Y%m%d") if start_date else None
    end_segment = end_date.strftime("%Y%m%d") if end_date else None

    if start_segment and end_segment:
        range_segment = start_segment if start_segment == end_segment else f"{start_segment}-{end_segment}"
    else:
        range_segment = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")

    parts = [FILENAME_PREFIXES[report_type], slugify(class_name), range_segment]
    return "_".join(part for part in parts if part) + f".{extension}"


def attendance_worksheet(report: AttendanceReport) -> WorksheetData:
    if not report.rows:
        raise ExportError("There is no data to export.")

    title_lines = [
        f"Báo cáo điểm danh - Lớp {report.class_name}",
        f"Khoảng thời gian: {report.date_range_label}",
    ]
    header = [
        "STT",
        "Tên thánh",
        "Họ",
        "Tên",
        *(f"{column.weekday_label} {column.display_label}" for column in report.columns),
    ]

    body: list[list[Any]] = []
    for index, row in enumerate(report.rows, start=1):
        last_name, first_name = row.student.name_parts()
        marks = [PRESENT_MARK if row.is_present(column.iso_date) else "" for column in report.columns]
        body.append([index, row.student.saint_name or "", last_name, first_name, *marks])

    summary = report.summary
    rows: list[list[Any]] = [
        [title_lines[0]],
        [title_lines[1]],
        [],
        header,
        *body,
        [],
        ["Có mặt Thứ 5", summary.primary_present],
        ["Có mặt Chủ nhật", summary.secondary_present],
        ["Học sinh chưa điểm danh", summary.missing_count],
        ["Tổng lượt điểm danh", summary.total_marks],
        ["Tổng số học sinh", summary.total_students],
    ]
    widths = [5, 18, 24, 16, *([12] * len(report.columns))]
    return WorksheetData(
        sheet_title=SHEET_TITLES["attendance"],
        rows=rows,
        column_widths=widths,
        data_row_count=len(body),
        title_lines=title_lines,
    )


def _cell(value: float | int | None) -> Any:
    return "" if value is None else value


def score_worksheet(report: ScoreReport) -> WorksheetData:
    if not report.rows:
        raise ExportError("There is no data to export.")

    title_lines = [
        f"Báo cáo điểm số - Lớp {report.class_name}",
        f"Khoảng thời gian: {report.date_range_label}",
    ]
    header = [
        "STT",
        "Trạng thái",
        "Tên thánh",
        "Họ và tên",
        "Lớp",
        "Đi lễ T5",
        "Học GL",
        "Điểm danh TB",
        "45' HK1",
        "Thi HK1",
        "45' HK2",
        "Thi HK2",
        "Điểm GL TB",
        "Điểm tổng",
        "Hạng",
    ]

    body = [
        [
            index,
            row.status or "",
            row.saint_name or "",
            row.full_name or "",
            report.class_name,
            _cell(row.primary_rate),
            _cell(row.secondary_rate),
            _cell(row.attendance_score),
            _cell(row.half1),
            _cell(row.exam1),
            _cell(row.half2),
            _cell(row.exam2),
            _cell(row.catechism_average),
            _cell(row.total_score),
            _cell(row.rank),
        ]
        for index, row in enumerate(report.rows, start=1)
    ]

    summary = report.summary
    rows: list[list[Any]] = [
        [title_lines[0]],
        [title_lines[1]],
        [],
        header,
        *body,
        [],
        ["Tổng buổi Thứ 5", summary.primary_sessions],
        ["Tổng buổi Chủ nhật", summary.secondary_sessions],
        ["Tổng số buổi", summary.total_sessions],
        ["Tổng số thiếu nhi", summary.total_students],
    ]
    widths = [5, 14, 18, 26, 12, 12, 12, 14, 12, 12, 12, 12, 14, 14, 8]
    return WorksheetData(
        sheet_title=SHEET_TITLES["score"],
        rows=rows,
        column_widths=widths,
        data_row_count=len(body),
        title_lines=title_lines,
    )


def write_workbook(sheet: WorksheetData, path: Path) -> Path:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet.sheet_title

    for values in sheet.rows:
        worksheet.append(values)

    header_row = sheet.header_row_index + 1
    for cell in worksheet[header_row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    worksheet["A1"].font = Font(bold=True, size=14)

    for column_index, width in enumerate(sheet.column_widths, start=1):
        worksheet.column_dimensions[get_column_letter(column_index)].width = width

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info("Wrote %s (%d data rows)", path, sheet.data_row_count)
    return path
