from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from catechism_app.config import settings as app_settings
from catechism_app.config.settings import Settings
from catechism_app.data import Database, RestRowSource, RowSource, RowSourceError, SqliteRowSource
from catechism_app.export import (
    ExportError,
    attendance_worksheet,
    build_report_filename,
    render_report_image,
    score_worksheet,
    write_workbook,
)
from catechism_app.export.spreadsheet import WorksheetData
from catechism_app.services import AcademicYearError, ReportError, ReportService, build_academic_year

logger = logging.getLogger("catechism_app")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catechism-report",
        description="Build attendance and score reports for catechism classes.",
    )
    parser.add_argument("--database", type=Path, help="SQLite database path (defaults to settings)")
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Read rows from the REST backend configured by SUPABASE_URL/SUPABASE_KEY",
    )
    parser.add_argument("--log-level", help="Logging level (defaults to LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="Create or migrate the local database")

    config = subparsers.add_parser("config", help="Show or change the saved user settings")
    config.add_argument("--total-weeks", type=int, help="Term length used without an academic year")
    config.add_argument("--output-dir", type=Path, help="Default report output directory")
    config.add_argument("--image-scale", type=int, help="Pixel scale of PNG exports")
    config.add_argument("--data-dir", type=Path, help="Move the application data directory")

    academic_year = subparsers.add_parser("academic-year", help="Manage academic years in the local database")
    year_commands = academic_year.add_subparsers(dest="year_command", required=True)
    add_year = year_commands.add_parser("add", help="Add an academic year")
    add_year.add_argument("name")
    add_year.add_argument("--start", required=True, help="YYYY-MM-DD")
    add_year.add_argument("--end", required=True, help="YYYY-MM-DD")
    for semester in (1, 2):
        add_year.add_argument(f"--semester{semester}-start", required=True, help="YYYY-MM-DD")
        add_year.add_argument(f"--semester{semester}-end", required=True, help="YYYY-MM-DD")
        add_year.add_argument(f"--semester{semester}-weeks", type=float, help="Defaults to the date span")
    add_year.add_argument("--total-weeks", type=float, help="Defaults to the date span")
    add_year.add_argument("--current", action="store_true", help="Make it the current academic year")
    use_year = year_commands.add_parser("use", help="Make an academic year current")
    use_year.add_argument("year_id", type=int)

    def add_report_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--class", dest="class_id", required=True, help="Class identifier")
        sub.add_argument("--format", choices=("xlsx", "png"), default="xlsx")
        sub.add_argument("--output", type=Path, help="Output directory (defaults to settings)")

    attendance = subparsers.add_parser("attendance", help="Attendance report for a date range")
    add_report_arguments(attendance)
    attendance.add_argument("--from", dest="start_date", required=True, help="YYYY-MM-DD")
    attendance.add_argument("--to", dest="end_date", required=True, help="YYYY-MM-DD")

    score = subparsers.add_parser("score", help="Score report with attendance and ranking")
    add_report_arguments(score)
    score.add_argument("--from", dest="start_date", help="YYYY-MM-DD (defaults to the term start)")
    score.add_argument("--to", dest="end_date", help="YYYY-MM-DD (defaults to the term end)")
    score.add_argument("--semester", type=int, choices=(1, 2))
    score.add_argument("--total-weeks", type=int, help="Override the configured term length")

    roster = subparsers.add_parser("roster", help="Ranked class roster over the current term")
    add_report_arguments(roster)
    roster.add_argument("--semester", type=int, choices=(1, 2))

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_source(args: argparse.Namespace, config: Settings) -> RowSource:
    if args.remote:
        return RestRowSource(config.supabase_url or "", config.supabase_key or "")
    return _local_source(args, config)


def _local_source(args: argparse.Namespace, config: Settings) -> SqliteRowSource:
    source = SqliteRowSource(Database(args.database or config.database_path))
    source.initialize()
    return source


def _update_user_settings(args: argparse.Namespace) -> Settings:
    changes = {
        "default_total_weeks": args.total_weeks,
        "report_output_dir": str(args.output_dir) if args.output_dir else None,
        "image_scale": args.image_scale,
        "app_data_dir": str(args.data_dir) if args.data_dir else None,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes:
        app_settings.user_settings_store.update(**changes)
        logger.info("Saved user settings: %s", ", ".join(sorted(changes)))
    return app_settings.refresh_settings_from_store()


def _manage_academic_year(args: argparse.Namespace, config: Settings) -> str:
    if args.remote:
        raise RowSourceError("Academic years can only be edited in the local database.")
    source = _local_source(args, config)

    if args.year_command == "use":
        year = source.set_current_academic_year(args.year_id)
        logger.info("Current academic year is now %s", year.name)
        return f"{args.year_id}\t{year.name}\t{year.total_weeks}"

    year = build_academic_year(
        args.name,
        start_date=args.start,
        end_date=args.end,
        semester1_start=args.semester1_start,
        semester1_end=args.semester1_end,
        semester2_start=args.semester2_start,
        semester2_end=args.semester2_end,
        total_weeks=args.total_weeks,
        semester1_weeks=args.semester1_weeks,
        semester2_weeks=args.semester2_weeks,
        is_current=args.current,
    )
    year_id = source.save_academic_year(year)
    logger.info("Saved academic year %s (%d weeks)", year.name, year.total_weeks)
    return f"{year_id}\t{year.name}\t{year.total_weeks}"


def _export(sheet: WorksheetData, report_type: str, report, args: argparse.Namespace, config: Settings) -> Path:
    output_dir = args.output or config.report_output_dir
    filename = build_report_filename(
        report_type,
        report.class_name,
        report.start_date,
        report.end_date,
        args.format,
    )
    path = output_dir / filename
    if args.format == "png":
        return render_report_image(sheet, path, scale=config.image_scale)
    return write_workbook(sheet, path)


def run(argv: Sequence[str] | None = None, config: Settings | None = None) -> int:
    config = config or app_settings.settings
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or config.log_level)
    logger.debug("Running with %s", config)

    try:
        if args.command == "init-db":
            database = Database(args.database or config.database_path)
            applied = database.initialize()
            logger.info("Database ready at %s (%d migrations applied)", database.path, len(applied))
            return 0

        if args.command == "config":
            print(_update_user_settings(args))
            return 0

        if args.command == "academic-year":
            print(_manage_academic_year(args, config))
            return 0

        source = _build_source(args, config)
        service = ReportService(
            source,
            total_weeks_override=getattr(args, "total_weeks", None),
            default_total_weeks=config.default_total_weeks,
        )

        if args.command == "attendance":
            report = service.build_attendance_report(args.class_id, args.start_date, args.end_date)
            path = _export(attendance_worksheet(report), "attendance", report, args, config)
        elif args.command == "score":
            report = service.build_score_report(
                args.class_id, args.start_date, args.end_date, semester=args.semester
            )
            path = _export(score_worksheet(report), "score", report, args, config)
        else:
            report = service.build_score_report(args.class_id, semester=args.semester)
            path = _export(score_worksheet(report), "score", report, args, config)
    except (ReportError, ExportError, RowSourceError, AcademicYearError) as exc:
        logger.error("%s", exc)
        return 1

    print(path)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
