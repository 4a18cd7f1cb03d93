from __future__ import annotations

import logging
from datetime import date
from typing import Any, Sequence

import requests

from catechism_app.data.adapters import (
    academic_year_from_row,
    attendance_from_rows,
    score_details_from_rows,
    students_from_rows,
)
from catechism_app.data.row_source import RowSourceError, chunked, clean_ids
from catechism_app.models import AcademicYear, AttendanceRecord, ScoreDetail, StudentBasic

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
# Permission denied, missing table and missing column.
IGNORABLE_ERROR_CODES = frozenset({"42501", "42P01", "42703"})

STUDENT_COLUMNS = "id,class_id,saint_name,first_name,last_name,full_name,status"
ATTENDANCE_COLUMNS = "student_id,event_date,status,weekday,student_class_id,student_class_name"
SCORE_COLUMNS = (
    "id,academic_hk1_fortyfive,academic_hk1_exam,academic_hk2_fortyfive,academic_hk2_exam"
)


def _in_filter(values: Sequence[str]) -> str:
    quoted = ",".join('"' + value.replace('"', '\\"') + '"' for value in values)
    return f"in.({quoted})"


class RestRowSource:
    """Row source backed by a PostgREST endpoint such as a hosted Supabase project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not base_url or not api_key:
            raise RowSourceError("A REST row source needs both a base URL and an API key.")
        self._base_url = base_url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    def _select(self, table: str, params: dict[str, Any]) -> list[dict]:
        url = f"{self._base_url}/{table}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise RowSourceError(f"Request to {table} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            code = str(payload.get("code") or "") if isinstance(payload, dict) else ""
            message = (payload.get("message") if isinstance(payload, dict) else None) or response.text
            if code in IGNORABLE_ERROR_CODES:
                logger.warning("%s query fallback (%s): %s", table, code, message)
                return []
            raise RowSourceError(f"{table} query failed ({response.status_code}): {message}")

        data = response.json()
        return data if isinstance(data, list) else []

    def fetch_class_name(self, class_id: str) -> str | None:
        rows = self._select("classes", {"select": "id,name", "id": f"eq.{class_id.strip()}", "limit": 1})
        return rows[0].get("name") if rows else None

    def fetch_students_by_class(self, class_id: str) -> list[StudentBasic]:
        if not class_id.strip():
            return []
        rows = self._select(
            "students",
            {
                "select": STUDENT_COLUMNS,
                "class_id": f"eq.{class_id.strip()}",
                "status": "neq.DELETED",
                "order": "full_name.asc.nullslast",
            },
        )
        return students_from_rows(rows)

    def fetch_attendance_records(
        self,
        student_ids: Sequence[str],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AttendanceRecord]:
        ids = clean_ids(student_ids)
        rows: list[dict] = []
        for chunk in chunked(ids):
            params: dict[str, Any] = {
                "select": ATTENDANCE_COLUMNS,
                "student_id": _in_filter(chunk),
                "order": "event_date.asc,student_id.asc",
            }
            date_filters = []
            if start_date is not None:
                date_filters.append(f"gte.{start_date.isoformat()}")
            if end_date is not None:
                date_filters.append(f"lte.{end_date.isoformat()}")
            if date_filters:
                params["event_date"] = date_filters
            rows.extend(self._select("attendance_records", params))
        return attendance_from_rows(rows)

    def fetch_score_details(self, student_ids: Sequence[str]) -> list[ScoreDetail]:
        ids = clean_ids(student_ids)
        rows: list[dict] = []
        for chunk in chunked(ids):
            rows.extend(self._select("students", {"select": SCORE_COLUMNS, "id": _in_filter(chunk)}))
        return score_details_from_rows(rows)

    def fetch_current_academic_year(self) -> AcademicYear | None:
        rows = self._select(
            "academic_years",
            {"select": "*", "is_current": "eq.true", "order": "start_date.desc", "limit": 1},
        )
        return academic_year_from_row(rows[0]) if rows else None
