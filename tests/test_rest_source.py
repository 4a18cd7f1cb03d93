from datetime import date

import pytest
import requests

from catechism_app.data import RestRowSource, RowSourceError


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.headers = {}
        self.calls = []
        self._responses = responses or {}
        self._error = error

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self._error is not None:
            raise self._error
        table = url.rsplit("/", 1)[-1]
        return self._responses.get(table, FakeResponse([]))


def test_requires_url_and_key():
    with pytest.raises(RowSourceError):
        RestRowSource("", "key", session=FakeSession())


def test_students_are_adapted_and_auth_headers_set():
    session = FakeSession(
        {
            "students": FakeResponse(
                [
                    {"id": "s1", "name": "Nguyễn Văn An", "student_class_id": "c1"},
                    {"id": " ", "full_name": "No id"},
                ]
            )
        }
    )
    source = RestRowSource("https://example.supabase.co/", "anon-key", session=session)

    students = source.fetch_students_by_class("c1")

    assert [(student.id, student.full_name, student.class_id) for student in students] == [
        ("s1", "Nguyễn Văn An", "c1")
    ]
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer anon-key"
    url, params = session.calls[0]
    assert url == "https://example.supabase.co/rest/v1/students"
    assert params["class_id"] == "eq.c1"
    assert params["status"] == "neq.DELETED"


def test_attendance_ids_are_chunked_and_dates_filtered():
    session = FakeSession(
        {"attendance_records": FakeResponse([{"student_id": "s1", "event_date": "2025-03-06", "status": "X"}])}
    )
    source = RestRowSource("https://example.supabase.co", "key", session=session)
    ids = [f"s{index}" for index in range(250)]

    records = source.fetch_attendance_records(ids, date(2025, 3, 1), date(2025, 3, 31))

    assert len(session.calls) == 3
    assert len(records) == 3
    _, params = session.calls[0]
    assert params["student_id"].startswith('in.("s0","s1",')
    assert params["event_date"] == ["gte.2025-03-01", "lte.2025-03-31"]


def test_score_details_read_from_students_table():
    session = FakeSession(
        {
            "students": FakeResponse(
                [{"id": "s1", "academic_hk1_fortyfive": "8.5", "academic_hk1_exam": 9, "academic_hk2_exam": ""}]
            )
        }
    )
    source = RestRowSource("https://example.supabase.co", "key", session=session)

    [detail] = source.fetch_score_details(["s1"])

    assert (detail.half1, detail.exam1, detail.half2, detail.exam2) == (8.5, 9.0, None, None)


def test_empty_id_list_makes_no_request():
    session = FakeSession()
    source = RestRowSource("https://example.supabase.co", "key", session=session)

    assert source.fetch_attendance_records(["", "  "]) == []
    assert session.calls == []


def test_missing_table_is_tolerated():
    session = FakeSession(
        {"academic_years": FakeResponse({"code": "42P01", "message": "relation does not exist"}, 404)}
    )
    source = RestRowSource("https://example.supabase.co", "key", session=session)

    assert source.fetch_current_academic_year() is None


def test_other_errors_are_raised():
    session = FakeSession({"classes": FakeResponse({"code": "PGRST301", "message": "JWT expired"}, 401)})
    source = RestRowSource("https://example.supabase.co", "key", session=session)

    with pytest.raises(RowSourceError, match="JWT expired"):
        source.fetch_class_name("c1")


def test_network_failures_become_row_source_errors():
    session = FakeSession(error=requests.ConnectionError("offline"))
    source = RestRowSource("https://example.supabase.co", "key", session=session)

    with pytest.raises(RowSourceError):
        source.fetch_students_by_class("c1")
