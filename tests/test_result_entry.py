import asyncio
import json

import httpx
import pytest

from services.portal.errors import SessionExpired
from services.portal.http_client import PortalClient
from services.portal.result_entry import (
    ResultRow, RowLockedError, load_results, recalculate_results, save_results,
)
from services.portal.session import SessionState

YEAR, TERM = "2024-2025", "First Term"


class RecordingTransport:
    """요청을 기록하고 handler 결과를 돌려주는 MockTransport 래퍼"""

    def __init__(self, handler=None):
        self.requests = []
        self._handler = handler or (lambda request: httpx.Response(200, json={"status": "success", "data": {}}))
        self.transport = httpx.MockTransport(self._record)

    def _record(self, request):
        self.requests.append(request)
        return self._handler(request)


def _client(transport):
    session = SessionState()
    session.login("token")
    return PortalClient(session, base_url="http://portal.test/v1", transport=transport)


def _run(coro_factory, transport):
    async def run():
        async with _client(transport) as client:
            return await coro_factory(client)
    return asyncio.run(run())


# ==========================================================
# [불러오기]
# ==========================================================

def test_load_results_applies_saved_records():
    def handler(request):
        if request.url.path.endswith("/users/students"):
            return httpx.Response(200, json={"status": "success", "data": [
                {"id": 1, "name": "Aarav", "rollNo": "1"},
                {"id": 2, "name": "Bina", "rollNo": "2"},
                {"id": 3, "name": "Chandra", "rollNo": "3"},
            ]})
        return httpx.Response(200, json={"status": "success", "data": [
            {"id": 10, "studentId": 1, "subjectId": 7, "academicYear": YEAR, "term": TERM,
             "theoryMarks": 55, "practicalMarks": 20, "isLocked": True},
            # isLocked 누락 → 잠김, 숫자가 아닌 점수 → 0
            {"id": 11, "studentId": 2, "subjectId": 7, "academicYear": YEAR, "term": TERM,
             "theoryMarks": "n/a", "practicalMarks": None},
            # 다른 과목 기록은 무시
            {"id": 12, "studentId": 3, "subjectId": 8, "academicYear": YEAR, "term": TERM,
             "theoryMarks": 90, "practicalMarks": 10, "isLocked": True},
        ]})

    loaded = _run(lambda c: load_results(c, 5, 9, 7, YEAR, TERM), RecordingTransport(handler).transport)
    assert loaded.ok and loaded.message == "Loaded 3 student(s)"
    rows = {r.student_id: r for r in loaded.rows}

    assert rows[1].is_locked and not rows[1].is_editable
    assert (rows[1].theory_marks, rows[1].practical_marks, rows[1].total) == (55, 20, 75)
    assert rows[2].is_locked and (rows[2].theory_marks, rows[2].practical_marks) == (0, 0)
    assert not rows[3].is_locked and rows[3].is_editable
    assert (rows[3].theory_marks, rows[3].practical_marks) == (0, 0)


def test_locked_row_rejects_mark_edits():
    row = ResultRow(student_id=1, theory_marks=40, is_locked=True, is_editable=False)

    with pytest.raises(RowLockedError):
        row.set_marks(theory=80)
    assert row.theory_marks == 40


def test_set_marks_coerces_non_numeric_to_zero():
    row = ResultRow(student_id=1)
    row.set_marks(theory="45", practical="abc")
    assert (row.theory_marks, row.practical_marks, row.total) == (45, 0, 45)


# ==========================================================
# [저장]
# ==========================================================

def test_save_results_submits_only_editable_rows():
    recorder = RecordingTransport(lambda request: httpx.Response(201, json={
        "status": "success",
        "data": {"subjectResult": {"id": 99, **json.loads(request.content), "isLocked": True}},
    }))
    rows = [
        ResultRow(student_id=1, theory_marks=50, practical_marks=20, is_locked=True, is_editable=False),
        ResultRow(student_id=2, theory_marks=60, practical_marks=15),
    ]

    outcome = _run(lambda c: save_results(c, rows, 7, YEAR, TERM), recorder.transport)

    assert outcome.ok and outcome.saved == [2]
    assert len(recorder.requests) == 1
    body = json.loads(recorder.requests[0].content)
    assert body["studentId"] == 2
    assert body["totalMarks"] == 75
    # 저장된 행은 서버 응답대로 잠김
    assert rows[1].is_locked and not rows[1].is_editable


def test_save_results_without_editable_rows_makes_no_call():
    recorder = RecordingTransport()
    rows = [ResultRow(student_id=1, is_locked=True, is_editable=False)]

    outcome = _run(lambda c: save_results(c, rows, 7, YEAR, TERM), recorder.transport)

    assert not outcome.ok
    assert outcome.message == "No editable results to save"
    assert recorder.requests == []


def test_save_results_reports_partial_failure():
    def handler(request):
        if json.loads(request.content)["studentId"] == 2:
            return httpx.Response(400, json={"status": "error", "message": "Total marks cannot exceed full marks"})
        return httpx.Response(201, json={"status": "success", "data": {"subjectResult": {
            **json.loads(request.content), "isLocked": True,
        }}})

    rows = [ResultRow(student_id=1, theory_marks=30), ResultRow(student_id=2, theory_marks=300)]
    outcome = _run(lambda c: save_results(c, rows, 7, YEAR, TERM), RecordingTransport(handler).transport)

    assert not outcome.ok
    assert outcome.message == "Some results could not be saved"
    assert outcome.saved == [1]
    assert outcome.failed == {2: "Total marks cannot exceed full marks"}
    # 실패한 행은 되돌리지 않고 편집 가능 상태 유지
    assert rows[1].is_editable and rows[1].theory_marks == 300


def test_recalculate_without_class_makes_no_call():
    recorder = RecordingTransport()
    outcome = _run(lambda c: recalculate_results(c, None, None, YEAR, TERM), recorder.transport)

    assert not outcome.ok and outcome.summary is None
    assert outcome.message == "Select a class to recalculate results"
    assert recorder.requests == []


def test_load_results_reports_failed_fetch():
    def handler(request):
        if request.url.path.endswith("/results/subject"):
            return httpx.Response(403, json={"status": "error", "message": "You do not have access to this class section"})
        return httpx.Response(200, json={"status": "success", "data": [{"id": 1, "name": "Aarav"}]})

    loaded = _run(lambda c: load_results(c, 5, 9, 7, YEAR, TERM), RecordingTransport(handler).transport)

    assert not loaded.ok
    assert loaded.rows == []
    assert loaded.message == "Could not load results: You do not have access to this class section"


def test_load_results_propagates_session_expiry():
    def handler(request):
        return httpx.Response(401, json={"status": "error", "message": "Token expired, please log in again"})

    with pytest.raises(SessionExpired):
        _run(lambda c: load_results(c, 5, 9, 7, YEAR, TERM), RecordingTransport(handler).transport)


def test_recalculate_reports_server_failure():
    recorder = RecordingTransport(lambda request: httpx.Response(500, json={
        "status": "error", "message": "Internal server error",
    }))

    outcome = _run(lambda c: recalculate_results(c, 5, 9, YEAR, TERM), recorder.transport)

    assert not outcome.ok
    assert outcome.message == "Internal server error"
    assert len(recorder.requests) == 1


# ==========================================================
# [서버 연동]
# ==========================================================

def test_load_save_reload_round_trip(school, make_portal):
    async def run():
        async with make_portal("sita") as client:
            rows = (await load_results(client, school.class_id, school.section_a, school.math_id, YEAR, TERM)).rows
            assert [r.student_id for r in rows] == [school.aarav_id, school.bina_id]
            assert all(r.is_editable for r in rows)

            rows[0].set_marks(theory=62.5, practical=20)
            first = await save_results(client, rows, school.math_id, YEAR, TERM)
            reloaded = (await load_results(client, school.class_id, school.section_a, school.math_id, YEAR, TERM)).rows
            second = await save_results(client, reloaded, school.math_id, YEAR, TERM)
            summary = await recalculate_results(client, school.class_id, school.section_a, YEAR, TERM)
            after = (await load_results(client, school.class_id, school.section_a, school.math_id, YEAR, TERM)).rows
            return rows, first, reloaded, second, summary, after

    rows, first, reloaded, second, summary, after = asyncio.run(run())

    assert first.ok and sorted(first.saved) == sorted([school.aarav_id, school.bina_id])
    assert [(r.theory_marks, r.practical_marks) for r in reloaded] == [(62.5, 20), (0, 0)]
    assert all(r.is_locked and not r.is_editable for r in reloaded)
    # 모두 잠겼으므로 두 번째 저장은 요청 없이 실패
    assert not second.ok
    assert summary.ok and summary.summary["processedCount"] == 2
    # 재계산은 잠금 상태를 바꾸지 않는다
    assert all(r.is_locked for r in after)
    assert [(r.theory_marks, r.practical_marks) for r in after] == [(62.5, 20), (0, 0)]
