"""
성적 입력 / 잠금 화면 로직
- 섹션 학생 목록 + 저장된 과목 성적 → ResultRow 목록
- 저장된 성적은 서버에서 잠금(isLocked) 처리되고, 잠긴 행은 수정/전송 불가
- 저장은 행 단위 개별 POST (동시 요청, 일괄 트랜잭션 없음)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from services.portal.errors import PortalError, SessionExpired
from services.portal.http_client import PortalClient

logger = logging.getLogger(__name__)


class RowLockedError(ValueError):
    """잠긴 행의 점수를 바꾸려 할 때"""


def _as_marks(value: Any) -> float:
    # 숫자가 아닌 값은 0 으로
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class ResultRow:
    student_id: int
    student_name: str = ""
    roll_no: Optional[str] = None
    theory_marks: float = 0.0
    practical_marks: float = 0.0
    is_editable: bool = True
    is_locked: bool = False
    result_id: Optional[int] = None

    @property
    def total(self) -> float:
        return self.theory_marks + self.practical_marks

    def set_marks(self, theory: Any = None, practical: Any = None) -> None:
        if self.is_locked or not self.is_editable:
            raise RowLockedError(f"Result for student {self.student_id} is locked")
        if theory is not None:
            self.theory_marks = _as_marks(theory)
        if practical is not None:
            self.practical_marks = _as_marks(practical)

    def apply_saved(self, record: dict) -> None:
        """저장된 성적으로 덮어쓰기 (isLocked 가 없으면 잠긴 것으로 본다)"""
        locked = record.get("isLocked")
        self.is_locked = True if locked is None else bool(locked)
        self.is_editable = not self.is_locked
        self.theory_marks = _as_marks(record.get("theoryMarks"))
        self.practical_marks = _as_marks(record.get("practicalMarks"))
        self.result_id = record.get("id")


@dataclass
class SaveOutcome:
    ok: bool
    saved: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    message: str = ""


@dataclass
class LoadOutcome:
    ok: bool
    rows: list[ResultRow] = field(default_factory=list)
    message: str = ""


@dataclass
class RecalculateOutcome:
    ok: bool
    summary: Optional[dict] = None
    message: str = ""


# ==========================================================
# [1단계] 불러오기
# ==========================================================

async def load_results(client: PortalClient, class_id: int, section_id: int, subject_id: int,
                       academic_year: str, term: str) -> LoadOutcome:
    """학생 목록과 저장된 성적을 함께 조회 (둘 중 하나라도 실패하면 행 없이 실패 결과)"""
    students, saved = await asyncio.gather(
        client.get("/users/students", classId=class_id, sectionId=section_id),
        client.get("/results/subject", classId=class_id, sectionId=section_id, subjectId=subject_id,
                   academicYear=academic_year, term=term),
        return_exceptions=True,
    )
    for res in (students, saved):
        if isinstance(res, SessionExpired) or (isinstance(res, BaseException) and not isinstance(res, PortalError)):
            raise res
    failure = next((res for res in (students, saved) if isinstance(res, PortalError)), None)
    if failure is not None:
        logger.error("Loading results failed (class=%s section=%s subject=%s): %s",
                     class_id, section_id, subject_id, failure.message)
        return LoadOutcome(ok=False, message=f"Could not load results: {failure.message}")

    rows = {
        s["id"]: ResultRow(student_id=s["id"], student_name=s.get("name", ""), roll_no=s.get("rollNo"))
        for s in students or []
    }
    for record in saved or []:
        if (record.get("subjectId"), record.get("academicYear"), record.get("term")) != (subject_id, academic_year, term):
            continue
        row = rows.get(record.get("studentId"))
        if row is not None:
            row.apply_saved(record)

    locked = sum(1 for r in rows.values() if r.is_locked)
    logger.info(
        "Loaded %d result rows (class=%s section=%s subject=%s, %d locked)",
        len(rows), class_id, section_id, subject_id, locked,
    )
    return LoadOutcome(ok=True, rows=list(rows.values()), message=f"Loaded {len(rows)} student(s)")


# ==========================================================
# [2단계] 저장
# ==========================================================

async def save_results(client: PortalClient, rows: list[ResultRow], subject_id: int, academic_year: str,
                       term: str, full_marks: float = 100, pass_marks: float = 40) -> SaveOutcome:
    editable = [r for r in rows if r.is_editable and not r.is_locked]
    if not editable:
        return SaveOutcome(ok=False, message="No editable results to save")

    def payload(row: ResultRow) -> dict:
        return {
            "studentId": row.student_id,
            "subjectId": subject_id,
            "academicYear": academic_year,
            "term": term,
            "fullMarks": full_marks,
            "passMarks": pass_marks,
            "theoryMarks": row.theory_marks,
            "practicalMarks": row.practical_marks,
            "totalMarks": row.total,
        }

    responses = await asyncio.gather(
        *(client.post("/results/subject", payload(row)) for row in editable),
        return_exceptions=True,
    )

    outcome = SaveOutcome(ok=True)
    for row, res in zip(editable, responses):
        if isinstance(res, SessionExpired):
            raise res
        if isinstance(res, PortalError):
            logger.error("Saving result for student %s failed: %s", row.student_id, res.message)
            outcome.failed[row.student_id] = res.message
            continue
        if isinstance(res, BaseException):
            raise res
        # 저장 즉시 서버에서 잠금
        saved = (res or {}).get("subjectResult")
        if saved:
            row.apply_saved(saved)
        else:
            row.is_locked, row.is_editable = True, False
        outcome.saved.append(row.student_id)

    if outcome.failed:
        outcome.ok = False
        outcome.message = "Some results could not be saved"
    else:
        outcome.message = f"Saved {len(outcome.saved)} result(s)"
    return outcome


# ==========================================================
# [3단계] 종합 성적 재계산
# ==========================================================

async def recalculate_results(client: PortalClient, class_id: Optional[int], section_id: Optional[int],
                              academic_year: str, term: str) -> RecalculateOutcome:
    """학급(섹션) 단위 종합 성적 재계산, 과목 성적 잠금 상태는 그대로"""
    if class_id is None:
        logger.warning("Recalculate skipped: no class selected")
        return RecalculateOutcome(ok=False, message="Select a class to recalculate results")
    try:
        summary = await client.post("/results/recalculate", {
            "classId": class_id,
            "sectionId": section_id,
            "academicYear": academic_year,
            "term": term,
        })
    except SessionExpired:
        raise
    except PortalError as exc:
        logger.error("Recalculate failed for class=%s section=%s: %s", class_id, section_id, exc.message)
        return RecalculateOutcome(ok=False, message=exc.message)

    logger.info("Recalculated results for class=%s section=%s: %s", class_id, section_id, summary)
    processed = (summary or {}).get("processedCount", 0)
    return RecalculateOutcome(ok=True, summary=summary, message=f"Recalculated {processed} result(s)")
