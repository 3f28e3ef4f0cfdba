import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.classes import Section
from models.enums import Role
from models.students import Student
from models.users import User
from schemas.common import ERROR_RESPONSES, dump
from schemas.results import (
    GradeDefinitionCreate, GradeDefinitionOut, LockUpdate, OverallCalculateRequest, OverallResultOut,
    RecalculateRequest, SubjectResultCreate, SubjectResultOut,
)
from services import result_service
from services.access import ensure_section_access, ensure_student_access, teacher_profile, teaches_section
from services.errors import ApiError, bad_request, forbidden, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["성적 관리"], responses=ERROR_RESPONSES)

staff_only = require_roles(Role.ADMIN, Role.TEACHER)


def _student_or_404(db: Session, student_id: int) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise not_found("Student not found")
    return student


def _overall_payload(calculated: dict) -> dict:
    data = dump(OverallResultOut, calculated["overall"])
    data.update(
        completedSubjects=calculated["completedSubjects"],
        totalSubjects=calculated["totalSubjects"],
        processingStatus=calculated["processingStatus"],
    )
    return data


# ==========================================================
# [1단계] 과목 성적
# ==========================================================

# ✅ [CREATE] 과목 성적 저장 (저장 즉시 잠금)
@router.post("/subject", status_code=201)
def create_subject_result(
    payload: SubjectResultCreate,
    current_user: User = Depends(require_roles(Role.TEACHER)),
    db: Session = Depends(get_db),
):
    student = _student_or_404(db, payload.student_id)
    teacher = teacher_profile(db, current_user)
    if not teaches_section(db, teacher.id, student.class_id, student.section_id):
        raise forbidden("You are not assigned to this student's class section")

    result = result_service.save_subject_result(db, payload)
    data = {"subjectResult": dump(SubjectResultOut, result)}

    # 종합 성적 갱신 실패는 경고로만 처리 (과목 성적은 이미 저장됨)
    try:
        calculated = result_service.calculate_overall_result(db, payload.student_id, payload.academic_year, payload.term)
    except ApiError as exc:
        db.rollback()
        logger.warning("Overall result update failed for student %s: %s", payload.student_id, exc.message)
        return {
            "status": "success",
            "data": data,
            "message": "Subject result saved successfully, but failed to update overall result",
        }

    data["overallResult"] = _overall_payload(calculated)
    return {
        "status": "success",
        "data": data,
        "message": f"Result saved for {student.name} and overall result updated",
    }


# ✅ [READ] 과목 성적 조회 (studentId 또는 classId+sectionId+subjectId)
@router.get("/subject")
def read_subject_results(
    academic_year: str = Query(..., alias="academicYear"),
    term: str = Query(...),
    student_id: Optional[int] = Query(None, alias="studentId"),
    class_id: Optional[int] = Query(None, alias="classId"),
    section_id: Optional[int] = Query(None, alias="sectionId"),
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if student_id is not None:
        ensure_student_access(db, current_user, _student_or_404(db, student_id))
        records = result_service.get_student_subject_results(db, student_id, academic_year, term)
    elif None not in (class_id, section_id, subject_id):
        ensure_section_access(db, current_user, class_id, section_id)
        records = result_service.get_section_subject_results(
            db, class_id, section_id, subject_id, academic_year, term
        )
    else:
        raise bad_request("Provide either studentId or classId, sectionId and subjectId")

    return {"status": "success", "data": [dump(SubjectResultOut, r) for r in records]}


# ✅ [LOCK] 잠금/해제 (관리자 전용)
@router.patch("/subject/{result_id}/lock", dependencies=[Depends(require_roles(Role.ADMIN))])
def update_result_lock(result_id: int, payload: LockUpdate, db: Session = Depends(get_db)):
    result = result_service.set_lock(db, result_id, payload.is_locked)
    action = "locked" if payload.is_locked else "unlocked"
    return {"status": "success", "data": dump(SubjectResultOut, result), "message": f"Result {action} successfully"}


# ==========================================================
# [2단계] 종합 성적
# ==========================================================

# ✅ [READ] 종합 성적 조회
@router.get("/overall")
def read_overall_result(
    student_id: int = Query(..., alias="studentId"),
    academic_year: str = Query(..., alias="academicYear"),
    term: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_student_access(db, current_user, _student_or_404(db, student_id))
    overall = result_service.get_overall_result(db, student_id, academic_year, term)
    return {"status": "success", "data": dump(OverallResultOut, overall)}


# ✅ [CALCULATE] 학생 1명 종합 성적 계산
@router.post("/overall/calculate")
def calculate_overall_result(
    payload: OverallCalculateRequest,
    current_user: User = Depends(staff_only),
    db: Session = Depends(get_db),
):
    ensure_student_access(db, current_user, _student_or_404(db, payload.student_id))
    calculated = result_service.calculate_overall_result(db, payload.student_id, payload.academic_year, payload.term)
    return {"status": "success", "data": _overall_payload(calculated), "message": "Overall result calculated"}


def _ensure_recalculate_scope(db: Session, user: User, payload: RecalculateRequest) -> None:
    """재계산 범위 권한 (섹션 미지정이면 학급의 모든 섹션을 담당해야 함)"""
    if payload.student_id is not None:
        ensure_student_access(db, user, _student_or_404(db, payload.student_id))
        return
    if payload.section_id is not None:
        ensure_section_access(db, user, payload.class_id, payload.section_id)
        return
    for section in db.query(Section).filter(Section.class_id == payload.class_id):
        ensure_section_access(db, user, payload.class_id, section.id)


# ✅ [RECALCULATE] 학생/학급 단위 재계산 (개별 실패는 errors 로 보고)
@router.post("/recalculate")
def recalculate_results(
    payload: RecalculateRequest,
    current_user: User = Depends(staff_only),
    db: Session = Depends(get_db),
):
    _ensure_recalculate_scope(db, current_user, payload)
    summary = result_service.recalculate_results(
        db,
        payload.academic_year,
        payload.term,
        student_id=payload.student_id,
        class_id=payload.class_id,
        section_id=payload.section_id,
    )
    message = f"Recalculated {summary['processedCount']} result(s)"
    if summary["errorCount"]:
        message += f", {summary['errorCount']} failed"
    return {"status": "success", "data": summary, "message": message}


# ==========================================================
# [3단계] 등급 정의
# ==========================================================

# ✅ [READ] 등급 정의 목록
@router.get("/grade-definitions", dependencies=[Depends(get_current_user)])
def read_grade_definitions(db: Session = Depends(get_db)):
    records = result_service.list_grade_definitions(db)
    return {"status": "success", "data": [dump(GradeDefinitionOut, r) for r in records]}


# ✅ [CREATE] 등급 정의 추가 (관리자)
@router.post("/grade-definitions", status_code=201, dependencies=[Depends(require_roles(Role.ADMIN))])
def create_grade_definition(payload: GradeDefinitionCreate, db: Session = Depends(get_db)):
    definition = result_service.create_grade_definition(db, payload)
    return {"status": "success", "data": dump(GradeDefinitionOut, definition), "message": "Grade definition created"}
