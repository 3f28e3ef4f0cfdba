"""
services/result_service.py

- 과목 성적 저장 (저장 즉시 잠금, 잠긴 성적은 수정 거부)
- 등급 산출: grade_definitions 테이블 우선, 없으면 기본 구간(A+ ~ F)
- 학생별 종합 성적 계산 / 학급 단위 재계산
"""

import logging

from sqlalchemy.orm import Session

from models.classes import ClassSubject
from models.enums import ResultStatus
from models.results import GradeDefinition, OverallResult, SubjectResult
from models.students import Student
from models.teachers import ClassTeacherAssignment
from schemas.results import GradeDefinitionCreate, SubjectResultCreate
from services.errors import ApiError, bad_request, not_found

logger = logging.getLogger(__name__)

# 기본 등급 구간 (백분율 하한, 등급)
DEFAULT_GRADE_SCALE = [
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
]
PASS_PERCENTAGE = 40
IMPROVE_BELOW = 50


# ==========================================================
# [등급]
# ==========================================================

def grade_letter_from_percentage(percentage: float) -> str:
    for threshold, letter in DEFAULT_GRADE_SCALE:
        if percentage >= threshold:
            return letter
    return "F"


def calculate_grade(db: Session, total_marks: float, full_marks: float) -> str:
    percentage = total_marks / full_marks * 100 if full_marks else 0
    definition = (
        db.query(GradeDefinition)
        .filter(GradeDefinition.min_score <= percentage, GradeDefinition.max_score >= percentage)
        .order_by(GradeDefinition.min_score.desc())
        .first()
    )
    if definition is not None:
        return definition.grade
    return grade_letter_from_percentage(percentage)


def list_grade_definitions(db: Session):
    return db.query(GradeDefinition).order_by(GradeDefinition.min_score.desc()).all()


def create_grade_definition(db: Session, data: GradeDefinitionCreate) -> GradeDefinition:
    if db.query(GradeDefinition).filter(GradeDefinition.grade == data.grade).first():
        raise bad_request(f"Grade '{data.grade}' already exists")
    definition = GradeDefinition(**data.model_dump())
    db.add(definition)
    db.commit()
    db.refresh(definition)
    return definition


# ==========================================================
# [과목 성적]
# ==========================================================

def save_subject_result(db: Session, data: SubjectResultCreate) -> SubjectResult:
    """
    과목 성적 1건 저장
    - 이미 잠긴 성적이면 400
    - 총점 = 이론+실기 (결석이면 0), 전달된 totalMarks 와 다르면 400
    - 저장 후 is_locked = True
    """
    student = db.get(Student, data.student_id)
    if student is None:
        raise not_found("Student not found")

    theory = data.theory_marks or 0
    practical = data.practical_marks or 0
    if theory + practical > data.full_marks:
        raise bad_request("Total marks cannot exceed full marks")
    if data.pass_marks > data.full_marks:
        raise bad_request("Pass marks cannot exceed full marks")

    total = 0.0 if data.is_absent else theory + practical
    if data.total_marks is not None and abs(data.total_marks - total) > 1e-6:
        raise bad_request("Total marks must equal theory marks plus practical marks")

    result = db.query(SubjectResult).filter(
        SubjectResult.student_id == data.student_id,
        SubjectResult.subject_id == data.subject_id,
        SubjectResult.academic_year == data.academic_year,
        SubjectResult.term == data.term,
    ).first()

    if result is not None and result.is_locked:
        raise bad_request("Result is locked and cannot be modified")
    if result is None:
        result = SubjectResult(
            student_id=data.student_id,
            subject_id=data.subject_id,
            academic_year=data.academic_year,
            term=data.term,
        )
        db.add(result)

    result.full_marks = data.full_marks
    result.pass_marks = data.pass_marks
    result.theory_marks = theory
    result.practical_marks = practical
    result.total_marks = total
    result.is_absent = data.is_absent
    result.grade = calculate_grade(db, total, data.full_marks)
    result.is_locked = True

    db.commit()
    db.refresh(result)
    logger.info(
        "Subject result saved: student=%s subject=%s %s/%s total=%s",
        data.student_id, data.subject_id, data.academic_year, data.term, total,
    )
    return result


def get_student_subject_results(db: Session, student_id: int, academic_year: str, term: str):
    return (
        db.query(SubjectResult)
        .filter(
            SubjectResult.student_id == student_id,
            SubjectResult.academic_year == academic_year,
            SubjectResult.term == term,
        )
        .order_by(SubjectResult.subject_id)
        .all()
    )


def get_section_subject_results(db: Session, class_id: int, section_id: int, subject_id: int,
                                academic_year: str, term: str):
    return (
        db.query(SubjectResult)
        .join(Student, Student.id == SubjectResult.student_id)
        .filter(
            Student.class_id == class_id,
            Student.section_id == section_id,
            SubjectResult.subject_id == subject_id,
            SubjectResult.academic_year == academic_year,
            SubjectResult.term == term,
        )
        .order_by(Student.roll_no, Student.id)
        .all()
    )


def set_lock(db: Session, result_id: int, is_locked: bool) -> SubjectResult:
    """관리자 전용 잠금/해제"""
    result = db.get(SubjectResult, result_id)
    if result is None:
        raise not_found("Subject result not found")
    result.is_locked = is_locked
    db.commit()
    db.refresh(result)
    logger.info("Subject result %s %s", result_id, "locked" if is_locked else "unlocked")
    return result


# ==========================================================
# [종합 성적]
# ==========================================================

def determine_status(subject_results, total_percentage: float) -> str:
    for result in subject_results:
        if result.is_absent or result.total_marks < result.pass_marks:
            return ResultStatus.FAILED.value
    if total_percentage >= PASS_PERCENTAGE:
        return ResultStatus.PASSED.value
    return ResultStatus.FAILED.value


def calculate_overall_result(db: Session, student_id: int, academic_year: str, term: str) -> dict:
    student = db.get(Student, student_id)
    if student is None:
        raise not_found("Student not found")

    subject_results = get_student_subject_results(db, student_id, academic_year, term)
    if not subject_results:
        raise ApiError(404, "No subject results found for this student and term")

    expected_subjects = {
        cs.subject_id for cs in db.query(ClassSubject).filter(ClassSubject.class_id == student.class_id)
    }
    completed = {r.subject_id for r in subject_results}

    total_marks = sum(r.total_marks for r in subject_results)
    total_full = sum(r.full_marks for r in subject_results)
    total_percentage = round(total_marks / total_full * 100, 2) if total_full else 0.0

    ranked = sorted(
        ((r.subject.name if r.subject else str(r.subject_id), r.total_marks / r.full_marks * 100)
         for r in subject_results),
        key=lambda item: item[1],
        reverse=True,
    )

    class_teacher = db.query(ClassTeacherAssignment).filter(
        ClassTeacherAssignment.class_id == student.class_id,
        ClassTeacherAssignment.section_id == student.section_id,
    ).first()

    overall = db.query(OverallResult).filter(
        OverallResult.student_id == student_id,
        OverallResult.academic_year == academic_year,
        OverallResult.term == term,
    ).first()
    if overall is None:
        overall = OverallResult(student_id=student_id, academic_year=academic_year, term=term)
        db.add(overall)

    overall.total_marks = total_marks
    overall.total_full_marks = total_full
    overall.total_percentage = total_percentage
    overall.status = determine_status(subject_results, total_percentage)
    overall.strongest_subject = ranked[0][0]
    overall.weakest_subject = ranked[-1][0]
    overall.subjects_to_improve = [name for name, pct in ranked if pct < IMPROVE_BELOW]
    overall.class_teacher_id = class_teacher.teacher_id if class_teacher else None
    db.commit()
    db.refresh(overall)

    # 처리 현황은 저장하지 않고 응답에만 포함
    return {
        "overall": overall,
        "completedSubjects": len(completed),
        "totalSubjects": len(expected_subjects),
        "processingStatus": "COMPLETE" if completed >= expected_subjects else "IN_PROGRESS",
    }


def get_overall_result(db: Session, student_id: int, academic_year: str, term: str) -> OverallResult:
    overall = db.query(OverallResult).filter(
        OverallResult.student_id == student_id,
        OverallResult.academic_year == academic_year,
        OverallResult.term == term,
    ).first()
    if overall is None:
        raise not_found("Overall result not found")
    return overall


def recalculate_results(db: Session, academic_year: str, term: str, student_id: int | None = None,
                        class_id: int | None = None, section_id: int | None = None) -> dict:
    """
    학생 단위 또는 학급(섹션) 단위 종합 성적 재계산
    - 학생마다 독립 처리, 실패는 errors 에 모아서 반환
    - 과목 성적의 잠금 상태는 건드리지 않음
    """
    if student_id is not None:
        student_ids = [student_id]
    else:
        query = db.query(Student.id).filter(Student.class_id == class_id)
        if section_id is not None:
            query = query.filter(Student.section_id == section_id)
        student_ids = [row[0] for row in query.order_by(Student.id)]

    processed, errors = 0, []
    for sid in student_ids:
        try:
            calculate_overall_result(db, sid, academic_year, term)
            processed += 1
        except ApiError as exc:
            db.rollback()
            errors.append({"studentId": sid, "error": exc.message})

    logger.info(
        "Recalculated results %s/%s: processed=%d errors=%d", academic_year, term, processed, len(errors)
    )
    return {"processedCount": processed, "errorCount": len(errors), "errors": errors}
