from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_roles
from models.classes import ClassSubject, SchoolClass, Section
from models.enums import Role
from models.teachers import ClassTeacherAssignment, Teacher, TeacherSubjectAssignment
from models.users import User
from schemas.common import ERROR_RESPONSES, dump
from schemas.teachers import (
    ClassTeacherAssignmentCreate, ClassTeacherAssignmentOut, SubjectAssignmentCreate, SubjectAssignmentOut,
)
from services.access import teacher_profile
from services.errors import bad_request, not_found

router = APIRouter(prefix="/teachers", tags=["교사 배정"], responses=ERROR_RESPONSES)

admin_only = require_roles(Role.ADMIN)


def _assignment_payload(assignment: ClassTeacherAssignment) -> dict:
    data = dump(ClassTeacherAssignmentOut, assignment)
    data["teacherName"] = assignment.teacher.name if assignment.teacher else None
    data["className"] = assignment.school_class.name if assignment.school_class else None
    data["sectionName"] = assignment.section.name if assignment.section else None
    return data


def _validate_section(db: Session, teacher_id: int, class_id: int, section_id: int) -> None:
    if db.get(Teacher, teacher_id) is None:
        raise not_found("Teacher not found")
    if db.get(SchoolClass, class_id) is None:
        raise not_found("Class not found")
    section = db.get(Section, section_id)
    if section is None or section.class_id != class_id:
        raise bad_request("Section does not belong to the given class")


# ==========================================================
# [1단계] 담임 배정
# ==========================================================

# ✅ [READ] 담임 배정 목록 (교사: 본인, 관리자: 전체 또는 ?teacherId=)
@router.get("/class-teacher-assignments")
def read_class_teacher_assignments(
    teacher_id: Optional[int] = Query(None, alias="teacherId"),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.TEACHER)),
    db: Session = Depends(get_db),
):
    if current_user.role == Role.TEACHER.value:
        teacher_id = teacher_profile(db, current_user).id

    query = db.query(ClassTeacherAssignment)
    if teacher_id is not None:
        query = query.filter(ClassTeacherAssignment.teacher_id == teacher_id)
    records = query.order_by(ClassTeacherAssignment.class_id, ClassTeacherAssignment.section_id).all()
    return {"status": "success", "data": [_assignment_payload(r) for r in records]}


# ✅ [CREATE] 담임 배정 (학급/섹션 당 1명)
@router.post("/class-teacher-assignments", status_code=201, dependencies=[Depends(admin_only)])
def create_class_teacher_assignment(payload: ClassTeacherAssignmentCreate, db: Session = Depends(get_db)):
    _validate_section(db, payload.teacher_id, payload.class_id, payload.section_id)
    if db.query(ClassTeacherAssignment).filter(
        ClassTeacherAssignment.class_id == payload.class_id,
        ClassTeacherAssignment.section_id == payload.section_id,
    ).first():
        raise bad_request("This class section already has a class teacher")

    assignment = ClassTeacherAssignment(**payload.model_dump())
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return {"status": "success", "data": _assignment_payload(assignment), "message": "Class teacher assigned"}


# ✅ [DELETE] 담임 배정 해제
@router.delete("/class-teacher-assignments/{assignment_id}", dependencies=[Depends(admin_only)])
def delete_class_teacher_assignment(assignment_id: int, db: Session = Depends(get_db)):
    assignment = db.get(ClassTeacherAssignment, assignment_id)
    if assignment is None:
        raise not_found("Class teacher assignment not found")
    db.delete(assignment)
    db.commit()
    return {"status": "success", "data": None, "message": "Class teacher assignment removed"}


# ==========================================================
# [2단계] 교과 담당 배정
# ==========================================================

# ✅ [READ] 교과 담당 배정 목록
@router.get("/subject-assignments")
def read_subject_assignments(
    teacher_id: Optional[int] = Query(None, alias="teacherId"),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.TEACHER)),
    db: Session = Depends(get_db),
):
    if current_user.role == Role.TEACHER.value:
        teacher_id = teacher_profile(db, current_user).id

    query = db.query(TeacherSubjectAssignment)
    if teacher_id is not None:
        query = query.filter(TeacherSubjectAssignment.teacher_id == teacher_id)
    return {"status": "success", "data": [dump(SubjectAssignmentOut, r) for r in query.all()]}


# ✅ [CREATE] 교과 담당 배정
@router.post("/subject-assignments", status_code=201, dependencies=[Depends(admin_only)])
def create_subject_assignment(payload: SubjectAssignmentCreate, db: Session = Depends(get_db)):
    _validate_section(db, payload.teacher_id, payload.class_id, payload.section_id)
    if db.query(ClassSubject).filter(
        ClassSubject.class_id == payload.class_id, ClassSubject.subject_id == payload.subject_id
    ).first() is None:
        raise bad_request("Subject is not assigned to this class")
    if db.query(TeacherSubjectAssignment).filter_by(**payload.model_dump()).first():
        raise bad_request("Teacher is already assigned to this subject")

    assignment = TeacherSubjectAssignment(**payload.model_dump())
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return {"status": "success", "data": dump(SubjectAssignmentOut, assignment), "message": "Subject assigned"}
