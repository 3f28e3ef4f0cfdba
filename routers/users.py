from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.classes import Section
from models.enums import Role
from models.students import Parent, Student
from models.teachers import Teacher
from models.users import User
from schemas.auth import UserOut
from schemas.common import ERROR_RESPONSES, dump
from schemas.users import (
    ParentCreate, ParentOut, ProfileUpdate, StudentCreate, StudentOut, TeacherCreate, TeacherOut,
)
from services import auth_service
from services.access import ensure_section_access
from services.errors import bad_request, not_found

router = APIRouter(prefix="/users", tags=["사용자"], responses=ERROR_RESPONSES)

admin_only = require_roles(Role.ADMIN)

_PROFILE_SCHEMAS = {
    Role.STUDENT.value: StudentOut,
    Role.TEACHER.value: TeacherOut,
    Role.PARENT.value: ParentOut,
}


# ==========================================================
# [1단계] 학생
# ==========================================================

# ✅ [READ] 학생 목록 (?classId=&sectionId=, 출석번호 순)
@router.get("/students")
def read_students(
    class_id: Optional[int] = Query(None, alias="classId"),
    section_id: Optional[int] = Query(None, alias="sectionId"),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.TEACHER)),
    db: Session = Depends(get_db),
):
    if current_user.role == Role.TEACHER.value:
        # 교사는 본인이 맡은 섹션 단위로만 조회
        if class_id is None or section_id is None:
            raise bad_request("classId and sectionId are required")
        ensure_section_access(db, current_user, class_id, section_id)

    query = db.query(Student)
    if class_id is not None:
        query = query.filter(Student.class_id == class_id)
    if section_id is not None:
        query = query.filter(Student.section_id == section_id)
    records = query.order_by(Student.roll_no, Student.id).all()
    return {"status": "success", "data": [dump(StudentOut, r) for r in records]}


# ✅ [CREATE] 학생 등록 (로그인 계정 함께 생성)
@router.post("/students", status_code=201, dependencies=[Depends(admin_only)])
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    section = db.get(Section, payload.section_id)
    if section is None or section.class_id != payload.class_id:
        raise bad_request("Section does not belong to the given class")
    if payload.parent_id is not None and db.get(Parent, payload.parent_id) is None:
        raise not_found("Parent not found")

    user = auth_service.create_user(db, payload.email, payload.password, Role.STUDENT, payload.name)
    student = Student(user_id=user.id, **payload.model_dump(exclude={"email", "password"}))
    db.add(student)
    db.commit()
    db.refresh(student)
    return {"status": "success", "data": dump(StudentOut, student), "message": "Student created"}


# ==========================================================
# [2단계] 교사 / 보호자
# ==========================================================

# ✅ [READ] 교사 목록
@router.get("/teachers", dependencies=[Depends(get_current_user)])
def read_teachers(db: Session = Depends(get_db)):
    records = db.query(Teacher).order_by(Teacher.name).all()
    return {"status": "success", "data": [dump(TeacherOut, r) for r in records]}


# ✅ [CREATE] 교사 등록
@router.post("/teachers", status_code=201, dependencies=[Depends(admin_only)])
def create_teacher(payload: TeacherCreate, db: Session = Depends(get_db)):
    user = auth_service.create_user(db, payload.email, payload.password, Role.TEACHER, payload.name)
    teacher = Teacher(user_id=user.id, **payload.model_dump(exclude={"email", "password"}))
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    return {"status": "success", "data": dump(TeacherOut, teacher), "message": "Teacher created"}


# ✅ [READ] 보호자 목록
@router.get("/parents", dependencies=[Depends(admin_only)])
def read_parents(db: Session = Depends(get_db)):
    records = db.query(Parent).order_by(Parent.name).all()
    return {"status": "success", "data": [dump(ParentOut, r) for r in records]}


# ✅ [CREATE] 보호자 등록
@router.post("/parents", status_code=201, dependencies=[Depends(admin_only)])
def create_parent(payload: ParentCreate, db: Session = Depends(get_db)):
    user = auth_service.create_user(db, payload.email, payload.password, Role.PARENT, payload.name)
    parent = Parent(user_id=user.id, **payload.model_dump(exclude={"email", "password"}))
    db.add(parent)
    db.commit()
    db.refresh(parent)
    return {"status": "success", "data": dump(ParentOut, parent), "message": "Parent created"}


# ==========================================================
# [3단계] 내 정보
# ==========================================================

def _me_payload(db: Session, user: User) -> dict:
    profile = auth_service.profile_of(db, user)
    schema = _PROFILE_SCHEMAS.get(user.role)
    return {
        "user": dump(UserOut, user),
        "profile": dump(schema, profile) if schema and profile else None,
    }


# ✅ [READ] 내 계정 + 프로필
@router.get("/me")
def read_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"status": "success", "data": _me_payload(db, current_user)}


# ✅ [UPDATE] 내 프로필 수정 (이름/연락처/주소)
@router.patch("/me")
def update_me(payload: ProfileUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    profile = auth_service.profile_of(db, current_user)

    if "name" in changes and changes["name"]:
        current_user.full_name = changes["name"]
    if profile is not None:
        for key, value in changes.items():
            setattr(profile, key, value)
    db.commit()
    db.refresh(current_user)
    return {"status": "success", "data": _me_payload(db, current_user), "message": "Profile updated"}
