from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.classes import ClassSubject, SchoolClass, Section
from models.enums import Role
from models.subjects import Subject
from schemas.academic import (
    ClassCreate, ClassOut, ClassSubjectsAssign, ClassUpdate,
    SectionCreate, SectionOut, SectionUpdate, SubjectCreate, SubjectOut,
)
from schemas.common import ERROR_RESPONSES, dump
from services.errors import bad_request, not_found

router = APIRouter(
    prefix="/academic",
    tags=["학사 구조"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(get_current_user)],
)

admin_only = require_roles(Role.ADMIN)


def _get_class(db: Session, class_id: int) -> SchoolClass:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise not_found("Class not found")
    return school_class


def _get_section(db: Session, section_id: int) -> Section:
    section = db.get(Section, section_id)
    if section is None:
        raise not_found("Section not found")
    return section


def _ensure_unique_section(db: Session, class_id: int, name: str, exclude_id: Optional[int] = None):
    query = db.query(Section).filter(Section.class_id == class_id, Section.name == name)
    if exclude_id is not None:
        query = query.filter(Section.id != exclude_id)
    if query.first():
        raise bad_request(f"Section '{name}' already exists in this class")


# ==========================================================
# [1단계] 학급 CRUD
# ==========================================================

# ✅ [READ] 전체 학급 조회 (섹션 포함)
@router.get("/classes")
def read_classes(db: Session = Depends(get_db)):
    records = db.query(SchoolClass).order_by(SchoolClass.grade, SchoolClass.name).all()
    return {"status": "success", "data": [dump(ClassOut, r) for r in records]}


# ✅ [CREATE] 학급 추가
@router.post("/classes", status_code=201, dependencies=[Depends(admin_only)])
def create_class(payload: ClassCreate, db: Session = Depends(get_db)):
    if db.query(SchoolClass).filter(SchoolClass.name == payload.name).first():
        raise bad_request(f"Class '{payload.name}' already exists")
    school_class = SchoolClass(**payload.model_dump())
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return {"status": "success", "data": dump(ClassOut, school_class), "message": "Class created"}


# ✅ [READ] 학급 상세
@router.get("/classes/{class_id}")
def read_class(class_id: int, db: Session = Depends(get_db)):
    return {"status": "success", "data": dump(ClassOut, _get_class(db, class_id))}


# ✅ [UPDATE] 학급 수정
@router.patch("/classes/{class_id}", dependencies=[Depends(admin_only)])
def update_class(class_id: int, payload: ClassUpdate, db: Session = Depends(get_db)):
    school_class = _get_class(db, class_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and db.query(SchoolClass).filter(
        SchoolClass.name == changes["name"], SchoolClass.id != class_id
    ).first():
        raise bad_request(f"Class '{changes['name']}' already exists")
    for key, value in changes.items():
        setattr(school_class, key, value)
    db.commit()
    db.refresh(school_class)
    return {"status": "success", "data": dump(ClassOut, school_class), "message": "Class updated"}


# ✅ [DELETE] 학급 삭제 (섹션 함께 삭제)
@router.delete("/classes/{class_id}", dependencies=[Depends(admin_only)])
def delete_class(class_id: int, db: Session = Depends(get_db)):
    db.delete(_get_class(db, class_id))
    db.commit()
    return {"status": "success", "data": None, "message": "Class deleted"}


# ✅ [READ] 학급별 섹션 목록
@router.get("/classes/{class_id}/sections")
def read_class_sections(class_id: int, db: Session = Depends(get_db)):
    school_class = _get_class(db, class_id)
    return {"status": "success", "data": [dump(SectionOut, s) for s in school_class.sections]}


# ✅ [CREATE] 학급에 과목 배정
@router.post("/classes/{class_id}/subjects", dependencies=[Depends(admin_only)])
def assign_class_subjects(class_id: int, payload: ClassSubjectsAssign, db: Session = Depends(get_db)):
    _get_class(db, class_id)
    existing = {cs.subject_id for cs in db.query(ClassSubject).filter(ClassSubject.class_id == class_id)}
    for subject_id in payload.subject_ids:
        if db.get(Subject, subject_id) is None:
            raise not_found(f"Subject {subject_id} not found")
        if subject_id not in existing:
            db.add(ClassSubject(class_id=class_id, subject_id=subject_id))
            existing.add(subject_id)
    db.commit()
    subjects = (
        db.query(Subject).join(ClassSubject, ClassSubject.subject_id == Subject.id)
        .filter(ClassSubject.class_id == class_id).order_by(Subject.name).all()
    )
    return {"status": "success", "data": [dump(SubjectOut, s) for s in subjects], "message": "Subjects assigned"}


# ✅ [READ] 학급에 배정된 과목 목록
@router.get("/classes/{class_id}/subjects")
def read_class_subjects(class_id: int, db: Session = Depends(get_db)):
    _get_class(db, class_id)
    subjects = (
        db.query(Subject).join(ClassSubject, ClassSubject.subject_id == Subject.id)
        .filter(ClassSubject.class_id == class_id).order_by(Subject.name).all()
    )
    return {"status": "success", "data": [dump(SubjectOut, s) for s in subjects]}


# ==========================================================
# [2단계] 섹션 CRUD
# ==========================================================

# ✅ [READ] 섹션 목록 (?classId= 필터)
@router.get("/sections")
def read_sections(class_id: Optional[int] = Query(None, alias="classId"), db: Session = Depends(get_db)):
    query = db.query(Section)
    if class_id is not None:
        query = query.filter(Section.class_id == class_id)
    records = query.order_by(Section.class_id, Section.name).all()
    return {"status": "success", "data": [dump(SectionOut, r) for r in records]}


# ✅ [CREATE] 섹션 추가
@router.post("/sections", status_code=201, dependencies=[Depends(admin_only)])
def create_section(payload: SectionCreate, db: Session = Depends(get_db)):
    _get_class(db, payload.class_id)
    _ensure_unique_section(db, payload.class_id, payload.name)
    section = Section(**payload.model_dump())
    db.add(section)
    db.commit()
    db.refresh(section)
    return {"status": "success", "data": dump(SectionOut, section), "message": "Section created"}


# ✅ [READ] 섹션 상세
@router.get("/sections/{section_id}")
def read_section(section_id: int, db: Session = Depends(get_db)):
    return {"status": "success", "data": dump(SectionOut, _get_section(db, section_id))}


# ✅ [UPDATE] 섹션 수정
@router.patch("/sections/{section_id}", dependencies=[Depends(admin_only)])
def update_section(section_id: int, payload: SectionUpdate, db: Session = Depends(get_db)):
    section = _get_section(db, section_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        _ensure_unique_section(db, section.class_id, changes["name"], exclude_id=section.id)
    for key, value in changes.items():
        setattr(section, key, value)
    db.commit()
    db.refresh(section)
    return {"status": "success", "data": dump(SectionOut, section), "message": "Section updated"}


# ✅ [DELETE] 섹션 삭제
@router.delete("/sections/{section_id}", dependencies=[Depends(admin_only)])
def delete_section(section_id: int, db: Session = Depends(get_db)):
    db.delete(_get_section(db, section_id))
    db.commit()
    return {"status": "success", "data": None, "message": "Section deleted"}


# ==========================================================
# [3단계] 과목
# ==========================================================

# ✅ [READ] 전체 과목 조회
@router.get("/subjects")
def read_subjects(db: Session = Depends(get_db)):
    records = db.query(Subject).order_by(Subject.name).all()
    return {"status": "success", "data": [dump(SubjectOut, r) for r in records]}


# ✅ [CREATE] 과목 추가
@router.post("/subjects", status_code=201, dependencies=[Depends(admin_only)])
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)):
    if db.query(Subject).filter(Subject.code == payload.code).first():
        raise bad_request(f"Subject code '{payload.code}' already exists")
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return {"status": "success", "data": dump(SubjectOut, subject), "message": "Subject created"}
