"""
기본 데이터 시드
- 등급 정의, 휴가 유형, 휴일 유형, 1~10학년 학급(섹션 A/B), 주요 과목, 관리자 계정
- 이미 있는 항목은 건너뛴다 (여러 번 실행해도 안전)

실행: python -m scripts.seed
"""

from sqlalchemy.orm import Session

from config.settings import settings
from database.db import SessionLocal, init_db
from models.classes import ClassSubject, SchoolClass, Section
from models.enums import Role
from models.holidays import HolidayType
from models.leaves import LeaveType
from models.results import GradeDefinition
from models.subjects import Subject
from models.users import User
from services import auth_service

# (등급, 최소, 최대, 평점)
GRADES = [
    ("A+", 90, 100, 4.0),
    ("A", 80, 89.99, 3.6),
    ("B+", 70, 79.99, 3.2),
    ("B", 60, 69.99, 2.8),
    ("C+", 50, 59.99, 2.4),
    ("C", 40, 49.99, 2.0),
    ("F", 0, 39.99, 0.0),
]

LEAVE_TYPES = [
    ("Sick Leave", "Leave due to illness"),
    ("Casual Leave", "Personal or family matters"),
    ("Emergency Leave", "Unplanned urgent leave"),
]

HOLIDAY_TYPES = [
    ("Public Holiday", "National or public holiday"),
    ("Festival", "Festival vacation"),
    ("School Event", "School closed for an event"),
]

SUBJECTS = [
    ("English", "ENG"),
    ("Nepali", "NEP"),
    ("Mathematics", "MATH"),
    ("Science", "SCI"),
    ("Social Studies", "SOC"),
    ("Computer Science", "COMP"),
]

SECTIONS = ("A", "B")


def _seed_lookup(db: Session, model, rows) -> int:
    added = 0
    for name, description in rows:
        if db.query(model).filter(model.name == name).first() is None:
            db.add(model(name=name, description=description))
            added += 1
    return added


def seed_grades(db: Session) -> int:
    added = 0
    for grade, min_score, max_score, point in GRADES:
        if db.query(GradeDefinition).filter(GradeDefinition.grade == grade).first() is None:
            db.add(GradeDefinition(grade=grade, min_score=min_score, max_score=max_score, grade_point=point))
            added += 1
    return added


def seed_subjects(db: Session) -> list[Subject]:
    subjects = []
    for name, code in SUBJECTS:
        subject = db.query(Subject).filter(Subject.code == code).first()
        if subject is None:
            subject = Subject(name=name, code=code)
            db.add(subject)
        subjects.append(subject)
    db.flush()
    return subjects


def seed_classes(db: Session, subjects: list[Subject]) -> int:
    added = 0
    for grade in range(1, 11):
        name = f"Class {grade}"
        school_class = db.query(SchoolClass).filter(SchoolClass.name == name).first()
        if school_class is not None:
            continue
        school_class = SchoolClass(name=name, grade=grade)
        db.add(school_class)
        db.flush()
        for section_name in SECTIONS:
            db.add(Section(name=section_name, class_id=school_class.id, capacity=40))
        for subject in subjects:
            db.add(ClassSubject(class_id=school_class.id, subject_id=subject.id))
        added += 1
    return added


def seed_admin(db: Session) -> bool:
    if db.query(User).filter(User.email == settings.ADMIN_EMAIL.lower()).first():
        return False
    auth_service.create_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, Role.ADMIN, "Administrator")
    return True


def seed_all(db: Session) -> dict:
    summary = {
        "grades": seed_grades(db),
        "leaveTypes": _seed_lookup(db, LeaveType, LEAVE_TYPES),
        "holidayTypes": _seed_lookup(db, HolidayType, HOLIDAY_TYPES),
    }
    subjects = seed_subjects(db)
    summary["classes"] = seed_classes(db, subjects)
    summary["admin"] = seed_admin(db)
    db.commit()
    return summary


if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        summary = seed_all(db)
    finally:
        db.close()
    print(f"✅ 기본 데이터 시드 완료: {summary}")
