from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey, UniqueConstraint, JSON,
)
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utc_now


class GradeDefinition(Base):
    __tablename__ = "grade_definitions"  # 백분율 구간별 등급 정의

    id = Column(Integer, primary_key=True, index=True)
    grade = Column(String(5), unique=True, nullable=False)   # 등급 (예: A+, A, B+)
    min_score = Column(Float, nullable=False)                # 최소 백분율 (포함)
    max_score = Column(Float, nullable=False)                # 최대 백분율 (포함)
    grade_point = Column(Float)                              # 평점
    description = Column(String(100))


class SubjectResult(Base):
    __tablename__ = "subject_results"  # 과목별 성적 (학생/과목/학년도/학기 당 1건)
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "academic_year", "term", name="uq_subject_result"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    academic_year = Column(String(20), nullable=False)         # 예: 2024-2025
    term = Column(String(30), nullable=False)                  # 예: First Term
    full_marks = Column(Float, nullable=False)
    pass_marks = Column(Float, nullable=False)
    theory_marks = Column(Float, default=0, nullable=False)
    practical_marks = Column(Float, default=0, nullable=False)
    total_marks = Column(Float, default=0, nullable=False)
    grade = Column(String(5))                                  # 산출된 등급 문자
    is_absent = Column(Boolean, default=False, nullable=False)
    is_locked = Column(Boolean, default=True, nullable=False)  # 저장 즉시 잠금
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    student = relationship("Student")
    subject = relationship("Subject")


class OverallResult(Base):
    __tablename__ = "overall_results"  # 학생별 학기 종합 성적
    __table_args__ = (
        UniqueConstraint("student_id", "academic_year", "term", name="uq_overall_result"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    academic_year = Column(String(20), nullable=False)
    term = Column(String(30), nullable=False)
    total_marks = Column(Float, default=0, nullable=False)
    total_full_marks = Column(Float, default=0, nullable=False)
    total_percentage = Column(Float, default=0, nullable=False)
    status = Column(String(10), nullable=False)                # PASSED / FAILED
    strongest_subject = Column(String(100))
    weakest_subject = Column(String(100))
    subjects_to_improve = Column(JSON, default=list)
    class_teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    student = relationship("Student")
