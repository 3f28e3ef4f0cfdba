from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)      # 학급 고유 ID (PK)
    name = Column(String(50), unique=True, nullable=False)  # 학급명 (예: Class 9)
    grade = Column(Integer, nullable=True)                  # 학년 숫자 (정렬용)

    # ==========================================================
    # [관계 설정]
    # ==========================================================

    # ✅ 한 학급은 여러 섹션(A, B 등)을 가짐 (1:N)
    sections = relationship(
        "Section",
        back_populates="school_class",
        cascade="all, delete-orphan",
        order_by="Section.name",
    )

    # ✅ 학급에 배정된 과목 목록 (N:M, 연결 테이블 사용)
    subjects = relationship("ClassSubject", back_populates="school_class", cascade="all, delete-orphan")


class Section(Base):
    __tablename__ = "sections"
    __table_args__ = (UniqueConstraint("class_id", "name", name="uq_section_class_name"),)

    id = Column(Integer, primary_key=True, index=True)                  # 섹션 고유 ID (PK)
    name = Column(String(20), nullable=False)                           # 섹션명 (예: A)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    capacity = Column(Integer, nullable=True)                           # 정원

    school_class = relationship("SchoolClass", back_populates="sections")


class ClassSubject(Base):
    __tablename__ = "class_subjects"
    __table_args__ = (UniqueConstraint("class_id", "subject_id", name="uq_class_subject"),)

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)

    school_class = relationship("SchoolClass", back_populates="subjects")
    subject = relationship("Subject")
