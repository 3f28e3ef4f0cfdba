from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)      # 교사 고유 ID (PK)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)
    name = Column(String(100), nullable=False)              # 교사 이름
    phone = Column(String(20))                              # 전화번호
    designation = Column(String(50))                        # 직책 (예: Senior Teacher)
    address = Column(String(200))                           # 주소

    user = relationship("User", back_populates="teacher")

    # ✅ 담임으로 배정된 학급/섹션 목록 (1:N)
    class_teacher_assignments = relationship(
        "ClassTeacherAssignment",
        back_populates="teacher",
        cascade="all, delete-orphan",
    )

    # ✅ 교과 담당 배정 목록 (1:N)
    subject_assignments = relationship(
        "TeacherSubjectAssignment",
        back_populates="teacher",
        cascade="all, delete-orphan",
    )


class ClassTeacherAssignment(Base):
    __tablename__ = "class_teacher_assignments"  # 담임 배정 (학급+섹션 당 1명)
    __table_args__ = (UniqueConstraint("class_id", "section_id", name="uq_class_teacher_section"),)

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)

    teacher = relationship("Teacher", back_populates="class_teacher_assignments")
    school_class = relationship("SchoolClass")
    section = relationship("Section")


class TeacherSubjectAssignment(Base):
    __tablename__ = "teacher_subject_assignments"  # 교과 담당 배정
    __table_args__ = (
        UniqueConstraint("teacher_id", "class_id", "section_id", "subject_id", name="uq_teacher_subject"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)

    teacher = relationship("Teacher", back_populates="subject_assignments")
    subject = relationship("Subject")
