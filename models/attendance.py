from sqlalchemy import Column, Integer, String, Date, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utc_now


class DailyAttendance(Base):
    __tablename__ = "daily_attendance"  # 일일 출결 기록 테이블
    __table_args__ = (UniqueConstraint("student_id", "date", name="uq_daily_attendance_student_date"),)

    id = Column(Integer, primary_key=True, index=True)                       # 출결 고유 ID (Primary Key)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)  # 학생 ID
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)     # 학급 ID
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)  # 섹션 ID
    date = Column(Date, nullable=False, index=True)                          # 날짜
    status = Column(String(20), nullable=False)                              # PRESENT / ABSENT / LATE / HALF_DAY / EXCUSED
    remarks = Column(String(200))                                            # 비고 (사유 등)
    marked_by_id = Column(Integer, ForeignKey("teachers.id"))                # 기록한 담임 교사
    created_at = Column(DateTime, default=utc_now, nullable=False)

    student = relationship("Student")
    marked_by = relationship("Teacher")


class MonthlyAttendance(Base):
    __tablename__ = "monthly_attendance"  # 학생별 월간 출결 요약
    __table_args__ = (UniqueConstraint("student_id", "month", "year", name="uq_monthly_attendance"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    month = Column(Integer, nullable=False)                 # 1~12
    year = Column(Integer, nullable=False)
    present_count = Column(Integer, default=0, nullable=False)
    absent_count = Column(Integer, default=0, nullable=False)
    percentage = Column(Float, default=0.0, nullable=False)


class SubjectAttendance(Base):
    __tablename__ = "subject_attendance"  # 과목 수업별 출결 (학생+과목+날짜 당 1건)
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "attendance_date", name="uq_subject_attendance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    attendance_date = Column(Date, nullable=False, index=True)
    lecture_conducted = Column(Integer, default=1, nullable=False)   # 진행된 수업 수
    present_count = Column(Integer, default=0, nullable=False)
    absent_count = Column(Integer, default=0, nullable=False)
    marked_by_id = Column(Integer, ForeignKey("teachers.id"))        # 기록한 교과 교사
    created_at = Column(DateTime, default=utc_now, nullable=False)

    student = relationship("Student")
    subject = relationship("Subject")
