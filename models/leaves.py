from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utc_now


class LeaveType(Base):
    __tablename__ = "leave_types"  # 휴가 유형 (병가, 개인 사유 등)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(200))


class LeaveApplication(Base):
    __tablename__ = "leave_applications"  # 휴가 신청서

    id = Column(Integer, primary_key=True, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False)
    subject = Column(String(150), nullable=False)              # 신청 제목
    description = Column(Text, nullable=False)                 # 신청 내용 (+ 처리 비고)
    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)
    applicant_type = Column(String(20), nullable=False)        # STUDENT / TEACHER / ADMIN
    applicant_id = Column(Integer, nullable=False)             # 신청자 프로필 ID (학생/교사) 또는 관리자 계정 ID
    status = Column(String(20), default="PENDING", nullable=False)
    reviewed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    leave_type = relationship("LeaveType")
