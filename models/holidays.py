from sqlalchemy import Column, Integer, String, Date, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base


class HolidayType(Base):
    __tablename__ = "holiday_types"  # 휴일 유형 (공휴일, 학교 행사 등)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(200))


class Holiday(Base):
    __tablename__ = "holidays"  # 학사 휴일 테이블

    id = Column(Integer, primary_key=True, index=True)                          # 휴일 고유 ID (Primary Key)
    name = Column(String(100), nullable=False)                                  # 휴일 이름 (예: New Year Holiday)
    description = Column(String(200))                                           # 상세 설명
    from_date = Column(Date, nullable=False)                                    # 시작 날짜
    to_date = Column(Date, nullable=False)                                      # 종료 날짜 (하루짜리는 시작과 동일)
    holiday_type_id = Column(Integer, ForeignKey("holiday_types.id"), nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)               # 매년 반복 여부
    recurrence_pattern = Column(String(50))                                     # 반복 규칙 (예: YEARLY)

    holiday_type = relationship("HolidayType")
