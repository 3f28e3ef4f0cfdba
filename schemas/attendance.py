from typing import List, Optional
from datetime import date as date_type

from pydantic import Field, StrictBool

from models.enums import AttendanceStatus
from schemas.common import CamelModel


# ==========================================================
# [입력용 스키마]
# ==========================================================
class AttendanceRecordIn(CamelModel):
    student_id: int                          # 학생 ID
    status: AttendanceStatus                 # PRESENT / ABSENT / LATE / HALF_DAY / EXCUSED
    remarks: Optional[str] = None            # 비고


class DailyAttendanceCreate(CamelModel):
    date: date_type                          # 출결 날짜
    class_id: int
    section_id: int
    records: List[AttendanceRecordIn] = Field(..., min_length=1)
    remarks: Optional[str] = None            # 개별 비고가 없을 때 적용할 공통 비고


# ==========================================================
# [출력용 스키마]
# ==========================================================
class AttendanceRecordOut(CamelModel):
    id: int
    student_id: int
    class_id: int
    section_id: int
    date: date_type
    status: str
    remarks: Optional[str] = None


# ==========================================================
# [과목별 출결]
# ==========================================================
class SubjectAttendanceCreate(CamelModel):
    student_id: int
    subject_id: int
    is_present: StrictBool                    # 출석 여부 (true/false 만 허용)
    date: Optional[date_type] = None          # 생략 시 오늘


class SubjectAttendanceOut(CamelModel):
    id: int
    student_id: int
    subject_id: int
    attendance_date: date_type
    lecture_conducted: int
    present_count: int
    absent_count: int
