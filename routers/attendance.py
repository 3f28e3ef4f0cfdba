from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.enums import Role
from models.users import User
from schemas.attendance import (
    AttendanceRecordOut, DailyAttendanceCreate, SubjectAttendanceCreate, SubjectAttendanceOut,
)
from schemas.common import ERROR_RESPONSES, dump
from services import attendance_service
from services.access import teacher_profile

router = APIRouter(prefix="/attendance", tags=["출결 관리"], responses=ERROR_RESPONSES)


def _month_or_current(month: Optional[int], year: Optional[int]) -> tuple[int, int]:
    today = date.today()
    return month or today.month, year or today.year


# ==========================================================
# [1단계] 일일 출결
# ==========================================================

# ✅ [CREATE] 일일 출결 등록 (담임 교사)
@router.post("/daily", status_code=201)
def mark_daily_attendance(
    payload: DailyAttendanceCreate,
    current_user: User = Depends(require_roles(Role.TEACHER)),
    db: Session = Depends(get_db),
):
    teacher = teacher_profile(db, current_user)
    result = attendance_service.mark_daily_attendance(db, teacher, payload)
    return {"status": "success", "data": result, "message": "Attendance marked successfully"}


# ✅ [READ] 일일 출결 조회 (미기록 학생은 ABSENT + isMarked=false)
@router.get("/daily")
def read_daily_attendance(
    day: date = Query(..., alias="date"),
    class_id: int = Query(..., alias="classId"),
    section_id: int = Query(..., alias="sectionId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = attendance_service.get_daily_attendance(db, current_user, class_id, section_id, day)
    return {"status": "success", "data": data}


# ==========================================================
# [2단계] 통계 / 미기록일 / 월간
# ==========================================================

# ✅ [STATS] 학급 월간 통계
@router.get("/stats")
def read_attendance_stats(
    class_id: int = Query(..., alias="classId"),
    section_id: int = Query(..., alias="sectionId"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    month, year = _month_or_current(month, year)
    data = attendance_service.get_attendance_stats(db, current_user, class_id, section_id, month, year)
    return {"status": "success", "data": data}


# ✅ [PENDING] 담임 섹션별 미기록 등교일
@router.get("/pending-days")
def read_pending_days(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900),
    current_user: User = Depends(require_roles(Role.TEACHER)),
    db: Session = Depends(get_db),
):
    month, year = _month_or_current(month, year)
    teacher = teacher_profile(db, current_user)
    data = attendance_service.get_pending_days(db, teacher, month, year)
    return {"status": "success", "data": data}


# ✅ [MONTHLY] 학생 월간 출결
@router.get("/monthly")
def read_monthly_attendance(
    student_id: int = Query(..., alias="studentId"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    month, year = _month_or_current(month, year)
    data = attendance_service.get_student_monthly(db, current_user, student_id, month, year)
    data["records"] = [dump(AttendanceRecordOut, r) for r in data["records"]]
    return {"status": "success", "data": data}


# ==========================================================
# [3단계] 과목별 출결 / 학급 출결 현황
# ==========================================================

# ✅ [CREATE] 과목 수업 출결 등록 (교과 교사)
@router.post("/subject", status_code=201)
def mark_subject_attendance(
    payload: SubjectAttendanceCreate,
    current_user: User = Depends(require_roles(Role.TEACHER)),
    db: Session = Depends(get_db),
):
    teacher = teacher_profile(db, current_user)
    record = attendance_service.mark_subject_attendance(db, teacher, payload)
    return {"status": "success", "data": dump(SubjectAttendanceOut, record),
            "message": "Attendance marked successfully"}


# ✅ [READ] 학생 과목 출결 기록 (기간 선택)
@router.get("/subject")
def read_subject_attendance(
    student_id: int = Query(..., alias="studentId"),
    subject_id: int = Query(..., alias="subjectId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records = attendance_service.get_subject_attendance(db, current_user, student_id, subject_id,
                                                        start_date, end_date)
    return {"status": "success", "data": [dump(SubjectAttendanceOut, r) for r in records],
            "message": "Subject attendance fetched successfully"}


# ✅ [READ] 날짜별 학급 출결 현황 (담당 교사, 관리자)
@router.get("/class")
def read_class_attendance(
    class_id: int = Query(..., alias="classId"),
    section_id: int = Query(..., alias="sectionId"),
    day: date = Query(..., alias="date"),
    current_user: User = Depends(require_roles(Role.TEACHER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    data = attendance_service.get_class_attendance(db, current_user, class_id, section_id, day)
    return {"status": "success", "data": data, "message": "Class attendance fetched successfully"}
