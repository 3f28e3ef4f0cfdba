from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.enums import ApplicantType, LeaveStatus, Role
from models.leaves import LeaveApplication
from models.users import User
from schemas.common import ERROR_RESPONSES, dump
from schemas.leaves import (
    LeaveApplicationCreate, LeaveApplicationOut, LeaveStatusUpdate, LeaveTypeCreate, LeaveTypeOut,
)
from services import leave_service

router = APIRouter(prefix="/leaves", tags=["휴가 신청"], responses=ERROR_RESPONSES)


def _leave_payload(db: Session, leave: LeaveApplication) -> dict:
    data = dump(LeaveApplicationOut, leave)
    data["leaveTypeName"] = leave.leave_type.name if leave.leave_type else None
    data["applicantName"] = leave_service.applicant_name(db, leave)
    return data


# ==========================================================
# [1단계] 휴가 유형
# ==========================================================

# ✅ [READ] 휴가 유형 목록
@router.get("/types", dependencies=[Depends(get_current_user)])
def read_leave_types(db: Session = Depends(get_db)):
    return {"status": "success", "data": [dump(LeaveTypeOut, t) for t in leave_service.list_leave_types(db)]}


# ✅ [CREATE] 휴가 유형 추가 (관리자)
@router.post("/types", status_code=201, dependencies=[Depends(require_roles(Role.ADMIN))])
def create_leave_type(payload: LeaveTypeCreate, db: Session = Depends(get_db)):
    leave_type = leave_service.create_leave_type(db, payload)
    return {"status": "success", "data": dump(LeaveTypeOut, leave_type), "message": "Leave type created"}


# ==========================================================
# [2단계] 휴가 신청 / 조회
# ==========================================================

# ✅ [CREATE] 휴가 신청 (신청자 유형은 로그인 역할로 결정)
@router.post("", status_code=201)
def apply_leave(
    payload: LeaveApplicationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    leave = leave_service.apply_leave(db, current_user, payload)
    return {"status": "success", "data": _leave_payload(db, leave), "message": "Leave application submitted"}


# ✅ [READ] 휴가 신청 목록 (필터 + 역할별 범위)
@router.get("")
def read_leaves(
    status: Optional[LeaveStatus] = Query(None),
    applicant_type: Optional[ApplicantType] = Query(None, alias="applicantType"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    student_id: Optional[int] = Query(None, alias="studentId"),
    teacher_id: Optional[int] = Query(None, alias="teacherId"),
    class_id: Optional[int] = Query(None, alias="classId"),
    section_id: Optional[int] = Query(None, alias="sectionId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records = leave_service.list_leaves(
        db,
        current_user,
        status=status.value if status else None,
        applicant_type=applicant_type.value if applicant_type else None,
        from_date=from_date,
        to_date=to_date,
        student_id=student_id,
        teacher_id=teacher_id,
        class_id=class_id,
        section_id=section_id,
    )
    return {"status": "success", "data": [_leave_payload(db, r) for r in records]}


# ✅ [READ] 휴가 신청 상세
@router.get("/{leave_id}")
def read_leave(leave_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    leave = leave_service.get_leave(db, current_user, leave_id)
    return {"status": "success", "data": _leave_payload(db, leave)}


# ==========================================================
# [3단계] 상태 변경 (PENDING 에서만)
# ==========================================================

# ✅ [UPDATE] 승인 / 반려 / 취소
@router.patch("/{leave_id}/status")
def update_leave_status(
    leave_id: int,
    payload: LeaveStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    leave = leave_service.update_status(db, current_user, leave_id, payload.status, payload.remarks)
    return {
        "status": "success",
        "data": _leave_payload(db, leave),
        "message": f"Leave application {payload.status.value.lower()}",
    }
