from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.enums import Role
from models.holidays import Holiday
from schemas.common import ERROR_RESPONSES, dump
from schemas.holidays import HolidayCreate, HolidayOut, HolidayTypeCreate, HolidayTypeOut
from services import holiday_service

router = APIRouter(
    prefix="/holidays",
    tags=["학사 휴일"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(get_current_user)],
)

admin_only = require_roles(Role.ADMIN)


def _holiday_payload(holiday: Holiday) -> dict:
    data = dump(HolidayOut, holiday)
    data["holidayTypeName"] = holiday.holiday_type.name if holiday.holiday_type else None
    return data


# ==========================================================
# [1단계] 휴일 유형
# ==========================================================

# ✅ [READ] 휴일 유형 목록
@router.get("/types")
def read_holiday_types(db: Session = Depends(get_db)):
    records = holiday_service.list_holiday_types(db)
    return {"status": "success", "data": [dump(HolidayTypeOut, r) for r in records]}


# ✅ [CREATE] 휴일 유형 추가
@router.post("/types", status_code=201, dependencies=[Depends(admin_only)])
def create_holiday_type(payload: HolidayTypeCreate, db: Session = Depends(get_db)):
    holiday_type = holiday_service.create_holiday_type(db, payload)
    return {"status": "success", "data": dump(HolidayTypeOut, holiday_type), "message": "Holiday type created"}


# ==========================================================
# [2단계] 휴일 조회
# ==========================================================

# ✅ [READ] 휴일 목록 (기간과 겹치는 휴일 포함)
@router.get("")
def read_holidays(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    holiday_type_id: Optional[int] = Query(None, alias="holidayTypeId"),
    db: Session = Depends(get_db),
):
    records = holiday_service.list_holidays(db, start_date, end_date, holiday_type_id)
    return {"status": "success", "data": [_holiday_payload(r) for r in records]}


# ✅ [UPCOMING] 다가오는 휴일
@router.get("/upcoming")
def read_upcoming_holidays(limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    records = holiday_service.upcoming_holidays(db, limit)
    return {"status": "success", "data": [_holiday_payload(r) for r in records]}


# ✅ [READ] 휴일 상세
@router.get("/{holiday_id}")
def read_holiday(holiday_id: int, db: Session = Depends(get_db)):
    return {"status": "success", "data": _holiday_payload(holiday_service.get_holiday(db, holiday_id))}


# ==========================================================
# [3단계] 등록/수정/삭제 (관리자)
# ==========================================================

# ✅ [CREATE] 휴일 등록 (기존 휴일과 겹치면 400)
@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_holiday(payload: HolidayCreate, db: Session = Depends(get_db)):
    holiday = holiday_service.create_holiday(db, payload)
    return {"status": "success", "data": _holiday_payload(holiday), "message": "Holiday created"}


# ✅ [UPDATE] 휴일 수정
@router.put("/{holiday_id}", dependencies=[Depends(admin_only)])
def update_holiday(holiday_id: int, payload: HolidayCreate, db: Session = Depends(get_db)):
    holiday = holiday_service.update_holiday(db, holiday_id, payload)
    return {"status": "success", "data": _holiday_payload(holiday), "message": "Holiday updated"}


# ✅ [DELETE] 휴일 삭제
@router.delete("/{holiday_id}", dependencies=[Depends(admin_only)])
def delete_holiday(holiday_id: int, db: Session = Depends(get_db)):
    holiday_service.delete_holiday(db, holiday_id)
    return {"status": "success", "data": None, "message": "Holiday deleted"}
