from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_roles
from models.enums import Role
from models.users import User
from schemas.announcements import AnnouncementCreate, AnnouncementOut
from schemas.common import ERROR_RESPONSES
from services import announcement_service

router = APIRouter(prefix="/announcements", tags=["공지사항"], responses=ERROR_RESPONSES)

authors_only = require_roles(Role.ADMIN, Role.TEACHER)


def _payload(announcement) -> dict:
    return AnnouncementOut.model_validate(announcement_service.to_dict(announcement)).model_dump(
        by_alias=True, mode="json"
    )


# ==========================================================
# [1단계] 조회
# ==========================================================

# ✅ [READ] 공지 목록 (?isActive=, 역할/학급 대상 필터 적용)
@router.get("")
def read_announcements(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records = announcement_service.list_announcements(db, current_user, is_active)
    return {"status": "success", "data": [_payload(r) for r in records]}


# ✅ [READ] 공지 상세
@router.get("/{announcement_id}")
def read_announcement(announcement_id: int, current_user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    announcement = announcement_service.get_announcement(db, current_user, announcement_id)
    return {"status": "success", "data": _payload(announcement)}


# ==========================================================
# [2단계] 등록/수정/삭제 (교사, 관리자)
# ==========================================================

# ✅ [CREATE] 공지 등록
@router.post("", status_code=201)
def create_announcement(payload: AnnouncementCreate, current_user: User = Depends(authors_only),
                        db: Session = Depends(get_db)):
    announcement = announcement_service.create_announcement(db, current_user, payload)
    return {"status": "success", "data": _payload(announcement), "message": "Announcement created"}


# ✅ [UPDATE] 공지 수정 (교사는 본인 공지만)
@router.put("/{announcement_id}")
def update_announcement(announcement_id: int, payload: AnnouncementCreate,
                        current_user: User = Depends(authors_only), db: Session = Depends(get_db)):
    announcement = announcement_service.update_announcement(db, current_user, announcement_id, payload)
    return {"status": "success", "data": _payload(announcement), "message": "Announcement updated"}


# ✅ [DELETE] 공지 삭제
@router.delete("/{announcement_id}")
def delete_announcement(announcement_id: int, current_user: User = Depends(authors_only),
                        db: Session = Depends(get_db)):
    announcement_service.delete_announcement(db, current_user, announcement_id)
    return {"status": "success", "data": None, "message": "Announcement deleted"}
