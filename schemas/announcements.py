from typing import List, Optional
from datetime import datetime, timezone

from pydantic import Field, field_validator

from models.enums import Priority, Role
from schemas.common import CamelModel


# ==========================================================
# [입력용 스키마]
# ==========================================================
class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=150)       # 제목
    content: str = Field(..., min_length=1)                     # 내용
    priority: Priority = Priority.NORMAL                        # 중요도
    expires_at: Optional[datetime] = None                       # 만료 시각
    target_roles: List[Role] = []                               # 비어 있으면 전체 역할
    target_class_ids: List[int] = []
    target_section_ids: List[int] = []

    @field_validator("expires_at")
    @classmethod
    def _to_naive_utc(cls, v):
        # DB 에는 UTC naive datetime 으로 저장
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


# ==========================================================
# [출력용 스키마]
# ==========================================================
class AnnouncementOut(CamelModel):
    id: int
    title: str
    content: str
    priority: str
    expires_at: Optional[datetime] = None
    is_active: bool
    created_by_id: int
    created_by_name: Optional[str] = None
    target_roles: List[str] = []
    target_class_ids: List[int] = []
    target_section_ids: List[int] = []
    created_at: datetime
    updated_at: datetime
