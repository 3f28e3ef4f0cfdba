"""
schemas/common.py

- 프로젝트 전반에서 재사용할 공용 스키마 모음
- Pydantic v2 기준
- 포함 내용:
  1) camelCase 입출력 베이스: CamelModel, dump()
  2) 에러 응답 표준: ErrorDetail, ErrorResponse
  3) 성공 응답 래퍼: SuccessEnvelope[T]
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =========================================================
# 1) camelCase 베이스
# =========================================================

class CamelModel(BaseModel):
    """
    API 입출력은 camelCase (예: classId, academicYear)
    - 파이썬 쪽에서는 snake_case 필드명으로 접근
    - ORM 객체에서 바로 검증 가능 (from_attributes)
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def dump(schema: type[CamelModel], obj: Any) -> dict:
    """ORM 객체 → camelCase JSON 호환 dict"""
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


# =========================================================
# 2) 에러 응답 표준
# =========================================================

class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: INTERNAL_ERROR, NOT_FOUND)")
    message: str = Field(..., description="사람이 읽을 수 있는 에러 메시지")


class ErrorResponse(BaseModel):
    """
    전역 에러 핸들러에서 내려주는 표준 에러 응답
    - middlewares/error_handler.py 참고
    """
    status: Literal["error"] = "error"
    message: str
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 3) 성공 응답 래퍼
# =========================================================

T = TypeVar("T")

class SuccessEnvelope(BaseModel, Generic[T]):
    """
    성공 응답 표준 래퍼
    - status: 항상 "success"
    - data: 실제 데이터(payload)
    """
    status: Literal["success"] = "success"
    data: T
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# ✅ 라우터 공통 에러 응답 문서화 (Swagger)
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "잘못된 요청"},
    401: {"model": ErrorResponse, "description": "인증 필요"},
    403: {"model": ErrorResponse, "description": "권한 없음"},
    404: {"model": ErrorResponse, "description": "대상 없음"},
}
