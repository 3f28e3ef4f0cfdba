from typing import Optional

from pydantic import Field

from schemas.common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ==========================================================
# [입력용 스키마]
# ==========================================================
class LoginRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)   # 로그인 이메일
    password: str                                    # 평문 비밀번호


# ==========================================================
# [출력용 스키마]
# ==========================================================
class UserOut(CamelModel):
    id: int
    email: str
    role: str
    full_name: str
    is_active: bool


class LoginResponse(CamelModel):
    token: str
    user: UserOut
    profile_id: Optional[int] = None     # 학생/교사/보호자 프로필 ID (관리자는 None)
