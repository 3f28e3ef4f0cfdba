from typing import Optional
from datetime import date

from pydantic import Field

from schemas.auth import EMAIL_PATTERN
from schemas.common import CamelModel


class AccountCreate(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None


# ==========================================================
# [학생]
# ==========================================================
class StudentCreate(AccountCreate):
    roll_no: Optional[str] = None
    class_id: int
    section_id: int
    parent_id: Optional[int] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None


class StudentOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    name: str
    roll_no: Optional[str] = None
    class_id: int
    section_id: int
    parent_id: Optional[int] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    address: Optional[str] = None


# ==========================================================
# [교사]
# ==========================================================
class TeacherCreate(AccountCreate):
    designation: Optional[str] = None


class TeacherOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    name: str
    phone: Optional[str] = None
    designation: Optional[str] = None
    address: Optional[str] = None


# ==========================================================
# [보호자]
# ==========================================================
class ParentCreate(AccountCreate):
    pass


class ParentOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


# ==========================================================
# [내 프로필 수정]
# ==========================================================
class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None
