from typing import List, Optional

from pydantic import Field

from schemas.common import CamelModel


# ==========================================================
# [학급]
# ==========================================================
class ClassCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)   # 학급명
    grade: Optional[int] = None                           # 학년 숫자


class ClassUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    grade: Optional[int] = None


class SectionOut(CamelModel):
    id: int
    name: str
    class_id: int
    capacity: Optional[int] = None


class ClassOut(CamelModel):
    id: int
    name: str
    grade: Optional[int] = None
    sections: List[SectionOut] = []


# ==========================================================
# [섹션]
# ==========================================================
class SectionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=20)
    class_id: int
    capacity: Optional[int] = Field(default=None, ge=1)


class SectionUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=20)
    capacity: Optional[int] = Field(default=None, ge=1)


# ==========================================================
# [과목]
# ==========================================================
class SubjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = None


class SubjectOut(SubjectCreate):
    id: int


class ClassSubjectsAssign(CamelModel):
    subject_ids: List[int] = Field(..., min_length=1)
