from typing import List, Optional
from datetime import datetime

from pydantic import Field, model_validator

from schemas.common import CamelModel


# ==========================================================
# [과목 성적]
# ==========================================================
class SubjectResultCreate(CamelModel):
    student_id: int
    subject_id: int
    academic_year: str = Field(..., min_length=1)
    term: str = Field(..., min_length=1)
    full_marks: float = Field(..., gt=0)
    pass_marks: float = Field(..., ge=0)
    theory_marks: Optional[float] = Field(default=None, ge=0)
    practical_marks: Optional[float] = Field(default=None, ge=0)
    total_marks: Optional[float] = Field(default=None, ge=0)   # 선택: 보내면 이론+실기와 일치해야 함
    is_absent: bool = False

    @model_validator(mode="after")
    def _marks_required_unless_absent(self):
        if not self.is_absent and self.theory_marks is None and self.practical_marks is None:
            raise ValueError("Either theoryMarks or practicalMarks must be provided when student is not absent")
        return self


class SubjectResultOut(CamelModel):
    id: int
    student_id: int
    subject_id: int
    academic_year: str
    term: str
    full_marks: float
    pass_marks: float
    theory_marks: float
    practical_marks: float
    total_marks: float
    grade: Optional[str] = None
    is_absent: bool
    is_locked: bool
    updated_at: Optional[datetime] = None


class LockUpdate(CamelModel):
    is_locked: bool


# ==========================================================
# [종합 성적]
# ==========================================================
class OverallCalculateRequest(CamelModel):
    student_id: int
    academic_year: str = Field(..., min_length=1)
    term: str = Field(..., min_length=1)


class RecalculateRequest(CamelModel):
    student_id: Optional[int] = None
    class_id: Optional[int] = None
    section_id: Optional[int] = None
    academic_year: str = Field(..., min_length=1)
    term: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _scope_required(self):
        if self.student_id is None and self.class_id is None:
            raise ValueError("Either studentId or classId must be provided")
        return self


class OverallResultOut(CamelModel):
    id: int
    student_id: int
    academic_year: str
    term: str
    total_marks: float
    total_full_marks: float
    total_percentage: float
    status: str
    strongest_subject: Optional[str] = None
    weakest_subject: Optional[str] = None
    subjects_to_improve: List[str] = []
    class_teacher_id: Optional[int] = None


# ==========================================================
# [등급 정의]
# ==========================================================
class GradeDefinitionCreate(CamelModel):
    grade: str = Field(..., min_length=1, max_length=5)
    min_score: float = Field(..., ge=0, le=100)
    max_score: float = Field(..., ge=0, le=100)
    grade_point: Optional[float] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def _range_order(self):
        if self.min_score > self.max_score:
            raise ValueError("minScore must not exceed maxScore")
        return self


class GradeDefinitionOut(GradeDefinitionCreate):
    id: int
