from typing import Optional
from datetime import date, datetime

from pydantic import Field, model_validator

from models.enums import LeaveStatus
from schemas.common import CamelModel


class LeaveTypeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class LeaveTypeOut(LeaveTypeCreate):
    id: int


# ==========================================================
# [휴가 신청]
# ==========================================================
class LeaveApplicationCreate(CamelModel):
    leave_type_id: int
    subject: str = Field(..., min_length=1, max_length=150)
    description: str = Field(..., min_length=1)
    from_date: date
    to_date: date

    @model_validator(mode="after")
    def _date_order(self):
        if self.from_date > self.to_date:
            raise ValueError("fromDate must be on or before toDate")
        return self


class LeaveStatusUpdate(CamelModel):
    status: LeaveStatus
    remarks: Optional[str] = None


class LeaveApplicationOut(CamelModel):
    id: int
    leave_type_id: int
    leave_type_name: Optional[str] = None
    subject: str
    description: str
    from_date: date
    to_date: date
    applicant_type: str
    applicant_id: int
    applicant_name: Optional[str] = None
    status: str
    reviewed_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
