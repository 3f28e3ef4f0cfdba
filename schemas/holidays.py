from typing import Optional
from datetime import date

from pydantic import Field, model_validator

from schemas.common import CamelModel


class HolidayTypeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class HolidayTypeOut(HolidayTypeCreate):
    id: int


# ==========================================================
# [휴일]
# ==========================================================
class HolidayCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    from_date: date
    to_date: Optional[date] = None           # 비어 있으면 하루짜리 휴일
    holiday_type_id: int
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None

    @model_validator(mode="after")
    def _date_order(self):
        if self.to_date is None:
            self.to_date = self.from_date
        if self.from_date > self.to_date:
            raise ValueError("fromDate must be on or before toDate")
        return self


class HolidayOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    from_date: date
    to_date: date
    holiday_type_id: int
    holiday_type_name: Optional[str] = None
    is_recurring: bool
    recurrence_pattern: Optional[str] = None
