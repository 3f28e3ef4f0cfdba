import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from models.holidays import Holiday, HolidayType
from schemas.holidays import HolidayCreate, HolidayTypeCreate
from services.errors import ApiError, bad_request, not_found

logger = logging.getLogger(__name__)


# ==========================================================
# [휴일 유형]
# ==========================================================

def list_holiday_types(db: Session):
    return db.query(HolidayType).order_by(HolidayType.name).all()


def create_holiday_type(db: Session, data: HolidayTypeCreate) -> HolidayType:
    if db.query(HolidayType).filter(HolidayType.name == data.name).first():
        raise bad_request(f"Holiday type '{data.name}' already exists")
    holiday_type = HolidayType(**data.model_dump())
    db.add(holiday_type)
    db.commit()
    db.refresh(holiday_type)
    return holiday_type


# ==========================================================
# [휴일 조회]
# ==========================================================

def list_holidays(db: Session, start_date: date | None = None, end_date: date | None = None,
                  holiday_type_id: int | None = None):
    """기간과 겹치는 휴일 목록 (기간 일부만 겹쳐도 포함)"""
    query = db.query(Holiday)
    if start_date is not None:
        query = query.filter(Holiday.to_date >= start_date)
    if end_date is not None:
        query = query.filter(Holiday.from_date <= end_date)
    if holiday_type_id is not None:
        query = query.filter(Holiday.holiday_type_id == holiday_type_id)
    return query.order_by(Holiday.from_date).all()


def upcoming_holidays(db: Session, limit: int = 5, today: date | None = None):
    today = today or date.today()
    return (
        db.query(Holiday)
        .filter(Holiday.to_date >= today)
        .order_by(Holiday.from_date)
        .limit(limit)
        .all()
    )


def get_holiday(db: Session, holiday_id: int) -> Holiday:
    holiday = db.query(Holiday).filter(Holiday.id == holiday_id).first()
    if holiday is None:
        raise not_found("Holiday not found")
    return holiday


def holiday_dates(db: Session, start_date: date, end_date: date) -> set[date]:
    """기간 내 휴일을 하루 단위 날짜 집합으로 펼침"""
    days = set()
    for holiday in list_holidays(db, start_date, end_date):
        current = max(holiday.from_date, start_date)
        last = min(holiday.to_date, end_date)
        while current <= last:
            days.add(current)
            current += timedelta(days=1)
    return days


def is_holiday(db: Session, day: date) -> bool:
    return db.query(Holiday).filter(Holiday.from_date <= day, Holiday.to_date >= day).first() is not None


# ==========================================================
# [휴일 등록/수정/삭제]
# ==========================================================

def _ensure_no_overlap(db: Session, from_date: date, to_date: date, exclude_id: int | None = None):
    query = db.query(Holiday).filter(Holiday.from_date <= to_date, Holiday.to_date >= from_date)
    if exclude_id is not None:
        query = query.filter(Holiday.id != exclude_id)
    clash = query.first()
    if clash is not None:
        raise bad_request(f"Holiday dates overlap with existing holiday '{clash.name}'")


def _ensure_type(db: Session, holiday_type_id: int):
    if db.query(HolidayType).filter(HolidayType.id == holiday_type_id).first() is None:
        raise ApiError(404, "Holiday type not found")


def create_holiday(db: Session, data: HolidayCreate) -> Holiday:
    _ensure_type(db, data.holiday_type_id)
    _ensure_no_overlap(db, data.from_date, data.to_date)

    holiday = Holiday(**data.model_dump())
    db.add(holiday)
    db.commit()
    db.refresh(holiday)
    logger.info("Holiday created: %s (%s ~ %s)", holiday.name, holiday.from_date, holiday.to_date)
    return holiday


def update_holiday(db: Session, holiday_id: int, data: HolidayCreate) -> Holiday:
    holiday = get_holiday(db, holiday_id)
    _ensure_type(db, data.holiday_type_id)
    _ensure_no_overlap(db, data.from_date, data.to_date, exclude_id=holiday.id)

    for key, value in data.model_dump().items():
        setattr(holiday, key, value)
    db.commit()
    db.refresh(holiday)
    return holiday


def delete_holiday(db: Session, holiday_id: int) -> None:
    holiday = get_holiday(db, holiday_id)
    db.delete(holiday)
    db.commit()
    logger.info("Holiday deleted: id=%s", holiday_id)
