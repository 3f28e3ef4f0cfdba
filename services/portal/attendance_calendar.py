"""
출결 달력 분류기

한 달 화면(일요일 시작, 7의 배수 칸)의 각 날짜를 아래 순서로 분류 (먼저 맞는 것 적용)
  1. other    앞뒤 달에서 채워 넣은 칸
  2. weekend  토요일 (일요일은 등교일)
  3. holiday  휴일 목록에 포함
  4. future   오늘 이후
  5. marked   출결 기록이 있는 날
  6. pending  미기록일 목록에 포함되거나, 이번 달의 오늘 이전 날짜
  7. other

날짜는 서버 엔드포인트마다 형식이 달라서(ISO 날짜, ISO 타임스탬프, DD/MM/YYYY)
비교 전에 항상 YYYY-MM-DD 로 정규화한다. 해석할 수 없는 값은 경고 로그만 남기고 버린다.
"""

import asyncio
import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

from services.portal.errors import PortalError, SessionExpired
from services.portal.http_client import PortalClient

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_DMY = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")


class DayStatus(str, Enum):
    PENDING = "pending"
    MARKED = "marked"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    FUTURE = "future"
    OTHER = "other"


@dataclass(frozen=True)
class CalendarDay:
    date: date
    status: DayStatus
    in_month: bool
    holiday_name: Optional[str] = None

    @property
    def key(self) -> str:
        return self.date.isoformat()


@dataclass
class MonthCalendar:
    month: date
    days: list[CalendarDay]
    pending_count: int = 0
    message: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    class_id: Optional[int] = None
    section_id: Optional[int] = None
    pending_dates: list[str] = field(default_factory=list)        # 선택된 섹션의 서버 미기록일


# ==========================================================
# [날짜 정규화]
# ==========================================================

def normalize_date(value: Any) -> Optional[str]:
    """date / datetime / ISO 문자열 / DD/MM/YYYY → 'YYYY-MM-DD' (실패 시 None)"""
    try:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            text = value.strip()
            if _ISO_DATE.match(text):
                if len(text) == 10:
                    return date.fromisoformat(text).isoformat()
                # 타임스탬프는 표기된 날짜 부분을 그대로 사용
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
            if _DMY.match(text):
                return datetime.strptime(text, "%d/%m/%Y").date().isoformat()
    except ValueError:
        pass
    logger.warning("Ignoring unparseable calendar date: %r", value)
    return None


def _normalize_all(values: Iterable[Any]) -> set[str]:
    return {key for key in (normalize_date(v) for v in values or ()) if key}


def _holiday_names(holidays: Iterable[Any]) -> dict[str, str]:
    """
    휴일 항목 → {YYYY-MM-DD: 이름}
    - {"date", "name"} 단일 날짜
    - {"fromDate", "toDate", "name"} 기간 (서버 /holidays 응답 형식)
    """
    names: dict[str, str] = {}
    for item in holidays or ():
        if not isinstance(item, dict):
            key = normalize_date(item)
            if key:
                names[key] = ""
            continue

        name = item.get("name") or ""
        if "date" in item:
            key = normalize_date(item["date"])
            if key:
                names[key] = name
            continue

        start = normalize_date(item.get("fromDate"))
        end = normalize_date(item.get("toDate") or item.get("fromDate"))
        if not start or not end:
            continue
        current, last = date.fromisoformat(start), date.fromisoformat(end)
        while current <= last:
            names[current.isoformat()] = name
            current += timedelta(days=1)
    return names


# ==========================================================
# [달력 구성]
# ==========================================================

def grid_bounds(current_month: date) -> tuple[date, date]:
    """해당 월을 감싸는 일요일 시작 ~ 토요일 끝 범위"""
    first = current_month.replace(day=1)
    last = first.replace(day=calendar.monthrange(first.year, first.month)[1])
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(calendar.SATURDAY - last.weekday()) % 7)
    return start, end


def classify_day(day: date, *, in_month: bool, today: date, pending: set[str], marked: set[str],
                 holidays: dict[str, str]) -> DayStatus:
    key = day.isoformat()
    if not in_month:
        return DayStatus.OTHER
    if day.weekday() == calendar.SATURDAY:
        return DayStatus.WEEKEND
    if key in holidays:
        return DayStatus.HOLIDAY
    if day > today:
        return DayStatus.FUTURE
    if key in marked:
        return DayStatus.MARKED
    if key in pending or day <= today:
        return DayStatus.PENDING
    return DayStatus.OTHER


def build_month_calendar(current_month: date, pending_dates: Iterable[Any], marked_dates: Iterable[Any],
                         holidays: Iterable[Any], today: Optional[date] = None) -> list[CalendarDay]:
    today = today or date.today()
    pending = _normalize_all(pending_dates)
    marked = _normalize_all(marked_dates)
    holiday_names = _holiday_names(holidays)

    start, end = grid_bounds(current_month)
    days = []
    current = start
    while current <= end:
        in_month = (current.year, current.month) == (current_month.year, current_month.month)
        status = classify_day(current, in_month=in_month, today=today, pending=pending,
                              marked=marked, holidays=holiday_names)
        days.append(CalendarDay(
            date=current,
            status=status,
            in_month=in_month,
            holiday_name=holiday_names.get(current.isoformat()) if status == DayStatus.HOLIDAY else None,
        ))
        current += timedelta(days=1)
    return days


# ==========================================================
# [서버 데이터로 달력 불러오기]
# ==========================================================

async def load_month_calendar(client: PortalClient, current_month: date, class_id: Optional[int] = None,
                              section_id: Optional[int] = None, today: Optional[date] = None) -> MonthCalendar:
    """
    미기록일, 출결 통계(기록된 날), 휴일을 불러와 달력 구성
    - 섹션을 지정하지 않으면 미기록일 응답의 첫 담임 섹션 사용
    - 미기록일은 선택된 섹션 기준 (담임 섹션이 아니면 서버 미기록일 없음)
    - 개별 조회 실패는 빈 목록으로 처리하고 메시지에 남김
    """
    month, year = current_month.month, current_month.year
    start, end = grid_bounds(current_month)

    pending_res, holiday_res = await asyncio.gather(
        client.get("/attendance/pending-days", month=month, year=year),
        client.get("/holidays", startDate=start.isoformat(), endDate=end.isoformat()),
        return_exceptions=True,
    )

    errors = []
    pending_dates, holidays = [], []
    for res in (pending_res, holiday_res):
        # 세션 만료와 예상 밖 예외는 그대로 전파
        if isinstance(res, SessionExpired) or (isinstance(res, BaseException) and not isinstance(res, PortalError)):
            raise res

    if isinstance(pending_res, PortalError):
        errors.append(f"pending days: {pending_res.message}")
    else:
        sections = pending_res.get("sections") or []
        if (class_id is None or section_id is None) and sections:
            class_id, section_id = sections[0]["classId"], sections[0]["sectionId"]
        # 통계(기록된 날)와 같은 섹션의 미기록일만 사용
        selected = next(
            (s for s in sections if (s.get("classId"), s.get("sectionId")) == (class_id, section_id)), None
        )
        pending_dates = selected.get("pendingDates", []) if selected else []

    if isinstance(holiday_res, PortalError):
        errors.append(f"holidays: {holiday_res.message}")
    else:
        holidays = holiday_res

    marked_dates = []
    if class_id is not None and section_id is not None:
        try:
            stats = await client.get("/attendance/stats", classId=class_id, sectionId=section_id,
                                     month=month, year=year)
            marked_dates = [d["date"] for d in stats.get("dailyStats", []) if d.get("markedCount", 0) > 0]
        except SessionExpired:
            raise
        except PortalError as exc:
            errors.append(f"attendance stats: {exc.message}")

    for error in errors:
        logger.error("Calendar %04d-%02d: %s", year, month, error)

    days = build_month_calendar(current_month, pending_dates, marked_dates, holidays, today)
    return MonthCalendar(
        month=current_month.replace(day=1),
        days=days,
        pending_count=sum(1 for d in days if d.status == DayStatus.PENDING),
        message="Some calendar data could not be loaded" if errors else None,
        errors=errors,
        class_id=class_id,
        section_id=section_id,
        pending_dates=sorted(_normalize_all(pending_dates)),
    )
