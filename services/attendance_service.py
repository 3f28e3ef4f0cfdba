"""
services/attendance_service.py

- 담임 교사의 일일 출결 등록 / 조회
- 월간 요약(monthly_attendance) 갱신
- 학급 통계, 미기록일(pending days) 계산
- 과목 수업별 출결 등록 / 조회, 교사용 학급 출결 현황
- 주말은 토요일 하루뿐 (일요일은 등교일)
"""

import calendar
import logging
from collections import Counter
from datetime import date

from sqlalchemy.orm import Session

from models.attendance import DailyAttendance, MonthlyAttendance, SubjectAttendance
from models.classes import SchoolClass, Section
from models.enums import ABSENT_STATUSES, PRESENT_STATUSES, AttendanceStatus, Role
from models.students import Student
from models.subjects import Subject
from models.teachers import ClassTeacherAssignment, Teacher, TeacherSubjectAssignment
from models.users import User
from schemas.attendance import DailyAttendanceCreate, SubjectAttendanceCreate
from services import holiday_service
from services.access import (
    ensure_section_access, ensure_student_access, is_class_teacher, teacher_profile, teaches_section,
)
from services.errors import bad_request, forbidden, not_found

logger = logging.getLogger(__name__)

SATURDAY = 5  # date.weekday() 기준

_PRESENT = {s.value for s in PRESENT_STATUSES}
_ABSENT = {s.value for s in ABSENT_STATUSES}


def is_weekend(day: date) -> bool:
    return day.weekday() == SATURDAY


def month_bounds(month: int, year: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise bad_request("Invalid month or year parameter")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def _section_students(db: Session, class_id: int, section_id: int):
    return (
        db.query(Student)
        .filter(Student.class_id == class_id, Student.section_id == section_id)
        .order_by(Student.roll_no, Student.id)
        .all()
    )


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


# ==========================================================
# [1] 일일 출결 등록
# ==========================================================

def mark_daily_attendance(db: Session, teacher: Teacher, data: DailyAttendanceCreate, today: date | None = None) -> dict:
    """
    담임 교사가 하루치 출결을 제출
    - 토요일, 미래 날짜, 휴일은 거부
    - 같은 날짜 기존 기록은 모두 교체 (재제출)
    - 저장 후 월간 요약 갱신
    """
    today = today or date.today()
    day = data.date

    if is_weekend(day):
        raise bad_request("Attendance cannot be marked on Saturdays")
    if day > today:
        raise bad_request("Attendance cannot be marked for future dates")
    if holiday_service.is_holiday(db, day):
        raise bad_request("Attendance cannot be marked on a holiday")

    if not is_class_teacher(db, teacher.id, data.class_id, data.section_id):
        raise forbidden("Only class teachers can mark attendance")

    student_ids = {s.id for s in _section_students(db, data.class_id, data.section_id)}
    seen = set()
    for record in data.records:
        if record.student_id not in student_ids:
            raise bad_request(f"Student with ID {record.student_id} is not in this class/section")
        if record.student_id in seen:
            raise bad_request(f"Duplicate attendance record for student {record.student_id}")
        seen.add(record.student_id)

    # 재제출: 해당 날짜 기록 삭제 후 새로 작성
    db.query(DailyAttendance).filter(
        DailyAttendance.class_id == data.class_id,
        DailyAttendance.section_id == data.section_id,
        DailyAttendance.date == day,
    ).delete(synchronize_session=False)

    for record in data.records:
        db.add(DailyAttendance(
            student_id=record.student_id,
            class_id=data.class_id,
            section_id=data.section_id,
            date=day,
            status=record.status.value,
            remarks=record.remarks or data.remarks,
            marked_by_id=teacher.id,
        ))
    db.flush()

    refresh_monthly_summary(db, data.class_id, data.section_id, day)
    db.commit()

    logger.info(
        "Attendance marked: class=%s section=%s date=%s records=%d",
        data.class_id, data.section_id, day, len(data.records),
    )
    return {"date": day.isoformat(), "classId": data.class_id, "sectionId": data.section_id,
            "markedCount": len(data.records)}


def refresh_monthly_summary(db: Session, class_id: int, section_id: int, day: date) -> None:
    """섹션 학생별 월간 출석/결석 수와 출석률 재계산 (커밋은 호출 측)"""
    start, end = month_bounds(day.month, day.year)

    for student in _section_students(db, class_id, section_id):
        statuses = [
            r.status for r in db.query(DailyAttendance).filter(
                DailyAttendance.student_id == student.id,
                DailyAttendance.date >= start,
                DailyAttendance.date <= end,
            )
        ]
        present = sum(1 for s in statuses if s in _PRESENT)
        absent = sum(1 for s in statuses if s in _ABSENT)

        summary = db.query(MonthlyAttendance).filter(
            MonthlyAttendance.student_id == student.id,
            MonthlyAttendance.month == day.month,
            MonthlyAttendance.year == day.year,
        ).first()
        if summary is None:
            summary = MonthlyAttendance(student_id=student.id, month=day.month, year=day.year)
            db.add(summary)

        summary.class_id = class_id
        summary.section_id = section_id
        summary.present_count = present
        summary.absent_count = absent
        summary.percentage = _percentage(present, present + absent)


# ==========================================================
# [2] 일일 출결 조회
# ==========================================================

def get_daily_attendance(db: Session, user: User, class_id: int, section_id: int, day: date) -> dict:
    ensure_section_access(db, user, class_id, section_id)

    students = _section_students(db, class_id, section_id)
    records = {
        r.student_id: r
        for r in db.query(DailyAttendance).filter(
            DailyAttendance.class_id == class_id,
            DailyAttendance.section_id == section_id,
            DailyAttendance.date == day,
        )
    }

    attendance = []
    for student in students:
        record = records.get(student.id)
        attendance.append({
            "id": record.id if record else None,
            "studentId": student.id,
            "studentName": student.name,
            "rollNo": student.roll_no,
            # 기록이 없는 학생은 ABSENT 로 표시하되 isMarked=False
            "status": record.status if record else AttendanceStatus.ABSENT.value,
            "remarks": record.remarks if record else None,
            "isMarked": record is not None,
        })

    counts = Counter(r.status for r in records.values())
    return {
        "date": day.isoformat(),
        "classId": class_id,
        "sectionId": section_id,
        "isMarked": bool(records),
        "attendance": attendance,
        "summary": {
            "totalStudents": len(students),
            "present": counts[AttendanceStatus.PRESENT.value],
            "absent": counts[AttendanceStatus.ABSENT.value],
            "late": counts[AttendanceStatus.LATE.value],
            "halfDay": counts[AttendanceStatus.HALF_DAY.value],
            "excused": counts[AttendanceStatus.EXCUSED.value],
            "unmarked": len(students) - len(records),
        },
    }


# ==========================================================
# [3] 통계 / 근무일
# ==========================================================

def working_days_in_month(db: Session, month: int, year: int) -> list[date]:
    """토요일과 휴일을 제외한 해당 월의 등교일"""
    start, end = month_bounds(month, year)
    holidays = holiday_service.holiday_dates(db, start, end)
    return [
        date(year, month, d)
        for d in range(1, end.day + 1)
        if not is_weekend(date(year, month, d)) and date(year, month, d) not in holidays
    ]


def get_attendance_stats(db: Session, user: User, class_id: int, section_id: int, month: int, year: int) -> dict:
    ensure_section_access(db, user, class_id, section_id)
    start, end = month_bounds(month, year)

    total_students = len(_section_students(db, class_id, section_id))
    working_days = working_days_in_month(db, month, year)

    summaries = db.query(MonthlyAttendance).filter(
        MonthlyAttendance.class_id == class_id,
        MonthlyAttendance.section_id == section_id,
        MonthlyAttendance.month == month,
        MonthlyAttendance.year == year,
    ).all()
    average = round(sum(s.percentage for s in summaries) / len(summaries), 2) if summaries else 0.0

    by_day: dict[date, list[str]] = {}
    for record in db.query(DailyAttendance).filter(
        DailyAttendance.class_id == class_id,
        DailyAttendance.section_id == section_id,
        DailyAttendance.date >= start,
        DailyAttendance.date <= end,
    ):
        by_day.setdefault(record.date, []).append(record.status)

    daily_stats = []
    for day in working_days:
        statuses = by_day.get(day, [])
        present = sum(1 for s in statuses if s in _PRESENT)
        daily_stats.append({
            "date": day.isoformat(),
            "presentCount": present,
            "absentCount": sum(1 for s in statuses if s in _ABSENT),
            "markedCount": len(statuses),
            "percentage": _percentage(present, total_students),
        })

    return {
        "classId": class_id,
        "sectionId": section_id,
        "month": month,
        "year": year,
        "workingDays": len(working_days),
        "totalStudents": total_students,
        "averagePercentage": average,
        "dailyStats": daily_stats,
    }


# ==========================================================
# [4] 미기록일 (pending days)
# ==========================================================

def get_pending_days(db: Session, teacher: Teacher, month: int, year: int, today: date | None = None) -> dict:
    """
    담임으로 배정된 섹션별로, 해당 월 1일부터 오늘까지의 등교일 중
    출결 기록이 하나도 없는 날짜 목록
    """
    today = today or date.today()
    start, end = month_bounds(month, year)
    last = min(today, end)

    school_days = [d for d in working_days_in_month(db, month, year) if d <= last] if start <= last else []

    assignments = db.query(ClassTeacherAssignment).filter(
        ClassTeacherAssignment.teacher_id == teacher.id
    ).all()

    sections = []
    all_pending: set[date] = set()
    for assignment in assignments:
        marked = {
            row[0]
            for row in db.query(DailyAttendance.date).filter(
                DailyAttendance.class_id == assignment.class_id,
                DailyAttendance.section_id == assignment.section_id,
                DailyAttendance.date >= start,
                DailyAttendance.date <= last,
            ).distinct()
        }
        pending = [d for d in school_days if d not in marked]
        all_pending.update(pending)

        school_class = db.get(SchoolClass, assignment.class_id)
        section = db.get(Section, assignment.section_id)
        sections.append({
            "classId": assignment.class_id,
            "sectionId": assignment.section_id,
            "className": school_class.name if school_class else None,
            "sectionName": section.name if section else None,
            "pendingCount": len(pending),
            "pendingDates": [d.isoformat() for d in pending],
        })

    pending_dates = [d.isoformat() for d in sorted(all_pending)]
    return {
        "month": month,
        "year": year,
        "pendingCount": len(pending_dates),
        "pendingDates": pending_dates,
        "sections": sections,
    }


# ==========================================================
# [5] 학생 월간 출결
# ==========================================================

def get_student_monthly(db: Session, user: User, student_id: int, month: int, year: int) -> dict:
    student = db.get(Student, student_id)
    if student is None:
        raise not_found("Student not found")
    ensure_student_access(db, user, student)
    start, end = month_bounds(month, year)

    records = (
        db.query(DailyAttendance)
        .filter(
            DailyAttendance.student_id == student_id,
            DailyAttendance.date >= start,
            DailyAttendance.date <= end,
        )
        .order_by(DailyAttendance.date)
        .all()
    )
    summary = db.query(MonthlyAttendance).filter(
        MonthlyAttendance.student_id == student_id,
        MonthlyAttendance.month == month,
        MonthlyAttendance.year == year,
    ).first()

    return {
        "studentId": student_id,
        "month": month,
        "year": year,
        "presentCount": summary.present_count if summary else 0,
        "absentCount": summary.absent_count if summary else 0,
        "percentage": summary.percentage if summary else 0.0,
        "records": records,
    }



# ==========================================================
# [6] 과목별 출결
# ==========================================================

def mark_subject_attendance(db: Session, teacher: Teacher, data: SubjectAttendanceCreate,
                            today: date | None = None) -> SubjectAttendance:
    """
    교과 교사가 학생 한 명의 과목 수업 출결을 기록
    - 날짜 생략 시 오늘, 미래 날짜는 거부
    - 해당 섹션에서 그 과목을 맡은 교사 또는 담임만 가능
    - 학생+과목+날짜 당 한 번만 기록
    """
    today = today or date.today()
    day = data.date or today
    if day > today:
        raise bad_request("Attendance cannot be marked for future dates")

    student = db.get(Student, data.student_id)
    if student is None:
        raise not_found("Student not found")
    if db.get(Subject, data.subject_id) is None:
        raise not_found("Subject not found")

    teaches_subject = db.query(TeacherSubjectAssignment).filter(
        TeacherSubjectAssignment.teacher_id == teacher.id,
        TeacherSubjectAssignment.class_id == student.class_id,
        TeacherSubjectAssignment.section_id == student.section_id,
        TeacherSubjectAssignment.subject_id == data.subject_id,
    ).first() is not None
    if not teaches_subject and not is_class_teacher(db, teacher.id, student.class_id, student.section_id):
        raise forbidden("You are not assigned to teach this subject for the student's section")

    existing = db.query(SubjectAttendance).filter(
        SubjectAttendance.student_id == data.student_id,
        SubjectAttendance.subject_id == data.subject_id,
        SubjectAttendance.attendance_date == day,
    ).first()
    if existing is not None:
        raise bad_request("Attendance already marked for this date")

    record = SubjectAttendance(
        student_id=data.student_id,
        subject_id=data.subject_id,
        attendance_date=day,
        lecture_conducted=1,
        present_count=1 if data.is_present else 0,
        absent_count=0 if data.is_present else 1,
        marked_by_id=teacher.id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info(
        "Subject attendance marked: student=%s subject=%s date=%s present=%s",
        data.student_id, data.subject_id, day, data.is_present,
    )
    return record


def get_subject_attendance(db: Session, user: User, student_id: int, subject_id: int,
                           start: date | None = None, end: date | None = None) -> list[SubjectAttendance]:
    """학생의 과목 출결 기록 (최근 날짜 먼저), 기간은 선택"""
    student = db.get(Student, student_id)
    if student is None:
        raise not_found("Student not found")
    ensure_student_access(db, user, student)
    if start and end and start > end:
        raise bad_request("Start date must be on or before end date")

    query = db.query(SubjectAttendance).filter(
        SubjectAttendance.student_id == student_id,
        SubjectAttendance.subject_id == subject_id,
    )
    if start:
        query = query.filter(SubjectAttendance.attendance_date >= start)
    if end:
        query = query.filter(SubjectAttendance.attendance_date <= end)
    return query.order_by(SubjectAttendance.attendance_date.desc()).all()


# ==========================================================
# [7] 교사용 학급 출결 현황
# ==========================================================

def get_class_attendance(db: Session, user: User, class_id: int, section_id: int, day: date) -> dict:
    """
    특정 날짜의 섹션 출결 현황 (담임/교과 교사, 관리자)
    - 미기록 학생은 attendance=None
    - 담임 교사 목록과 요약(출석률 포함)을 함께 반환
    """
    if user.role == Role.TEACHER.value:
        teacher = teacher_profile(db, user)
        if not teaches_section(db, teacher.id, class_id, section_id):
            raise forbidden("You are not authorized to view attendance for this class/section")
    elif user.role != Role.ADMIN.value:
        raise forbidden("You are not authorized to view class attendance")

    school_class = db.get(SchoolClass, class_id)
    section = db.get(Section, section_id)
    if school_class is None or section is None or section.class_id != class_id:
        raise not_found("Class or section not found")

    students = _section_students(db, class_id, section_id)
    records = {
        r.student_id: r
        for r in db.query(DailyAttendance).filter(
            DailyAttendance.class_id == class_id,
            DailyAttendance.section_id == section_id,
            DailyAttendance.date == day,
        )
    }
    class_teachers = db.query(ClassTeacherAssignment).filter(
        ClassTeacherAssignment.class_id == class_id,
        ClassTeacherAssignment.section_id == section_id,
    ).all()

    rows = []
    for student in students:
        record = records.get(student.id)
        rows.append({
            "student": {"id": student.id, "name": student.name, "rollNo": student.roll_no},
            "attendance": {
                "id": record.id,
                "status": record.status,
                "remarks": record.remarks,
                "markedBy": record.marked_by.name if record.marked_by else None,
                "createdAt": record.created_at.isoformat(),
            } if record else None,
        })

    counts = Counter(r.status for r in records.values())
    present = counts[AttendanceStatus.PRESENT.value]
    return {
        "class": {"id": school_class.id, "name": school_class.name},
        "section": {"id": section.id, "name": section.name},
        "date": day.isoformat(),
        "classTeachers": [{"id": a.teacher_id, "name": a.teacher.name} for a in class_teachers],
        "students": rows,
        "summary": {
            "totalStudents": len(students),
            "present": present,
            "absent": counts[AttendanceStatus.ABSENT.value],
            "late": counts[AttendanceStatus.LATE.value],
            "halfDay": counts[AttendanceStatus.HALF_DAY.value],
            "excused": counts[AttendanceStatus.EXCUSED.value],
            "unmarked": len(students) - len(records),
            "attendancePercentage": _percentage(present, len(students)),
        },
    }
