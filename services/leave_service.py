import logging
from datetime import date

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models.enums import ApplicantType, LeaveStatus, Role
from models.leaves import LeaveApplication, LeaveType
from models.students import Student
from models.teachers import Teacher
from models.users import User
from schemas.leaves import LeaveApplicationCreate, LeaveTypeCreate
from services.access import parent_profile, student_profile, teacher_profile, teacher_sections
from services.errors import ApiError, bad_request, forbidden, not_found

logger = logging.getLogger(__name__)


# ==========================================================
# [휴가 유형]
# ==========================================================

def list_leave_types(db: Session):
    return db.query(LeaveType).order_by(LeaveType.name).all()


def create_leave_type(db: Session, data: LeaveTypeCreate) -> LeaveType:
    if db.query(LeaveType).filter(LeaveType.name == data.name).first():
        raise bad_request(f"Leave type '{data.name}' already exists")
    leave_type = LeaveType(**data.model_dump())
    db.add(leave_type)
    db.commit()
    db.refresh(leave_type)
    return leave_type


# ==========================================================
# [신청자 판별]
# ==========================================================

def applicant_of(db: Session, user: User) -> tuple[str, int]:
    """로그인 사용자 → (applicant_type, applicant_id)"""
    if user.role == Role.STUDENT.value:
        return ApplicantType.STUDENT.value, student_profile(db, user).id
    if user.role == Role.TEACHER.value:
        return ApplicantType.TEACHER.value, teacher_profile(db, user).id
    if user.role == Role.ADMIN.value:
        return ApplicantType.ADMIN.value, user.id
    raise forbidden("Parents cannot apply for leave")


def applicant_name(db: Session, leave: LeaveApplication) -> str | None:
    if leave.applicant_type == ApplicantType.STUDENT.value:
        person = db.get(Student, leave.applicant_id)
        return person.name if person else None
    if leave.applicant_type == ApplicantType.TEACHER.value:
        person = db.get(Teacher, leave.applicant_id)
        return person.name if person else None
    admin = db.get(User, leave.applicant_id)
    return admin.full_name if admin else None


# ==========================================================
# [신청 / 조회]
# ==========================================================

def apply_leave(db: Session, user: User, data: LeaveApplicationCreate) -> LeaveApplication:
    if db.get(LeaveType, data.leave_type_id) is None:
        raise not_found("Leave type not found")
    applicant_type, applicant_id = applicant_of(db, user)

    leave = LeaveApplication(
        **data.model_dump(),
        applicant_type=applicant_type,
        applicant_id=applicant_id,
        status=LeaveStatus.PENDING.value,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    logger.info("Leave applied: id=%s %s#%s %s~%s", leave.id, applicant_type, applicant_id,
                leave.from_date, leave.to_date)
    return leave


def _student_ids_in(db: Session, pairs) -> list[int]:
    if not pairs:
        return []
    conditions = [and_(Student.class_id == c, Student.section_id == s) for c, s in pairs]
    return [row[0] for row in db.query(Student.id).filter(or_(*conditions))]


def _student_clause(student_ids):
    return and_(
        LeaveApplication.applicant_type == ApplicantType.STUDENT.value,
        LeaveApplication.applicant_id.in_(student_ids),
    )


def _scope_query(db: Session, user: User, query):
    """역할별 조회 범위 제한"""
    if user.role == Role.ADMIN.value:
        return query
    if user.role == Role.STUDENT.value:
        student = student_profile(db, user)
        return query.filter(_student_clause([student.id]))
    if user.role == Role.PARENT.value:
        child_ids = [c.id for c in parent_profile(db, user).children]
        return query.filter(_student_clause(child_ids))

    # 교사: 본인 신청 + 담당 섹션 학생의 신청
    teacher = teacher_profile(db, user)
    student_ids = _student_ids_in(db, teacher_sections(db, teacher.id))
    return query.filter(or_(
        and_(LeaveApplication.applicant_type == ApplicantType.TEACHER.value,
             LeaveApplication.applicant_id == teacher.id),
        _student_clause(student_ids),
    ))


def list_leaves(db: Session, user: User, status: str | None = None, applicant_type: str | None = None,
                from_date: date | None = None, to_date: date | None = None, student_id: int | None = None,
                teacher_id: int | None = None, class_id: int | None = None, section_id: int | None = None):
    query = _scope_query(db, user, db.query(LeaveApplication))

    if status:
        query = query.filter(LeaveApplication.status == status)
    if applicant_type:
        query = query.filter(LeaveApplication.applicant_type == applicant_type)
    if from_date:
        query = query.filter(LeaveApplication.to_date >= from_date)
    if to_date:
        query = query.filter(LeaveApplication.from_date <= to_date)
    if student_id is not None:
        query = query.filter(_student_clause([student_id]))
    if teacher_id is not None:
        query = query.filter(
            LeaveApplication.applicant_type == ApplicantType.TEACHER.value,
            LeaveApplication.applicant_id == teacher_id,
        )
    if class_id is not None or section_id is not None:
        students = db.query(Student.id)
        if class_id is not None:
            students = students.filter(Student.class_id == class_id)
        if section_id is not None:
            students = students.filter(Student.section_id == section_id)
        query = query.filter(_student_clause([row[0] for row in students]))

    return query.order_by(LeaveApplication.created_at.desc(), LeaveApplication.id.desc()).all()


def get_leave(db: Session, user: User, leave_id: int) -> LeaveApplication:
    leave = _scope_query(db, user, db.query(LeaveApplication)).filter(LeaveApplication.id == leave_id).first()
    if leave is None:
        raise not_found("Leave application not found")
    return leave


# ==========================================================
# [상태 변경]
# ==========================================================

def _is_own(db: Session, user: User, leave: LeaveApplication) -> bool:
    try:
        applicant_type, applicant_id = applicant_of(db, user)
    except ApiError:
        return False
    return (leave.applicant_type, leave.applicant_id) == (applicant_type, applicant_id)


def _can_review(db: Session, user: User, leave: LeaveApplication) -> bool:
    if user.role == Role.ADMIN.value:
        return True
    if user.role != Role.TEACHER.value or leave.applicant_type != ApplicantType.STUDENT.value:
        return False
    student = db.get(Student, leave.applicant_id)
    if student is None:
        return False
    teacher = teacher_profile(db, user)
    return (student.class_id, student.section_id) in teacher_sections(db, teacher.id)


def update_status(db: Session, user: User, leave_id: int, status: LeaveStatus,
                  remarks: str | None = None) -> LeaveApplication:
    """
    PENDING → APPROVED / REJECTED / CANCELLED 만 허용
    - CANCELLED: 신청자 본인 또는 관리자
    - APPROVED / REJECTED: 관리자, 또는 해당 학생 섹션을 맡은 교사
    """
    leave = db.get(LeaveApplication, leave_id)
    if leave is None:
        raise not_found("Leave application not found")

    if leave.status != LeaveStatus.PENDING.value:
        raise bad_request(f"Leave application is already {leave.status} and cannot be changed")
    if status == LeaveStatus.PENDING:
        raise bad_request("Status must be APPROVED, REJECTED or CANCELLED")

    if status == LeaveStatus.CANCELLED:
        if not (_is_own(db, user, leave) or user.role == Role.ADMIN.value):
            raise forbidden("Only the applicant can cancel this leave application")
    elif not _can_review(db, user, leave):
        raise forbidden("You are not allowed to approve or reject this leave application")

    leave.status = status.value
    leave.reviewed_by_id = user.id
    if remarks:
        leave.description = f"{leave.description}\n\nRemarks ({status.value}): {remarks}"
    db.commit()
    db.refresh(leave)
    logger.info("Leave %s -> %s by user %s", leave.id, status.value, user.id)
    return leave
