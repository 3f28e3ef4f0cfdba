"""
역할별 접근 범위 판단 헬퍼
- 출결/휴가/성적 라우터가 공통으로 사용
- 모든 함수는 조회만 하고 커밋하지 않음
"""

from sqlalchemy.orm import Session

from models.enums import Role
from models.students import Parent, Student
from models.teachers import ClassTeacherAssignment, Teacher, TeacherSubjectAssignment
from models.users import User
from services.errors import ApiError, forbidden


def teacher_profile(db: Session, user: User) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.user_id == user.id).first()
    if teacher is None:
        raise ApiError(404, "Teacher profile not found")
    return teacher


def student_profile(db: Session, user: User) -> Student:
    student = db.query(Student).filter(Student.user_id == user.id).first()
    if student is None:
        raise ApiError(404, "Student profile not found")
    return student


def parent_profile(db: Session, user: User) -> Parent:
    parent = db.query(Parent).filter(Parent.user_id == user.id).first()
    if parent is None:
        raise ApiError(404, "Parent profile not found")
    return parent


def is_class_teacher(db: Session, teacher_id: int, class_id: int, section_id: int) -> bool:
    return db.query(ClassTeacherAssignment).filter(
        ClassTeacherAssignment.teacher_id == teacher_id,
        ClassTeacherAssignment.class_id == class_id,
        ClassTeacherAssignment.section_id == section_id,
    ).first() is not None


def teaches_section(db: Session, teacher_id: int, class_id: int, section_id: int) -> bool:
    """담임이거나 해당 섹션의 교과 담당인지"""
    if is_class_teacher(db, teacher_id, class_id, section_id):
        return True
    return db.query(TeacherSubjectAssignment).filter(
        TeacherSubjectAssignment.teacher_id == teacher_id,
        TeacherSubjectAssignment.class_id == class_id,
        TeacherSubjectAssignment.section_id == section_id,
    ).first() is not None


def teacher_sections(db: Session, teacher_id: int) -> set[tuple[int, int]]:
    """교사가 담임 또는 교과로 맡은 (class_id, section_id) 집합"""
    pairs = {
        (a.class_id, a.section_id)
        for a in db.query(ClassTeacherAssignment).filter(ClassTeacherAssignment.teacher_id == teacher_id)
    }
    pairs.update(
        (a.class_id, a.section_id)
        for a in db.query(TeacherSubjectAssignment).filter(TeacherSubjectAssignment.teacher_id == teacher_id)
    )
    return pairs


def ensure_section_access(db: Session, user: User, class_id: int, section_id: int) -> None:
    """
    섹션 단위 조회 권한 확인
    - 관리자: 전체
    - 교사: 담임 또는 교과 담당
    - 학생: 본인 섹션
    - 보호자: 자녀가 속한 섹션
    """
    if user.role == Role.ADMIN.value:
        return
    if user.role == Role.TEACHER.value:
        teacher = teacher_profile(db, user)
        if teaches_section(db, teacher.id, class_id, section_id):
            return
    elif user.role == Role.STUDENT.value:
        student = student_profile(db, user)
        if (student.class_id, student.section_id) == (class_id, section_id):
            return
    elif user.role == Role.PARENT.value:
        parent = parent_profile(db, user)
        if any((c.class_id, c.section_id) == (class_id, section_id) for c in parent.children):
            return
    raise forbidden("You do not have access to this class section")


def ensure_student_access(db: Session, user: User, student: Student) -> None:
    """학생 단위 조회 권한 확인 (본인, 보호자, 담당 교사, 관리자)"""
    if user.role == Role.STUDENT.value:
        if student.user_id != user.id:
            raise forbidden("Students can only view their own records")
        return
    if user.role == Role.PARENT.value:
        parent = parent_profile(db, user)
        if student.parent_id != parent.id:
            raise forbidden("Parents can only view their own children's records")
        return
    ensure_section_access(db, user, student.class_id, student.section_id)
