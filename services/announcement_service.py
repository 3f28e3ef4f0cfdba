import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.announcements import Announcement, AnnouncementClass, AnnouncementRole, AnnouncementSection
from models.classes import SchoolClass, Section
from models.enums import Role
from models.users import User
from schemas.announcements import AnnouncementCreate
from services.access import parent_profile, student_profile
from services.errors import bad_request, forbidden, not_found
from utils.dates import utc_now

logger = logging.getLogger(__name__)


def _visible_to(db: Session, user: User, announcement: Announcement) -> bool:
    """
    관리자: 전체
    그 외: 대상 역할이 없거나 본인 역할 포함
    학생/보호자: 학급/섹션 대상이 없거나 본인(자녀) 학급/섹션과 일치
    """
    if user.role == Role.ADMIN.value:
        return True
    if announcement.created_by_id == user.id:
        return True

    roles = {t.role for t in announcement.target_roles}
    if roles and user.role not in roles:
        return False

    class_ids = {t.class_id for t in announcement.target_classes}
    section_ids = {t.section_id for t in announcement.target_sections}
    if not class_ids and not section_ids:
        return True

    if user.role == Role.STUDENT.value:
        students = [student_profile(db, user)]
    elif user.role == Role.PARENT.value:
        students = parent_profile(db, user).children
    else:
        return True

    for student in students:
        if class_ids and student.class_id not in class_ids:
            continue
        if section_ids and student.section_id not in section_ids:
            continue
        return True
    return False


def list_announcements(db: Session, user: User, is_active: bool | None = None):
    query = db.query(Announcement)
    now = utc_now()
    if is_active is True:
        query = query.filter(or_(Announcement.expires_at.is_(None), Announcement.expires_at > now))
    elif is_active is False:
        query = query.filter(Announcement.expires_at.isnot(None), Announcement.expires_at <= now)

    records = query.order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()
    return [a for a in records if _visible_to(db, user, a)]


def get_announcement(db: Session, user: User, announcement_id: int) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None or not _visible_to(db, user, announcement):
        raise not_found("Announcement not found")
    return announcement


def _apply_targets(db: Session, announcement: Announcement, data: AnnouncementCreate) -> None:
    for class_id in data.target_class_ids:
        if db.get(SchoolClass, class_id) is None:
            raise bad_request(f"Class {class_id} does not exist")
    for section_id in data.target_section_ids:
        if db.get(Section, section_id) is None:
            raise bad_request(f"Section {section_id} does not exist")

    announcement.target_roles = [AnnouncementRole(role=r.value) for r in data.target_roles]
    announcement.target_classes = [AnnouncementClass(class_id=c) for c in data.target_class_ids]
    announcement.target_sections = [AnnouncementSection(section_id=s) for s in data.target_section_ids]


def create_announcement(db: Session, user: User, data: AnnouncementCreate) -> Announcement:
    announcement = Announcement(
        title=data.title,
        content=data.content,
        priority=data.priority.value,
        expires_at=data.expires_at,
        created_by_id=user.id,
    )
    _apply_targets(db, announcement, data)
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    logger.info("Announcement created: id=%s priority=%s by user %s", announcement.id,
                announcement.priority, user.id)
    return announcement


def _ensure_owner(user: User, announcement: Announcement) -> None:
    # 교사는 본인이 작성한 공지만 수정/삭제
    if user.role != Role.ADMIN.value and announcement.created_by_id != user.id:
        raise forbidden("You can only modify your own announcements")


def update_announcement(db: Session, user: User, announcement_id: int, data: AnnouncementCreate) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise not_found("Announcement not found")
    _ensure_owner(user, announcement)

    announcement.title = data.title
    announcement.content = data.content
    announcement.priority = data.priority.value
    announcement.expires_at = data.expires_at
    _apply_targets(db, announcement, data)
    db.commit()
    db.refresh(announcement)
    return announcement


def delete_announcement(db: Session, user: User, announcement_id: int) -> None:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise not_found("Announcement not found")
    _ensure_owner(user, announcement)
    db.delete(announcement)
    db.commit()
    logger.info("Announcement deleted: id=%s by user %s", announcement_id, user.id)


def to_dict(announcement: Announcement) -> dict:
    return {
        "id": announcement.id,
        "title": announcement.title,
        "content": announcement.content,
        "priority": announcement.priority,
        "expires_at": announcement.expires_at,
        "is_active": announcement.is_active,
        "created_by_id": announcement.created_by_id,
        "created_by_name": announcement.created_by.full_name if announcement.created_by else None,
        "target_roles": [t.role for t in announcement.target_roles],
        "target_class_ids": [t.class_id for t in announcement.target_classes],
        "target_section_ids": [t.section_id for t in announcement.target_sections],
        "created_at": announcement.created_at,
        "updated_at": announcement.updated_at,
    }
