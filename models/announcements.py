from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utc_now


class Announcement(Base):
    __tablename__ = "announcements"  # 공지사항 테이블

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)  # 공지 고유 ID
    title = Column(String(150), nullable=False)                             # 공지 제목
    content = Column(Text, nullable=False)                                  # 공지 내용
    priority = Column(String(10), default="NORMAL", nullable=False)         # LOW / NORMAL / HIGH / URGENT
    expires_at = Column(DateTime, nullable=True)                            # 만료 시각 (없으면 계속 유효)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False) # 작성자 계정
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    created_by = relationship("User")

    # ✅ 대상 지정 (비어 있으면 전체 대상)
    target_roles = relationship("AnnouncementRole", cascade="all, delete-orphan")
    target_classes = relationship("AnnouncementClass", cascade="all, delete-orphan")
    target_sections = relationship("AnnouncementSection", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        # 만료 시각 기준으로 파생되는 값 (DB에 저장하지 않음)
        return self.expires_at is None or self.expires_at > utc_now()


class AnnouncementRole(Base):
    __tablename__ = "announcement_roles"

    id = Column(Integer, primary_key=True)
    announcement_id = Column(Integer, ForeignKey("announcements.id"), nullable=False)
    role = Column(String(20), nullable=False)


class AnnouncementClass(Base):
    __tablename__ = "announcement_classes"

    id = Column(Integer, primary_key=True)
    announcement_id = Column(Integer, ForeignKey("announcements.id"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)

    school_class = relationship("SchoolClass")


class AnnouncementSection(Base):
    __tablename__ = "announcement_sections"

    id = Column(Integer, primary_key=True)
    announcement_id = Column(Integer, ForeignKey("announcements.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)

    section = relationship("Section")
