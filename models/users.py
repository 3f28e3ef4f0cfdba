from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utc_now


class User(Base):
    __tablename__ = "users"  # 로그인 계정 테이블

    id = Column(Integer, primary_key=True, index=True)            # 계정 고유 ID (PK)
    email = Column(String(120), unique=True, nullable=False)      # 로그인 이메일
    password_hash = Column(String(100), nullable=False)           # bcrypt 해시
    role = Column(String(20), nullable=False)                     # ADMIN / TEACHER / STUDENT / PARENT
    full_name = Column(String(100), nullable=False)               # 표시 이름 (관리자는 여기만 사용)
    is_active = Column(Boolean, default=True, nullable=False)     # 계정 활성 여부
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # ✅ 역할별 프로필 (1:1, 해당 역할일 때만 존재)
    student = relationship("Student", back_populates="user", uselist=False)
    teacher = relationship("Teacher", back_populates="user", uselist=False)
    parent = relationship("Parent", back_populates="user", uselist=False)

    tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")


class AuthToken(Base):
    __tablename__ = "auth_tokens"  # 발급된 Bearer 토큰

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="tokens")
