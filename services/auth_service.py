import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from config.settings import settings
from models.enums import Role
from models.students import Parent, Student
from models.teachers import Teacher
from models.users import AuthToken, User
from services.errors import ApiError, bad_request
from utils.dates import utc_now
from utils.security import generate_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def create_user(db: Session, email: str, password: str, role: Role, full_name: str) -> User:
    """계정 생성 (커밋은 호출 측: 프로필과 함께 저장)"""
    if db.query(User).filter(User.email == email.lower()).first():
        raise bad_request(f"Email '{email}' is already registered")
    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        role=role.value,
        full_name=full_name,
    )
    db.add(user)
    db.flush()
    return user


def login(db: Session, email: str, password: str) -> tuple[str, User]:
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise ApiError(401, "Invalid email or password")
    if not user.is_active:
        raise ApiError(403, "Account is disabled")

    token = generate_token()
    db.add(AuthToken(
        token=token,
        user_id=user.id,
        expires_at=utc_now() + timedelta(hours=settings.AUTH_TOKEN_TTL_HOURS),
    ))
    db.commit()
    logger.info("User %s logged in (%s)", user.id, user.role)
    return token, user


def logout(db: Session, token: str) -> None:
    record = db.query(AuthToken).filter(AuthToken.token == token).first()
    if record is not None:
        record.revoked = True
        db.commit()


def profile_of(db: Session, user: User):
    """역할별 프로필 객체 (관리자는 None)"""
    model = {
        Role.STUDENT.value: Student,
        Role.TEACHER.value: Teacher,
        Role.PARENT.value: Parent,
    }.get(user.role)
    if model is None:
        return None
    return db.query(model).filter(model.user_id == user.id).first()
