from typing import Optional, Annotated
import hmac

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from database.db import get_db
from models.users import AuthToken, User
from utils.dates import utc_now

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def get_bearer_token(authorization: AuthHeader = None) -> str:
    if not authorization:
        raise _unauthorized("Missing Authorization header")

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise _unauthorized("Invalid Authorization header format")

    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Invalid auth scheme")

    return token.strip()


def get_current_user(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)) -> User:
    record = db.query(AuthToken).filter(AuthToken.token == token).first()

    # 타이밍 안전 비교
    if record is None or not hmac.compare_digest(record.token, token):
        raise _unauthorized("Invalid token")
    if record.revoked or record.expires_at <= utc_now():
        raise _unauthorized("Token expired, please log in again")

    user = record.user
    if user is None or not user.is_active:
        raise _unauthorized("Account is disabled")
    return user


def require_roles(*roles: str):
    """
    역할 기반 접근 제어 의존성 팩토리
    - 사용 예: current_user: User = Depends(require_roles("ADMIN", "TEACHER"))
    """
    allowed = {getattr(r, "value", r) for r in roles}

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=403, detail="You do not have permission to perform this action")
        return current_user

    return _checker
