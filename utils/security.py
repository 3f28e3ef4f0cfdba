import secrets

import bcrypt

from config.settings import settings


# ✅ 비밀번호 해시 (bcrypt)
def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 해시 형식이 깨진 경우는 불일치로 취급
        return False


# ✅ 불투명(opaque) Bearer 토큰 발급
def generate_token() -> str:
    return secrets.token_urlsafe(48)
