import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class TokenStore:
    """
    Bearer 토큰 영속화 (브라우저 localStorage 역할)
    - JSON 파일 하나에 {"token": "..."} 저장
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8")).get("token")
        except (OSError, ValueError) as exc:
            logger.warning("Token file %s unreadable: %s", self.path, exc)
            return None

    def save(self, token: str) -> None:
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class SessionState:
    """
    로그인 세션 상태 (토큰 + 사용자/프로필 캐시)
    - 클라이언트 함수에 명시적으로 전달
    - 로그아웃, 프로필 변경 시 캐시 무효화
    """

    def __init__(self, store: Optional[TokenStore] = None):
        self.store = store
        self.token: Optional[str] = store.load() if store else None
        self.user: Optional[dict[str, Any]] = None
        self.profile: Optional[dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def login(self, token: str) -> None:
        self.token = token
        self.invalidate_profile()
        if self.store:
            self.store.save(token)

    def invalidate_profile(self) -> None:
        self.user = None
        self.profile = None

    def logout(self) -> None:
        self.token = None
        self.invalidate_profile()
        if self.store:
            self.store.clear()
