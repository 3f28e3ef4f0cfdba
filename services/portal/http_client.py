import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config.settings import settings
from services.portal.envelopes import ErrorEnvelope, SuccessEnvelope, envelope_adapter
from services.portal.errors import RequestRejected, ServerFault, SessionExpired, TransportError
from services.portal.session import SessionState

logger = logging.getLogger(__name__)


class PortalClient:
    """
    학교 포털 REST API 비동기 클라이언트
    - Authorization: Bearer <token> 자동 첨부 (SessionState)
    - 응답 봉투 검증 후 data 만 반환
    - /auth/ 이외 경로의 401 → 토큰 삭제 + SessionExpired
    """

    def __init__(
        self,
        session: SessionState,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.base = (base_url or settings.PORTAL_API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base,
            timeout=timeout or settings.PORTAL_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    async def request(self, method: str, path: str, *, params: Optional[dict] = None,
                      json: Any = None) -> SuccessEnvelope:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            r = await self._client.request(method, path, params=params, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("%s %s: no response (%s)", method, path, exc)
            raise TransportError(f"Could not reach the server: {exc}") from exc

        if r.status_code == 401 and not path.lstrip("/").startswith("auth/"):
            logger.warning("%s %s: session expired, clearing token", method, path)
            self.session.logout()
            raise SessionExpired("Your session has expired. Please log in again.", 401)

        try:
            envelope = envelope_adapter.validate_python(r.json())
        except (ValueError, ValidationError) as exc:
            # JSON 파싱 실패도 ValueError
            if r.status_code >= 500:
                raise ServerFault(f"Server error ({r.status_code})", r.status_code) from exc
            if r.status_code >= 400:
                raise RequestRejected(f"Request failed ({r.status_code})", r.status_code) from exc
            raise ServerFault("Unexpected response from server", r.status_code) from exc

        if r.status_code >= 500:
            raise ServerFault(envelope.message or "Server error", r.status_code)
        if r.status_code >= 400 or isinstance(envelope, ErrorEnvelope):
            raise RequestRejected(envelope.message or "Request failed", r.status_code)
        return envelope

    # 필요 엔드포인트에 맞춰 메서드 노출
    async def get(self, path: str, **params) -> Any:
        return (await self.request("GET", path, params=params)).data

    async def post(self, path: str, json: Any = None) -> Any:
        return (await self.request("POST", path, json=json)).data

    async def patch(self, path: str, json: Any = None) -> Any:
        return (await self.request("PATCH", path, json=json)).data

    # ==========================================================
    # 인증 / 내 정보
    # ==========================================================

    async def login(self, email: str, password: str) -> dict:
        data = await self.post("/auth/login", {"email": email, "password": password})
        self.session.login(data["token"])
        return data

    async def logout(self) -> None:
        try:
            await self.post("/auth/logout")
        finally:
            self.session.logout()

    async def me(self) -> dict:
        """사용자/프로필 캐시가 있으면 재사용"""
        if self.session.user is None:
            data = await self.get("/users/me")
            self.session.user = data["user"]
            self.session.profile = data["profile"]
        return {"user": self.session.user, "profile": self.session.profile}

    async def update_profile(self, **changes) -> dict:
        data = await self.patch("/users/me", changes)
        self.session.invalidate_profile()
        return data
