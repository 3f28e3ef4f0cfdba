class PortalError(Exception):
    """포털 API 호출 실패의 공통 부모"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(PortalError):
    """응답 자체를 받지 못함 (연결 실패, 타임아웃 등)"""


class RequestRejected(PortalError):
    """4xx: 서버가 요청을 거부 (message 포함)"""


class ServerFault(PortalError):
    """5xx 또는 형식이 깨진 응답"""


class SessionExpired(RequestRejected):
    """인증 엔드포인트 외 401: 저장된 토큰을 지우고 로그인 화면으로"""
