import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from config.settings import settings

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """요청 처리 시간 측정 → X-Latency-Ms 헤더 + 접근 로그 (임계값 초과 시 WARNING)"""

    def __init__(self, app, slow_ms: int = settings.SLOW_REQUEST_MS):
        super().__init__(app)
        self.slow_ms = slow_ms

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = int((time.perf_counter() - started) * 1000)
        response.headers["X-Latency-Ms"] = str(elapsed)

        level = logging.WARNING if elapsed >= self.slow_ms else logging.INFO
        logger.log(level, "%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, elapsed)
        return response
