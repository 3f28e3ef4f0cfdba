import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from database.db import init_db

# ✅ 로깅 설정 (settings.LOG_LEVEL)
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# HTTP 라이브러리 디버그 로그 비활성화
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


# ✅ 미들웨어 임포트
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ 라우터 임포트
from routers import (
    academic, announcements, attendance, auth,
    holidays, leaves, results, teachers, users,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 테이블이 없으면 생성 (운영 DB는 마이그레이션 후 no-op)
    init_db()
    logger.info("%s %s started (env=%s, db=%s)", settings.APP_TITLE, settings.APP_VERSION,
                settings.ENV, settings.DB_ENGINE)
    yield


app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ✅ CORS 설정 (프론트엔드 연동)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ 요청 지연 측정 미들웨어 (응답 헤더 X-Latency-Ms 추가)
app.add_middleware(TimingMiddleware)

# ✅ 전역 에러 핸들러 등록 (일관된 JSON 에러 포맷)
add_error_handlers(app)

# ✅ /v1 프리픽스 라우터 등록
app.include_router(auth.router,           prefix="/v1")
app.include_router(academic.router,       prefix="/v1")
app.include_router(users.router,          prefix="/v1")
app.include_router(teachers.router,       prefix="/v1")
app.include_router(attendance.router,     prefix="/v1")
app.include_router(results.router,        prefix="/v1")
app.include_router(leaves.router,         prefix="/v1")
app.include_router(announcements.router,  prefix="/v1")
app.include_router(holidays.router,       prefix="/v1")


# ✅ 헬스체크 엔드포인트
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}


# ✅ 루트 엔드포인트
@app.get("/")
def root():
    return {"message": f"{settings.APP_TITLE} - {settings.APP_DESCRIPTION}"}
