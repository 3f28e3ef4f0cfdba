from sqlalchemy import create_engine               # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base         # 모델의 Base 클래스
from sqlalchemy.orm import sessionmaker            # 세션 팩토리 함수

from config.settings import settings               # ✅ 환경변수 설정 파일 불러오기

# ✅ SQLite는 스레드 공유 옵션이 필요 (FastAPI 동기 라우터는 스레드풀에서 실행)
_connect_args = {"check_same_thread": False} if settings.DB_ENGINE == "sqlite" else {}

# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    connect_args=_connect_args,
)

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


# ==========================================================
# [공통] DB 세션 관리
# - 모든 요청에서 DB 연결을 생성하고 종료
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_models():
    """relationship 문자열 참조가 풀리도록 모든 모델 모듈을 등록"""
    from models import (  # noqa: F401
        users, students, teachers, classes, subjects,
        attendance, results, leaves, announcements, holidays,
    )


def init_db(bind=None):
    """모든 모델을 import 한 뒤 테이블을 생성"""
    load_models()
    Base.metadata.create_all(bind=bind or engine)
