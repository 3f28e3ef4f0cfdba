import os

# 설정 객체가 만들어지기 전에 테스트용 환경변수 지정
os.environ.setdefault("DB_ENGINE", "sqlite")
os.environ.setdefault("SQLITE_PATH", ":memory:")
os.environ["BCRYPT_ROUNDS"] = "4"

from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database.db import get_db, init_db
from main import app
from models.classes import ClassSubject, SchoolClass, Section
from models.enums import Role
from models.holidays import HolidayType
from models.leaves import LeaveType
from models.students import Parent, Student
from models.subjects import Subject
from models.teachers import ClassTeacherAssignment, Teacher, TeacherSubjectAssignment
from services import auth_service
from services.portal.http_client import PortalClient
from services.portal.session import SessionState

PASSWORD = "secret123"


@pytest.fixture()
def engine(tmp_path):
    # 동시 요청(asyncio.gather)도 각자 연결을 쓰도록 파일 DB 사용
    engine = create_engine(
        f"sqlite:///{tmp_path / 'school.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _account(db, email, role, name):
    return auth_service.create_user(db, email, PASSWORD, role, name)


@pytest.fixture()
def school(db):
    """
    5학년 A/B 섹션 기본 데이터
    - sita: 5A 담임 + 5A 수학
    - hari: 5B 과학 교과 담당 (담임 아님)
    - aarav, bina: 5A 학생 (aarav 의 보호자 = ram)
    - chandra: 5B 학생
    """
    admin = _account(db, "admin@school.test", Role.ADMIN, "Administrator")

    grade5 = SchoolClass(name="Class 5", grade=5)
    db.add(grade5)
    db.flush()
    sec_a = Section(name="A", class_id=grade5.id, capacity=40)
    sec_b = Section(name="B", class_id=grade5.id, capacity=40)
    math = Subject(name="Mathematics", code="MATH")
    science = Subject(name="Science", code="SCI")
    db.add_all([sec_a, sec_b, math, science])
    db.flush()
    db.add_all([
        ClassSubject(class_id=grade5.id, subject_id=math.id),
        ClassSubject(class_id=grade5.id, subject_id=science.id),
    ])

    sita_user = _account(db, "sita@school.test", Role.TEACHER, "Sita Sharma")
    hari_user = _account(db, "hari@school.test", Role.TEACHER, "Hari Thapa")
    sita = Teacher(user_id=sita_user.id, name="Sita Sharma")
    hari = Teacher(user_id=hari_user.id, name="Hari Thapa")
    db.add_all([sita, hari])
    db.flush()
    db.add_all([
        ClassTeacherAssignment(teacher_id=sita.id, class_id=grade5.id, section_id=sec_a.id),
        TeacherSubjectAssignment(teacher_id=sita.id, class_id=grade5.id, section_id=sec_a.id, subject_id=math.id),
        TeacherSubjectAssignment(teacher_id=hari.id, class_id=grade5.id, section_id=sec_b.id,
                                 subject_id=science.id),
    ])

    ram_user = _account(db, "ram@school.test", Role.PARENT, "Ram Karki")
    ram = Parent(user_id=ram_user.id, name="Ram Karki")
    db.add(ram)
    db.flush()

    aarav_user = _account(db, "aarav@school.test", Role.STUDENT, "Aarav Karki")
    bina_user = _account(db, "bina@school.test", Role.STUDENT, "Bina Rai")
    chandra_user = _account(db, "chandra@school.test", Role.STUDENT, "Chandra Lama")
    aarav = Student(user_id=aarav_user.id, name="Aarav Karki", roll_no="1", class_id=grade5.id,
                    section_id=sec_a.id, parent_id=ram.id)
    bina = Student(user_id=bina_user.id, name="Bina Rai", roll_no="2", class_id=grade5.id, section_id=sec_a.id)
    chandra = Student(user_id=chandra_user.id, name="Chandra Lama", roll_no="1", class_id=grade5.id,
                      section_id=sec_b.id)
    db.add_all([aarav, bina, chandra])

    sick = LeaveType(name="Sick Leave", description="Leave due to illness")
    public = HolidayType(name="Public Holiday")
    db.add_all([sick, public])
    db.commit()

    tokens = {
        key: auth_service.login(db, email, PASSWORD)[0]
        for key, email in [
            ("admin", "admin@school.test"),
            ("sita", "sita@school.test"),
            ("hari", "hari@school.test"),
            ("ram", "ram@school.test"),
            ("aarav", "aarav@school.test"),
            ("bina", "bina@school.test"),
            ("chandra", "chandra@school.test"),
        ]
    }

    return SimpleNamespace(
        admin_id=admin.id,
        class_id=grade5.id,
        section_a=sec_a.id,
        section_b=sec_b.id,
        math_id=math.id,
        science_id=science.id,
        sita_id=sita.id,
        hari_id=hari.id,
        parent_id=ram.id,
        aarav_id=aarav.id,
        bina_id=bina.id,
        chandra_id=chandra.id,
        sick_leave_id=sick.id,
        public_holiday_id=public.id,
        tokens=tokens,
    )


@pytest.fixture()
def auth(school):
    """auth("sita") → Authorization 헤더"""
    def _headers(who: str) -> dict:
        return {"Authorization": f"Bearer {school.tokens[who]}"}
    return _headers


@pytest.fixture()
def make_portal(client, school):
    """ASGI 앱에 직접 붙는 PortalClient (who 의 토큰으로 로그인된 상태)"""
    def _make(who=None):
        session = SessionState()
        if who:
            session.login(school.tokens[who])
        return PortalClient(session, base_url="http://testserver/v1", transport=httpx.ASGITransport(app=app))
    return _make
