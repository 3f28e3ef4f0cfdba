from datetime import timedelta

from models.users import AuthToken
from utils.dates import utc_now


# ==========================================================
# [인증]
# ==========================================================

def test_login_returns_token_and_profile(client, school):
    res = client.post("/v1/auth/login", json={"email": "Sita@School.test", "password": "secret123"})

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "success"
    assert body["data"]["user"]["role"] == "TEACHER"
    assert body["data"]["user"]["fullName"] == "Sita Sharma"
    assert body["data"]["profileId"] == school.sita_id

    token = body["data"]["token"]
    me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["email"] == "sita@school.test"


def test_wrong_password(client, school):
    res = client.post("/v1/auth/login", json={"email": "sita@school.test", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid email or password"


def test_missing_and_malformed_headers(client, school):
    assert client.get("/v1/auth/me").status_code == 401
    assert client.get("/v1/auth/me", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/v1/auth/me", headers={"Authorization": "Bearer unknown"}).status_code == 401


def test_logout_revokes_token(client, school, auth):
    assert client.post("/v1/auth/logout", headers=auth("aarav")).status_code == 200
    res = client.get("/v1/auth/me", headers=auth("aarav"))
    assert res.status_code == 401
    assert res.json()["message"] == "Token expired, please log in again"


def test_expired_token_rejected(client, db, school, auth):
    record = db.query(AuthToken).filter(AuthToken.token == school.tokens["bina"]).first()
    record.expires_at = utc_now() - timedelta(minutes=1)
    db.commit()

    assert client.get("/v1/auth/me", headers=auth("bina")).status_code == 401


# ==========================================================
# [사용자]
# ==========================================================

def test_admin_creates_student_with_account(client, school, auth):
    res = client.post("/v1/users/students", headers=auth("admin"), json={
        "email": "dipa@school.test", "password": "secret123", "name": "Dipa Gurung",
        "rollNo": "3", "classId": school.class_id, "sectionId": school.section_a,
    })
    assert res.status_code == 201
    assert res.json()["data"]["rollNo"] == "3"

    login = client.post("/v1/auth/login", json={"email": "dipa@school.test", "password": "secret123"})
    assert login.json()["data"]["user"]["role"] == "STUDENT"

    duplicate = client.post("/v1/users/students", headers=auth("admin"), json={
        "email": "dipa@school.test", "password": "secret123", "name": "Dipa Again",
        "classId": school.class_id, "sectionId": school.section_a,
    })
    assert duplicate.status_code == 400


def test_student_section_must_match_class(client, school, auth):
    other = client.post("/v1/academic/classes", headers=auth("admin"), json={"name": "Class 6", "grade": 6})
    res = client.post("/v1/users/students", headers=auth("admin"), json={
        "email": "x@school.test", "password": "secret123", "name": "X",
        "classId": other.json()["data"]["id"], "sectionId": school.section_a,
    })
    assert res.status_code == 400


def test_teacher_lists_only_own_sections(client, school, auth):
    assert client.get("/v1/users/students", headers=auth("sita")).status_code == 400

    res = client.get("/v1/users/students", headers=auth("sita"), params={
        "classId": school.class_id, "sectionId": school.section_a,
    })
    assert [s["name"] for s in res.json()["data"]] == ["Aarav Karki", "Bina Rai"]

    res = client.get("/v1/users/students", headers=auth("sita"), params={
        "classId": school.class_id, "sectionId": school.section_b,
    })
    assert res.status_code == 403
    assert client.get("/v1/users/students", headers=auth("aarav")).status_code == 403


def test_me_and_profile_update(client, school, auth):
    me = client.get("/v1/users/me", headers=auth("ram")).json()["data"]
    assert me["user"]["role"] == "PARENT"
    assert me["profile"]["id"] == school.parent_id

    res = client.patch("/v1/users/me", headers=auth("ram"), json={"phone": "9801234567"})
    assert res.json()["data"]["profile"]["phone"] == "9801234567"

    admin = client.get("/v1/users/me", headers=auth("admin")).json()["data"]
    assert admin["profile"] is None


# ==========================================================
# [학사 구조 / 배정]
# ==========================================================

def test_class_and_section_management(client, school, auth):
    classes = client.get("/v1/academic/classes", headers=auth("aarav")).json()["data"]
    assert [s["name"] for s in classes[0]["sections"]] == ["A", "B"]

    assert client.post("/v1/academic/classes", headers=auth("sita"), json={"name": "Class 7"}).status_code == 403
    assert client.post("/v1/academic/classes", headers=auth("admin"), json={"name": "Class 5"}).status_code == 400

    res = client.post("/v1/academic/sections", headers=auth("admin"), json={
        "name": "A", "classId": school.class_id,
    })
    assert res.status_code == 400
    assert res.json()["message"] == "Section 'A' already exists in this class"

    res = client.post("/v1/academic/sections", headers=auth("admin"), json={
        "name": "C", "classId": school.class_id, "capacity": 35,
    })
    assert res.status_code == 201
    sections = client.get("/v1/academic/sections", headers=auth("sita"), params={"classId": school.class_id})
    assert [s["name"] for s in sections.json()["data"]] == ["A", "B", "C"]


def test_class_subjects(client, school, auth):
    subject = client.post("/v1/academic/subjects", headers=auth("admin"), json={"name": "English", "code": "ENG"})
    assert subject.status_code == 201

    res = client.post(f"/v1/academic/classes/{school.class_id}/subjects", headers=auth("admin"),
                      json={"subjectIds": [subject.json()["data"]["id"], school.math_id]})
    assert [s["code"] for s in res.json()["data"]] == ["ENG", "MATH", "SCI"]


def test_class_teacher_assignment_is_unique(client, school, auth):
    res = client.post("/v1/teachers/class-teacher-assignments", headers=auth("admin"), json={
        "teacherId": school.hari_id, "classId": school.class_id, "sectionId": school.section_a,
    })
    assert res.status_code == 400

    res = client.post("/v1/teachers/class-teacher-assignments", headers=auth("admin"), json={
        "teacherId": school.hari_id, "classId": school.class_id, "sectionId": school.section_b,
    })
    assert res.status_code == 201
    assert res.json()["data"]["sectionName"] == "B"

    mine = client.get("/v1/teachers/class-teacher-assignments", headers=auth("hari")).json()["data"]
    assert [(a["classId"], a["sectionId"]) for a in mine] == [(school.class_id, school.section_b)]


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
    assert "X-Latency-Ms" in client.get("/health").headers


def test_slow_requests_logged_as_warning(caplog):
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from middlewares.timing import TimingMiddleware

    app = FastAPI()
    app.add_middleware(TimingMiddleware, slow_ms=0)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    with caplog.at_level("INFO", logger="middlewares.timing"):
        TestClient(app).get("/ping")

    assert any(r.levelname == "WARNING" and "GET /ping -> 200" in r.getMessage() for r in caplog.records)


def test_utc_now_is_naive_utc():
    from datetime import datetime, timezone

    now = utc_now()
    assert now.tzinfo is None
    assert abs((datetime.now(timezone.utc).replace(tzinfo=None) - now).total_seconds()) < 5
