from datetime import date, timedelta

from models.teachers import Teacher
from services import attendance_service

SCHOOL_DAY = "2025-04-09"   # 수요일
SATURDAY = "2025-04-12"


def _payload(school, day=SCHOOL_DAY, records=None, section_id=None):
    return {
        "date": day,
        "classId": school.class_id,
        "sectionId": section_id or school.section_a,
        "records": records or [
            {"studentId": school.aarav_id, "status": "PRESENT"},
            {"studentId": school.bina_id, "status": "LATE", "remarks": "Bus delay"},
        ],
    }


def _next_weekday_after_today():
    day = date.today() + timedelta(days=3)
    if day.weekday() == 5:
        day += timedelta(days=1)
    return day


# ==========================================================
# [일일 출결 등록]
# ==========================================================

def test_class_teacher_marks_attendance(client, school, auth):
    res = client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "success"
    assert body["data"]["markedCount"] == 2

    res = client.get("/v1/attendance/daily", headers=auth("sita"), params={
        "date": SCHOOL_DAY, "classId": school.class_id, "sectionId": school.section_a,
    })
    data = res.json()["data"]
    assert data["isMarked"] is True
    assert [a["status"] for a in data["attendance"]] == ["PRESENT", "LATE"]
    assert data["summary"]["late"] == 1


def test_resubmission_replaces_previous_records(client, school, auth):
    client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))
    res = client.post("/v1/attendance/daily", headers=auth("sita"), json=_payload(
        school, records=[{"studentId": school.aarav_id, "status": "ABSENT"}],
    ))
    assert res.status_code == 201

    data = client.get("/v1/attendance/daily", headers=auth("admin"), params={
        "date": SCHOOL_DAY, "classId": school.class_id, "sectionId": school.section_a,
    }).json()["data"]
    rows = {a["studentId"]: a for a in data["attendance"]}
    assert rows[school.aarav_id]["status"] == "ABSENT" and rows[school.aarav_id]["isMarked"]
    # 재제출에 빠진 학생은 미기록(ABSENT 로 표시)
    assert rows[school.bina_id]["isMarked"] is False
    assert data["summary"]["unmarked"] == 1


def test_saturday_is_rejected(client, school, auth):
    res = client.post("/v1/attendance/daily", json=_payload(school, day=SATURDAY), headers=auth("sita"))

    assert res.status_code == 400
    assert res.json()["message"] == "Attendance cannot be marked on Saturdays"
    assert res.json()["error"]["code"] == "BAD_REQUEST"


def test_future_date_is_rejected(client, school, auth):
    day = _next_weekday_after_today().isoformat()
    res = client.post("/v1/attendance/daily", json=_payload(school, day=day), headers=auth("sita"))

    assert res.status_code == 400
    assert res.json()["message"] == "Attendance cannot be marked for future dates"


def test_holiday_is_rejected(client, school, auth):
    created = client.post("/v1/holidays", headers=auth("admin"), json={
        "name": "New Year Holiday", "fromDate": "2025-04-14", "holidayTypeId": school.public_holiday_id,
    })
    assert created.status_code == 201

    res = client.post("/v1/attendance/daily", json=_payload(school, day="2025-04-14"), headers=auth("sita"))
    assert res.status_code == 400
    assert res.json()["message"] == "Attendance cannot be marked on a holiday"


def test_only_class_teacher_can_mark(client, school, auth):
    res = client.post("/v1/attendance/daily", json=_payload(school), headers=auth("hari"))
    assert res.status_code == 403

    res = client.post("/v1/attendance/daily", json=_payload(school), headers=auth("admin"))
    assert res.status_code == 403


def test_student_outside_section_is_rejected(client, school, auth):
    res = client.post("/v1/attendance/daily", headers=auth("sita"), json=_payload(
        school, records=[{"studentId": school.chandra_id, "status": "PRESENT"}],
    ))
    assert res.status_code == 400
    assert "not in this class/section" in res.json()["message"]


def test_empty_records_fail_validation(client, school, auth):
    payload = _payload(school)
    payload["records"] = []
    res = client.post("/v1/attendance/daily", json=payload, headers=auth("sita"))
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ==========================================================
# [통계 / 미기록일 / 월간]
# ==========================================================

def test_stats_report_marked_days(client, school, auth):
    client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))

    res = client.get("/v1/attendance/stats", headers=auth("sita"), params={
        "classId": school.class_id, "sectionId": school.section_a, "month": 4, "year": 2025,
    })
    data = res.json()["data"]

    # 4월 30일 중 토요일 4일 제외
    assert data["workingDays"] == 26
    assert data["totalStudents"] == 2
    marked = [d for d in data["dailyStats"] if d["markedCount"] > 0]
    assert [d["date"] for d in marked] == [SCHOOL_DAY]
    assert marked[0]["presentCount"] == 2
    assert data["averagePercentage"] == 100.0


def test_stats_forbidden_for_other_section_teacher(client, school, auth):
    res = client.get("/v1/attendance/stats", headers=auth("hari"), params={
        "classId": school.class_id, "sectionId": school.section_a, "month": 4, "year": 2025,
    })
    assert res.status_code == 403


def test_pending_days_exclude_marked_saturdays_and_holidays(client, db, school, auth):
    client.post("/v1/holidays", headers=auth("admin"), json={
        "name": "Spring Break", "fromDate": "2025-04-02", "toDate": "2025-04-03",
        "holidayTypeId": school.public_holiday_id,
    })
    client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))

    teacher = db.get(Teacher, school.sita_id)
    data = attendance_service.get_pending_days(db, teacher, 4, 2025, today=date(2025, 4, 11))

    assert data["pendingDates"] == [
        "2025-04-01", "2025-04-04", "2025-04-06", "2025-04-07", "2025-04-08", "2025-04-10", "2025-04-11",
    ]
    assert data["pendingCount"] == 7
    assert data["sections"][0]["sectionId"] == school.section_a
    assert data["sections"][0]["pendingCount"] == 7


def test_pending_days_future_month_is_empty(db, school):
    teacher = db.get(Teacher, school.sita_id)
    data = attendance_service.get_pending_days(db, teacher, 5, 2025, today=date(2025, 4, 11))
    assert data["pendingDates"] == []


def test_pending_days_endpoint_requires_teacher(client, school, auth):
    assert client.get("/v1/attendance/pending-days", headers=auth("admin")).status_code == 403
    res = client.get("/v1/attendance/pending-days", headers=auth("sita"), params={"month": 1, "year": 2020})
    assert res.status_code == 200
    assert res.json()["data"]["month"] == 1


def test_parent_sees_child_monthly_attendance(client, school, auth):
    client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))

    res = client.get("/v1/attendance/monthly", headers=auth("ram"), params={
        "studentId": school.aarav_id, "month": 4, "year": 2025,
    })
    data = res.json()["data"]
    assert data["presentCount"] == 1
    assert data["percentage"] == 100.0
    assert data["records"][0]["date"] == SCHOOL_DAY

    res = client.get("/v1/attendance/monthly", headers=auth("chandra"), params={
        "studentId": school.aarav_id, "month": 4, "year": 2025,
    })
    assert res.status_code == 403


# ==========================================================
# [과목별 출결]
# ==========================================================

def _subject_payload(school, student_id=None, subject_id=None, present=True, day=SCHOOL_DAY):
    return {
        "studentId": student_id or school.aarav_id,
        "subjectId": subject_id or school.math_id,
        "isPresent": present,
        "date": day,
    }


def test_subject_teacher_marks_subject_attendance(client, school, auth):
    res = client.post("/v1/attendance/subject", json=_subject_payload(school), headers=auth("sita"))

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["attendanceDate"] == SCHOOL_DAY
    assert (data["lectureConducted"], data["presentCount"], data["absentCount"]) == (1, 1, 0)

    again = client.post("/v1/attendance/subject", json=_subject_payload(school, present=False),
                        headers=auth("sita"))
    assert again.status_code == 400
    assert again.json()["message"] == "Attendance already marked for this date"


def test_subject_attendance_requires_subject_assignment(client, school, auth):
    # 하리는 5B 과학 담당이라 5A 학생은 기록할 수 없다
    res = client.post("/v1/attendance/subject", headers=auth("hari"),
                      json=_subject_payload(school, subject_id=school.science_id))
    assert res.status_code == 403

    res = client.post("/v1/attendance/subject", headers=auth("hari"), json=_subject_payload(
        school, student_id=school.chandra_id, subject_id=school.science_id, present=False,
    ))
    assert res.status_code == 201
    assert res.json()["data"]["absentCount"] == 1

    assert client.post("/v1/attendance/subject", json=_subject_payload(school),
                       headers=auth("admin")).status_code == 403


def test_subject_attendance_validation(client, school, auth):
    payload = _subject_payload(school)
    payload["isPresent"] = "yes"
    assert client.post("/v1/attendance/subject", json=payload, headers=auth("sita")).status_code == 422

    future = _subject_payload(school, day=_next_weekday_after_today().isoformat())
    res = client.post("/v1/attendance/subject", json=future, headers=auth("sita"))
    assert res.status_code == 400

    res = client.post("/v1/attendance/subject", json=_subject_payload(school, student_id=9999),
                      headers=auth("sita"))
    assert res.status_code == 404


def test_read_subject_attendance_by_range(client, school, auth):
    for day, present in (("2025-04-07", True), ("2025-04-08", False), (SCHOOL_DAY, True)):
        client.post("/v1/attendance/subject", headers=auth("sita"),
                    json=_subject_payload(school, present=present, day=day))

    res = client.get("/v1/attendance/subject", headers=auth("aarav"), params={
        "studentId": school.aarav_id, "subjectId": school.math_id,
    })
    assert [r["attendanceDate"] for r in res.json()["data"]] == [SCHOOL_DAY, "2025-04-08", "2025-04-07"]

    res = client.get("/v1/attendance/subject", headers=auth("ram"), params={
        "studentId": school.aarav_id, "subjectId": school.math_id,
        "startDate": "2025-04-08", "endDate": "2025-04-08",
    })
    assert [r["absentCount"] for r in res.json()["data"]] == [1]

    res = client.get("/v1/attendance/subject", headers=auth("bina"), params={
        "studentId": school.aarav_id, "subjectId": school.math_id,
    })
    assert res.status_code == 403

    res = client.get("/v1/attendance/subject", headers=auth("sita"), params={
        "studentId": school.aarav_id, "subjectId": school.math_id,
        "startDate": "2025-04-09", "endDate": "2025-04-01",
    })
    assert res.status_code == 400


# ==========================================================
# [학급 출결 현황]
# ==========================================================

def test_class_attendance_overview(client, school, auth):
    client.post("/v1/attendance/daily", json=_payload(school), headers=auth("sita"))
    params = {"classId": school.class_id, "sectionId": school.section_a, "date": SCHOOL_DAY}

    res = client.get("/v1/attendance/class", headers=auth("sita"), params=params)

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["class"]["name"] == "Class 5" and data["section"]["name"] == "A"
    assert data["classTeachers"] == [{"id": school.sita_id, "name": "Sita Sharma"}]
    assert [s["student"]["name"] for s in data["students"]] == ["Aarav Karki", "Bina Rai"]
    assert data["students"][1]["attendance"]["status"] == "LATE"
    assert data["students"][1]["attendance"]["markedBy"] == "Sita Sharma"
    assert data["summary"]["present"] == 1
    assert data["summary"]["attendancePercentage"] == 50.0

    unmarked = client.get("/v1/attendance/class", headers=auth("admin"), params={**params, "date": "2025-04-08"})
    assert all(s["attendance"] is None for s in unmarked.json()["data"]["students"])
    assert unmarked.json()["data"]["summary"]["unmarked"] == 2


def test_class_attendance_is_teacher_scoped(client, school, auth):
    params = {"classId": school.class_id, "sectionId": school.section_a, "date": SCHOOL_DAY}

    res = client.get("/v1/attendance/class", headers=auth("hari"), params=params)
    assert res.status_code == 403
    assert res.json()["message"] == "You are not authorized to view attendance for this class/section"

    assert client.get("/v1/attendance/class", headers=auth("aarav"), params=params).status_code == 403
    assert client.get("/v1/attendance/class", headers=auth("hari"), params={
        **params, "sectionId": school.section_b,
    }).status_code == 200
