import csv
import logging
import sys
from datetime import date

from sqlalchemy.orm import Session

from database.db import SessionLocal, init_db
from models.classes import SchoolClass, Section
from models.enums import Role
from models.students import Student
from services import auth_service
from services.errors import ApiError

logger = logging.getLogger(__name__)

CSV_PATH = "data/students.csv"  # ✅ 기본 파일 경로
DEFAULT_PASSWORD = "changeme123"

# CSV 헤더: name,email,password,class_name,section,roll_no,gender,phone,address,date_of_birth


def _find_section(db: Session, class_name: str, section_name: str):
    section = (
        db.query(Section)
        .join(SchoolClass, Section.class_id == SchoolClass.id)
        .filter(SchoolClass.name == class_name, Section.name == section_name)
        .first()
    )
    return section


def migrate_students(db: Session, csv_path: str = CSV_PATH) -> tuple[int, list[str]]:
    """
    학생 CSV → DB (계정 + 학생 프로필)
    - 학급/섹션을 찾지 못하거나 이메일이 중복이면 해당 행만 건너뜀
    - 반환: (추가된 학생 수, 건너뛴 사유 목록)
    """
    added, skipped = 0, []

    with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for line_no, row in enumerate(reader, start=2):
            section = _find_section(db, row["class_name"].strip(), row["section"].strip())
            if section is None:
                skipped.append(f"line {line_no}: unknown class/section {row['class_name']}/{row['section']}")
                continue

            dob = row.get("date_of_birth") or None
            try:
                dob = date.fromisoformat(dob) if dob else None
            except ValueError:
                skipped.append(f"line {line_no}: invalid date_of_birth {dob!r}")
                continue

            try:
                user = auth_service.create_user(
                    db, row["email"].strip(), row.get("password") or DEFAULT_PASSWORD, Role.STUDENT, row["name"]
                )
            except ApiError as exc:
                skipped.append(f"line {line_no}: {exc.message}")
                continue

            db.add(Student(
                user_id=user.id,
                name=row["name"],                              # 학생 이름
                roll_no=row.get("roll_no") or None,            # 출석 번호
                class_id=section.class_id,                     # 소속 학급
                section_id=section.id,                         # 소속 섹션
                gender=row.get("gender") or None,
                phone=row.get("phone") or None,
                address=row.get("address") or None,
                date_of_birth=dob,
            ))
            added += 1

    db.commit()
    for reason in skipped:
        logger.warning("Skipped student row: %s", reason)
    return added, skipped


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        count, skipped = migrate_students(db, sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
    finally:
        db.close()
    print(f"✅ 학생 정보 CSV → DB 마이그레이션 완료 ({count}명 추가, {len(skipped)}건 건너뜀)")
