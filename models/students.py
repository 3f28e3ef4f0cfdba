from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base


class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    id = Column(Integer, primary_key=True, index=True)                      # 고유 학생 ID (Primary Key)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)          # 로그인 계정
    name = Column(String(100), nullable=False)                              # 학생 이름
    roll_no = Column(String(20))                                            # 출석 번호
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)    # 소속 학급
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False) # 소속 섹션
    parent_id = Column(Integer, ForeignKey("parents.id"), nullable=True)    # 보호자
    gender = Column(String(10))                                             # 성별
    date_of_birth = Column(Date)                                            # 생년월일
    phone = Column(String(20))                                              # 연락처
    address = Column(String(200))                                           # 주소

    user = relationship("User", back_populates="student")
    school_class = relationship("SchoolClass")
    section = relationship("Section")
    parent = relationship("Parent", back_populates="children")


class Parent(Base):
    __tablename__ = "parents"  # 보호자 정보 테이블

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20))
    address = Column(String(200))

    user = relationship("User", back_populates="parent")
    children = relationship("Student", back_populates="parent")
