from schemas.common import CamelModel


class ClassTeacherAssignmentCreate(CamelModel):
    teacher_id: int
    class_id: int
    section_id: int


class ClassTeacherAssignmentOut(ClassTeacherAssignmentCreate):
    id: int


class SubjectAssignmentCreate(CamelModel):
    teacher_id: int
    class_id: int
    section_id: int
    subject_id: int


class SubjectAssignmentOut(SubjectAssignmentCreate):
    id: int
