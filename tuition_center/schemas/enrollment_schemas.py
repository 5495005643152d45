# tuition_center/schemas/enrollment_schemas.py
from uuid import UUID

from .common import CamelModel


class EnrollmentCreate(CamelModel):
    student_id: UUID
    class_id: UUID
