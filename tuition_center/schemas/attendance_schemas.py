# tuition_center/schemas/attendance_schemas.py
from typing import List, Optional
from uuid import UUID
from pydantic import Field

from .common import CamelModel
from ..models.attendance import AttendanceStatus


class AttendanceRecordIn(CamelModel):
    enrollment_id: UUID
    student_id: UUID
    status: AttendanceStatus
    notes: Optional[str] = Field(None, max_length=1000)


class MarkAttendanceRequest(CamelModel):
    attendance_records: List[AttendanceRecordIn] = Field(..., min_length=1)
