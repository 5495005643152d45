from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, require_roles
from ..models import UserRole
from ..schemas.attendance_schemas import MarkAttendanceRequest
from ..services.attendance_service import AttendanceService

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])
staff_only = require_roles(UserRole.STAFF)


@router.get("/my-classes")
async def my_classes(current_user: TokenUser = Depends(staff_only), db: AsyncSession = Depends(get_db)):
    return await AttendanceService(db).list_tutor_classes(current_user.user_id)


@router.get("/class/{class_id}/students")
async def class_students(
    class_id: UUID,
    current_user: TokenUser = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService(db).list_class_students(class_id, current_user.user_id)


@router.get("/class/{class_id}/date/{on}")
async def attendance_for_date(
    class_id: UUID,
    on: date,
    current_user: TokenUser = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService(db).list_records(class_id, current_user.user_id, on)


@router.post("/class/{class_id}/date/{on}/mark")
async def mark_attendance(
    class_id: UUID,
    on: date,
    payload: MarkAttendanceRequest,
    current_user: TokenUser = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    records = [record.model_dump() for record in payload.attendance_records]
    return await AttendanceService(db).mark(class_id, current_user.user_id, on, records)


@router.get("/class/{class_id}/summary")
async def attendance_summary(
    class_id: UUID,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: TokenUser = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService(db).summary(class_id, current_user.user_id, start_date, end_date)
