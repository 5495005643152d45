from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, require_roles
from ..models import UserRole
from ..schemas.classroom_schemas import ClassroomCreate, ClassroomUpdate
from ..schemas.common import DeletionAcknowledgement
from ..services.classroom_service import ClassroomService

router = APIRouter(prefix="/api/classrooms", tags=["Classrooms"])
admin_only = require_roles(UserRole.ADMIN)
staff_or_admin = require_roles(UserRole.ADMIN, UserRole.STAFF)


@router.get("/branch/{branch_id}")
async def list_branch_classrooms(
    branch_id: UUID,
    current_user: TokenUser = Depends(staff_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """Admins also see inactive rooms"""
    include_inactive = current_user.role == UserRole.ADMIN
    return await ClassroomService(db).list_for_branch(branch_id, include_inactive=include_inactive)


@router.get("/all", dependencies=[Depends(admin_only)])
async def list_all_classrooms(db: AsyncSession = Depends(get_db)):
    return await ClassroomService(db).list_all()


@router.get("/{classroom_id}", dependencies=[Depends(staff_or_admin)])
async def get_classroom(classroom_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ClassroomService(db).get_details(classroom_id)


@router.get("/{classroom_id}/availability", dependencies=[Depends(staff_or_admin)])
async def classroom_availability(
    classroom_id: UUID,
    on: date = Query(..., alias="date", description="Day to inspect, YYYY-MM-DD"),
    exclude_class_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await ClassroomService(db).get_availability(classroom_id, on, exclude_class_id)


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(admin_only)])
async def create_classroom(payload: ClassroomCreate, db: AsyncSession = Depends(get_db)):
    classroom = await ClassroomService(db).create_classroom(payload.model_dump())
    return {"message": "Classroom created successfully", "classroom": classroom}


@router.put("/{classroom_id}", dependencies=[Depends(admin_only)])
async def update_classroom(classroom_id: UUID, payload: ClassroomUpdate, db: AsyncSession = Depends(get_db)):
    classroom = await ClassroomService(db).update_classroom(classroom_id, payload.model_dump(exclude_unset=True))
    return {"message": "Classroom updated successfully", "classroom": classroom}


@router.get("/{classroom_id}/deletion-impact", dependencies=[Depends(admin_only)])
async def classroom_deletion_impact(classroom_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ClassroomService(db).deletion_impact(classroom_id)


@router.delete("/{classroom_id}", dependencies=[Depends(admin_only)])
async def delete_classroom(
    classroom_id: UUID,
    payload: Optional[DeletionAcknowledgement] = None,
    db: AsyncSession = Depends(get_db),
):
    return await ClassroomService(db).delete_classroom(classroom_id, bool(payload and payload.acknowledged))
