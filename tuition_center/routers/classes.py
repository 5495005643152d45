from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, get_current_user, require_roles
from ..models import UserRole
from ..schemas.class_schemas import ClassCreate, ClassUpdate, ConflictReportOut, TutorAssignment
from ..services.class_service import ClassService

router = APIRouter(prefix="/api/classes", tags=["Classes"])
staff_or_admin = require_roles(UserRole.STAFF, UserRole.ADMIN)


@router.get("")
async def list_classes(
    branch_id: Optional[UUID] = Query(None, alias="branchId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ClassService(db).list_classes(current_user, branch_id, start_date, end_date)


@router.get("/{class_id}")
async def get_class(
    class_id: UUID,
    current_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ClassService(db).get_class(class_id, current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    current_user: TokenUser = Depends(staff_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """The creating staff member becomes the tutor, so their day is checked first"""
    created = await ClassService(db).create_class(current_user, payload.model_dump())
    return {"message": "Class created successfully", "class": created}


@router.put("/{class_id}")
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    current_user: TokenUser = Depends(staff_or_admin),
    db: AsyncSession = Depends(get_db),
):
    updated = await ClassService(db).update_class(class_id, current_user, payload.model_dump(exclude_unset=True))
    return {"message": "Class updated successfully", "class": updated}


@router.delete("/{class_id}")
async def delete_class(
    class_id: UUID,
    current_user: TokenUser = Depends(staff_or_admin),
    db: AsyncSession = Depends(get_db),
):
    message = await ClassService(db).delete_class(class_id, current_user)
    return {"message": message}


@router.post(
    "/{class_id}/conflicts",
    response_model=ConflictReportOut,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def check_tutor_conflicts(class_id: UUID, payload: TutorAssignment, db: AsyncSession = Depends(get_db)):
    """Dry run of a tutor assignment"""
    report = await ClassService(db).preview_tutor_conflicts(class_id, payload.tutor_id)
    return report.to_dict()
