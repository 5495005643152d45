from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import require_roles
from ..models import UserRole
from ..schemas.class_schemas import TutorAssignment
from ..schemas.common import DeletionAcknowledgement
from ..schemas.auth_schemas import UserOut
from ..schemas.user_schemas import StaffCreate, StaffUpdate
from ..services.class_service import ClassService
from ..services.user_service import UserService, user_to_dict

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


@router.get("/staff", response_model=List[UserOut])
async def list_staff(db: AsyncSession = Depends(get_db)):
    return await UserService(db).list_staff()


@router.get("/staff/{staff_id}")
async def get_staff(staff_id: UUID, db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_staff_details(staff_id)


@router.post("/staff", status_code=status.HTTP_201_CREATED)
async def create_staff(payload: StaffCreate, db: AsyncSession = Depends(get_db)):
    staff = await UserService(db).create_staff(payload.model_dump())
    return {"message": "Staff account created successfully", "staff": user_to_dict(staff)}


@router.put("/staff/{staff_id}")
async def update_staff(staff_id: UUID, payload: StaffUpdate, db: AsyncSession = Depends(get_db)):
    staff = await UserService(db).update_staff(staff_id, payload.model_dump(exclude_unset=True))
    return {"message": "Staff account updated successfully", "staff": user_to_dict(staff)}


@router.get("/staff/{staff_id}/deletion-impact")
async def staff_deletion_impact(staff_id: UUID, db: AsyncSession = Depends(get_db)):
    return await UserService(db).staff_deletion_impact(staff_id)


@router.delete("/staff/{staff_id}")
async def delete_staff(
    staff_id: UUID,
    payload: Optional[DeletionAcknowledgement] = None,
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).delete_staff(staff_id, bool(payload and payload.acknowledged))


@router.get("/classes/unassigned")
async def unassigned_classes(db: AsyncSession = Depends(get_db)):
    return await ClassService(db).list_unassigned()


@router.put("/classes/{class_id}/assign-tutor")
async def assign_tutor(class_id: UUID, payload: TutorAssignment, db: AsyncSession = Depends(get_db)):
    """Bind a tutor; rejected with 409 listing every clashing class"""
    message = await ClassService(db).assign_tutor(class_id, payload.tutor_id)
    return {"message": message}


@router.get("/users/overview")
async def users_overview(db: AsyncSession = Depends(get_db)):
    return await UserService(db).users_overview()
