from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import require_roles
from ..models import UserRole
from ..schemas.branch_schemas import BranchCreate, BranchOut, BranchUpdate
from ..schemas.common import DeletionAcknowledgement
from ..services.branch_service import BranchService

router = APIRouter(prefix="/api/branches", tags=["Branches"])
admin_only = require_roles(UserRole.ADMIN)


@router.get("", response_model=List[BranchOut])
async def list_active_branches(db: AsyncSession = Depends(get_db)):
    """Public list used on the registration form"""
    return await BranchService(db).list_branches()


@router.get("/all", response_model=List[BranchOut], dependencies=[Depends(admin_only)])
async def list_all_branches(db: AsyncSession = Depends(get_db)):
    return await BranchService(db).list_branches(include_inactive=True)


@router.get("/{branch_id}", response_model=BranchOut, dependencies=[Depends(admin_only)])
async def get_branch(branch_id: UUID, db: AsyncSession = Depends(get_db)):
    return await BranchService(db).get_branch(branch_id)


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(admin_only)])
async def create_branch(payload: BranchCreate, db: AsyncSession = Depends(get_db)):
    branch = await BranchService(db).create_branch(payload.model_dump())
    return {"message": "Branch created successfully", "branch": BranchOut.model_validate(branch)}


@router.put("/{branch_id}", dependencies=[Depends(admin_only)])
async def update_branch(branch_id: UUID, payload: BranchUpdate, db: AsyncSession = Depends(get_db)):
    branch = await BranchService(db).update_branch(branch_id, payload.model_dump(exclude_unset=True))
    return {"message": "Branch updated successfully", "branch": BranchOut.model_validate(branch)}


@router.get("/{branch_id}/deletion-impact", dependencies=[Depends(admin_only)])
async def branch_deletion_impact(branch_id: UUID, db: AsyncSession = Depends(get_db)):
    return await BranchService(db).deletion_impact(branch_id)


@router.delete("/{branch_id}", dependencies=[Depends(admin_only)])
async def delete_branch(
    branch_id: UUID,
    payload: Optional[DeletionAcknowledgement] = None,
    db: AsyncSession = Depends(get_db),
):
    return await BranchService(db).delete_branch(branch_id, bool(payload and payload.acknowledged))
