from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, get_current_user
from ..schemas.auth_schemas import UserOut
from ..schemas.user_schemas import ProfileUpdate
from ..services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=UserOut)
async def get_profile(current_user: TokenUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_profile(current_user.user_id)


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_profile(current_user.user_id, payload.model_dump(exclude_unset=True))
    return {"message": "Profile updated successfully", "user": UserOut.model_validate(user)}


@router.delete("/account")
async def delete_account(current_user: TokenUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Parents may close their own account; staff accounts are managed by admins"""
    return await UserService(db).delete_parent_account(current_user.user_id)
