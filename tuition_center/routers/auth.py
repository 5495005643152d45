from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, get_current_user
from ..schemas.auth_schemas import LoginRequest, RegisterRequest
from ..services.user_service import UserService, user_to_dict

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a parent account and sign it in"""
    return await UserService(db).register_parent(payload.model_dump())


@router.post("/login")
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await UserService(db).authenticate(payload.email, payload.password)


@router.get("/me")
async def me(current_user: TokenUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    user = await UserService(db).get_profile(current_user.user_id)
    return {"user": user_to_dict(user)}
