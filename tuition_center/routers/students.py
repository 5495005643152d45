from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, get_current_user, require_roles
from ..models import UserRole
from ..schemas.student_schemas import StudentCreate, StudentUpdate
from ..services.student_service import StudentService

router = APIRouter(prefix="/api/students", tags=["Students"])
parent_only = require_roles(UserRole.PARENT)


@router.get("/my-students")
async def my_students(current_user: TokenUser = Depends(parent_only), db: AsyncSession = Depends(get_db)):
    return await StudentService(db).list_for_parent(current_user.user_id)


@router.get("/all", dependencies=[Depends(require_roles(UserRole.STAFF, UserRole.ADMIN))])
async def all_students(db: AsyncSession = Depends(get_db)):
    return await StudentService(db).list_all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    student = await StudentService(db).create_student(current_user.user_id, payload.model_dump())
    return {"message": "Student created successfully", "student": student}


@router.put("/{student_id}")
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    """A grade change also reports the enrollments it had to cancel"""
    return await StudentService(db).update_student(
        student_id, current_user.user_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{student_id}")
async def delete_student(
    student_id: UUID,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    message = await StudentService(db).remove_student(student_id, current_user.user_id)
    return {"message": message}


@router.get("/{student_id}")
async def get_student(
    student_id: UUID,
    current_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    parent_id = current_user.user_id if current_user.role == UserRole.PARENT else None
    return await StudentService(db).get_details(student_id, parent_id)
