from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, get_current_user, require_roles
from ..models import UserRole
from ..schemas.enrollment_schemas import EnrollmentCreate
from ..services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/api/enrollments", tags=["Enrollments"])
parent_only = require_roles(UserRole.PARENT)


@router.get("/my-students")
async def my_students_enrollments(current_user: TokenUser = Depends(parent_only), db: AsyncSession = Depends(get_db)):
    return await EnrollmentService(db).list_for_parent(current_user.user_id)


@router.get("/class/{class_id}", dependencies=[Depends(require_roles(UserRole.STAFF, UserRole.ADMIN))])
async def class_enrollments(class_id: UUID, db: AsyncSession = Depends(get_db)):
    return await EnrollmentService(db).list_for_class(class_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def enroll_student(
    payload: EnrollmentCreate,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    return await EnrollmentService(db).enroll(current_user.user_id, payload.student_id, payload.class_id)


@router.delete("/{enrollment_id}")
async def cancel_enrollment(
    enrollment_id: UUID,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    message = await EnrollmentService(db).cancel_enrollment(current_user.user_id, enrollment_id)
    return {"message": message}


@router.get("/{enrollment_id}")
async def get_enrollment(
    enrollment_id: UUID,
    current_user: TokenUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    parent_id = current_user.user_id if current_user.role == UserRole.PARENT else None
    return await EnrollmentService(db).get_details(enrollment_id, parent_id)
