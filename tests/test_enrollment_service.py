import pytest
from sqlalchemy import select, func

from tuition_center.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from tuition_center.models import Enrollment, EnrollmentStatus
from tuition_center.services.enrollment_service import EnrollmentService
from tuition_center.services.levels import MIXED_LEVELS

from .factories import days_ahead, make_branch, make_class, make_enrollment, make_student, make_user


async def test_enroll_student_in_matching_class(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, first_name="Jamie")
    class_obj = await make_class(db, branch, days_ahead(3), subject="Math")

    result = await EnrollmentService(db).enroll(parent.id, student.id, class_obj.id)

    assert result["message"] == "Jamie Tan enrolled in Math successfully"
    assert result["enrollment"]["status"] == EnrollmentStatus.ENROLLED
    assert await EnrollmentService(db).count_enrolled(class_obj.id) == 1


async def test_grade_mismatch_is_rejected(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 4")
    class_obj = await make_class(db, branch, days_ahead(3), level="Primary 5")

    with pytest.raises(ValidationError) as exc_info:
        await EnrollmentService(db).enroll(parent.id, student.id, class_obj.id)

    assert exc_info.value.detail.startswith("Student grade (Primary 4) does not match class level (Primary 5).")


async def test_mixed_levels_class_accepts_any_grade(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Secondary 2")
    class_obj = await make_class(db, branch, days_ahead(3), level=MIXED_LEVELS)

    await EnrollmentService(db).enroll(parent.id, student.id, class_obj.id)

    assert await EnrollmentService(db).count_enrolled(class_obj.id) == 1


async def test_full_class_counts_only_active_students(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    class_obj = await make_class(db, branch, days_ahead(3), capacity=1)
    departed = await make_student(db, parent, first_name="Sam", active=False)
    await make_enrollment(db, departed, class_obj)
    first = await make_student(db, parent, first_name="Jamie")
    second = await make_student(db, parent, first_name="Robin")
    service = EnrollmentService(db)

    await service.enroll(parent.id, first.id, class_obj.id)
    with pytest.raises(ValidationError, match="Class is full"):
        await service.enroll(parent.id, second.id, class_obj.id)


async def test_duplicate_enrollment_is_rejected(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent)
    class_obj = await make_class(db, branch, days_ahead(3))
    service = EnrollmentService(db)

    await service.enroll(parent.id, student.id, class_obj.id)
    with pytest.raises(ValidationError, match="already enrolled"):
        await service.enroll(parent.id, student.id, class_obj.id)


@pytest.mark.parametrize("days", [-1, 40])
async def test_class_outside_enrollment_window(db, days):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent)
    class_obj = await make_class(db, branch, days_ahead(days))

    with pytest.raises(ValidationError, match="more than 1 month away"):
        await EnrollmentService(db).enroll(parent.id, student.id, class_obj.id)


async def test_cannot_enroll_another_parents_student(db):
    parent = await make_user(db)
    stranger = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent)
    class_obj = await make_class(db, branch, days_ahead(3))

    with pytest.raises(PermissionDeniedError):
        await EnrollmentService(db).enroll(stranger.id, student.id, class_obj.id)


async def test_cancel_then_enroll_again(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, first_name="Jamie")
    class_obj = await make_class(db, branch, days_ahead(3), subject="Math")
    service = EnrollmentService(db)
    parent_id, student_id, class_id = parent.id, student.id, class_obj.id

    first = await service.enroll(parent_id, student_id, class_id)
    message = await service.cancel_enrollment(parent_id, first["enrollment"]["id"])
    assert message == "Enrollment cancelled: Jamie Tan removed from Math"

    with pytest.raises(NotFoundError):
        await service.cancel_enrollment(parent_id, first["enrollment"]["id"])

    await service.enroll(parent_id, student_id, class_id)
    statuses = (await db.execute(
        select(Enrollment.status, func.count(Enrollment.id))
        .where(Enrollment.class_id == class_id)
        .group_by(Enrollment.status)
    )).all()
    assert dict(statuses) == {EnrollmentStatus.ENROLLED: 1, EnrollmentStatus.CANCELLED: 1}
