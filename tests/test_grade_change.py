import pytest
from sqlalchemy import select

from tuition_center.core.clock import local_now
from tuition_center.models import Enrollment, EnrollmentStatus, Student
from tuition_center.services.enrollment_service import EnrollmentService
from tuition_center.services.levels import MIXED_LEVELS
from tuition_center.services.student_service import StudentService

from .factories import days_ahead, make_branch, make_class, make_enrollment, make_student, make_user


async def _status(db, enrollment):
    return await db.scalar(select(Enrollment.status).where(Enrollment.id == enrollment.id))


async def test_grade_change_cancels_only_mismatched_enrollments(db):
    parent = await make_user(db)
    branch = await make_branch(db, name="Main Branch")
    student = await make_student(db, parent, grade="Primary 5")
    p5 = await make_class(db, branch, days_ahead(3), subject="Math", level="Primary 5")
    mixed = await make_class(db, branch, days_ahead(4), subject="Art", level=MIXED_LEVELS)
    p6 = await make_class(db, branch, days_ahead(5), subject="Science", level="Primary 6")
    e_p5 = await make_enrollment(db, student, p5)
    e_mixed = await make_enrollment(db, student, mixed)
    e_p6 = await make_enrollment(db, student, p6)

    result = await StudentService(db).update_student(student.id, parent.id, {"grade": "Primary 6"})

    assert result["message"] == (
        "Student updated successfully. 1 enrollment(s) no longer match grade Primary 6 "
        "and were cancelled: Math (Primary 5)"
    )
    assert [item["enrollment_id"] for item in result["cancelled_enrollments"]] == [str(e_p5.id)]
    assert result["cancelled_enrollments"][0]["branch_name"] == "Main Branch"
    assert await _status(db, e_p5) == EnrollmentStatus.CANCELLED
    assert await _status(db, e_mixed) == EnrollmentStatus.ENROLLED
    assert await _status(db, e_p6) == EnrollmentStatus.ENROLLED
    cancelled_at = await db.scalar(select(Enrollment.cancelled_at).where(Enrollment.id == e_p5.id))
    assert cancelled_at is not None


async def test_same_grade_cancels_nothing(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    enrollment = await make_enrollment(db, student, await make_class(db, branch, days_ahead(3), level="Primary 4"))

    result = await StudentService(db).update_student(student.id, parent.id, {"grade": "Primary 5"})

    assert result["cancelled_enrollments"] == []
    assert result["message"] == "Student updated successfully"
    assert await _status(db, enrollment) == EnrollmentStatus.ENROLLED


async def test_past_and_inactive_classes_are_left_alone(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    past = await make_enrollment(db, student, await make_class(db, branch, days_ahead(-3)))
    inactive = await make_enrollment(db, student, await make_class(db, branch, days_ahead(3), active=False))

    cancelled = await EnrollmentService(db).apply_grade_change(student.id, "Primary 5", "Primary 6", local_now())
    await db.commit()

    assert cancelled == []
    assert await _status(db, past) == EnrollmentStatus.ENROLLED
    assert await _status(db, inactive) == EnrollmentStatus.ENROLLED


async def test_class_without_level_is_cancelled(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    unlabelled = await make_enrollment(db, student, await make_class(db, branch, days_ahead(3), level=None))

    cancelled = await EnrollmentService(db).apply_grade_change(student.id, "Primary 5", "Primary 6", local_now())
    await db.commit()

    assert [item.enrollment_id for item in cancelled] == [unlabelled.id]
    assert await _status(db, unlabelled) == EnrollmentStatus.CANCELLED


async def test_cancellations_follow_class_start_order(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    later = await make_enrollment(db, student, await make_class(db, branch, days_ahead(9), subject="Later"))
    sooner = await make_enrollment(db, student, await make_class(db, branch, days_ahead(2), subject="Sooner"))
    middle = await make_enrollment(db, student, await make_class(db, branch, days_ahead(5), subject="Middle"))

    cancelled = await EnrollmentService(db).apply_grade_change(student.id, "Primary 5", "Primary 6", local_now())

    assert [item.enrollment_id for item in cancelled] == [sooner.id, middle.id, later.id]
    assert [item.subject for item in cancelled] == ["Sooner", "Middle", "Later"]


async def test_already_cancelled_enrollment_is_not_reported(db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    await make_enrollment(db, student, await make_class(db, branch, days_ahead(3)), status=EnrollmentStatus.CANCELLED)

    cancelled = await EnrollmentService(db).apply_grade_change(student.id, "Primary 5", "Primary 6", local_now())

    assert cancelled == []


async def test_failed_cascade_rolls_back_grade_update(db, monkeypatch):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    enrollment = await make_enrollment(db, student, await make_class(db, branch, days_ahead(3)))
    student_id, parent_id, enrollment_id = student.id, parent.id, enrollment.id

    async def broken_cascade(self, *args, **kwargs):
        raise RuntimeError("store went away")

    monkeypatch.setattr(EnrollmentService, "apply_grade_change", broken_cascade)

    with pytest.raises(RuntimeError):
        await StudentService(db).update_student(student_id, parent_id, {"grade": "Primary 6"})

    assert await db.scalar(select(Student.grade).where(Student.id == student_id)) == "Primary 5"
    status = await db.scalar(select(Enrollment.status).where(Enrollment.id == enrollment_id))
    assert status == EnrollmentStatus.ENROLLED
