import pytest
from sqlalchemy import select

from tuition_center.core.exceptions import ConflictError
from tuition_center.core.security import TokenUser
from tuition_center.models import ClassModel, UserRole
from tuition_center.services.class_service import ClassService
from tuition_center.services.conflict_service import ScheduleConflictService

from .factories import days_ahead, make_branch, make_class, make_user


def _viewer(user):
    return TokenUser(user_id=user.id, email=user.email, role=user.role)


async def test_moving_class_onto_own_class_is_rejected(db):
    tutor = await make_user(db, role=UserRole.STAFF)
    branch = await make_branch(db, name="Main Branch")
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor, subject="Math")
    later = await make_class(db, branch, days_ahead(5, 13), tutor=tutor, subject="Science")
    viewer = _viewer(tutor)
    later_id, later_start = later.id, later.start_time

    with pytest.raises(ConflictError) as exc_info:
        await ClassService(db).update_class(later_id, viewer, {"start_time": days_ahead(5, 10, 30)})

    assert exc_info.value.detail.startswith("You already have 1 class scheduled at the same time:")
    assert await db.scalar(select(ClassModel.start_time).where(ClassModel.id == later_id)) == later_start


async def test_admin_moving_class_to_other_branch_checks_travel_gap(db):
    admin = await make_user(db, role=UserRole.ADMIN)
    tutor = await make_user(db, role=UserRole.STAFF)
    main = await make_branch(db, name="Main Branch")
    east = await make_branch(db, name="East Branch")
    await make_class(db, main, days_ahead(5, 10), tutor=tutor, subject="Math")
    afternoon = await make_class(db, main, days_ahead(5, 11, 30), tutor=tutor, subject="Science")
    afternoon_id, east_id, main_id = afternoon.id, east.id, main.id

    with pytest.raises(ConflictError) as exc_info:
        await ClassService(db).update_class(afternoon_id, _viewer(admin), {"branch_id": east_id})

    assert "require at least 1 hour buffer time" in exc_info.value.detail
    assert '"Math" (Primary 5) from 10:00 AM to 11:00 AM at Main Branch' in exc_info.value.detail
    assert await db.scalar(select(ClassModel.branch_id).where(ClassModel.id == afternoon_id)) == main_id


async def test_edit_that_keeps_the_slot_skips_conflict_check(db):
    tutor = await make_user(db, role=UserRole.STAFF)
    branch = await make_branch(db)
    # already clashing rows, as left behind by older data
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)
    clashing = await make_class(db, branch, days_ahead(5, 10, 30), tutor=tutor, subject="Science")

    updated = await ClassService(db).update_class(
        clashing.id, _viewer(tutor), {"subject": "Physics", "start_time": clashing.start_time}
    )

    assert updated["subject"] == "Physics"


async def test_reassigning_current_tutor_is_a_no_op(db, monkeypatch):
    tutor = await make_user(db, role=UserRole.STAFF, first_name="Morgan", last_name="Lee")
    branch = await make_branch(db)
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)
    clashing = await make_class(db, branch, days_ahead(5, 10, 30), tutor=tutor, subject="Science")

    async def unexpected_check(self, *args, **kwargs):
        raise AssertionError("conflict check should not run for an unchanged pairing")

    monkeypatch.setattr(ScheduleConflictService, "check_conflict", unexpected_check)

    message = await ClassService(db).assign_tutor(clashing.id, tutor.id)

    assert message == "Morgan Lee is already assigned to Science class"
