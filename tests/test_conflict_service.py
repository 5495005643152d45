from uuid import uuid4

import pytest

from tuition_center.core.exceptions import ConflictError, NotFoundError
from tuition_center.models import UserRole
from tuition_center.services.conflict_service import ScheduleConflictService

from .factories import days_ahead, make_branch, make_class, make_user


async def test_overlapping_class_is_reported(db):
    branch = await make_branch(db, name="Main Branch")
    tutor = await make_user(db, role=UserRole.STAFF)
    existing = await make_class(db, branch, days_ahead(5, 10), tutor=tutor)
    candidate = await make_class(db, branch, days_ahead(5, 10, 30), subject="Science")

    report = await ScheduleConflictService(db).check_conflict(tutor.id, candidate.id)

    assert [slot.class_id for slot in report.direct_conflicts] == [existing.id]
    assert report.direct_conflicts[0].branch_name == "Main Branch"
    assert report.travel_conflicts == []


async def test_short_gap_at_other_branch_is_travel_conflict(db):
    main = await make_branch(db)
    east = await make_branch(db)
    tutor = await make_user(db, role=UserRole.STAFF)
    existing = await make_class(db, east, days_ahead(5, 11, 30), tutor=tutor)
    candidate = await make_class(db, main, days_ahead(5, 10))

    report = await ScheduleConflictService(db).check_conflict(tutor.id, candidate.id)

    assert report.direct_conflicts == []
    assert [slot.class_id for slot in report.travel_conflicts] == [existing.id]


async def test_one_hour_gap_at_other_branch_is_fine(db):
    main = await make_branch(db)
    east = await make_branch(db)
    tutor = await make_user(db, role=UserRole.STAFF)
    await make_class(db, east, days_ahead(5, 12), tutor=tutor)
    candidate = await make_class(db, main, days_ahead(5, 10))

    report = await ScheduleConflictService(db).check_conflict(tutor.id, candidate.id)

    assert not report.has_conflict


async def test_unknown_or_inactive_class_is_not_found(db):
    branch = await make_branch(db)
    tutor = await make_user(db, role=UserRole.STAFF)
    inactive = await make_class(db, branch, days_ahead(5), active=False)
    service = ScheduleConflictService(db)

    with pytest.raises(NotFoundError):
        await service.check_conflict(tutor.id, uuid4())
    with pytest.raises(NotFoundError):
        await service.check_conflict(tutor.id, inactive.id)


async def test_unrelated_classes_are_ignored(db):
    branch = await make_branch(db)
    tutor = await make_user(db, role=UserRole.STAFF)
    other_tutor = await make_user(db, role=UserRole.STAFF)
    await make_class(db, branch, days_ahead(5, 10), tutor=other_tutor)
    await make_class(db, branch, days_ahead(6, 10), tutor=tutor)
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor, active=False)
    candidate = await make_class(db, branch, days_ahead(5, 10), tutor=tutor)

    report = await ScheduleConflictService(db).check_conflict(tutor.id, candidate.id)

    # the candidate itself is already bound to the tutor and must not collide with itself
    assert not report.has_conflict


async def test_check_is_repeatable(db):
    branch = await make_branch(db)
    tutor = await make_user(db, role=UserRole.STAFF)
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)
    candidate = await make_class(db, branch, days_ahead(5, 10, 30))
    service = ScheduleConflictService(db)

    first = await service.check_conflict(tutor.id, candidate.id)
    second = await service.check_conflict(tutor.id, candidate.id)

    assert first.to_dict() == second.to_dict()


async def test_slot_without_tutor_never_conflicts(db):
    branch = await make_branch(db)
    await make_class(db, branch, days_ahead(5, 10))

    report = await ScheduleConflictService(db).check_slot(None, days_ahead(5, 10), 60, branch.id)

    assert not report.has_conflict


async def test_ensure_available_raises_with_message(db):
    branch = await make_branch(db, name="Main Branch")
    tutor = await make_user(db, role=UserRole.STAFF)
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)

    with pytest.raises(ConflictError) as exc_info:
        await ScheduleConflictService(db).ensure_available(tutor.id, days_ahead(5, 10, 30), 60, branch.id)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail.startswith("You already have 1 class scheduled at the same time:")
    assert '"Math" (Primary 5) from 10:00 AM to 11:00 AM at Main Branch' in exc_info.value.detail


async def test_lock_tutor_rejects_parents_and_inactive_staff(db):
    parent = await make_user(db)
    retired = await make_user(db, role=UserRole.STAFF, active=False)
    service = ScheduleConflictService(db)

    with pytest.raises(NotFoundError):
        await service.lock_tutor(parent.id)
    with pytest.raises(NotFoundError):
        await service.lock_tutor(retired.id)
    assert (await service.lock_tutor(retired.id, active_only=False)).id == retired.id
