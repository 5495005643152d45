# tuition_center/services/conflict_service.py
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import day_bounds
from ..core.exceptions import ConflictError, NotFoundError
from ..models import Branch, ClassModel, User, UserRole
from .scheduling import ConflictReport, ScheduleSlot, find_conflicts, format_conflict_message

logger = logging.getLogger(__name__)


class ScheduleConflictService:
    """Checks a tutor's day for direct overlaps and cross-branch travel gaps.

    Read-only: store errors are not caught here, they propagate to the
    request's unit of work which rolls back.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_conflict(self, tutor_id: UUID, class_id: UUID) -> ConflictReport:
        """Would binding ``tutor_id`` to the existing class ``class_id`` collide?"""
        stmt = select(ClassModel).where(ClassModel.id == class_id, ClassModel.active == True)
        result = await self.db.execute(stmt)
        candidate = result.scalar_one_or_none()
        if not candidate:
            raise NotFoundError("Class not found or inactive")

        return await self.check_slot(
            tutor_id,
            start_time=candidate.start_time,
            duration_minutes=candidate.duration_minutes,
            branch_id=candidate.branch_id,
            exclude_class_id=candidate.id,
            subject=candidate.subject,
            level=candidate.level,
        )

    async def check_slot(
        self,
        tutor_id: Optional[UUID],
        start_time: datetime,
        duration_minutes: int,
        branch_id: UUID,
        exclude_class_id: Optional[UUID] = None,
        subject: str = "",
        level: Optional[str] = None,
    ) -> ConflictReport:
        """Same check for a slot that may not be persisted yet"""
        if tutor_id is None:
            return ConflictReport()

        candidate = ScheduleSlot(
            class_id=exclude_class_id,
            subject=subject,
            level=level,
            start_time=start_time,
            duration_minutes=duration_minutes,
            branch_id=branch_id,
        )

        day_start, day_end = day_bounds(start_time)
        stmt = (
            select(ClassModel, Branch.name)
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .where(
                ClassModel.tutor_id == tutor_id,
                ClassModel.active == True,
                ClassModel.start_time >= day_start,
                ClassModel.start_time <= day_end,
            )
        )
        if exclude_class_id is not None:
            stmt = stmt.where(ClassModel.id != exclude_class_id)
        stmt = stmt.order_by(ClassModel.start_time)

        result = await self.db.execute(stmt)
        same_day = [ScheduleSlot.from_class(class_obj, branch_name) for class_obj, branch_name in result.all()]

        return find_conflicts(candidate, same_day)

    async def ensure_available(
        self,
        tutor_id: Optional[UUID],
        start_time: datetime,
        duration_minutes: int,
        branch_id: UUID,
        exclude_class_id: Optional[UUID] = None,
    ) -> None:
        """Raise ``ConflictError`` listing every collision, otherwise return quietly"""
        report = await self.check_slot(
            tutor_id, start_time, duration_minutes, branch_id, exclude_class_id=exclude_class_id
        )
        if report.has_conflict:
            logger.warning(
                f"Schedule conflict for tutor {tutor_id} at {start_time.isoformat()}: "
                f"{len(report.direct_conflicts)} direct, {len(report.travel_conflicts)} travel"
            )
            raise ConflictError(format_conflict_message(report))

    async def lock_tutor(self, tutor_id: UUID, roles=(UserRole.STAFF,), active_only: bool = True) -> User:
        """Load a staff member and hold a row lock until the transaction ends.

        Concurrent bindings of the same tutor queue on this lock, so the
        check-then-write in the caller cannot double-book.
        """
        stmt = select(User).where(User.id == tutor_id, User.role.in_(roles))
        if active_only:
            stmt = stmt.where(User.active == True)
        stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        tutor = result.scalar_one_or_none()
        if not tutor:
            raise NotFoundError("Staff member not found or inactive")
        return tutor
