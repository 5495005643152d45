# tuition_center/services/scheduling.py
"""Tutor schedule rules.

Pure decision logic over already-loaded class slots. Loading the slots is
the job of ``ScheduleConflictService``; nothing here touches the database.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

# Minimum gap between two classes of one tutor at different branches
TRAVEL_BUFFER = timedelta(hours=1)


@dataclass(frozen=True)
class ScheduleSlot:
    """One class as seen by the conflict rules"""
    class_id: Optional[UUID]
    subject: str
    level: Optional[str]
    start_time: datetime
    duration_minutes: int
    branch_id: Optional[UUID]
    branch_name: Optional[str] = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @classmethod
    def from_class(cls, class_obj, branch_name: Optional[str] = None) -> "ScheduleSlot":
        return cls(
            class_id=class_obj.id,
            subject=class_obj.subject,
            level=class_obj.level,
            start_time=class_obj.start_time,
            duration_minutes=class_obj.duration_minutes,
            branch_id=class_obj.branch_id,
            branch_name=branch_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.class_id) if self.class_id else None,
            "subject": self.subject,
            "level": self.level,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "branch_id": str(self.branch_id) if self.branch_id else None,
            "branch_name": self.branch_name,
        }


@dataclass
class ConflictReport:
    direct_conflicts: List[ScheduleSlot] = field(default_factory=list)
    travel_conflicts: List[ScheduleSlot] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.direct_conflicts or self.travel_conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_conflict": self.has_conflict,
            "direct_conflicts": [slot.to_dict() for slot in self.direct_conflicts],
            "travel_conflicts": [slot.to_dict() for slot in self.travel_conflicts],
        }


def overlaps(candidate: ScheduleSlot, existing: ScheduleSlot) -> bool:
    """Half-open [start, end) interval intersection"""
    return existing.start_time < candidate.end_time and existing.end_time > candidate.start_time


def violates_travel_buffer(candidate: ScheduleSlot, existing: ScheduleSlot) -> bool:
    """Non-overlapping classes at different branches closer than the travel buffer"""
    if candidate.branch_id == existing.branch_id:
        return False

    ends_too_close = (
        candidate.start_time - TRAVEL_BUFFER < existing.end_time <= candidate.start_time
    )
    starts_too_close = (
        candidate.end_time <= existing.start_time < candidate.end_time + TRAVEL_BUFFER
    )
    return ends_too_close or starts_too_close


def find_conflicts(candidate: ScheduleSlot, same_day_slots: Iterable[ScheduleSlot]) -> ConflictReport:
    """Classify the tutor's other classes on the candidate's day.

    ``same_day_slots`` must already be restricted to the tutor, the day and
    active classes, in ascending start order; that order is kept in both
    result lists. A direct overlap is never also reported as a travel
    conflict.
    """
    report = ConflictReport()
    for existing in same_day_slots:
        if overlaps(candidate, existing):
            report.direct_conflicts.append(existing)
        elif violates_travel_buffer(candidate, existing):
            report.travel_conflicts.append(existing)
    return report


def format_time(value: datetime) -> str:
    return value.strftime("%I:%M %p")


def _describe(slot: ScheduleSlot) -> str:
    level_text = f" ({slot.level})" if slot.level else ""
    branch_text = f" at {slot.branch_name}" if slot.branch_name else ""
    return (
        f'• "{slot.subject}"{level_text} from {format_time(slot.start_time)} '
        f"to {format_time(slot.end_time)}{branch_text}"
    )


def format_conflict_message(report: ConflictReport) -> str:
    """Human-readable rejection enumerating every colliding class"""
    sections = []

    if report.direct_conflicts:
        count = len(report.direct_conflicts)
        word = "class" if count == 1 else "classes"
        details = "\n".join(_describe(slot) for slot in report.direct_conflicts)
        sections.append(f"You already have {count} {word} scheduled at the same time:\n\n{details}")

    if report.travel_conflicts:
        count = len(report.travel_conflicts)
        word = "class" if count == 1 else "classes"
        details = "\n".join(_describe(slot) for slot in report.travel_conflicts)
        sections.append(
            f"You have {count} {word} at different branch(es) that require "
            f"at least 1 hour buffer time:\n\n{details}"
        )

    return "\n\n".join(sections)
