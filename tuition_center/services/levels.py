# tuition_center/services/levels.py
"""Class levels and grade compatibility.

A class level is either a named grade ("Primary 5") or the mixed-levels
wildcard. The wildcard is stored as the reserved label ``MIXED_LEVELS``;
nothing else, including a missing level, matches every grade.
"""
from dataclasses import dataclass
from typing import Optional

MIXED_LEVELS = "Mixed Levels"


@dataclass(frozen=True)
class Level:
    label: Optional[str]
    is_mixed: bool = False

    @classmethod
    def mixed(cls) -> "Level":
        return cls(label=MIXED_LEVELS, is_mixed=True)

    @classmethod
    def named(cls, label: Optional[str]) -> "Level":
        return cls(label=label, is_mixed=False)

    @classmethod
    def parse(cls, stored: Optional[str]) -> "Level":
        """Read a level column value"""
        if stored == MIXED_LEVELS:
            return cls.mixed()
        return cls.named(stored)

    def accepts(self, grade: Optional[str]) -> bool:
        """True when a student in ``grade`` may attend a class at this level"""
        if self.is_mixed:
            return True
        return self.label is not None and self.label == grade


def is_grade_compatible(level: Optional[str], grade: Optional[str]) -> bool:
    return Level.parse(level).accepts(grade)
