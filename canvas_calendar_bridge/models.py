from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ItemKind(str, Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    DISCUSSION = "discussion"
    EVENT = "event"


@dataclass(frozen=True)
class NormalizedItem:
    """One Canvas item reduced to the fields the calendar side cares about.

    ``title`` and ``due_at`` are always set; ``due_at`` is timezone-aware UTC.
    """

    id: Any
    title: str
    kind: ItemKind
    due_at: datetime
    points_possible: float | None = None
    course_name: str | None = None
    url: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ConvertedTime:
    local_datetime: str  # YYYY-MM-DDTHH:MM:SS, wall clock in the target zone
    display: str         # "November 7, 2025 at 11:59 PM"


@dataclass
class SyncReport:
    synced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
