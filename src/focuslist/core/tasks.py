"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from focuslist.errors import ValidationFailure

MAX_TITLE_LENGTH = 100


class Priority(Enum):
    """Task priority, ordered LOW < MEDIUM < HIGH."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def weight(self) -> int:
        """Multiplier used by the urgency score."""
        return self.value

    def __lt__(self, other: "Priority") -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.value < other.value

    @classmethod
    def parse(cls, value: "str | Priority") -> "Priority":
        """Parse a priority name, case-insensitive."""
        if isinstance(value, Priority):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValidationFailure(f"Unknown priority: {value!r}")


class FocusMode(Enum):
    """User-selected filter over the task collection."""

    ALL = "all"
    TODAY = "today"
    HIGH_PRIORITY = "high_priority"

    @classmethod
    def parse(cls, value: "str | FocusMode") -> "FocusMode":
        """Parse a focus mode name. Accepts 'high' as a short form."""
        if isinstance(value, FocusMode):
            return value
        key = str(value).strip().lower().replace("-", "_")
        if key == "high":
            key = "high_priority"
        for mode in cls:
            if mode.value == key:
                return mode
        raise ValidationFailure(f"Unknown focus mode: {value!r}")


def _parse_instant(value: str) -> datetime:
    """Parse a stored ISO timestamp. Raises ValueError unless it carries an offset."""
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO timestamp, got {value!r}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no timezone offset: {value!r}")
    return parsed


@dataclass(frozen=True)
class Task:
    """A to-do item. Replaced, never mutated, when its state changes."""

    id: str
    title: str
    deadline: datetime
    priority: Priority
    created_at: datetime
    description: str = ""
    is_completed: bool = False

    def is_overdue(self, now: datetime) -> bool:
        return not self.is_completed and self.deadline < now

    def with_completed(self, completed: bool) -> "Task":
        return replace(self, is_completed=completed)

    def to_dict(self) -> dict:
        """Serialize for JSON storage."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "createdAt": self.created_at.isoformat(),
            "deadline": self.deadline.isoformat(),
            "priority": self.priority.name,
            "isCompleted": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored representation."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", "") or "",
            created_at=_parse_instant(data["createdAt"]),
            deadline=_parse_instant(data["deadline"]),
            priority=Priority.parse(data.get("priority", "MEDIUM")),
            is_completed=bool(data.get("isCompleted", False)),
        )


@dataclass(frozen=True)
class TaskDraft:
    """Fields supplied by the user when adding a task."""

    title: str
    deadline: datetime
    priority: Priority = Priority.MEDIUM
    description: str = ""


@dataclass(frozen=True)
class ProductivityStats:
    """Counts derived from the full task collection."""

    completed_today: int = 0
    pending_tasks: int = 0
    overdue_count: int = 0


def validate_draft(draft: TaskDraft, now: datetime | None = None) -> TaskDraft:
    """
    Check a draft before it becomes an add intent.

    Returns the draft with title and description stripped.
    Raises ValidationFailure for an empty or overlong title, or a past deadline.
    """
    now = now or datetime.now().astimezone()
    title = draft.title.strip()
    if not title:
        raise ValidationFailure("Please enter a task title.")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationFailure(f"Task title cannot exceed {MAX_TITLE_LENGTH} characters.")
    if draft.deadline.tzinfo is None:
        raise ValidationFailure("Deadline must include a timezone.")
    if draft.deadline < now:
        raise ValidationFailure("Deadline cannot be in the past.")
    return replace(
        draft,
        title=title,
        description=(draft.description or "").strip(),
        priority=Priority.parse(draft.priority),
    )
