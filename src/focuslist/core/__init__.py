"""Functional core - pure business logic with no I/O."""

from .tasks import FocusMode, Priority, ProductivityStats, Task, TaskDraft, validate_draft
from .deadlines import DeadlineInfo, Tier, classify_deadline, deadline_label, deadline_tier, is_due_today
from .scoring import sort_by_urgency, urgency_score
from .focus import filter_by_focus
from .stats import compute_stats
from .views import SyncState, TaskView, build_view, select_stats, select_visible

__all__ = [
    # Tasks
    "Task",
    "TaskDraft",
    "Priority",
    "FocusMode",
    "ProductivityStats",
    "validate_draft",
    # Deadlines
    "DeadlineInfo",
    "Tier",
    "classify_deadline",
    "deadline_label",
    "deadline_tier",
    "is_due_today",
    # Ordering and filtering
    "urgency_score",
    "sort_by_urgency",
    "filter_by_focus",
    "compute_stats",
    # Views
    "SyncState",
    "TaskView",
    "build_view",
    "select_visible",
    "select_stats",
]
