"""Terminal formatting for task views."""

from datetime import datetime

import click

from .core.deadlines import Tier, classify_deadline
from .core.tasks import FocusMode, Priority, ProductivityStats, Task
from .core.views import TaskView

FOCUS_LABELS = {
    FocusMode.ALL: "All",
    FocusMode.TODAY: "Today",
    FocusMode.HIGH_PRIORITY: "High Priority",
}

EMPTY_MESSAGES = {
    FocusMode.ALL: "No tasks yet. Use 'focuslist add' to add your first task.",
    FocusMode.TODAY: "No tasks due today. You're all caught up!",
    FocusMode.HIGH_PRIORITY: "No high priority tasks. Great job staying on top of things!",
}

TIER_COLORS = {
    Tier.CRITICAL: "red",
    Tier.URGENT: "yellow",
    Tier.NORMAL: None,
}

PRIORITY_MARKERS = {
    Priority.HIGH: "!!!",
    Priority.MEDIUM: "!!",
    Priority.LOW: "!",
}


def format_task_line(task: Task, now: datetime, color: bool = False) -> str:
    """
    Format a single task for the list view.

    Completed tasks show a check and no urgency colour.
    """
    info = classify_deadline(task.deadline, now)
    check = "x" if task.is_completed else " "
    marker = PRIORITY_MARKERS[task.priority]
    label = info.label
    if color and not task.is_completed and TIER_COLORS[info.tier]:
        label = click.style(label, fg=TIER_COLORS[info.tier])
    return f"[{check}] [{marker:3}] {task.title} ({label})  {task.id}"


def format_stats(stats: ProductivityStats) -> str:
    return (
        f"Completed today: {stats.completed_today}  "
        f"Pending: {stats.pending_tasks}  "
        f"Overdue: {stats.overdue_count}"
    )


def format_view(view: TaskView, color: bool = False) -> str:
    """Render a whole view: focus header, tasks (or empty message), stats."""
    lines = [f"### {FOCUS_LABELS[view.focus_mode]}"]
    if view.tasks:
        lines.extend(format_task_line(t, view.as_of, color) for t in view.tasks)
    else:
        lines.append(EMPTY_MESSAGES[view.focus_mode])
    lines.append("")
    lines.append(format_stats(view.stats))
    return "\n".join(lines)


def task_to_json(task: Task, now: datetime) -> dict:
    """JSON-friendly task, with its deadline label and tier."""
    info = classify_deadline(task.deadline, now)
    data = task.to_dict()
    data["label"] = info.label
    data["tier"] = info.tier.value
    return data


def stats_to_json(stats: ProductivityStats) -> dict:
    return {
        "completedToday": stats.completed_today,
        "pendingTasks": stats.pending_tasks,
        "overdueCount": stats.overdue_count,
    }
