"""Ports - interfaces/protocols for external dependencies."""

from .clock import Clock
from .session import SessionProvider
from .task_store import TaskStore

__all__ = [
    "Clock",
    "SessionProvider",
    "TaskStore",
]
