"""Adapters - I/O implementations of ports."""

from .clocks import FixedClock, SystemClock
from .memory_store import MemoryTaskStore
from .file_store import FileTaskStore
from .firestore_rest import FirestoreTaskStore
from .local_session import LocalSession

__all__ = [
    "FixedClock",
    "SystemClock",
    "MemoryTaskStore",
    "FileTaskStore",
    "FirestoreTaskStore",
    "LocalSession",
]
