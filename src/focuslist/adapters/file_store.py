"""JSON file task store adapter."""

import json
import re
from pathlib import Path

from focuslist.core.tasks import Task
from focuslist.ports.clock import Clock

from .memory_store import MemoryTaskStore


class FileTaskStore(MemoryTaskStore):
    """
    File-based task storage.

    Implements TaskStore protocol. Each user gets one JSON file; every read
    goes to disk so other processes' writes are picked up.
    """

    def __init__(self, data_dir: Path | str, clock: Clock | None = None):
        super().__init__(clock)
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_user(self, user_id: str) -> Path:
        """Get the file path for a user's tasks."""
        safe = re.sub(r"[^A-Za-z0-9_.@-]", "_", user_id)
        return self.data_dir / f"{safe}.json"

    def _load(self, user_id: str) -> dict[str, Task]:
        path = self._path_for_user(user_id)
        if not path.exists():
            return {}
        data = json.loads(path.read_text())
        if not isinstance(data, dict) or not isinstance(data.get("tasks", []), list):
            raise ValueError(f"{path} is not a task file")
        return {t.id: t for t in (Task.from_dict(item) for item in data.get("tasks", []))}

    def _save(self, user_id: str, tasks: dict[str, Task]) -> None:
        path = self._path_for_user(user_id)
        payload = {"tasks": [t.to_dict() for t in tasks.values()]}
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(payload, indent=2))
        tmp.replace(path)
