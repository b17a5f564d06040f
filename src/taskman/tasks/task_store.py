# src/taskman/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import ConflictError, NotFoundError, ParseError, StorageError, ValidationError
from .task_models import Task

logger = logging.getLogger(__name__)

ID_PREFIX = "task_"
_ID_RE = re.compile(rf"^{ID_PREFIX}(\d+)$")


class TaskStore:
    """
    JSON-file task store.

    The whole collection lives in memory, keyed by task id. Every mutation
    rewrites the complete file: `{"tasks": [ {...}, ... ]}`.

    Writes go to a sibling temp file first and are moved into place with
    os.replace, so a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._tasks: dict[str, Task] = {}
        self.load()
        logger.info("TaskStore ready path=%s total=%s", self._path, len(self._tasks))

    @property
    def path(self) -> Path:
        return self._path

    # ---- persistence ----

    def load(self) -> None:
        """(Re)load the backing file. A missing file means an empty store."""
        self._tasks = {}
        if not self._path.exists():
            logger.debug("No task file at %s, starting empty.", self._path)
            return

        try:
            text = self._path.read_text("utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read {self._path}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"{self._path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"{self._path}: expected a JSON object with a 'tasks' list")
        records = data.get("tasks") or []
        if not isinstance(records, list):
            raise ParseError(f"{self._path}: 'tasks' must be a list")

        for i, raw in enumerate(records):
            if not isinstance(raw, dict):
                raise ParseError(f"{self._path}: task #{i} is not an object")
            try:
                task = Task.from_dict(raw)
            except ValidationError as e:
                raise ParseError(f"{self._path}: task #{i}: {e}") from e
            if task.id in self._tasks:
                logger.warning("Duplicate task id %s in %s; keeping the last one.", task.id, self._path)
            self._tasks[task.id] = task

        logger.debug("Loaded %d tasks from %s", len(self._tasks), self._path)

    def save(self) -> None:
        data = {"tasks": [t.to_dict() for t in self._tasks.values()]}
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageError(f"Cannot write {self._path}: {e}") from e
        logger.debug("Saved %d tasks to %s", len(self._tasks), self._path)

    # ---- public API ----

    def count(self) -> int:
        return len(self._tasks)

    def next_id(self) -> str:
        """Next free `task_<n>` id: one past the largest numeric suffix in the store."""
        highest = 0
        for task_id in self._tasks:
            m = _ID_RE.match(task_id)
            if m:
                highest = max(highest, int(m.group(1)))

        n = highest + 1
        while f"{ID_PREFIX}{n}" in self._tasks:
            n += 1
        return f"{ID_PREFIX}{n}"

    def add(self, task: Task) -> Task:
        if task.id in self._tasks:
            raise ConflictError(f"Task with ID {task.id} already exists")
        self._tasks[task.id] = task
        self.save()
        logger.debug("Task added id=%s title=%r", task.id, task.title)
        return task

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def get_all(self) -> list[Task]:
        return list(self._tasks.values())

    def delete(self, task_id: str) -> Task | None:
        task = self._tasks.pop(task_id, None)
        if task is not None:
            self.save()
            logger.debug("Task deleted id=%s", task_id)
        return task

    def update(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        task.apply_updates(updates)
        self.save()
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(updates))
        return task
