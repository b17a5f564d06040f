# src/taskman/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (taskman.config.Settings, or a SimpleNamespace in tests).
    settings: object

    task_store: TaskStore
