# src/taskman/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- wires the concrete TaskStore into AppState.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def create_initial_state(*, settings=None, tasks_path: str | Path | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    `tasks_path` overrides settings.tasks_path for this run (the --file option).
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    path = Path(tasks_path) if tasks_path is not None else Path(settings.tasks_path)
    logger.debug("Using task file %s", path)

    return AppState(settings=settings, task_store=TaskStore(path))
