# src/taskman/tasks/task_models.py

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from ..errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = "medium"


def now_iso() -> str:
    """UTC timestamp with a fixed-width layout, so string order is time order."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: str | TaskStatus) -> TaskStatus:
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"Invalid status: {raw} (expected one of: {allowed})") from None

    @classmethod
    def from_stored(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown stored status %r, treating as pending.", raw)
            return cls.PENDING


def _coerce_tags(value: Any) -> list[str]:
    """
    Tags from a list (kept verbatim, duplicates dropped) or from CLI text.

    Only the comma-separated text form is trimmed; list items are stored
    exactly as `add_tag` would store them.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValidationError(f"tags must be a list or a comma-separated string, got {value!r}")

    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(f"tag must be a string, got {item!r}")
        if item not in out:
            out.append(item)
    return out


def _coerce_due_date(value: Any) -> int | None:
    """
    Epoch seconds, or None to clear.

    Strings may be an integer ("1700000000") or an ISO date/datetime
    ("2026-10-20", "2026-10-20T09:00"); naive values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"due_date must be epoch seconds, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        raw = value.strip()
        if raw == "" or raw.lower() in ("none", "null"):
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(
                f"Invalid due_date: {value!r} (use epoch seconds or YYYY-MM-DD[THH:MM])"
            ) from None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())
    raise ValidationError(f"due_date must be epoch seconds, got {value!r}")


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: str = DEFAULT_PRIORITY
    created_at: str = ""
    updated_at: str = ""
    assigned_to: str | None = None
    tags: list[str] = field(default_factory=list)
    due_date: int | None = None

    @classmethod
    def create(
        cls,
        id: str,
        title: str,
        description: str = "",
        status: str | TaskStatus = TaskStatus.PENDING,
        priority: str = DEFAULT_PRIORITY,
        assigned_to: str | None = None,
        tags: Iterable[str] | None = None,
        due_date: int | None = None,
    ) -> Task:
        if not id or not str(id).strip():
            raise ValidationError("Task ID required")
        if not title or not str(title).strip():
            raise ValidationError("Task title required")

        ts = now_iso()
        return cls(
            id=str(id),
            title=str(title),
            description=description or "",
            status=TaskStatus.parse(status),
            priority=priority or DEFAULT_PRIORITY,
            created_at=ts,
            updated_at=ts,
            assigned_to=assigned_to or None,
            tags=_coerce_tags(list(tags) if tags is not None else None),
            due_date=_coerce_due_date(due_date),
        )

    # ---- mutators ----

    def touch(self) -> None:
        # Never move backwards, even if the wall clock does.
        self.updated_at = max(now_iso(), self.updated_at)

    def update_status(self, new_status: str | TaskStatus) -> Task:
        self.status = TaskStatus.parse(new_status)
        self.touch()
        return self

    def add_tag(self, tag: str) -> Task:
        if tag not in self.tags:
            self.tags.append(tag)
        self.touch()
        return self

    def remove_tag(self, tag: str) -> Task:
        self.tags = [t for t in self.tags if t != tag]
        self.touch()
        return self

    def is_overdue(self, now: float | None = None) -> bool:
        if self.due_date is None:
            return False
        if now is None:
            now = time.time()
        return self.due_date < now

    # ---- typed setters (the only fields `update` may touch) ----

    def set_title(self, value: Any) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("title must be a non-empty string")
        self.title = value
        self.touch()

    def set_description(self, value: Any) -> None:
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError("description must be a string")
        self.description = value
        self.touch()

    def set_priority(self, value: Any) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("priority must be a non-empty string")
        self.priority = value
        self.touch()

    def set_assigned_to(self, value: Any) -> None:
        if value is not None and not isinstance(value, str):
            raise ValidationError("assigned_to must be a string")
        self.assigned_to = value or None
        self.touch()

    def set_tags(self, value: Any) -> None:
        self.tags = _coerce_tags(value)
        self.touch()

    def set_due_date(self, value: Any) -> None:
        self.due_date = _coerce_due_date(value)
        self.touch()

    def apply_updates(self, updates: Mapping[str, Any]) -> Task:
        """
        Apply several field updates at once.

        All-or-nothing: updates are applied to a draft first, so a rejected
        field leaves this task untouched.
        """
        unknown = [name for name in updates if name not in UPDATABLE_FIELDS]
        if unknown:
            allowed = ", ".join(UPDATABLE_FIELDS)
            raise ValidationError(f"Cannot update field(s): {', '.join(unknown)} (allowed: {allowed})")

        draft = replace(self, tags=list(self.tags))
        for name, value in updates.items():
            getattr(draft, UPDATABLE_FIELDS[name])(value)
        draft.touch()

        for f in fields(self):
            setattr(self, f.name, getattr(draft, f.name))
        return self

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "assigned_to": self.assigned_to,
            "tags": list(self.tags),
            "due_date": self.due_date,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Task:
        """Build a task from a stored record, back-filling absent or null keys."""
        id_ = raw.get("id")
        title = raw.get("title")
        if not id_:
            raise ValidationError("Task ID required")
        if not title:
            raise ValidationError("Task title required")

        ts = now_iso()
        created_at = str(raw.get("created_at") or ts)
        updated_at = str(raw.get("updated_at") or created_at)
        assigned_to = raw.get("assigned_to")

        return cls(
            id=str(id_),
            title=str(title),
            description=str(raw.get("description") or ""),
            status=TaskStatus.from_stored(raw.get("status")),
            priority=str(raw.get("priority") or DEFAULT_PRIORITY),
            created_at=created_at,
            updated_at=max(updated_at, created_at),
            assigned_to=str(assigned_to) if assigned_to else None,
            tags=_coerce_tags(raw.get("tags")),
            due_date=_coerce_due_date(raw.get("due_date")),
        )


UPDATABLE_FIELDS: dict[str, str] = {
    "title": "set_title",
    "description": "set_description",
    "status": "update_status",
    "priority": "set_priority",
    "assigned_to": "set_assigned_to",
    "tags": "set_tags",
    "due_date": "set_due_date",
}
