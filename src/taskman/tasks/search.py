# src/taskman/tasks/search.py

"""
Task search with relevance ranking.

Match rules per field:
- title / description / assigned_to: case-insensitive substring;
  an exact (whole value) match outranks a partial one.
- tags: case-sensitive equality with any tag (always an exact match).

Results are ordered by match strength, then created_at ascending.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import IntEnum, StrEnum

from ..errors import ValidationError
from .task_models import Task

logger = logging.getLogger(__name__)


class SearchField(StrEnum):
    TITLE = "title"
    DESCRIPTION = "description"
    TAGS = "tags"
    ASSIGNED_TO = "assigned_to"

    @classmethod
    def parse(cls, raw: str) -> SearchField:
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(f.value for f in cls)
            raise ValidationError(f"Unsupported search field: {raw} (expected one of: {allowed})") from None


class MatchStrength(IntEnum):
    EXACT = 0
    PARTIAL = 1


ALL_FIELDS: tuple[SearchField, ...] = tuple(SearchField)


def match_field(task: Task, field: SearchField, query: str) -> MatchStrength | None:
    if field is SearchField.TAGS:
        return MatchStrength.EXACT if query in task.tags else None

    value = getattr(task, field.value) or ""
    if not value:
        return None
    v = value.lower()
    q = query.lower()
    if v == q:
        return MatchStrength.EXACT
    if q in v:
        return MatchStrength.PARTIAL
    return None


def _best_match(task: Task, fields: Iterable[SearchField], query: str) -> MatchStrength | None:
    found = [m for m in (match_field(task, f, query) for f in fields) if m is not None]
    return min(found) if found else None


def match_task(
    task: Task,
    terms: Sequence[str],
    fields: Sequence[SearchField] = ALL_FIELDS,
    *,
    match_all: bool = False,
) -> MatchStrength | None:
    """
    Strength of the best match of `terms` against `task`, or None.

    By default the terms form one query joined by spaces. With match_all,
    every term must match on its own; the result is EXACT only when the
    joined query also matches some field exactly.
    """
    query = " ".join(terms)
    if not match_all:
        return _best_match(task, fields, query)

    for term in terms:
        if _best_match(task, fields, term) is None:
            return None
    if _best_match(task, fields, query) is MatchStrength.EXACT:
        return MatchStrength.EXACT
    return MatchStrength.PARTIAL


def search_tasks(
    tasks: Iterable[Task],
    terms: Sequence[str],
    *,
    field: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    match_all: bool = False,
) -> list[Task]:
    terms = [t for t in terms if t]
    if not terms:
        raise ValidationError("search requires at least one query term")

    fields = (SearchField.parse(field),) if field is not None else ALL_FIELDS

    candidates = [
        t
        for t in tasks
        if (status is None or t.status == status) and (priority is None or t.priority == priority)
    ]

    ranked: list[tuple[MatchStrength, str, Task]] = []
    for task in candidates:
        strength = match_task(task, terms, fields, match_all=match_all)
        if strength is not None:
            ranked.append((strength, task.created_at, task))

    ranked.sort(key=lambda r: (r[0], r[1]))
    logger.debug(
        "search terms=%r field=%s status=%s priority=%s candidates=%d hits=%d",
        terms,
        field,
        status,
        priority,
        len(candidates),
        len(ranked),
    )
    return [task for _, _, task in ranked]
