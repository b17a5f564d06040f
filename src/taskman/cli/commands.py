# src/taskman/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from ..core.state import AppState
from ..errors import NotFoundError, ValidationError
from ..tasks.search import search_tasks
from ..tasks.task_models import Task, TaskStatus

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)

NO_TASKS = "No tasks found."
NO_SEARCH_RESULTS = "No tasks found matching criteria"


class CommandName(StrEnum):
    ADD = "add"
    LIST = "list"
    SHOW = "show"
    UPDATE = "update"
    COMPLETE = "complete"
    DELETE = "delete"
    TAG = "tag"
    UNTAG = "untag"
    SEARCH = "search"
    HELP = "help"


@dataclass(frozen=True, slots=True)
class Command:
    name: CommandName
    usage: str
    help_text: str
    handler: CommandHandler

    def describe(self) -> str:
        return f"  {self.usage:<44} - {self.help_text}"

    def execute(self, state: AppState, args: list[str]) -> str:
        return self.handler(state, args)


@dataclass(frozen=True, slots=True)
class CommandResult:
    output: str
    exit_code: int = 0


class CommandRegistry:
    """Command table for both batch (argv) and interactive use."""

    def __init__(self) -> None:
        self._commands: dict[CommandName, Command] = {}
        self._aliases: dict[str, CommandName] = {}

    def register(
        self,
        name: CommandName,
        handler: CommandHandler,
        usage: str,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        self._commands[name] = Command(name=name, usage=usage, help_text=help_text, handler=handler)
        for alias in aliases or []:
            self._aliases[alias] = name

    def resolve(self, raw: str) -> Command | None:
        try:
            name = CommandName(raw)
        except ValueError:
            name = self._aliases.get(raw)
        if name is None:
            return None
        return self._commands.get(name)

    def handle(self, state: AppState, argv: Sequence[str]) -> CommandResult:
        """
        Run argv[0] with argv[1:] as its arguments.

        An empty argv shows help. Unknown commands print help too, with a
        non-zero exit code. Handler errors propagate to the caller.
        """
        if not argv:
            return CommandResult(self.build_help())

        raw, args = argv[0], list(argv[1:])
        command = self.resolve(raw)
        if command is None:
            logger.debug("Unknown command %r", raw)
            return CommandResult(f"Unknown command: {raw}\n{self.build_help()}", exit_code=2)

        logger.debug("Dispatch command=%s args=%s", command.name, args)
        return CommandResult(command.execute(state, args))

    def build_help(self) -> str:
        lines = ["Task Manager Commands:"]
        for command in self._commands.values():
            lines.append(command.describe())
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def parse_options(args: Sequence[str], allowed: Iterable[str]) -> tuple[dict[str, str], list[str]]:
    """
    Split `--name value` / `--name=value` options from positional words.

    A bare `--` ends option parsing; everything after it is positional.
    """
    allowed = set(allowed)
    opts: dict[str, str] = {}
    positional: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            positional.extend(args[i + 1 :])
            break
        if arg.startswith("--") and len(arg) > 2:
            name, sep, value = arg[2:].partition("=")
            if name not in allowed:
                raise ValidationError(f"Unknown option: --{name}")
            if not sep:
                if i + 1 >= len(args):
                    raise ValidationError(f"Option --{name} requires a value")
                i += 1
                value = args[i]
            opts[name] = value
        else:
            positional.append(arg)
        i += 1

    return opts, positional


def sort_by_created(tasks: Iterable[Task]) -> list[Task]:
    # ISO-8601 strings sort chronologically.
    return sorted(tasks, key=lambda t: t.created_at)


def format_task_table(tasks: Iterable[Task]) -> str:
    lines = [
        f"{'ID':<15} {'Status':<10} {'Title':<30} {'Updated':<15}".rstrip(),
        "-" * 70,
    ]
    for t in tasks:
        row = f"{t.id:<15} {t.status.value:<10} {t.title[:30]:<30} {t.updated_at[:10]:<15}"
        lines.append(row.rstrip())
    return "\n".join(lines)


def _format_due(task: Task) -> str:
    if task.due_date is None:
        return "None"
    iso = datetime.fromtimestamp(task.due_date, UTC).isoformat()
    suffix = " (overdue)" if task.is_overdue() else ""
    return f"{task.due_date} ({iso}){suffix}"


def _require_task(state: AppState, task_id: str) -> Task:
    task = state.task_store.get(task_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args or not args[0].strip() or len(args) > 2:
        raise ValidationError("Usage: add <title> [description]")

    title = args[0]
    description = args[1] if len(args) > 1 else ""

    store = state.task_store
    task = Task.create(id=store.next_id(), title=title, description=description)
    store.add(task)
    return f"Added task: {task.id} - {task.title}"


def cmd_list(state: AppState, args: list[str]) -> str:
    opts, rest = parse_options(args, ["status"])
    if rest:
        raise ValidationError("Usage: list [--status <status>]")

    tasks = state.task_store.get_all()
    status = opts.get("status")
    if status is not None:
        tasks = [t for t in tasks if t.status == status]

    if not tasks:
        return NO_TASKS
    return format_task_table(sort_by_created(tasks))


def cmd_show(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        raise ValidationError("Usage: show <task_id>")

    task = _require_task(state, args[0])
    return "\n".join(
        [
            "Task Details:",
            f"  ID: {task.id}",
            f"  Title: {task.title}",
            f"  Description: {task.description}",
            f"  Status: {task.status.value}",
            f"  Priority: {task.priority}",
            f"  Created: {task.created_at}",
            f"  Updated: {task.updated_at}",
            f"  Assigned to: {task.assigned_to or 'Unassigned'}",
            f"  Tags: {', '.join(task.tags)}",
            f"  Due date: {_format_due(task)}",
        ]
    )


def cmd_update(state: AppState, args: list[str]) -> str:
    """
    update <task_id> <field> <value...>

    Words after the field name are joined into one value, so
    `update task_1 title Buy oat milk` works without quoting.
    """
    if len(args) < 3:
        raise ValidationError("Usage: update <task_id> <field> <value>")

    task_id, field_name = args[0], args[1]
    value = " ".join(args[2:])
    state.task_store.update(task_id, {field_name: value})
    return f"Updated task {task_id}: {field_name} = {value}"


def cmd_complete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        raise ValidationError("Usage: complete <task_id>")

    task = _require_task(state, args[0])
    task.update_status(TaskStatus.COMPLETED)
    state.task_store.save()
    return f"Marked task {task.id} as completed"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        raise ValidationError("Usage: delete <task_id>")

    task = state.task_store.delete(args[0])
    if task is None:
        raise NotFoundError(f"Task {args[0]} not found")
    return f"Deleted task: {task.title}"


def cmd_tag(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        raise ValidationError("Usage: tag <task_id> <tag> [tag...]")

    task = _require_task(state, args[0])
    for tag in args[1:]:
        task.add_tag(tag)
    state.task_store.save()
    return f"Tagged task {task.id}: {', '.join(task.tags)}"


def cmd_untag(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        raise ValidationError("Usage: untag <task_id> <tag> [tag...]")

    task = _require_task(state, args[0])
    for tag in args[1:]:
        task.remove_tag(tag)
    state.task_store.save()
    remaining = ", ".join(task.tags) or "(none)"
    return f"Untagged task {task.id}; tags now: {remaining}"


def cmd_search(state: AppState, args: list[str]) -> str:
    opts, terms = parse_options(args, ["field", "status", "priority"])
    match_all = bool(getattr(state.settings, "search_match_all", False))

    results = search_tasks(
        state.task_store.get_all(),
        terms,
        field=opts.get("field"),
        status=opts.get("status"),
        priority=opts.get("priority"),
        match_all=match_all,
    )
    if not results:
        return NO_SEARCH_RESULTS
    return format_task_table(results)


registry.register(CommandName.ADD, cmd_add, "add <title> [description]", "Add a new task")
registry.register(
    CommandName.LIST, cmd_list, "list [--status <status>]", "List all tasks or by status", aliases=["ls"]
)
registry.register(CommandName.SHOW, cmd_show, "show <task_id>", "Show task details")
registry.register(CommandName.UPDATE, cmd_update, "update <task_id> <field> <value>", "Update a task field")
registry.register(CommandName.COMPLETE, cmd_complete, "complete <task_id>", "Mark task as completed")
registry.register(CommandName.DELETE, cmd_delete, "delete <task_id>", "Delete a task", aliases=["rm"])
registry.register(CommandName.TAG, cmd_tag, "tag <task_id> <tag> [tag...]", "Add tags to a task")
registry.register(CommandName.UNTAG, cmd_untag, "untag <task_id> <tag> [tag...]", "Remove tags from a task")
registry.register(
    CommandName.SEARCH,
    cmd_search,
    "search [--field F] [--status S] [--priority P] <query...>",
    "Search tasks (exact matches first)",
)
registry.register(CommandName.HELP, cmd_help, "help", "Show this help", aliases=["h", "?"])
