# tests/test_commands.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskman.cli.commands import (
    NO_SEARCH_RESULTS,
    NO_TASKS,
    CommandName,
    CommandRegistry,
    parse_options,
    registry,
)
from taskman.errors import NotFoundError, ValidationError
from taskman.tasks.task_models import TaskStatus


def run(state, *argv: str) -> str:
    result = registry.handle(state, list(argv))
    assert result.exit_code == 0
    return result.output


def _added_id(output: str) -> str:
    # "Added task: task_1 - title"
    return output.split(": ", 1)[1].split(" - ", 1)[0]


def test_registry_routes_and_reports_unknown(state) -> None:
    reg = CommandRegistry()
    calls: list[list[str]] = []

    def handler(state, args):
        calls.append(args)
        return "ok"

    reg.register(CommandName.SHOW, handler, "show <id>", "show", aliases=["s"])

    assert reg.handle(state, ["show", "x"]).output == "ok"
    assert reg.handle(state, ["s", "y"]).output == "ok"
    assert calls == [["x"], ["y"]]

    unknown = reg.handle(state, ["nope"])
    assert unknown.exit_code == 2
    assert unknown.output.startswith("Unknown command: nope")
    assert "show <id>" in unknown.output


def test_help_lists_every_command(state) -> None:
    out = run(state, "help")
    for name in CommandName:
        assert f"  {name.value}" in out


def test_empty_argv_shows_help(state) -> None:
    assert registry.handle(state, []).output.startswith("Task Manager Commands:")


def test_add_then_show(state) -> None:
    task_id = _added_id(run(state, "add", "Fix login bug", "desc A"))

    out = run(state, "show", task_id)
    assert f"  ID: {task_id}" in out
    assert "  Title: Fix login bug" in out
    assert "  Description: desc A" in out
    assert "  Status: pending" in out
    assert "  Assigned to: Unassigned" in out
    assert "  Due date: None" in out


def test_add_requires_title(state) -> None:
    with pytest.raises(ValidationError):
        run(state, "add")


def test_list_table_and_empty(state) -> None:
    assert run(state, "list") == NO_TASKS

    run(state, "add", "A very long title that certainly exceeds thirty characters")
    lines = run(state, "list").splitlines()

    assert lines[0].split() == ["ID", "Status", "Title", "Updated"]
    assert lines[1] == "-" * 70
    assert "A very long title that certain" in lines[2]
    assert "exceeds" not in lines[2]


def test_list_status_filter_sorted_by_created(state) -> None:
    ids = [_added_id(run(state, "add", title)) for title in ("one", "two", "three")]
    store = state.task_store
    store.get(ids[0]).created_at = "2026-03-01T00:00:00"
    store.get(ids[2]).created_at = "2026-01-01T00:00:00"
    run(state, "complete", ids[0])
    run(state, "complete", ids[2])

    rows = run(state, "list", "--status", "completed").splitlines()[2:]

    assert [r.split()[0] for r in rows] == [ids[2], ids[0]]
    assert run(state, "list", "--status", "cancelled") == NO_TASKS


def test_update_and_complete(state) -> None:
    task_id = _added_id(run(state, "add", "Buy milk"))

    assert run(state, "update", task_id, "title", "Buy", "oat", "milk") == (
        f"Updated task {task_id}: title = Buy oat milk"
    )
    run(state, "complete", task_id)

    task = state.task_store.get(task_id)
    assert task.title == "Buy oat milk"
    assert task.status is TaskStatus.COMPLETED


def test_update_rejects_unknown_field_and_bad_status(state) -> None:
    task_id = _added_id(run(state, "add", "x"))

    with pytest.raises(ValidationError):
        run(state, "update", task_id, "owner", "me")
    with pytest.raises(ValidationError):
        run(state, "update", task_id, "status", "done")
    with pytest.raises(NotFoundError):
        run(state, "update", "task_999", "title", "x")


@pytest.mark.parametrize("command", ["show", "complete", "delete"])
def test_unknown_id_not_found(state, command: str) -> None:
    with pytest.raises(NotFoundError):
        run(state, command, "task_404")


def test_delete_unknown_keeps_file(state, settings) -> None:
    run(state, "add", "keep me")
    before = Path(settings.tasks_path).read_bytes()

    with pytest.raises(NotFoundError):
        run(state, "delete", "task_404")

    assert Path(settings.tasks_path).read_bytes() == before


def test_delete(state) -> None:
    task_id = _added_id(run(state, "add", "gone soon"))
    assert run(state, "delete", task_id) == "Deleted task: gone soon"
    assert state.task_store.get(task_id) is None


def test_tag_and_untag(state) -> None:
    task_id = _added_id(run(state, "add", "x"))

    run(state, "tag", task_id, "home", "urgent", "home")
    assert state.task_store.get(task_id).tags == ["home", "urgent"]

    run(state, "untag", task_id, "home", "absent")
    assert state.task_store.get(task_id).tags == ["urgent"]


def test_show_marks_overdue(state) -> None:
    task_id = _added_id(run(state, "add", "x"))
    run(state, "update", task_id, "due_date", "1000")

    assert "(overdue)" in run(state, "show", task_id)


def test_search_scenario(state) -> None:
    first = _added_id(run(state, "add", "Fix login bug", "desc A"))
    second = _added_id(run(state, "add", "Update docs", "desc B"))

    def found(*argv: str) -> list[str]:
        out = run(state, "search", *argv)
        if out == NO_SEARCH_RESULTS:
            return []
        return [row.split()[0] for row in out.splitlines()[2:]]

    assert found("login") == [first]

    run(state, "update", second, "description", "REST API docs")
    assert found("--field", "description", "API") == [second]

    run(state, "complete", second)
    assert found("--status", "completed", "docs") == [second]

    assert run(state, "search", "zzz-nonexistent") == NO_SEARCH_RESULTS


def test_search_validation(state) -> None:
    with pytest.raises(ValidationError):
        run(state, "search")
    with pytest.raises(ValidationError):
        run(state, "search", "--field", "priority", "x")
    with pytest.raises(ValidationError):
        run(state, "search", "--colour", "red", "x")


def test_search_match_all_from_settings(state, settings) -> None:
    run(state, "add", "Fix login bug")
    assert run(state, "search", "bug", "login") == NO_SEARCH_RESULTS

    settings.search_match_all = True
    assert "Fix login bug" in run(state, "search", "bug", "login")


def test_parse_options() -> None:
    opts, rest = parse_options(["--status=done", "a", "--field", "title", "--", "--b"], ["status", "field"])
    assert opts == {"status": "done", "field": "title"}
    assert rest == ["a", "--b"]

    with pytest.raises(ValidationError):
        parse_options(["--status"], ["status"])
