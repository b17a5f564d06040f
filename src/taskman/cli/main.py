# src/taskman/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (which loads the task file), then:
- with arguments: runs one command and exits with its status,
- without arguments: starts the interactive console.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..errors import StorageError, TaskmanError, ValidationError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _split_global_options(argv: list[str]) -> tuple[str | None, list[str]]:
    """Pull a leading `--file PATH` / `--file=PATH` off argv."""
    if argv and argv[0].startswith("--file"):
        opt, sep, value = argv[0].partition("=")
        if opt != "--file":
            raise ValidationError(f"Unknown option: {opt}")
        if sep:
            return value, argv[1:]
        if len(argv) < 2:
            raise ValidationError("Option --file requires a value")
        return argv[1], argv[2:]
    return None, argv


def main(argv: Sequence[str] | None = None, *, settings=None) -> int:
    if settings is None:
        settings = get_settings()
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    log_dir = getattr(settings, "data_dir", ".local/taskman")
    try:
        setup_logging(
            log_dir=log_dir,
            console_level=console_level,
            log_to_file=bool(getattr(settings, "log_to_file", True)),
        )
    except OSError as e:
        err = StorageError(f"Cannot set up log file in {log_dir}: {e}")
        print(f"Error: {err}", file=sys.stderr)
        return err.exit_code
    logger.info("Starting %s...", getattr(settings, "app_name", "taskman"))

    try:
        tasks_path, argv = _split_global_options(argv)
        state = create_initial_state(settings=settings, tasks_path=tasks_path)
    except TaskmanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    if not argv:
        run_console_loop(state)
        return 0

    try:
        result = command_registry.handle(state, argv)
    except TaskmanError as e:
        logger.debug("Command failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except Exception as e:
        logger.exception("Command handler crashed.")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stream = sys.stdout if result.exit_code == 0 else sys.stderr
    print(result.output, file=stream)
    return result.exit_code


def run() -> None:
    """Console-script entry: exit with main()'s status."""
    sys.exit(main())


if __name__ == "__main__":
    run()
