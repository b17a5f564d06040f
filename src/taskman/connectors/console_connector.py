# src/taskman/connectors/console_connector.py

from __future__ import annotations

import logging
import shlex

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import TaskmanError

logger = logging.getLogger(__name__)

PROMPT = "> "
EXIT_WORDS = ("quit", "exit")


def split_line(line: str) -> list[str]:
    """Whitespace split that honours quotes; lines shlex can't parse (`Don't`) split plainly."""
    try:
        return shlex.split(line)
    except ValueError:
        logger.debug("shlex could not parse %r, splitting on whitespace.", line)
        return line.split()


def run_console_loop(state: AppState) -> None:
    """
    Interactive shell: read a line, split it shell-style, dispatch, repeat.

    Errors are printed with an "Error:" prefix and the loop keeps going.
    Ends on `quit` / `exit`, EOF or Ctrl+C.
    """
    logger.info("Console started (file=%s).", state.task_store.path)
    print("Task Manager - Type 'help' for commands, 'quit' to exit")

    while True:
        try:
            line = input(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            print()
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line in EXIT_WORDS:
            logger.info("Console exit command received.")
            break

        argv = split_line(line)

        try:
            result = command_registry.handle(state, argv)
        except TaskmanError as e:
            logger.debug("Command failed: %s", e)
            print(f"Error: {e}")
            continue
        except Exception as e:
            logger.exception("Command handler crashed.")
            print(f"Error: {e}")
            continue

        print(result.output)

    logger.info("Console finished.")
