# src/taskman/errors.py

"""
Error taxonomy shared by the store, the search layer and the CLI.

Every error carries an `exit_code` so batch mode can turn it into a process
status without a lookup table.
"""

from __future__ import annotations


class TaskmanError(Exception):
    """Base class for all reported (user-facing) errors."""

    exit_code: int = 1


class ValidationError(TaskmanError):
    """Bad or missing argument, invalid enum value, malformed options."""

    exit_code = 2


class NotFoundError(TaskmanError):
    """Unknown task id."""


class ConflictError(TaskmanError):
    """Duplicate task id on add."""


class StorageError(TaskmanError):
    """Backing file could not be read or written."""


class ParseError(TaskmanError):
    """Backing file is not valid JSON or has the wrong shape."""
