"""GitHub Actions runner I/O: inputs, outputs, job state and secret masking.

Implements the file-command protocol the runner exposes to steps:

- inputs arrive as ``INPUT_<NAME>`` environment variables
- outputs and state are appended to the files named by ``GITHUB_OUTPUT``
  and ``GITHUB_STATE``; state saved by the main step is handed to the post
  step as ``STATE_<NAME>`` environment variables
- workflow commands (``::add-mask::``, ``::error::``) are written to stdout
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from pathlib import Path

from sfp_build_domain.core.exceptions import ConfigurationError
from sfp_build_domain.core.logging import escape_command_data, register_secret

logger = logging.getLogger(__name__)

# Exit code recorded by set_failed; the CLI returns it.
exit_code: int = 0


def _input_env_name(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, required: bool = False) -> str:
    """Read an action input, trimmed. Missing inputs read as empty."""
    value = os.environ.get(_input_env_name(name), "").strip()
    if required and not value:
        raise ConfigurationError(f"Input required and not supplied: {name}", field=name)
    return value


def get_bool_input(name: str, default: bool) -> bool:
    """Read a boolean input with the action's lenient semantics.

    A default-true input is only false when literally ``false``; a
    default-false input is only true when literally ``true``.
    """
    value = get_input(name).lower()
    if default:
        return value != "false"
    return value == "true"


def get_int_input(name: str, default: int) -> int:
    value = get_input(name)
    if not value:
        return default
    try:
        return int(value, 10)
    except ValueError as e:
        raise ConfigurationError(f"Input '{name}' must be an integer", field=name, details=value) from e


def issue_command(command: str, message: str = "") -> None:
    sys.stdout.write(f"::{command}::{escape_command_data(message)}\n")
    sys.stdout.flush()


def _append_file_command(env_name: str, name: str, value: str) -> bool:
    file_path = os.environ.get(env_name)
    if not file_path:
        return False
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError("Unexpected delimiter collision in file command value")
    path = Path(file_path)
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True


def set_output(name: str, value: str) -> None:
    """Set a step output."""
    if not _append_file_command("GITHUB_OUTPUT", name, value):
        sys.stdout.write(f"\n::set-output name={name}::{escape_command_data(value)}\n")


def save_state(name: str, value: str) -> None:
    """Save a value for the post step of this action."""
    if not _append_file_command("GITHUB_STATE", name, value):
        sys.stdout.write(f"\n::save-state name={name}::{escape_command_data(value)}\n")


def get_state(name: str) -> str:
    """Read a value saved by the main step (available to the post step)."""
    return os.environ.get(f"STATE_{name}", "")


def set_secret(value: str) -> None:
    """Mask ``value`` in runner logs and in this process's own logging."""
    if not value:
        return
    register_secret(value)
    issue_command("add-mask", value)


def set_failed(message: str) -> None:
    """Record the step as failed and emit an error annotation."""
    global exit_code
    exit_code = 1
    logger.error(message)


class ActionsStateStore:
    """Job state backed by the runner's ``GITHUB_STATE`` protocol."""

    def save(self, name: str, value: str) -> None:
        save_state(name, value)

    def get(self, name: str) -> str:
        return get_state(name)
