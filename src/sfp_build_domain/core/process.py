"""Subprocess helpers for the sfp and git command lines."""

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass


@dataclass
class CommandResult:
    """Captured outcome of a finished command.

    Both output channels are stripped of surrounding whitespace.
    """

    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def diagnostics(self) -> str:
        """Most useful channel for an error message: stderr, else stdout."""
        return self.stderr or self.stdout


def run_captured(
    command: str,
    args: list[str],
    *,
    timeout: float | None = None,
    silent: bool = False,
    logger: logging.Logger | None = None,
) -> CommandResult:
    """Run a command and capture both output channels.

    A non-zero exit status is returned, not raised.

    Raises:
        FileNotFoundError: The executable is not on PATH.
        subprocess.TimeoutExpired: The command outlived ``timeout``.
    """
    logger = logger or logging.getLogger(__name__)
    logger.debug(f"Running: {command} {' '.join(args)}")

    completed = subprocess.run([command, *args], capture_output=True, text=True, timeout=timeout)
    result = CommandResult(
        stdout=(completed.stdout or "").strip(),
        stderr=(completed.stderr or "").strip(),
        exit_code=completed.returncode,
    )

    if not silent:
        if result.stdout:
            logger.info(result.stdout)
        if result.stderr:
            logger.info(result.stderr)
    return result


def run_streaming(command: str, args: list[str], *, logger: logging.Logger | None = None) -> int:
    """Run a command with its output going straight to the console.

    Used for long, log-heavy commands such as builds where capturing
    would hide progress.
    """
    logger = logger or logging.getLogger(__name__)
    logger.debug(f"Running: {command} {' '.join(args)}")
    sys.stdout.flush()
    completed = subprocess.run([command, *args], check=False)
    return completed.returncode
