"""Logging setup for SFP Build Domain.

Three output formats share one redaction filter:

- ``text``: ``timestamp - LEVEL - message`` for local runs
- ``json``: one JSON object per line, for log shippers
- ``actions``: workflow commands so warnings and errors surface as
  annotations on the GitHub run

The sfp server token is passed on command lines and stored in job state, so
every record is scrubbed before it reaches a handler.
"""

import atexit
import json
import logging
import os
import re
import sys
from datetime import UTC, datetime

LOGGER_NAME = "sfp_build_domain"
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
REDACTED = "[REDACTED]"

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

_TOKEN_FLAG = re.compile(r"(?<!\S)(--application-token|-t)([\s=]+)(\S+)")
_SECRET_ASSIGNMENT = re.compile(
    r"(?i)(?<![A-Za-z0-9_])((?:application|server|access|bearer)?[_-]?token|api[_-]?key|password|secret)"
    r"""(\s*[:=]\s*)("[^"]*"|'[^']*'|[^,\s;}\]]+)"""
)
_BEARER = re.compile(r"(?i)\b(bearer)\s+[A-Za-z0-9._~+/=-]+")
_SENSITIVE_NAME_PARTS = {"token", "secret", "password", "authorization"}

_registered_secrets: set[str] = set()
_atexit_registered = False


def register_secret(value: str | None) -> None:
    """Mask ``value`` wherever it shows up in later log records."""
    if value and value.strip():
        _registered_secrets.add(value.strip())


def clear_registered_secrets() -> None:
    _registered_secrets.clear()


def redact(text: str) -> str:
    """Scrub registered secrets, token flags and ``key=value`` credentials."""
    # Longest first: a secret that contains another must not be half-masked.
    for secret in sorted(_registered_secrets, key=len, reverse=True):
        text = text.replace(secret, REDACTED)
    text = _TOKEN_FLAG.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", text)
    text = _SECRET_ASSIGNMENT.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", text)
    return _BEARER.sub(lambda m: f"{m.group(1)} {REDACTED}", text)


def _is_sensitive_name(name: str) -> bool:
    parts = re.split(r"[^a-z0-9]+", name.lower())
    return any(part in _SENSITIVE_NAME_PARTS for part in parts)


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
    }


def _message_of(record: logging.LogRecord) -> str:
    try:
        return record.getMessage()
    except (TypeError, ValueError):
        # Bad %-placeholders must not take the run down with them.
        return f"{record.msg} [log-message-format-error]"


class SensitiveDataFilter(logging.Filter):
    """Rewrite each record with its message and extra fields redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "_redacted", False):
            return True
        record.msg = redact(_message_of(record))
        record.args = ()
        for key, value in _extra_fields(record).items():
            if _is_sensitive_name(key):
                setattr(record, key, REDACTED)
            elif isinstance(value, str):
                setattr(record, key, redact(value))
        record._redacted = True
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extra fields included."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(_message_of(record)),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        for key, value in _extra_fields(record).items():
            entry.setdefault(key, value)
        return json.dumps(entry, default=str)


def escape_command_data(value: str) -> str:
    """Escape a message for use inside a GitHub workflow command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsFormatter(logging.Formatter):
    """INFO as plain lines; other levels as ``::debug::``, ``::warning::`` or ``::error::``."""

    _COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = _message_of(record)
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_command_data(message)}"


def running_in_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"


def _formatter_for(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    if log_format == "actions":
        return ActionsFormatter()
    return logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> logging.Logger:
    """Route all logging to stdout through the redaction filter.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Falls back to
            ``LOG_LEVEL``, then INFO.
        log_format: "text", "json" or "actions". Defaults to "actions" inside
            GitHub Actions and "text" elsewhere.

    Returns:
        The package logger.
    """
    global _atexit_registered
    if not _atexit_registered:
        atexit.register(logging.shutdown)
        _atexit_registered = True

    level_name = (log_level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if level_name not in VALID_LEVELS:
        print(f"Warning: Invalid log level '{level_name}', using INFO", file=sys.stderr)
        level_name = "INFO"
    level = getattr(logging, level_name)

    if not log_format:
        log_format = "actions" if running_in_actions() else "text"

    root = logging.getLogger()
    for existing in root.handlers[:]:
        existing.close()
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter_for(log_format.lower()))
    handler.setLevel(level)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)
    root.setLevel(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.NOTSET)
    return logger
