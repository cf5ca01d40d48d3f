"""Ticket ID recovery from lock service enqueue output.

The enqueue command prints free-form text whose layout has changed across
sfp releases. Two shapes are recognised:

- a labelled line such as ``Ticket ID: 12-34-ab12-cd34``
- a bare (optionally quoted) ticket on the last non-empty line
"""

from __future__ import annotations

import re

from sfp_build_domain.core.exceptions import ExtractionError

TICKET_TOKEN = r"\d+-\d+-[a-f0-9-]+"

_LABELLED_TICKET_PATTERN = re.compile(rf"ticket\s*(?:id)?[:\s]+({TICKET_TOKEN})", re.IGNORECASE)
_BARE_TICKET_PATTERN = re.compile(TICKET_TOKEN)
_QUOTE_CHARS = "\"'"


def _last_non_empty_line(output: str) -> str:
    for line in reversed(output.splitlines()):
        if line.strip():
            return line.strip()
    return ""


def extract_ticket_id(output: str) -> str:
    """Return the ticket ID embedded in an enqueue response.

    Args:
        output: Primary output of the enqueue command

    Returns:
        The ticket token, e.g. ``12-34-ab12-cd34``

    Raises:
        ExtractionError: Neither a labelled ticket nor a bare ticket on the
            last line was found. The full output is attached.
    """
    text = output or ""

    match = _LABELLED_TICKET_PATTERN.search(text)
    if match:
        return match.group(1)

    candidate = _last_non_empty_line(text).strip(_QUOTE_CHARS).strip()
    if _BARE_TICKET_PATTERN.fullmatch(candidate):
        return candidate

    raise ExtractionError("No ticket ID found in enqueue output", output=text)
