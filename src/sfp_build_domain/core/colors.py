"""ANSI styling for the run banner and build summary.

The runner's log viewer renders ANSI codes, so styling stays on inside
GitHub Actions even though stdout is a pipe there. ``NO_COLOR`` always wins.
"""

import os
import sys


def _detect_color_support() -> bool:
    if os.environ.get('NO_COLOR'):
        return False
    return sys.stdout.isatty() or os.environ.get('GITHUB_ACTIONS') == 'true'


class ConsoleColors:
    """Styles for console lines printed outside of logging."""

    GREEN = '\033[92m'
    BOLD = '\033[1m'
    DIM = '\033[90m'
    RESET = '\033[0m'

    enabled = _detect_color_support()

    @classmethod
    def _styled(cls, code: str, text: str) -> str:
        return f"{code}{text}{cls.RESET}" if cls.enabled else text

    @classmethod
    def success(cls, text: str) -> str:
        return cls._styled(cls.GREEN, text)

    @classmethod
    def bold(cls, text: str) -> str:
        return cls._styled(cls.BOLD, text)

    @classmethod
    def dim(cls, text: str) -> str:
        """Greyed out, for skipped stages."""
        return cls._styled(cls.DIM, text)
