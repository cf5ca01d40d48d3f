"""CLI module - Command-line interface components."""

from sfp_build_domain.cli.main import cleanup, main, run_cleanup
from sfp_build_domain.cli.parser import parse_arguments, parse_cleanup_arguments

__all__ = [
    "cleanup",
    "main",
    "parse_arguments",
    "parse_cleanup_arguments",
    "run_cleanup",
]
