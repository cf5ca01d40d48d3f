"""CLI argument parsing.

Every option defaults to the matching action input (``INPUT_<NAME>``) so the
same entry point serves both the GitHub Action and local runs.
"""

from __future__ import annotations

import argparse
import os

import argcomplete

from sfp_build_domain.actions.platform import get_bool_input, get_input, get_int_input
from sfp_build_domain.core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_BUILD_NUMBER,
    DEFAULT_SERIALIZE_LEASE,
    DEFAULT_SERIALIZE_TIMEOUT,
    LOG_FORMATS,
)
from sfp_build_domain.core.version import __version__


def _input_or_env(input_name: str, *env_names: str, default: str = "") -> str:
    value = get_input(input_name)
    if value:
        return value
    for env_name in env_names:
        env_value = os.environ.get(env_name, "").strip()
        if env_value:
            return env_value
    return default


def _add_server_group(parser: argparse.ArgumentParser) -> None:
    server_group = parser.add_argument_group("SFP Server", "Connection to the sfp server and its lock service")
    server_group.add_argument(
        "--sfp-server-url",
        default=_input_or_env("sfp-server-url", "SFP_SERVER_URL"),
        help="sfp server URL (input: sfp-server-url)",
    )
    server_group.add_argument(
        "--sfp-server-token",
        default=_input_or_env("sfp-server-token", "SFP_SERVER_TOKEN"),
        help="Application token for the sfp server (input: sfp-server-token, env: SFP_SERVER_TOKEN)",
    )


def _add_logging_group(parser: argparse.ArgumentParser) -> None:
    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: INFO, env: LOG_LEVEL)",
    )
    logging_group.add_argument(
        "--log-format",
        default=None,
        choices=LOG_FORMATS,
        help="Log output format (default: actions inside GitHub Actions, text elsewhere)",
    )


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse arguments for the main (build) invocation."""
    parser = argparse.ArgumentParser(
        prog="sfp-build-domain",
        description="Build, publish and tag a release domain, serialized across concurrent CI runs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    _add_server_group(parser)

    build_group = parser.add_argument_group("Build", "What to build")
    build_group.add_argument(
        "--release-config",
        default=get_input("release-config"),
        help="Path to the release config YAML (input: release-config)",
    )
    build_group.add_argument(
        "--repository",
        default=_input_or_env("repository", "GITHUB_REPOSITORY"),
        help="Repository identifier owner/name (default: GITHUB_REPOSITORY)",
    )
    build_group.add_argument(
        "--branch",
        default=_input_or_env("branch", "GITHUB_REF_NAME", default=DEFAULT_BRANCH),
        help="Branch to build (default: GITHUB_REF_NAME or main)",
    )
    build_group.add_argument(
        "--build-number",
        default=_input_or_env("build-number", "GITHUB_RUN_ID", default=DEFAULT_BUILD_NUMBER),
        help="Build number (default: GITHUB_RUN_ID or 1)",
    )
    build_group.add_argument(
        "--release-name",
        default=get_input("release-name"),
        help="Release candidate name (default: <branch>-<build number>)",
    )
    build_group.add_argument(
        "--diff-check",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("diff-check", True),
        help="Only build packages changed since their last tag (default: on)",
    )

    serialize_group = parser.add_argument_group("Serialization", "Locks held on the sfp server")
    serialize_group.add_argument(
        "--serialize",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("serialize", True),
        help="Serialize builds of this release domain (default: on)",
    )
    serialize_group.add_argument(
        "--serialize-timeout",
        type=int,
        default=get_int_input("serialize-timeout", DEFAULT_SERIALIZE_TIMEOUT),
        metavar="SECONDS",
        help=f"Seconds to wait for a lock (default: {DEFAULT_SERIALIZE_TIMEOUT})",
    )
    serialize_group.add_argument(
        "--serialize-lease",
        type=int,
        default=get_int_input("serialize-lease", DEFAULT_SERIALIZE_LEASE),
        metavar="SECONDS",
        help=f"Seconds a granted lock is held before it expires (default: {DEFAULT_SERIALIZE_LEASE})",
    )
    serialize_group.add_argument(
        "--publish-lock",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("publish-lock", True),
        help="Also hold the repository-wide lock while publishing (default: on)",
    )

    publish_group = parser.add_argument_group("Publish", "Where and how artifacts are published")
    publish_group.add_argument(
        "--npm-scope",
        default=_input_or_env("npm-scope", "GITHUB_REPOSITORY_OWNER"),
        help="npm scope for packages (default: GITHUB_REPOSITORY_OWNER)",
    )
    publish_group.add_argument(
        "--npm",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("npm", False),
        help="Publish to npm instead of internal-only (default: off)",
    )
    publish_group.add_argument(
        "--git-tag",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("git-tag", True),
        help="Create git tags for published packages (default: on)",
    )
    publish_group.add_argument(
        "--push-git-tag",
        action=argparse.BooleanOptionalAction,
        default=get_bool_input("push-git-tag", True),
        help="Push created git tags (default: on)",
    )

    _add_logging_group(parser)

    # Enable shell tab-completion
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)


def parse_cleanup_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse arguments for the cleanup (post) invocation.

    The lock to release comes from job state, not from arguments.
    """
    parser = argparse.ArgumentParser(
        prog="sfp-build-domain-cleanup",
        description="Release locks taken by sfp-build-domain in this job.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_logging_group(parser)

    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
