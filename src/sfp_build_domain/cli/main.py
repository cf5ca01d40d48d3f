"""CLI entry points for the main and cleanup invocations."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from sfp_build_domain.actions import platform
from sfp_build_domain.actions.platform import ActionsStateStore
from sfp_build_domain.cli.parser import parse_arguments, parse_cleanup_arguments
from sfp_build_domain.core.colors import ConsoleColors
from sfp_build_domain.core.config import ActionConfig, ServerConfig
from sfp_build_domain.core.constants import BANNER_WIDTH, BUILD_STATE_SCOPE, CLEANUP_ACTION_NAME, PUBLISH_STATE_SCOPE
from sfp_build_domain.core.exceptions import BuildDomainError, ConfigurationError
from sfp_build_domain.core.locks.client import LockServiceClient
from sfp_build_domain.core.locks.state import CrossInvocationStateStore, ReleaseDecision, StateStore
from sfp_build_domain.core.logging import setup_logging
from sfp_build_domain.core.version import __version__
from sfp_build_domain.pipeline.build_domain import BuildDomainPipeline


def validate_config(config: ActionConfig) -> None:
    """Reject configurations the run cannot start with."""
    if not config.server.url:
        raise ConfigurationError("Input required and not supplied: sfp-server-url", field="sfp-server-url")
    if not config.server.token:
        raise ConfigurationError("Input required and not supplied: sfp-server-token", field="sfp-server-token")
    if not config.release_config:
        raise ConfigurationError("Input required and not supplied: release-config", field="release-config")
    if not config.repository:
        raise ConfigurationError("Repository not specified and GITHUB_REPOSITORY not set", field="repository")
    if config.serialize.timeout_seconds <= 0 or config.serialize.lease_seconds <= 0:
        raise ConfigurationError("serialize-timeout and serialize-lease must be positive integers")


def main(argv: list[str] | None = None) -> int:
    """Run the build-domain action. Returns the process exit code."""
    load_dotenv()
    platform.exit_code = 0

    try:
        args = parse_arguments(argv)
    except ConfigurationError as e:
        setup_logging()
        platform.set_failed(str(e))
        return platform.exit_code

    config = ActionConfig.from_args(args)
    logger = setup_logging(config.log.level, config.log.format)

    try:
        platform.set_secret(config.server.token)
        validate_config(config)

        pipeline = BuildDomainPipeline(
            config,
            LockServiceClient(config.server, logger=logger),
            ActionsStateStore(),
            set_output=platform.set_output,
            on_failure=platform.set_failed,
            logger=logger,
        )
        pipeline.run()
    except BuildDomainError as e:
        platform.set_failed(str(e))
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        platform.set_failed(str(e) or "Unknown error occurred")

    return platform.exit_code


def _print_cleanup_header(resource: str, server_url: str) -> None:
    line = "-" * BANNER_WIDTH
    print(line)
    print(ConsoleColors.bold(f"sfp-build-domain  -Version:{__version__}"))
    print(line)
    print(f"Action     : {CLEANUP_ACTION_NAME}")
    print(f"Resource   : {resource}")
    print(f"SFP Server : {server_url}")
    print(line)
    print()


def _client_factory(logger: logging.Logger):
    def factory(server: ServerConfig) -> LockServiceClient:
        return LockServiceClient(server, logger=logger)

    return factory


def run_cleanup(store: StateStore, logger: logging.Logger) -> dict[str, ReleaseDecision]:
    """Release every lock recorded in job state. Never raises."""
    decisions: dict[str, ReleaseDecision] = {}
    for scope in (BUILD_STATE_SCOPE, PUBLISH_STATE_SCOPE):
        handoff = CrossInvocationStateStore(store, scope=scope, logger=logger)
        try:
            state = handoff.load()
            if state is not None and state.ticket and not state.missing_fields():
                _print_cleanup_header(state.resource, state.server_url)
            decisions[scope] = handoff.release_from_state(_client_factory(logger), mask_secret=platform.set_secret)
        except Exception as e:
            # Cleanup must never fail the job.
            logger.warning(f"Cleanup failed: {e}")
            logger.warning("The lock may need to be manually released or will expire after lease duration.")
            decisions[scope] = ReleaseDecision.RELEASE_FAILED
    if any(decision is ReleaseDecision.RELEASED for decision in decisions.values()):
        logger.info("")
        logger.info("Cleanup completed successfully.")
    return decisions


def cleanup(argv: list[str] | None = None) -> int:
    """Run the post step releasing locks left by the main step. Always exits 0.

    Unusable arguments fall back to default logging; the recorded locks are
    released regardless. ``--help`` and ``--version`` exit before any release.
    """
    try:
        args = parse_cleanup_arguments(argv)
    except SystemExit as e:
        if not e.code:
            return 0
        logger = setup_logging()
        logger.warning("Ignoring invalid cleanup arguments")
    else:
        logger = setup_logging(args.log_level, args.log_format)
    run_cleanup(ActionsStateStore(), logger)
    return 0


def run_main() -> None:
    sys.exit(main())


def run_cleanup_main() -> None:
    sys.exit(cleanup())
