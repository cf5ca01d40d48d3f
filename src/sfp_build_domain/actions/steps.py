"""Pipeline steps wrapping the sfp and git command lines.

Each step is opaque to the lock coordinator: it either completes or raises
StepError. Long-running sfp commands stream their output to the console.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sfp_build_domain.core.config import PublishConfig, ServerConfig
from sfp_build_domain.core.constants import ARTIFACT_SUFFIX, ARTIFACTS_DIR, DEVHUB_ALIAS, SFP_EXECUTABLE
from sfp_build_domain.core.exceptions import ConfigurationError, StepError
from sfp_build_domain.core.process import run_captured, run_streaming

logger = logging.getLogger(__name__)


@dataclass
class ReleaseConfig:
    """The part of a release config this action reads."""

    release_name: str
    path: Path
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class ArtifactReport:
    has_artifacts: bool
    artifact_count: int
    artifacts_dir: str = ARTIFACTS_DIR


def read_release_config(config_path: str) -> ReleaseConfig:
    """Load a release config YAML and return its releaseName.

    Raises:
        ConfigurationError: File missing, unparsable, or without releaseName.
    """
    full_path = Path(config_path).resolve()
    if not full_path.exists():
        raise ConfigurationError(f"Release config file not found: {full_path}", config_file=str(full_path))

    try:
        data = yaml.safe_load(full_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in release config: {config_path}", config_file=str(full_path), details=str(e)
        ) from e

    if not isinstance(data, dict) or not data.get("releaseName"):
        raise ConfigurationError(
            f"releaseName not found in release config: {config_path}",
            config_file=str(full_path),
            field="releaseName",
        )

    return ReleaseConfig(release_name=str(data["releaseName"]), path=full_path, raw=data)


def _run_git(args: list[str]) -> int:
    try:
        return run_streaming("git", args, logger=logger)
    except OSError as e:
        logger.warning(f"git {' '.join(args)} failed: {e}")
        return 1


def check_git_depth(diff_check: bool) -> None:
    """Deepen shallow clones when diff-check needs history, then fetch tags."""
    try:
        result = run_captured("git", ["rev-parse", "--is-shallow-repository"], silent=True, timeout=60, logger=logger)
        shallow = result.stdout == "true"
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Unable to inspect git repository: {e}")
        shallow = False

    if shallow:
        logger.warning(
            "Shallow clone detected. For diff-check to work correctly, use 'fetch-depth: 0' in your checkout step."
        )
        if diff_check:
            logger.info("Fetching full history for diff-check...")
            _run_git(["fetch", "--unshallow", "--tags"])

    logger.info("Fetching tags...")
    _run_git(["fetch", "--tags"])


def _run_sfp_step(step: str, args: list[str], failure_message: str) -> None:
    try:
        exit_code = run_streaming(SFP_EXECUTABLE, args, logger=logger)
    except OSError as e:
        raise StepError(failure_message, step=step, details=str(e)) from e
    if exit_code != 0:
        raise StepError(failure_message, step=step, exit_code=exit_code)


def authenticate_devhub(server: ServerConfig) -> None:
    logger.info("Authenticating to default DevHub via SFP Server...")
    args = [
        "org", "login",
        "--server",
        "--default-devhub",
        "--alias", DEVHUB_ALIAS,
        "--sfp-server-url", server.url,
        "-t", server.token,
    ]  # fmt: skip
    _run_sfp_step("devhub-login", args, "Failed to authenticate to DevHub")
    logger.info("DevHub authentication successful")


def build_packages(
    server: ServerConfig,
    *,
    repository: str,
    branch: str,
    build_number: str,
    release_config: str,
    diff_check: bool,
    artifacts_dir: str = ARTIFACTS_DIR,
) -> None:
    logger.info("Building packages...")
    args = [
        "build",
        "-v", DEVHUB_ALIAS,
        "--branch", branch,
        "--buildnumber", build_number,
        "--artifactdir", artifacts_dir,
        "--sfp-server-url", server.url,
        "-t", server.token,
        "--repository", repository,
        "--releaseconfig", release_config,
    ]  # fmt: skip
    if diff_check:
        args.append("--diffcheck")
    _run_sfp_step("build", args, "Build failed")
    logger.info("Build completed")


def check_artifacts(artifacts_dir: str = ARTIFACTS_DIR) -> ArtifactReport:
    """Count the package zips produced by the build."""
    directory = Path(artifacts_dir)
    directory.mkdir(parents=True, exist_ok=True)

    artifact_count = sum(1 for entry in directory.iterdir() if entry.name.endswith(ARTIFACT_SUFFIX))
    if artifact_count == 0:
        logger.warning("No artifacts were produced by the build")
        return ArtifactReport(has_artifacts=False, artifact_count=0, artifacts_dir=artifacts_dir)

    logger.info(f"Found {artifact_count} artifact(s)")
    return ArtifactReport(has_artifacts=True, artifact_count=artifact_count, artifacts_dir=artifacts_dir)


def publish_artifacts(
    server: ServerConfig,
    *,
    repository: str,
    publish: PublishConfig,
    artifacts_dir: str = ARTIFACTS_DIR,
) -> None:
    logger.info("Publishing artifacts...")
    args = [
        "publish",
        "-d", artifacts_dir,
        "--repository", repository,
        "--sfp-server-url", server.url,
        "-t", server.token,
    ]  # fmt: skip
    if publish.npm_scope:
        args.extend(["--scope", publish.npm_scope])
    args.append("--npm" if publish.npm else "--internal-only")
    if publish.git_tag:
        args.append("--gittag")
    if publish.push_git_tag:
        args.append("--pushgittag")
    _run_sfp_step("publish", args, "Publish failed")
    logger.info("Publish completed")


def fetch_tags_after_publish() -> None:
    logger.info("Fetching newly created tags...")
    _run_git(["fetch", "--tags"])
    logger.info("Tags sync completed")


def generate_release_candidate(
    server: ServerConfig,
    *,
    release_name: str,
    branch: str,
    build_number: str,
    release_config: str,
    npm_scope: str,
    repository: str,
) -> str:
    """Generate a release candidate and return its name.

    The name defaults to ``<branch>-<build number>`` when none is given.
    """
    logger.info("Generating release candidate...")
    rc_name = release_name or f"{branch}-{build_number}"
    args = [
        "releasecandidate", "generate",
        "-n", rc_name,
        "-c", "HEAD",
        "-b", branch,
        "-f", release_config,
        "--repository", repository,
        "--sfp-server-url", server.url,
        "-t", server.token,
    ]  # fmt: skip
    if npm_scope:
        args.extend(["--scope", f"@{npm_scope}"])
    _run_sfp_step("release-candidate", args, "Release candidate generation failed")
    logger.info(f"Release candidate '{rc_name}' generated successfully")
    return rc_name
