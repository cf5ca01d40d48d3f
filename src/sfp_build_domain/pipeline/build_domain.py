"""Serialized build and publish of one release domain.

Two locks with different scopes are taken one after the other:

1. ``build-<releaseName>`` brackets the build step only.
2. ``publish-<repository>`` brackets publishing, tag sync and release
   candidate generation. It is requested only after the build lock has
   been released, and failing to get it fails the publish phase alone.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from sfp_build_domain.actions import steps as default_steps
from sfp_build_domain.actions.steps import ArtifactReport, ReleaseConfig
from sfp_build_domain.core.colors import ConsoleColors
from sfp_build_domain.core.config import ActionConfig, PublishConfig, ServerConfig
from sfp_build_domain.core.constants import (
    ACTION_NAME,
    BANNER_WIDTH,
    BUILD_STATE_SCOPE,
    PUBLISH_STATE_SCOPE,
    build_resource_name,
    global_resource_name,
)
from sfp_build_domain.core.exceptions import BuildDomainError
from sfp_build_domain.core.locks.client import LockServiceClient
from sfp_build_domain.core.locks.handle import LockRequest
from sfp_build_domain.core.locks.manager import LockCoordinator
from sfp_build_domain.core.locks.state import CrossInvocationStateStore, StateStore
from sfp_build_domain.core.version import __version__
from sfp_build_domain.pipeline.models import PhaseResult, PhaseStatus, PipelineResult


class PipelineSteps(Protocol):
    """The sfp/git steps the pipeline runs. ``actions.steps`` satisfies it as a module."""

    def read_release_config(self, config_path: str) -> ReleaseConfig: ...

    def check_git_depth(self, diff_check: bool) -> None: ...

    def authenticate_devhub(self, server: ServerConfig) -> None: ...

    def build_packages(
        self,
        server: ServerConfig,
        *,
        repository: str,
        branch: str,
        build_number: str,
        release_config: str,
        diff_check: bool,
        artifacts_dir: str = ...,
    ) -> None: ...

    def check_artifacts(self, artifacts_dir: str = ...) -> ArtifactReport: ...

    def publish_artifacts(
        self,
        server: ServerConfig,
        *,
        repository: str,
        publish: PublishConfig,
        artifacts_dir: str = ...,
    ) -> None: ...

    def fetch_tags_after_publish(self) -> None: ...

    def generate_release_candidate(
        self,
        server: ServerConfig,
        *,
        release_name: str,
        branch: str,
        build_number: str,
        release_config: str,
        npm_scope: str,
        repository: str,
    ) -> str: ...


class BuildDomainPipeline:
    """Runs the build phase and the publish phase under their locks.

    Args:
        config: Run configuration
        client: Lock service client
        state_store: Job state used to hand acquired locks to the cleanup step
        steps: Provider of the sfp/git pipeline steps, normally ``actions.steps``
        set_output: Callback publishing step outputs
        on_failure: Callback invoked with the message of a fatal phase failure
    """

    def __init__(
        self,
        config: ActionConfig,
        client: LockServiceClient,
        state_store: StateStore,
        *,
        steps: PipelineSteps = default_steps,
        set_output: Callable[[str, str], None] | None = None,
        on_failure: Callable[[str], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self.client = client
        self.state_store = state_store
        self.steps = steps
        self.set_output = set_output or (lambda name, value: None)
        self.logger = logger or logging.getLogger(__name__)
        self.on_failure = on_failure or self.logger.error

    def _coordinator(self, scope: str) -> LockCoordinator:
        return LockCoordinator(
            self.client,
            self.config.server,
            state_store=CrossInvocationStateStore(self.state_store, scope=scope, logger=self.logger),
            logger=self.logger,
        )

    def _fail(self, error: BuildDomainError) -> PhaseResult:
        self.on_failure(str(error))
        return PhaseResult(PhaseStatus.FAILED, error=str(error))

    def run(self) -> PipelineResult:
        """Run both phases. Configuration errors propagate; phase errors are reported in the result."""
        release = self.steps.read_release_config(self.config.release_config)
        print_header(self.config, release.release_name)

        report = ArtifactReport(has_artifacts=False, artifact_count=0)
        try:
            report = self._build_phase(release.release_name)
        except BuildDomainError as e:
            return PipelineResult(build=self._fail(e), publish=PhaseResult(PhaseStatus.SKIPPED))

        self.set_output("has-artifacts", str(report.has_artifacts).lower())
        self.set_output("artifact-count", str(report.artifact_count))
        self.set_output("artifacts-dir", report.artifacts_dir)

        result = PipelineResult(
            build=PhaseResult(PhaseStatus.SUCCEEDED),
            publish=PhaseResult(PhaseStatus.SKIPPED),
            has_artifacts=report.has_artifacts,
            artifact_count=report.artifact_count,
        )

        if report.has_artifacts:
            try:
                result.release_candidate = self._publish_phase(report)
                result.publish = PhaseResult(PhaseStatus.SUCCEEDED)
            except BuildDomainError as e:
                result.publish = self._fail(e)
                return result

        print_summary(result)
        return result

    def _build_phase(self, release_name: str) -> ArtifactReport:
        serialize = self.config.serialize
        if not serialize.enabled:
            return self._build()

        request = LockRequest(
            resource=build_resource_name(release_name),
            repository=self.config.repository,
            lease_seconds=serialize.lease_seconds,
        )
        return self._coordinator(BUILD_STATE_SCOPE).run_protected(request, serialize.timeout_seconds, self._build)

    def _build(self) -> ArtifactReport:
        config = self.config
        self.steps.check_git_depth(config.diff_check)
        self.steps.authenticate_devhub(config.server)
        self.steps.build_packages(
            config.server,
            repository=config.repository,
            branch=config.branch,
            build_number=config.build_number,
            release_config=config.release_config,
            diff_check=config.diff_check,
        )
        return self.steps.check_artifacts()

    def _publish_phase(self, report: ArtifactReport) -> str:
        serialize = self.config.serialize
        if not (serialize.enabled and serialize.publish_lock):
            return self._publish(report)

        request = LockRequest(
            resource=global_resource_name(self.config.repository),
            repository=self.config.repository,
            lease_seconds=serialize.lease_seconds,
        )
        return self._coordinator(PUBLISH_STATE_SCOPE).run_protected(
            request, serialize.timeout_seconds, lambda: self._publish(report)
        )

    def _publish(self, report: ArtifactReport) -> str:
        config = self.config
        self.steps.publish_artifacts(
            config.server,
            repository=config.repository,
            publish=config.publish,
            artifacts_dir=report.artifacts_dir,
        )
        self.steps.fetch_tags_after_publish()
        return self.steps.generate_release_candidate(
            config.server,
            release_name=config.release_name,
            branch=config.branch,
            build_number=config.build_number,
            release_config=config.release_config,
            npm_scope=config.publish.npm_scope,
            repository=config.repository,
        )


def print_header(config: ActionConfig, release_name: str) -> None:
    line = "-" * BANNER_WIDTH
    print(line)
    print(ConsoleColors.bold(f"sfp-build-domain  -Version:{__version__}"))
    print(line)
    print(f"Action        : {ACTION_NAME}")
    print(f"Repository    : {config.repository}")
    print(f"Branch        : {config.branch}")
    print(f"Build Number  : {config.build_number}")
    print(f"Release Config: {config.release_config}")
    print(f"Release Name  : {release_name}")
    print(f"Diff Check    : {str(config.diff_check).lower()}")
    print(f"Serialize     : {str(config.serialize.enabled).lower()}")
    print(f"SFP Server    : {config.server.url}")
    print(line)
    print()


def print_summary(result: PipelineResult) -> None:
    line = "-" * BANNER_WIDTH
    print()
    print(line)
    print(ConsoleColors.bold("Build Summary"))
    print(line)

    if result.has_artifacts:
        print(f"Artifacts        : {result.artifact_count} package(s) built")
        print(f"Published        : {ConsoleColors.success('Yes')}")
        print(f"Release Candidate: {ConsoleColors.success('Generated')}")
    else:
        print("Artifacts        : None (no changes detected)")
        print(f"Published        : {ConsoleColors.dim('Skipped')}")
        print(f"Release Candidate: {ConsoleColors.dim('Skipped')}")

    print(line)
