"""Result models for build-domain pipeline runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PhaseStatus(Enum):
    """Outcome of one pipeline phase."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PhaseResult:
    status: PhaseStatus
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is PhaseStatus.FAILED


@dataclass
class PipelineResult:
    """Outcome of a full build-domain run.

    Attributes:
        build: Build phase outcome (build lock, build, artifact count)
        publish: Publish phase outcome (global lock, publish, tags, release candidate)
        has_artifacts: Whether the build produced any package
        artifact_count: Number of packages built
        release_candidate: Name of the generated release candidate, if any
    """

    build: PhaseResult
    publish: PhaseResult
    has_artifacts: bool = False
    artifact_count: int = 0
    release_candidate: str | None = None

    @property
    def succeeded(self) -> bool:
        return not (self.build.failed or self.publish.failed)
