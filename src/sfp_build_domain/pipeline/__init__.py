"""Pipeline module - the serialized build and publish run."""

from sfp_build_domain.pipeline.build_domain import BuildDomainPipeline
from sfp_build_domain.pipeline.models import PhaseResult, PhaseStatus, PipelineResult

__all__ = [
    "BuildDomainPipeline",
    "PhaseResult",
    "PhaseStatus",
    "PipelineResult",
]
