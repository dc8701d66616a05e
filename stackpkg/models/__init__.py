"""stackpkg data models: all Pydantic v2, all frozen (immutable)."""

from stackpkg.models.artifacts import (
    ArtifactIdentifier,
    ArtifactSource,
    CacheEntry,
    ResolvedArtifact,
    bare_package_name,
)
from stackpkg.models.config import Command, InvocationRequest, PipelineConfig
from stackpkg.models.platform import UNKNOWN, PlatformDescriptor
from stackpkg.models.report import RunReport, Step, StepRecord, StepState

__all__ = [
    # platform
    "UNKNOWN",
    "PlatformDescriptor",
    # artifacts
    "ArtifactIdentifier",
    "ArtifactSource",
    "CacheEntry",
    "ResolvedArtifact",
    "bare_package_name",
    # config
    "Command",
    "InvocationRequest",
    "PipelineConfig",
    # report
    "RunReport",
    "Step",
    "StepRecord",
    "StepState",
]
