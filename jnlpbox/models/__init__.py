"""Shared models for jnlpbox."""

from .artifact import (
    Artifact,
    ArtifactKind,
    FeatureArtifact,
    PluginArtifact,
    make_artifact,
)
from .base import JnlpboxBaseModel
from .results import (
    ArchiveState,
    ArtifactOutcome,
    BaseResult,
    BatchResult,
    OutcomeStatus,
)


__all__ = [
    "ArchiveState",
    "Artifact",
    "ArtifactKind",
    "ArtifactOutcome",
    "BaseResult",
    "BatchResult",
    "FeatureArtifact",
    "JnlpboxBaseModel",
    "OutcomeStatus",
    "PluginArtifact",
    "make_artifact",
]
