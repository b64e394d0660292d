"""Artifact models consumed by the pipeline.

Artifacts come from an external walker and are immutable while a stage runs.
The two kinds form a closed union that the pipeline matches on directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Literal, TypeAlias


class ArtifactKind(str, Enum):
    """Kind of archive inside an Eclipse product."""

    PLUGIN = "plugin"
    FEATURE = "feature"


@dataclass(frozen=True)
class _ArtifactBase:
    id: str
    version: str
    archive_path: Path
    os: str | None = field(default=None, kw_only=True)
    arch: str | None = field(default=None, kw_only=True)

    @property
    def env_key(self) -> str:
        """OSGi environment key (``os/arch``); empty when platform independent."""
        if self.os is None and self.arch is None:
            return ""
        return f"{self.os or ''}/{self.arch or ''}"

    def describe(self) -> str:
        return f"{self.id}_{self.version}"


@dataclass(frozen=True)
class PluginArtifact(_ArtifactBase):
    """A bundle jar under ``plugins/``."""

    kind: ClassVar[Literal[ArtifactKind.PLUGIN]] = ArtifactKind.PLUGIN


@dataclass(frozen=True)
class FeatureArtifact(_ArtifactBase):
    """A feature jar under ``features/``."""

    kind: ClassVar[Literal[ArtifactKind.FEATURE]] = ArtifactKind.FEATURE


Artifact: TypeAlias = PluginArtifact | FeatureArtifact


def make_artifact(
    kind: ArtifactKind | str,
    id: str,
    version: str,
    archive_path: Path,
    os: str | None = None,
    arch: str | None = None,
) -> Artifact:
    """Build the artifact variant for ``kind``."""
    kind = ArtifactKind(kind)
    if kind is ArtifactKind.PLUGIN:
        return PluginArtifact(id, version, Path(archive_path), os=os, arch=arch)
    return FeatureArtifact(id, version, Path(archive_path), os=os, arch=arch)


__all__ = [
    "Artifact",
    "ArtifactKind",
    "FeatureArtifact",
    "PluginArtifact",
    "make_artifact",
]
