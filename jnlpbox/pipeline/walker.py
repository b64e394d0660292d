"""Artifact sources: a product directory or an explicit YAML list."""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError

from jnlpbox.archive.manifest import Manifest, ManifestFormatError
from jnlpbox.archive.store import open_archive
from jnlpbox.core.errors import ArchiveError, ConfigError
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.artifact import Artifact, ArtifactKind, make_artifact
from jnlpbox.models.base import JnlpboxBaseModel


logger = get_struct_logger(__name__)

FEATURES_DIR = "features"
PLUGINS_DIR = "plugins"

# Ids may contain underscores followed by digits (x86_64); versions are
# major.minor[.micro][.qualifier]
_JAR_NAME = re.compile(
    r"^(?P<id>.+)_(?P<version>\d+(?:\.\d+){1,2}(?:\.[\w-]+)?)\.jar$"
)

PLATFORM_FILTER = "Eclipse-PlatformFilter"
_FILTER_TERM = re.compile(
    r"\(\s*osgi\.(?P<key>os|arch)\s*=\s*(?P<value>[^)\s]+)\s*\)"
)


def parse_jar_name(name: str) -> tuple[str, str] | None:
    """``org.example.core_1.2.0.jar`` -> ``("org.example.core", "1.2.0")``"""
    match = _JAR_NAME.match(name)
    if match is None:
        return None
    return match.group("id"), match.group("version")


def parse_platform_filter(value: str) -> tuple[str | None, str | None]:
    """Extract osgi.os and osgi.arch from an LDAP-style platform filter.

    Only plain equality terms are understood; anything else leaves the value
    unset.
    """
    found: dict[str, str] = {}
    for term in _FILTER_TERM.finditer(value):
        found.setdefault(term.group("key"), term.group("value"))
    return found.get("os"), found.get("arch")


def read_platform(jar: Path) -> tuple[str | None, str | None]:
    """Platform from a bundle manifest; ``(None, None)`` if unrestricted.

    Unreadable jars are reported as unrestricted here; the stage that opens
    them later records the failure.
    """
    try:
        manifest_bytes = open_archive(jar).manifest
    except ArchiveError as e:
        logger.debug("platform_filter_unreadable", archive=str(jar), error=str(e))
        return None, None
    if manifest_bytes is None:
        return None, None
    try:
        value = Manifest.parse(manifest_bytes).get(PLATFORM_FILTER)
    except ManifestFormatError as e:
        logger.debug("platform_filter_unreadable", archive=str(jar), error=str(e))
        return None, None
    return parse_platform_filter(value) if value else (None, None)


class ArtifactEntry(JnlpboxBaseModel):
    """One item of an artifact list file."""

    id: str
    version: str
    kind: ArtifactKind = ArtifactKind.PLUGIN
    os: str | None = None
    arch: str | None = None
    archive_path: Path | None = Field(
        default=None,
        description="Defaults to <kind>s/<id>_<version>.jar next to the list file",
    )


class ArtifactList(JnlpboxBaseModel):
    artifacts: list[ArtifactEntry] = Field(default_factory=list)


class ProductDirectoryWalker:
    """Lists ``features/*.jar`` then ``plugins/*.jar`` of a product directory."""

    def __init__(self, target: Path) -> None:
        self.target = Path(target)

    def artifacts(self) -> list[Artifact]:
        if not self.target.is_dir():
            raise ConfigError(f"Product directory not found: {self.target}")

        result: list[Artifact] = []
        for kind, dirname in (
            (ArtifactKind.FEATURE, FEATURES_DIR),
            (ArtifactKind.PLUGIN, PLUGINS_DIR),
        ):
            directory = self.target / dirname
            if not directory.is_dir():
                continue
            for jar in sorted(directory.glob("*.jar")):
                parsed = parse_jar_name(jar.name)
                if parsed is None:
                    logger.debug("jar_name_not_recognized", archive=str(jar))
                    continue
                os_name: str | None = None
                arch: str | None = None
                if kind is ArtifactKind.PLUGIN:
                    os_name, arch = read_platform(jar)
                result.append(
                    make_artifact(
                        kind, parsed[0], parsed[1], jar, os=os_name, arch=arch
                    )
                )

        logger.debug("product_walked", target=str(self.target), count=len(result))
        return result


class ArtifactListWalker:
    """Reads artifacts from a YAML file; relative paths resolve against it."""

    def __init__(self, list_path: Path) -> None:
        self.list_path = Path(list_path)

    def _load(self) -> Any:
        try:
            with self.list_path.open(encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Error parsing artifact list {self.list_path}: {e}"
            ) from e
        except OSError as e:
            raise ConfigError(
                f"Error reading artifact list {self.list_path}: {e}"
            ) from e

    def artifacts(self) -> list[Artifact]:
        raw = self._load()
        if isinstance(raw, list):
            raw = {"artifacts": raw}
        try:
            parsed = ArtifactList.model_validate(raw or {})
        except ValidationError as e:
            raise ConfigError(f"Invalid artifact list {self.list_path}: {e}") from e

        base = self.list_path.parent
        result: list[Artifact] = []
        for entry in parsed.artifacts:
            archive_path = entry.archive_path or Path(
                f"{ArtifactKind(entry.kind).value}s",
                f"{entry.id}_{entry.version}.jar",
            )
            if not archive_path.is_absolute():
                archive_path = base / archive_path
            result.append(
                make_artifact(
                    entry.kind,
                    entry.id,
                    entry.version,
                    archive_path,
                    os=entry.os,
                    arch=entry.arch,
                )
            )
        return result


def walk_product_directory(target: Path) -> list[Artifact]:
    return ProductDirectoryWalker(target).artifacts()


def load_artifact_list(list_path: Path) -> list[Artifact]:
    return ArtifactListWalker(list_path).artifacts()


__all__ = [
    "ArtifactListWalker",
    "ProductDirectoryWalker",
    "load_artifact_list",
    "parse_jar_name",
    "walk_product_directory",
]
