"""Per-artifact pipeline stages.

Each build step maps to one ``Stage``. ``run_stage`` applies it to a single
artifact and returns the state the archive was left in. A stage whose
precondition does not hold raises ``PreconditionSkip``; every other exception
is a failure of that artifact only.

States move forward only::

    RAW -> STRIPPED -> ATTRS_INJECTED -> NORMALIZED -> SIGNED -> PACKED

Plugins go through every stage. Features carry no classes, so they only get
their security attributes and signature.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from jnlpbox.archive.eclipse_inf import read_state_record
from jnlpbox.archive.manifest import (
    Manifest,
    ManifestFormatError,
    inject_security_attributes,
)
from jnlpbox.archive.signatures import is_signed, signature_entries, strip_signatures
from jnlpbox.archive.store import (
    ArchiveEntry,
    find_entry,
    latest_date_time,
    open_archive,
    rewrite_archive,
)
from jnlpbox.config.models import SecurityAttributes
from jnlpbox.core.errors import (
    ArchiveCorruptError,
    ExternalToolError,
    MissingManifestError,
    PreconditionSkip,
)
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.artifact import Artifact, FeatureArtifact, PluginArtifact
from jnlpbox.models.results import ArchiveState
from jnlpbox.pack.normalizer import normalize_archive, pack_archive, packed_sibling
from jnlpbox.pack.options import PackerOptions
from jnlpbox.pipeline.descriptor import main_class_entry
from jnlpbox.protocols.descriptor_protocol import LaunchDescriptorProtocol
from jnlpbox.protocols.signer_protocol import SignerProtocol


logger = get_struct_logger(__name__)


class Stage(str, Enum):
    """Build step requested on the command line."""

    NORMALIZE = "normalize"
    SIGN = "sign"
    PACK = "pack"


class StageReport(NamedTuple):
    state: ArchiveState
    message: str | None = None


@dataclass(frozen=True)
class StageContext:
    """Read-only inputs shared by every artifact of a run."""

    security: SecurityAttributes
    packer: PackerOptions
    delete_unpacked_jars: bool = False
    signer: SignerProtocol | None = None
    descriptor: LaunchDescriptorProtocol | None = None


def require_writable(path: Path) -> None:
    """Only regular files the build may overwrite are processed."""
    if not path.is_file():
        raise PreconditionSkip(f"{path} is not a file")
    if not os.access(path, os.W_OK):
        raise PreconditionSkip(f"{path} is not writable")


def _descriptor_entry(
    entries: tuple[ArchiveEntry, ...], descriptor: LaunchDescriptorProtocol | None
) -> ArchiveEntry | None:
    """Descriptor entry to embed, when this jar holds the main class."""
    if descriptor is None:
        return None
    if find_entry(entries, main_class_entry(descriptor.main_class)) is None:
        return None
    return ArchiveEntry(
        descriptor.entry_name,
        descriptor.descriptor_bytes(),
        date_time=latest_date_time(entries),
    )


def _with_entry(
    entries: list[ArchiveEntry], new_entry: ArchiveEntry
) -> list[ArchiveEntry]:
    for index, entry in enumerate(entries):
        if entry.path.upper() == new_entry.path.upper():
            entries[index] = entry.with_data(new_entry.data)
            return entries
    entries.append(new_entry)
    return entries


def apply_security(path: Path, context: StageContext) -> StageReport:
    """Strip stale signatures, inject attributes and embed the descriptor.

    Nothing is written unless an attribute is configured or the descriptor
    belongs in this jar, so an untouched archive keeps its exact bytes and
    any valid signature.
    """
    archive = open_archive(path)
    signed = is_signed(archive.entries)
    descriptor_entry = _descriptor_entry(archive.entries, context.descriptor)

    try:
        manifest = inject_security_attributes(
            archive.manifest, context.security.as_manifest_attributes(), str(path)
        )
    except MissingManifestError:
        if descriptor_entry is None:
            raise
        manifest = None
    except ManifestFormatError as e:
        raise ArchiveCorruptError(f"Unreadable manifest in {path}: {e}", path) from e

    if manifest is None and descriptor_entry is None:
        state = ArchiveState.SIGNED if signed else ArchiveState.ATTRS_INJECTED
        return StageReport(state, "no security attributes configured")

    removed = signature_entries(archive.entries)
    entries = strip_signatures(archive.entries)
    if descriptor_entry is not None:
        logger.info(
            "descriptor_embedded", archive=str(path), entry=descriptor_entry.path
        )
        entries = _with_entry(entries, descriptor_entry)

    if not removed and entries == list(archive.entries) and (
        manifest is None or manifest == archive.manifest
    ):
        return StageReport(ArchiveState.ATTRS_INJECTED, "already up to date")

    if removed:
        logger.info("signatures_removed", archive=str(path), entries=removed)
    rewrite_archive(path, entries, manifest_override=manifest)
    logger.info("security_attributes_added", archive=str(path))
    return StageReport(ArchiveState.ATTRS_INJECTED)


def normalize(path: Path, context: StageContext) -> StageReport:
    normalize_archive(path, context.packer)
    return StageReport(ArchiveState.NORMALIZED)


def sign(path: Path, context: StageContext) -> StageReport:
    """Run the external signer; its output goes to the log."""
    if context.signer is None:
        raise PreconditionSkip("Signing is disabled")

    result = context.signer.sign(path)
    for line in result.stdout_lines:
        logger.debug("signer_output", archive=str(path), line=line)
    for line in result.stderr_lines:
        logger.warning("signer_error_output", archive=str(path), line=line)

    if result.exit_code != 0:
        raise ExternalToolError(
            f"Could not sign jar {path} (return code {result.exit_code})",
            exit_code=result.exit_code,
            stdout_lines=result.stdout_lines,
            stderr_lines=result.stderr_lines,
        )
    return StageReport(ArchiveState.SIGNED)


def pack(path: Path, context: StageContext) -> StageReport:
    target = pack_archive(path, context.packer, context.delete_unpacked_jars)
    return StageReport(ArchiveState.PACKED, f"wrote {target.name}")


def _secure_or_skip(path: Path, context: StageContext) -> StageReport:
    """Security step where a jar without manifest has nothing to do."""
    try:
        return apply_security(path, context)
    except MissingManifestError as e:
        raise PreconditionSkip(str(e)) from e


def _plugin_stage(stage: Stage, path: Path, context: StageContext) -> StageReport:
    if stage is Stage.NORMALIZE:
        try:
            report = apply_security(path, context)
        except MissingManifestError as e:
            logger.warning("manifest_missing", archive=str(path), error=str(e))
            report = StageReport(ArchiveState.RAW, str(e))
        try:
            return normalize(path, context)
        except PreconditionSkip as skip:
            logger.debug("normalize_skipped", archive=str(path), reason=str(skip))
            state = infer_state(path, context.security) or report.state
            return StageReport(state, str(skip))
    if stage is Stage.SIGN:
        _secure_or_skip(path, context)
        return sign(path, context)
    return pack(path, context)


def _feature_stage(stage: Stage, path: Path, context: StageContext) -> StageReport:
    if stage is Stage.NORMALIZE:
        return _secure_or_skip(path, context)
    if stage is Stage.SIGN:
        _secure_or_skip(path, context)
        return sign(path, context)
    raise PreconditionSkip("Features are not packed")


def run_stage(stage: Stage, artifact: Artifact, context: StageContext) -> StageReport:
    """Apply ``stage`` to one artifact.

    Raises:
        PreconditionSkip: If the artifact does not qualify for the stage
        JnlpboxError: Any failure of this artifact
    """
    path = artifact.archive_path
    require_writable(path)

    match artifact:
        case PluginArtifact():
            return _plugin_stage(stage, path, context)
        case FeatureArtifact():
            return _feature_stage(stage, path, context)


def infer_state(
    path: Path, security: SecurityAttributes | None = None
) -> ArchiveState | None:
    """Best-effort state of an archive on disk, None if it does not exist.

    Never modifies the archive.
    """
    if packed_sibling(path).exists():
        return ArchiveState.PACKED
    if not path.is_file():
        return None

    archive = open_archive(path)
    if is_signed(archive.entries):
        return ArchiveState.SIGNED
    if read_state_record(archive.entries).pack_normalized:
        return ArchiveState.NORMALIZED

    configured = security.configured() if security is not None else []
    if configured and archive.manifest is not None:
        try:
            manifest = Manifest.parse(archive.manifest)
        except ManifestFormatError as e:
            raise ArchiveCorruptError(
                f"Unreadable manifest in {path}: {e}", path
            ) from e
        if all(manifest.get(name) == value for name, value in configured):
            return ArchiveState.ATTRS_INJECTED
    return ArchiveState.RAW


__all__ = [
    "Stage",
    "StageContext",
    "StageReport",
    "apply_security",
    "infer_state",
    "require_writable",
    "run_stage",
]
