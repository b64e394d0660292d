"""Read and rewrite jar containers.

A rewrite is built in a temporary file next to the target and moved over it
only once the new container is completely written, so the original is never
left half written.
"""

import io
import os
import shutil
import tempfile
import zipfile
import zlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import BinaryIO, TypeAlias

from jnlpbox.core.errors import ArchiveCorruptError, FilesystemError
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.utils.resources import remove_quietly, replace_atomically, scoped_cleanup


logger = get_struct_logger(__name__)

META_INF = "META-INF/"
MANIFEST_PATH = "META-INF/MANIFEST.MF"

DateTime: TypeAlias = tuple[int, int, int, int, int, int]
DEFAULT_DATE_TIME: DateTime = (1980, 1, 1, 0, 0, 0)

# Raised by zipfile/zlib for unreadable containers or entries
_CORRUPT_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    ValueError,
)


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of a jar, with enough metadata to write it back faithfully."""

    path: str
    data: bytes = b""
    compress_type: int = zipfile.ZIP_DEFLATED
    date_time: DateTime = DEFAULT_DATE_TIME
    external_attr: int = 0
    create_system: int = 0

    @property
    def is_dir(self) -> bool:
        return self.path.endswith("/")

    @property
    def name(self) -> str:
        """Last path component, without any trailing slash."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    def with_data(self, data: bytes) -> "ArchiveEntry":
        return replace(self, data=data)

    def to_zipinfo(self) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(self.path, date_time=self.date_time)
        if self.is_dir:
            info.compress_type = zipfile.ZIP_STORED
        elif self.compress_type in (zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED):
            info.compress_type = self.compress_type
        else:
            info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = self.external_attr
        info.create_system = self.create_system
        return info

    @classmethod
    def from_zipinfo(cls, info: zipfile.ZipInfo, data: bytes) -> "ArchiveEntry":
        return cls(
            path=info.filename,
            data=data,
            compress_type=info.compress_type,
            date_time=tuple(info.date_time),  # type: ignore[arg-type]
            external_attr=info.external_attr,
            create_system=info.create_system,
        )


@dataclass(frozen=True)
class Archive:
    """Ordered entries of a jar plus convenient access to its manifest."""

    path: Path | None
    entries: tuple[ArchiveEntry, ...]

    def find(self, name: str) -> ArchiveEntry | None:
        return find_entry(self.entries, name)

    @property
    def manifest(self) -> bytes | None:
        entry = self.find(MANIFEST_PATH)
        return entry.data if entry is not None else None

    @property
    def names(self) -> list[str]:
        return [entry.path for entry in self.entries]


def find_entry(entries: Iterable[ArchiveEntry], name: str) -> ArchiveEntry | None:
    """Find an entry by path; META-INF names match case-insensitively as in the JDK."""
    case_insensitive = name.upper().startswith(META_INF)
    for entry in entries:
        if entry.path == name or (
            case_insensitive and entry.path.upper() == name.upper()
        ):
            return entry
    return None


def latest_date_time(entries: Iterable[ArchiveEntry]) -> DateTime:
    return max((entry.date_time for entry in entries), default=DEFAULT_DATE_TIME)


def _read_entries(zf: zipfile.ZipFile) -> list[ArchiveEntry]:
    entries = []
    for info in zf.infolist():
        data = b"" if info.is_dir() else zf.read(info)
        entries.append(ArchiveEntry.from_zipinfo(info, data))
    return entries


def _read_from(source: str | Path | BinaryIO, label: str) -> list[ArchiveEntry]:
    try:
        zf = zipfile.ZipFile(source)
    except _CORRUPT_ERRORS as e:
        raise ArchiveCorruptError(f"Cannot read archive {label}: {e}", label) from e
    except OSError as e:
        raise FilesystemError(f"Cannot open archive {label}: {e}", label) from e

    # A failing close must not mask a read error
    with scoped_cleanup(zf.close, label):
        try:
            return _read_entries(zf)
        except _CORRUPT_ERRORS as e:
            raise ArchiveCorruptError(
                f"Cannot read archive {label}: {e}", label
            ) from e


def open_archive(path: Path) -> Archive:
    """Read all entries of the jar at ``path``.

    Raises:
        ArchiveCorruptError: If the container cannot be parsed
        FilesystemError: If the file cannot be opened
    """
    path = Path(path)
    entries = _read_from(path, str(path))
    return Archive(path, tuple(entries))


def read_archive_bytes(data: bytes, label: str = "<memory>") -> Archive:
    """Parse an in-memory jar."""
    return Archive(None, tuple(_read_from(io.BytesIO(data), label)))


def write_archive(stream: BinaryIO, entries: Iterable[ArchiveEntry]) -> None:
    """Write ``entries`` in order as a zip container to ``stream``."""
    with zipfile.ZipFile(stream, "w") as zf:
        for entry in entries:
            zf.writestr(entry.to_zipinfo(), entry.data)


def archive_bytes(entries: Iterable[ArchiveEntry]) -> bytes:
    buffer = io.BytesIO()
    write_archive(buffer, entries)
    return buffer.getvalue()


def apply_manifest_override(
    entries: Sequence[ArchiveEntry], manifest: bytes
) -> list[ArchiveEntry]:
    """Replace the manifest entry, or insert one where the jar tool would put it."""
    result = list(entries)
    for index, entry in enumerate(result):
        if entry.path.upper() == MANIFEST_PATH:
            result[index] = entry.with_data(manifest)
            return result

    new_entry = ArchiveEntry(
        MANIFEST_PATH, manifest, date_time=latest_date_time(entries)
    )
    insert_at = 1 if result and result[0].path.upper() == META_INF else 0
    result.insert(insert_at, new_entry)
    return result


def rewrite_archive(
    path: Path,
    entries: Iterable[ArchiveEntry],
    manifest_override: bytes | None = None,
) -> None:
    """Atomically replace the jar at ``path`` with ``entries``.

    Args:
        path: Archive to replace
        entries: Entries in the order they must appear
        manifest_override: Replacement manifest bytes, if any

    Raises:
        FilesystemError: If the temporary file cannot be created or written
    """
    path = Path(path)
    entries = list(entries)
    if manifest_override is not None:
        entries = apply_manifest_override(entries, manifest_override)

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
    except OSError as e:
        raise FilesystemError(
            f"Cannot create temporary file for {path}: {e}", path
        ) from e

    tmp_path = Path(tmp_name)
    with scoped_cleanup(lambda: remove_quietly(tmp_path), str(tmp_path)):
        try:
            with os.fdopen(fd, "wb") as fh:
                write_archive(fh, entries)
                fh.flush()
                os.fsync(fh.fileno())
            if path.exists():
                shutil.copymode(path, tmp_path)
            replace_atomically(tmp_path, path)
        except OSError as e:
            raise FilesystemError(f"Could not write archive {path}: {e}", path) from e

    logger.debug("archive_rewritten", archive=str(path), entries=len(entries))


__all__ = [
    "MANIFEST_PATH",
    "META_INF",
    "Archive",
    "ArchiveEntry",
    "apply_manifest_override",
    "archive_bytes",
    "find_entry",
    "latest_date_time",
    "open_archive",
    "read_archive_bytes",
    "rewrite_archive",
    "write_archive",
]
