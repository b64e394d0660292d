"""Normalize and pack operations on jars on disk.

Normalizing runs the archive through ``pack`` and ``unpack`` once, so that a
later ``pack`` of the signed jar lays out the entries exactly as the signed
bytes expect. Packing writes the ``.pack.gz`` sibling used for distribution.
Both must be given the same ``PackerOptions``.
"""

from pathlib import Path

from jnlpbox.archive.eclipse_inf import (
    StateRecord,
    read_state_record,
    write_state_record,
)
from jnlpbox.archive.signatures import is_signed
from jnlpbox.archive.store import Archive, read_archive_bytes, rewrite_archive
from jnlpbox.core.errors import FilesystemError, PreconditionSkip
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.pack.codec import gzip_wrap, pack, unpack
from jnlpbox.pack.options import PackerOptions
from jnlpbox.utils.resources import scoped_temp_dir, write_bytes_atomically


logger = get_struct_logger(__name__)

PACKED_SUFFIX = ".pack.gz"


def packed_sibling(archive_path: Path) -> Path:
    """``demo_1.0.jar`` -> ``demo_1.0.jar.pack.gz``"""
    return archive_path.with_name(archive_path.name + PACKED_SUFFIX)


def _read(path: Path) -> tuple[bytes, Archive]:
    data = _read_file(path, path)
    return data, read_archive_bytes(data, str(path))


def _read_file(path: Path, archive_path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FilesystemError(f"Cannot read {path}: {e}", archive_path) from e


def _write_file(path: Path, data: bytes, archive_path: Path) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FilesystemError(f"Cannot write {path}: {e}", archive_path) from e


def normalize_archive(path: Path, options: PackerOptions) -> StateRecord:
    """Replace ``path`` with its packed-then-unpacked form.

    The archive must be marked ``shouldPack``, must not be normalized yet and
    must not carry signature entries.

    Returns:
        The state record written into the normalized archive

    Raises:
        PreconditionSkip: If the archive does not qualify
        ArchiveCorruptError: If the archive cannot be read
        FilesystemError: If temporary files cannot be handled
    """
    path = Path(path)
    data, archive = _read(path)
    record = read_state_record(archive.entries)

    if not record.should_pack:
        raise PreconditionSkip("Archive is not marked shouldPack")
    if record.pack_normalized:
        raise PreconditionSkip("Archive is already normalized")
    if is_signed(archive.entries):
        raise PreconditionSkip(
            "Archive is signed; strip signatures before normalizing"
        )

    logger.info("pack_normalizing", archive=str(path))
    with scoped_temp_dir(f"jnlpbox-{path.stem}-", path) as workdir:
        packed_file = workdir / f"{path.name}.pack"
        _write_file(packed_file, pack(data, options), path)

        unpacked_file = workdir / path.name
        _write_file(unpacked_file, unpack(_read_file(packed_file, path)), path)

        canonical = read_archive_bytes(_read_file(unpacked_file, path), str(path))
        normalized = record.with_pack_normalized()
        entries = write_state_record(canonical.entries, normalized, path)
        rewrite_archive(path, entries)

    logger.debug("pack_normalized", archive=str(path), entries=len(entries))
    return normalized


def pack_archive(
    path: Path, options: PackerOptions, delete_unpacked: bool = False
) -> Path:
    """Write the ``.pack.gz`` sibling for a normalized archive.

    Args:
        path: Jar to pack
        options: The options the archive was normalized with
        delete_unpacked: Remove the jar once the packed file exists

    Returns:
        Path of the packed file

    Raises:
        PreconditionSkip: Unless the archive is both ``shouldPack`` and
            ``packNormalized``
    """
    path = Path(path)
    data, archive = _read(path)
    record = read_state_record(archive.entries)

    if not record.should_pack:
        raise PreconditionSkip("Archive is not marked shouldPack")
    if not record.pack_normalized:
        raise PreconditionSkip("Archive was not normalized; refusing to pack")

    target = packed_sibling(path)
    logger.info("pack_writing", archive=str(path), target=str(target))
    write_bytes_atomically(target, gzip_wrap(pack(data, options)))

    if delete_unpacked:
        try:
            path.unlink()
        except OSError as e:
            raise FilesystemError(f"Could not delete {path}: {e}", path) from e
        logger.debug("unpacked_jar_deleted", archive=str(path))

    return target


__all__ = ["PACKED_SUFFIX", "normalize_archive", "pack_archive", "packed_sibling"]
