"""Detection and removal of jar signature entries.

Changing any signed content invalidates the existing signature, so signature
files must be dropped before an archive is modified and re-signed.
"""

from collections.abc import Iterable

from jnlpbox.archive.store import MANIFEST_PATH, META_INF, ArchiveEntry


SIGNATURE_EXTENSIONS = (".SF", ".DSA", ".RSA", ".EC")


def is_signature_entry(path: str) -> bool:
    """True for ``META-INF/<name>.{SF,DSA,RSA,EC}``, compared case-insensitively.

    Only direct children of META-INF count; that is where jarsigner writes them.
    """
    upper = path.upper()
    if not upper.startswith(META_INF) or upper == MANIFEST_PATH:
        return False
    name = upper[len(META_INF) :]
    if not name or "/" in name:
        return False
    return name.endswith(SIGNATURE_EXTENSIONS)


def strip_signatures(entries: Iterable[ArchiveEntry]) -> list[ArchiveEntry]:
    """Return ``entries`` without signature entries, order preserved."""
    return [entry for entry in entries if not is_signature_entry(entry.path)]


def signature_entries(entries: Iterable[ArchiveEntry]) -> list[str]:
    return [entry.path for entry in entries if is_signature_entry(entry.path)]


def is_signed(entries: Iterable[ArchiveEntry]) -> bool:
    return any(is_signature_entry(entry.path) for entry in entries)


__all__ = [
    "SIGNATURE_EXTENSIONS",
    "is_signature_entry",
    "is_signed",
    "signature_entries",
    "strip_signatures",
]
