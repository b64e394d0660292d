"""Jar container access: entries, manifest, signatures and state record."""

from .eclipse_inf import (
    ECLIPSE_INF_PATH,
    StateRecord,
    read_state_record,
    write_state_record,
)
from .manifest import (
    SECURITY_ATTRIBUTES,
    Manifest,
    ManifestFormatError,
    inject_security_attributes,
)
from .signatures import is_signed, signature_entries, strip_signatures
from .store import (
    MANIFEST_PATH,
    Archive,
    ArchiveEntry,
    archive_bytes,
    open_archive,
    read_archive_bytes,
    rewrite_archive,
)


__all__ = [
    "ECLIPSE_INF_PATH",
    "MANIFEST_PATH",
    "SECURITY_ATTRIBUTES",
    "Archive",
    "ArchiveEntry",
    "Manifest",
    "ManifestFormatError",
    "StateRecord",
    "archive_bytes",
    "inject_security_attributes",
    "is_signed",
    "open_archive",
    "read_archive_bytes",
    "read_state_record",
    "rewrite_archive",
    "signature_entries",
    "strip_signatures",
    "write_state_record",
]
