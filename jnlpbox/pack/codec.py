"""Compact transfer encoding for jars.

``pack`` turns a jar into a stream of segments. Each segment holds a band of
entry records (name, flags, DOS timestamp, bytes) that is zlib-compressed at
the configured effort. ``unpack`` rebuilds a jar from the stream using fixed
container settings, so the rebuilt jar depends only on what the stream
records. For fixed options this gives::

    pack(unpack(pack(A))) == pack(A)

Stream layout (big-endian)::

    magic "JBPK" | major u8 | minor u8 | effort u8 | flags u8 | deflate u8
    | segment_limit i64 | segment_count u32
    segment: entry_count u32 | coding u8 | band_length u32 | band
    entry:   name_length u16 | name | flags u8 | dos_date u16 | dos_time u16
             | size u32 | data
"""

import gzip
import io
import struct
import zipfile
import zlib
from collections.abc import Iterator, Sequence

from jnlpbox.archive.store import (
    MANIFEST_PATH,
    META_INF,
    ArchiveEntry,
    DateTime,
    archive_bytes,
    read_archive_bytes,
)
from jnlpbox.core.errors import ArchiveCorruptError
from jnlpbox.pack.options import PackerOptions


MAGIC = b"JBPK"
FORMAT_VERSION = (1, 0)
GZIP_MAGIC = b"\x1f\x8b"

_HEADER = struct.Struct(">4sBBBBBqI")
_SEGMENT = struct.Struct(">IBI")
_ENTRY = struct.Struct(">BHHI")
_NAME_LENGTH = struct.Struct(">H")

_FLAG_KEEP_ORDER = 0x01
_FLAG_LATEST_TIME = 0x02

_ENTRY_DEFLATED = 0x01
_ENTRY_DIRECTORY = 0x02

_CODING_RAW = 0
_CODING_ZLIB = 1

_DEFLATE_HINTS = {"keep": 0, "true": 1, "false": 2}

# Permissions written for rebuilt entries
_FILE_ATTR = 0o100644 << 16
_DIR_ATTR = (0o040755 << 16) | 0x10
_UNIX = 3


def to_dos(date_time: DateTime) -> tuple[int, int]:
    year, month, day, hour, minute, second = date_time
    dos_date = ((year - 1980) << 9) | (month << 5) | day
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    return dos_date, dos_time


def from_dos(dos_date: int, dos_time: int) -> DateTime:
    return (
        (dos_date >> 9) + 1980,
        (dos_date >> 5) & 0x0F,
        dos_date & 0x1F,
        dos_time >> 11,
        (dos_time >> 5) & 0x3F,
        (dos_time & 0x1F) * 2,
    )


def _ordered(
    entries: Sequence[ArchiveEntry], options: PackerOptions
) -> list[ArchiveEntry]:
    if options.keep_file_order:
        return list(entries)

    # The manifest must stay in front for streaming jar readers
    def sort_key(entry: ArchiveEntry) -> tuple[int, str]:
        upper = entry.path.upper()
        if upper == META_INF:
            return 0, ""
        if upper == MANIFEST_PATH:
            return 1, ""
        return 2, entry.path

    return sorted(entries, key=sort_key)


def _is_deflated(entry: ArchiveEntry, options: PackerOptions) -> bool:
    if entry.is_dir:
        return False
    if options.deflate_hint == "true":
        return True
    if options.deflate_hint == "false":
        return False
    return entry.compress_type != zipfile.ZIP_STORED


def _encode_entry(
    entry: ArchiveEntry, date_time: DateTime, options: PackerOptions
) -> bytes:
    name = entry.path.encode("utf-8")
    flags = 0
    if _is_deflated(entry, options):
        flags |= _ENTRY_DEFLATED
    if entry.is_dir:
        flags |= _ENTRY_DIRECTORY
    dos_date, dos_time = to_dos(date_time)
    return b"".join(
        (
            _NAME_LENGTH.pack(len(name)),
            name,
            _ENTRY.pack(flags, dos_date, dos_time, len(entry.data)),
            entry.data,
        )
    )


def _segments(records: list[bytes], limit: int) -> Iterator[list[bytes]]:
    if limit < 0:
        if records:
            yield records
        return

    current: list[bytes] = []
    size = 0
    for record in records:
        if current and (limit == 0 or size + len(record) > limit):
            yield current
            current, size = [], 0
        current.append(record)
        size += len(record)
    if current:
        yield current


def pack(archive: bytes, options: PackerOptions | None = None) -> bytes:
    """Encode jar bytes into the packed stream.

    Raises:
        ArchiveCorruptError: If ``archive`` is not a readable jar
    """
    options = options or PackerOptions()
    entries = _ordered(read_archive_bytes(archive).entries, options)

    latest: DateTime | None = None
    if options.modification_time == "latest" and entries:
        latest = max(entry.date_time for entry in entries)

    records = [
        _encode_entry(entry, latest or entry.date_time, options) for entry in entries
    ]
    segments = list(_segments(records, options.segment_limit))

    flags = 0
    if options.keep_file_order:
        flags |= _FLAG_KEEP_ORDER
    if options.modification_time == "latest":
        flags |= _FLAG_LATEST_TIME

    out = io.BytesIO()
    out.write(
        _HEADER.pack(
            MAGIC,
            *FORMAT_VERSION,
            options.effort,
            flags,
            _DEFLATE_HINTS[options.deflate_hint],
            options.segment_limit,
            len(segments),
        )
    )
    for segment in segments:
        band = b"".join(segment)
        if options.effort > 0:
            coding, band = _CODING_ZLIB, zlib.compress(band, options.effort)
        else:
            coding = _CODING_RAW
        out.write(_SEGMENT.pack(len(segment), coding, len(band)))
        out.write(band)
    return out.getvalue()


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise ArchiveCorruptError("Packed stream is truncated")
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk

    def unpack(self, layout: struct.Struct) -> tuple[int, ...]:
        return layout.unpack(self.take(layout.size))

    @property
    def exhausted(self) -> bool:
        return self._offset == len(self._data)


def _decode_band(band: bytes, count: int) -> Iterator[ArchiveEntry]:
    reader = _Reader(band)
    for _ in range(count):
        (name_length,) = reader.unpack(_NAME_LENGTH)
        try:
            name = reader.take(name_length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArchiveCorruptError(
                f"Invalid entry name in packed stream: {e}"
            ) from e
        flags, dos_date, dos_time, size = reader.unpack(_ENTRY)
        data = reader.take(size)
        directory = bool(flags & _ENTRY_DIRECTORY)
        yield ArchiveEntry(
            path=name,
            data=data,
            compress_type=(
                zipfile.ZIP_DEFLATED
                if flags & _ENTRY_DEFLATED
                else zipfile.ZIP_STORED
            ),
            date_time=from_dos(dos_date, dos_time),
            external_attr=_DIR_ATTR if directory else _FILE_ATTR,
            create_system=_UNIX,
        )
    if not reader.exhausted:
        raise ArchiveCorruptError("Unexpected trailing bytes in packed segment")


def unpack_entries(packed: bytes) -> list[ArchiveEntry]:
    """Decode a packed stream, gzip-wrapped or not, into jar entries."""
    if packed[:2] == GZIP_MAGIC:
        try:
            packed = gzip.decompress(packed)
        except (OSError, EOFError, zlib.error) as e:
            raise ArchiveCorruptError(f"Invalid gzip wrapper: {e}") from e

    reader = _Reader(packed)
    magic, major, _minor, _effort, _flags, _deflate, _limit, segment_count = (
        reader.unpack(_HEADER)
    )
    if magic != MAGIC:
        raise ArchiveCorruptError("Not a packed jar stream")
    if major != FORMAT_VERSION[0]:
        raise ArchiveCorruptError(f"Unsupported packed stream version {major}")

    entries: list[ArchiveEntry] = []
    for _ in range(segment_count):
        count, coding, band_length = reader.unpack(_SEGMENT)
        band = reader.take(band_length)
        if coding == _CODING_ZLIB:
            try:
                band = zlib.decompress(band)
            except zlib.error as e:
                raise ArchiveCorruptError(f"Corrupt packed segment: {e}") from e
        elif coding != _CODING_RAW:
            raise ArchiveCorruptError(f"Unknown segment coding {coding}")
        entries.extend(_decode_band(band, count))

    if not reader.exhausted:
        raise ArchiveCorruptError("Unexpected trailing bytes in packed stream")
    return entries


def unpack(packed: bytes) -> bytes:
    """Rebuild jar bytes from a packed stream."""
    return archive_bytes(unpack_entries(packed))


def gzip_wrap(packed: bytes) -> bytes:
    """Gzip a packed stream with a fixed header so equal input gives equal output."""
    buffer = io.BytesIO()
    with gzip.GzipFile(
        filename="", mode="wb", fileobj=buffer, compresslevel=9, mtime=0
    ) as gz:
        gz.write(packed)
    return buffer.getvalue()


__all__ = [
    "FORMAT_VERSION",
    "MAGIC",
    "from_dos",
    "gzip_wrap",
    "pack",
    "to_dos",
    "unpack",
    "unpack_entries",
]
