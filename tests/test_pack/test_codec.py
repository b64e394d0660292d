"""Tests for the packed transfer encoding."""

import struct
import zipfile
from pathlib import Path

import pytest

from jnlpbox.archive.store import read_archive_bytes
from jnlpbox.core.errors import ArchiveCorruptError
from jnlpbox.pack.codec import (
    MAGIC,
    from_dos,
    gzip_wrap,
    pack,
    to_dos,
    unpack,
    unpack_entries,
)
from jnlpbox.pack.options import PackerOptions
from tests.jar_factory import SHOULD_PACK_INF, write_jar


SEGMENT_COUNT_OFFSET = 17


@pytest.fixture
def jar_bytes(tmp_path: Path) -> bytes:
    jar = write_jar(
        tmp_path / "demo.plugin_1.0.0.jar",
        entries={
            "demo/Plugin.class": b"\xca\xfe\xba\xbe" * 50,
            "demo/": b"",
            "about.html": b"<html>about</html>",
            "icons/logo.png": bytes(range(256)),
        },
        eclipse_inf=SHOULD_PACK_INF,
    )
    return jar.read_bytes()


def segment_count(packed: bytes) -> int:
    return struct.unpack_from(">I", packed, SEGMENT_COUNT_OFFSET)[0]


class TestRoundTrip:
    """pack(unpack(pack(A))) must equal pack(A) for fixed options."""

    @pytest.mark.parametrize(
        "options",
        [
            PackerOptions(),
            PackerOptions(effort=0),
            PackerOptions(effort=9, segment_limit=-1),
            PackerOptions(segment_limit=0, keep_file_order=False),
            PackerOptions(modification_time="latest", deflate_hint="true"),
            PackerOptions(deflate_hint="false"),
        ],
    )
    def test_pack_is_stable_after_one_round_trip(
        self, jar_bytes: bytes, options: PackerOptions
    ):
        packed = pack(jar_bytes, options)
        assert pack(unpack(packed), options) == packed

    def test_unpack_restores_names_and_contents(self, jar_bytes: bytes):
        original = read_archive_bytes(jar_bytes)

        restored = read_archive_bytes(unpack(pack(jar_bytes)))

        assert restored.names == original.names
        for before, after in zip(original.entries, restored.entries, strict=True):
            assert after.data == before.data

    def test_unpacked_jar_is_canonical(self, jar_bytes: bytes):
        once = unpack(pack(jar_bytes))
        assert unpack(pack(once)) == once


class TestOptions:
    def test_sorted_order_keeps_manifest_first(self, jar_bytes: bytes):
        options = PackerOptions(keep_file_order=False)

        names = [e.path for e in unpack_entries(pack(jar_bytes, options))]

        assert names[:2] == ["META-INF/", "META-INF/MANIFEST.MF"]
        assert names[2:] == sorted(names[2:])

    def test_latest_modification_time(self, tmp_path: Path):
        jar = tmp_path / "times.jar"
        with zipfile.ZipFile(jar, "w") as zf:
            zf.writestr(zipfile.ZipInfo("a.txt", (2020, 1, 1, 0, 0, 0)), b"a")
            zf.writestr(zipfile.ZipInfo("b.txt", (2023, 6, 1, 12, 0, 0)), b"b")

        entries = unpack_entries(
            pack(jar.read_bytes(), PackerOptions(modification_time="latest"))
        )

        assert {e.date_time for e in entries} == {(2023, 6, 1, 12, 0, 0)}

    def test_deflate_hint_false_stores_entries(self, jar_bytes: bytes):
        entries = unpack_entries(pack(jar_bytes, PackerOptions(deflate_hint="false")))
        assert {e.compress_type for e in entries} == {zipfile.ZIP_STORED}

    def test_directories_are_never_deflated(self, jar_bytes: bytes):
        entries = unpack_entries(pack(jar_bytes, PackerOptions(deflate_hint="true")))
        for entry in entries:
            expected = zipfile.ZIP_STORED if entry.is_dir else zipfile.ZIP_DEFLATED
            assert entry.compress_type == expected

    def test_segment_limits(self, jar_bytes: bytes):
        entry_count = len(read_archive_bytes(jar_bytes).entries)

        assert segment_count(pack(jar_bytes, PackerOptions(segment_limit=-1))) == 1
        assert (
            segment_count(pack(jar_bytes, PackerOptions(segment_limit=0)))
            == entry_count
        )
        assert segment_count(pack(jar_bytes, PackerOptions(segment_limit=100))) > 1


class TestStreamErrors:
    """Unreadable packed streams raise ArchiveCorruptError."""

    def test_bad_magic(self, jar_bytes: bytes):
        packed = pack(jar_bytes)
        with pytest.raises(ArchiveCorruptError, match="Not a packed jar stream"):
            unpack_entries(b"XXXX" + packed[len(MAGIC) :])

    def test_unsupported_version(self, jar_bytes: bytes):
        packed = bytearray(pack(jar_bytes))
        packed[4] = 9
        with pytest.raises(ArchiveCorruptError, match="version 9"):
            unpack_entries(bytes(packed))

    def test_truncated(self, jar_bytes: bytes):
        with pytest.raises(ArchiveCorruptError, match="truncated"):
            unpack_entries(pack(jar_bytes)[:-10])

    def test_trailing_bytes(self, jar_bytes: bytes):
        with pytest.raises(ArchiveCorruptError, match="trailing"):
            unpack_entries(pack(jar_bytes) + b"\x00")

    def test_bad_gzip(self):
        with pytest.raises(ArchiveCorruptError, match="gzip"):
            unpack_entries(b"\x1f\x8b" + b"\x00" * 20)

    def test_pack_rejects_non_jar(self):
        with pytest.raises(ArchiveCorruptError):
            pack(b"not a jar")


class TestGzip:
    def test_gzip_wrap_is_deterministic(self, jar_bytes: bytes):
        packed = pack(jar_bytes)
        assert gzip_wrap(packed) == gzip_wrap(packed)

    def test_unpack_accepts_gzip(self, jar_bytes: bytes):
        packed = pack(jar_bytes)
        assert unpack(gzip_wrap(packed)) == unpack(packed)


@pytest.mark.parametrize(
    "date_time",
    [(1980, 1, 1, 0, 0, 0), (2024, 5, 17, 10, 30, 58), (2107, 12, 31, 23, 59, 58)],
)
def test_dos_time_conversion(date_time: tuple[int, int, int, int, int, int]):
    assert from_dos(*to_dos(date_time)) == date_time
