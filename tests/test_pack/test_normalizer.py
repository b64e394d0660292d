"""Tests for normalizing and packing jars on disk."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from jnlpbox.archive.eclipse_inf import read_state_record
from jnlpbox.archive.store import open_archive
from jnlpbox.core.errors import ArchiveCorruptError, FilesystemError, PreconditionSkip
from jnlpbox.pack.codec import pack, unpack
from jnlpbox.pack.normalizer import normalize_archive, pack_archive, packed_sibling
from jnlpbox.pack.options import PackerOptions
from tests.jar_factory import NORMALIZED_INF, SHOULD_PACK_INF, write_jar


@pytest.fixture
def options() -> PackerOptions:
    return PackerOptions(effort=6)


class TestNormalizeArchive:
    """Test the pack/unpack normalization round trip."""

    def test_normalize_sets_flag_and_keeps_contents(
        self, tmp_path: Path, options: PackerOptions
    ):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=SHOULD_PACK_INF)
        before = open_archive(jar)

        record = normalize_archive(jar, options)

        after = open_archive(jar)
        assert record.pack_normalized
        assert read_state_record(after.entries).pack_normalized
        assert after.names == before.names
        assert after.find("demo/Plugin.class").data == b"\xca\xfe\xba\xbe"

    def test_normalized_jar_survives_pack_round_trip(
        self, tmp_path: Path, options: PackerOptions
    ):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=SHOULD_PACK_INF)
        normalize_archive(jar, options)
        normalized = jar.read_bytes()

        assert unpack(pack(normalized, options)) == normalized

    def test_temporary_files_removed(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=SHOULD_PACK_INF)
        temp_root = tmp_path / "tmp"
        temp_root.mkdir()

        with patch("tempfile.tempdir", str(temp_root)):
            normalize_archive(jar, options)

        assert list(temp_root.iterdir()) == []
        assert [p.name for p in tmp_path.iterdir() if p.is_file()] == ["demo.jar"]

    @pytest.mark.parametrize(
        ("eclipse_inf", "signed", "reason"),
        [
            (None, False, "not marked shouldPack"),
            (b"shouldPack=false\n", False, "not marked shouldPack"),
            (NORMALIZED_INF, False, "already normalized"),
            (SHOULD_PACK_INF, True, "signed"),
        ],
    )
    def test_preconditions(
        self,
        tmp_path: Path,
        options: PackerOptions,
        eclipse_inf: bytes | None,
        signed: bool,
        reason: str,
    ):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=eclipse_inf, signed=signed)
        original = jar.read_bytes()

        with pytest.raises(PreconditionSkip, match=reason):
            normalize_archive(jar, options)

        assert jar.read_bytes() == original

    def test_record_comments_kept_byte_for_byte(
        self, tmp_path: Path, options: PackerOptions
    ):
        inf = b"# Erzeugt von J\xe9r\xf4me\nshouldPack=true\n"
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=inf)

        normalize_archive(jar, options)

        record = open_archive(jar).find("META-INF/eclipse.inf")
        assert record is not None
        assert record.data == inf + b"packNormalized=true\n"

    def test_corrupt_archive(self, tmp_path: Path, options: PackerOptions):
        jar = tmp_path / "demo.jar"
        jar.write_bytes(b"garbage")
        with pytest.raises(ArchiveCorruptError):
            normalize_archive(jar, options)


class TestPackArchive:
    """Test writing the .pack.gz sibling."""

    def test_not_normalized_is_skipped(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=SHOULD_PACK_INF)

        with pytest.raises(PreconditionSkip, match="not normalized"):
            pack_archive(jar, options)

        assert not packed_sibling(jar).exists()
        assert jar.exists()

    def test_not_should_pack_is_skipped(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=b"packNormalized=true\n")
        with pytest.raises(PreconditionSkip, match="shouldPack"):
            pack_archive(jar, options)

    def test_pack_writes_sibling(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=NORMALIZED_INF)

        target = pack_archive(jar, options)

        assert target == tmp_path / "demo.jar.pack.gz"
        assert target.is_file()
        assert jar.exists()
        assert unpack(target.read_bytes()) == unpack(pack(jar.read_bytes(), options))

    def test_pack_deletes_unpacked_jar(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=NORMALIZED_INF)

        target = pack_archive(jar, options, delete_unpacked=True)

        assert target.is_file()
        assert not jar.exists()

    @pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
    def test_packed_file_readable_by_others(
        self, tmp_path: Path, options: PackerOptions, default_umask: int
    ):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=NORMALIZED_INF)

        target = pack_archive(jar, options, delete_unpacked=True)

        assert stat.S_IMODE(target.stat().st_mode) == 0o644

    def test_pack_output_is_reproducible(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=NORMALIZED_INF)
        first = pack_archive(jar, options).read_bytes()
        second = pack_archive(jar, options).read_bytes()
        assert first == second

    def test_delete_failure(self, tmp_path: Path, options: PackerOptions):
        jar = write_jar(tmp_path / "demo.jar", eclipse_inf=NORMALIZED_INF)
        real_unlink = Path.unlink

        def unlink(self: Path, *args: object, **kwargs: object) -> None:
            if self == jar:
                raise PermissionError("denied")
            real_unlink(self, *args, **kwargs)  # type: ignore[arg-type]

        with (
            patch.object(Path, "unlink", unlink),
            pytest.raises(FilesystemError, match="Could not delete"),
        ):
            pack_archive(jar, options, delete_unpacked=True)


def test_normalize_then_pack(tmp_path: Path, options: PackerOptions):
    jar = write_jar(tmp_path / "demo.jar", eclipse_inf=SHOULD_PACK_INF)

    normalize_archive(jar, options)
    target = pack_archive(jar, options)

    assert unpack(target.read_bytes()) == jar.read_bytes()
