"""Tests for artifact discovery."""

from pathlib import Path

import pytest
import yaml

from jnlpbox.core.errors import ConfigError
from jnlpbox.models.artifact import FeatureArtifact, PluginArtifact
from jnlpbox.pipeline.walker import (
    ArtifactListWalker,
    ProductDirectoryWalker,
    load_artifact_list,
    parse_jar_name,
    parse_platform_filter,
    walk_product_directory,
)
from jnlpbox.protocols import ArtifactWalkerProtocol
from tests.jar_factory import write_jar


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("org.example.core_1.2.0.jar", ("org.example.core", "1.2.0")),
        (
            "org.eclipse.swt.gtk.linux.x86_64_3.124.0.v20230825.jar",
            ("org.eclipse.swt.gtk.linux.x86_64", "3.124.0.v20230825"),
        ),
        (
            "com.ibm.icu_72.1.0.v20221215-1629.jar",
            ("com.ibm.icu", "72.1.0.v20221215-1629"),
        ),
        ("demo.core_1.0.jar", ("demo.core", "1.0")),
        ("no-version.jar", None),
        ("readme.txt", None),
    ],
)
def test_parse_jar_name(name: str, expected: tuple[str, str] | None):
    assert parse_jar_name(name) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("(& (osgi.os=linux) (osgi.arch=x86_64))", ("linux", "x86_64")),
        ("(osgi.os=win32)", ("win32", None)),
        ("(osgi.ws=gtk)", (None, None)),
    ],
)
def test_parse_platform_filter(value: str, expected: tuple[str | None, str | None]):
    assert parse_platform_filter(value) == expected


class TestProductDirectory:
    def test_features_then_plugins_sorted(self, product_dir: Path):
        artifacts = walk_product_directory(product_dir)

        assert [type(a) for a in artifacts] == [
            FeatureArtifact,
            PluginArtifact,
            PluginArtifact,
        ]
        assert [a.describe() for a in artifacts] == [
            "demo.feature_1.0.0",
            "demo.lib_2.1.0.v2024",
            "demo.plugin_1.0.0",
        ]

    def test_platform_read_from_manifest(self, tmp_path: Path):
        manifest = (
            b"Manifest-Version: 1.0\n"
            b"Eclipse-PlatformFilter: (& (osgi.ws=gtk) (osgi.os=linux) (osgi.arch=x86\n"
            b" _64))\n\n"
        )
        write_jar(tmp_path / "plugins" / "demo.swt_1.0.0.jar", manifest=manifest)

        [artifact] = walk_product_directory(tmp_path)

        assert artifact.env_key == "linux/x86_64"

    def test_unrecognized_names_ignored(self, tmp_path: Path):
        write_jar(tmp_path / "plugins" / "plain.jar")
        assert walk_product_directory(tmp_path) == []

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Product directory not found"):
            walk_product_directory(tmp_path / "missing")


class TestArtifactList:
    """Test explicit YAML artifact lists."""

    def test_default_paths_relative_to_list(self, tmp_path: Path):
        list_file = tmp_path / "artifacts.yaml"
        list_file.write_text(
            yaml.safe_dump(
                {
                    "artifacts": [
                        {"id": "demo.plugin", "version": "1.0.0"},
                        {"id": "demo.feature", "version": "1.0.0", "kind": "feature"},
                    ]
                }
            )
        )

        plugin, feature = load_artifact_list(list_file)

        assert isinstance(plugin, PluginArtifact)
        assert plugin.archive_path == tmp_path / "plugins" / "demo.plugin_1.0.0.jar"
        assert isinstance(feature, FeatureArtifact)
        assert feature.archive_path == tmp_path / "features" / "demo.feature_1.0.0.jar"

    def test_plain_list_with_explicit_path(self, tmp_path: Path):
        list_file = tmp_path / "artifacts.yaml"
        list_file.write_text(
            "- id: demo.swt\n"
            "  version: 1.0.0\n"
            "  os: linux\n"
            "  arch: x86_64\n"
            "  archive_path: custom/swt.jar\n"
        )

        [artifact] = load_artifact_list(list_file)

        assert artifact.archive_path == tmp_path / "custom" / "swt.jar"
        assert artifact.env_key == "linux/x86_64"

    def test_invalid_entry(self, tmp_path: Path):
        list_file = tmp_path / "artifacts.yaml"
        list_file.write_text("- id: demo.plugin\n")
        with pytest.raises(ConfigError, match="Invalid artifact list"):
            load_artifact_list(list_file)

    def test_invalid_yaml(self, tmp_path: Path):
        list_file = tmp_path / "artifacts.yaml"
        list_file.write_text("- [unclosed\n")
        with pytest.raises(ConfigError, match="Error parsing artifact list"):
            load_artifact_list(list_file)


@pytest.mark.parametrize("walker_class", [ProductDirectoryWalker, ArtifactListWalker])
def test_walkers_satisfy_protocol(walker_class: type, tmp_path: Path):
    assert isinstance(walker_class(tmp_path), ArtifactWalkerProtocol)
