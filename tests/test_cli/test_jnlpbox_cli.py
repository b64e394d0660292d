"""Tests for the jnlpbox command line."""

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from jnlpbox.archive.eclipse_inf import read_state_record
from jnlpbox.archive.manifest import Manifest
from jnlpbox.archive.store import open_archive
from jnlpbox.cli import app
from jnlpbox.cli.commands import register_all_commands
from jnlpbox.utils.stream_process import ProcessResult


register_all_commands(app)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "jnlpbox-test.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "security": {"Permissions": "all-permissions"},
                "signing": {
                    "alias": "release",
                    "keystore": "/secure/release.jks",
                    "storepass": "secret",
                    "jarsigner_executable": "/opt/jdk/bin/jarsigner",
                },
            }
        )
    )
    return path


def invoke(cli_runner: CliRunner, *args: str):
    return cli_runner.invoke(app, list(args), catch_exceptions=False)


def test_help_lists_commands(cli_runner: CliRunner):
    result = invoke(cli_runner, "--help")
    assert result.exit_code == 0
    for command in ("normalize", "sign", "pack", "jnlp-file", "status"):
        assert command in result.output


def test_version(cli_runner: CliRunner):
    result = invoke(cli_runner, "--version")
    assert result.exit_code == 0
    assert result.output.startswith("jnlpbox v")


class TestNormalizeCommand:
    def test_normalize_product(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        product_dir: Path,
        config_file: Path,
    ):
        result = invoke(
            cli_runner, "-c", str(config_file), "normalize", str(product_dir)
        )

        assert result.exit_code == 0
        assert "3 processed, 0 skipped, 0 failed" in result.output

        plugin = open_archive(product_dir / "plugins" / "demo.plugin_1.0.0.jar")
        assert read_state_record(plugin.entries).pack_normalized
        feature = open_archive(product_dir / "features" / "demo.feature_1.0.0.jar")
        assert feature.manifest is not None
        manifest = Manifest.parse(feature.manifest)
        assert manifest.get("Permissions") == "all-permissions"

    def test_failure_exits_nonzero(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        (product_dir / "plugins" / "demo.broken_1.0.0.jar").write_bytes(b"garbage")

        result = invoke(cli_runner, "normalize", str(product_dir))

        assert result.exit_code == 1
        assert "3 processed, 0 skipped, 1 failed" in result.output
        plugin = open_archive(product_dir / "plugins" / "demo.plugin_1.0.0.jar")
        assert read_state_record(plugin.entries).pack_normalized

    def test_missing_product_directory(
        self, cli_runner: CliRunner, clean_environment: Path, tmp_path: Path
    ):
        result = invoke(cli_runner, "normalize", str(tmp_path / "missing"))
        assert result.exit_code == 1

    def test_invalid_config(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        product_dir: Path,
        tmp_path: Path,
    ):
        bad = tmp_path / "bad.yaml"
        bad.write_text("workers: 0\n")

        result = invoke(cli_runner, "-c", str(bad), "normalize", str(product_dir))

        assert result.exit_code == 1


class TestPackCommand:
    def test_pack_after_normalize(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        invoke(cli_runner, "normalize", str(product_dir))

        result = invoke(
            cli_runner, "pack", str(product_dir), "--delete-unpacked-jars"
        )

        assert result.exit_code == 0
        assert "1 processed, 2 skipped, 0 failed" in result.output
        plugins = product_dir / "plugins"
        assert (plugins / "demo.plugin_1.0.0.jar.pack.gz").is_file()
        assert not (plugins / "demo.plugin_1.0.0.jar").exists()
        assert (plugins / "demo.lib_2.1.0.v2024.jar").exists()

    def test_pack_without_normalize_skips(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        result = invoke(cli_runner, "pack", str(product_dir))

        assert result.exit_code == 0
        assert "0 processed, 3 skipped, 0 failed" in result.output
        assert not list(product_dir.rglob("*.pack.gz"))


class TestSignCommand:
    def test_sign_skip(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        product_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setenv("JNLPBOX_SIGNING__SKIP", "true")

        with patch("jnlpbox.utils.stream_process.run_command") as mock_run:
            result = invoke(cli_runner, "sign", str(product_dir))

        assert result.exit_code == 0
        assert "Signing skipped" in result.output
        mock_run.assert_not_called()

    def test_sign_requires_alias(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        result = invoke(cli_runner, "sign", str(product_dir))
        assert result.exit_code == 1

    def test_sign_every_jar(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        product_dir: Path,
        config_file: Path,
    ):
        with patch(
            "jnlpbox.utils.stream_process.run_command",
            return_value=ProcessResult(0, ["jar signed."], []),
        ) as mock_run:
            result = invoke(
                cli_runner, "-c", str(config_file), "sign", str(product_dir)
            )

        assert result.exit_code == 0
        assert mock_run.call_count == 3
        cmd = mock_run.call_args_list[0].args[0]
        assert cmd[0] == "/opt/jdk/bin/jarsigner"
        assert cmd[-1] == "release"

    def test_signer_failure(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        product_dir: Path,
        config_file: Path,
    ):
        with patch(
            "jnlpbox.utils.stream_process.run_command",
            return_value=ProcessResult(1, [], ["jarsigner: keystore not found"]),
        ):
            result = invoke(
                cli_runner, "-c", str(config_file), "sign", str(product_dir)
            )

        assert result.exit_code == 1
        assert "0 processed, 0 skipped, 3 failed" in result.output


class TestJnlpFileCommand:
    @pytest.fixture
    def descriptor_config(self, tmp_path: Path) -> Path:
        template = tmp_path / "app.jnlp"
        template.write_text(
            '<jnlp codebase="https://example.com/app">'
            '<application-desc main-class="org.example.Main"/></jnlp>'
        )
        path = tmp_path / "jnlpbox-jnlp.yaml"
        path.write_text(
            yaml.safe_dump(
                {"descriptor": {"jnlp_template": str(template), "href_prefix": "lib/"}}
            )
        )
        return path

    def test_writes_resources(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        descriptor_config: Path,
        product_dir: Path,
        tmp_path: Path,
    ):
        output = tmp_path / "out" / "demo.jnlp"

        result = invoke(
            cli_runner,
            "-c",
            str(descriptor_config),
            "jnlp-file",
            str(product_dir),
            "-o",
            str(output),
        )

        assert result.exit_code == 0, result.output
        [resources] = ET.parse(output).getroot().findall("resources")
        assert [jar.get("href") for jar in resources] == [
            "lib/demo.lib_2.1.0.v2024.jar",
            "lib/demo.plugin_1.0.0.jar",
        ]

    def test_default_output_in_product(
        self,
        cli_runner: CliRunner,
        clean_environment: Path,
        descriptor_config: Path,
        product_dir: Path,
    ):
        result = invoke(
            cli_runner, "-c", str(descriptor_config), "jnlp-file", str(product_dir)
        )

        assert result.exit_code == 0, result.output
        assert (product_dir / f"{product_dir.resolve().name}.jnlp").is_file()

    def test_template_required(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        result = invoke(cli_runner, "jnlp-file", str(product_dir))
        assert result.exit_code == 1
        assert not list(product_dir.glob("*.jnlp"))


class TestStatusCommand:
    def test_status_json(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        invoke(cli_runner, "normalize", str(product_dir))

        result = invoke(
            cli_runner, "status", str(product_dir), "--output-format", "json"
        )

        assert result.exit_code == 0
        rows = {row["id"]: row for row in json.loads(result.stdout)}
        assert rows["demo.plugin"]["state"] == "normalized"
        assert rows["demo.plugin"]["should_pack"] is True
        assert rows["demo.plugin"]["pack_normalized"] is True
        assert rows["demo.lib"]["state"] == "raw"
        assert rows["demo.feature"]["kind"] == "feature"
        assert rows["demo.feature"]["platform"] == "any"

    def test_status_does_not_modify(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        jars = sorted(product_dir.rglob("*.jar"))
        before = [jar.read_bytes() for jar in jars]

        result = invoke(cli_runner, "status", str(product_dir))

        assert result.exit_code == 0
        assert [jar.read_bytes() for jar in jars] == before

    def test_status_reports_unreadable(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        (product_dir / "plugins" / "demo.broken_1.0.0.jar").write_bytes(b"garbage")

        result = invoke(
            cli_runner, "status", str(product_dir), "--output-format", "json"
        )

        assert result.exit_code == 0
        rows = {row["id"]: row for row in json.loads(result.stdout)}
        assert rows["demo.broken"]["state"] == "unreadable"

    def test_status_with_artifact_list(
        self, cli_runner: CliRunner, clean_environment: Path, product_dir: Path
    ):
        list_file = product_dir / "artifacts.yaml"
        list_file.write_text("- id: demo.plugin\n  version: 1.0.0\n")

        result = invoke(
            cli_runner,
            "status",
            str(product_dir),
            "--artifacts",
            str(list_file),
            "--output-format",
            "json",
        )

        assert result.exit_code == 0
        assert [row["id"] for row in json.loads(result.stdout)] == ["demo.plugin"]
