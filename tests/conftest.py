"""Core test fixtures for the jnlpbox project."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from jnlpbox.config.models import SecurityAttributes
from jnlpbox.pack.options import PackerOptions
from jnlpbox.pipeline.stages import StageContext
from tests.jar_factory import SHOULD_PACK_INF, write_jar


JarBuilder = Callable[..., Path]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def make_jar(tmp_path: Path) -> JarBuilder:
    """Factory writing a jar under ``tmp_path``.

    Usage:
        jar = make_jar("plugins/demo.plugin_1.0.0.jar", eclipse_inf=SHOULD_PACK_INF)
    """

    def _make(relative: str, **kwargs: object) -> Path:
        return write_jar(tmp_path / relative, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def product_dir(tmp_path: Path) -> Path:
    """Product directory with one feature and two plugins."""
    write_jar(
        tmp_path / "features" / "demo.feature_1.0.0.jar",
        entries={"feature.xml": b"<feature id='demo.feature'/>"},
    )
    write_jar(
        tmp_path / "plugins" / "demo.plugin_1.0.0.jar", eclipse_inf=SHOULD_PACK_INF
    )
    write_jar(
        tmp_path / "plugins" / "demo.lib_2.1.0.v2024.jar",
        entries={"lib/Util.class": b"\xca\xfe\xba\xbe\x00"},
    )
    return tmp_path


@pytest.fixture
def stage_context() -> StageContext:
    """Context with no attributes configured, no signer and no descriptor."""
    return StageContext(security=SecurityAttributes(), packer=PackerOptions())


@pytest.fixture
def clean_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Isolate settings loading from the developer's environment.

    Removes ``JNLPBOX_*`` variables, points XDG_CONFIG_HOME at an empty
    directory and runs the test from an empty working directory.
    """
    for name in list(os.environ):
        if name.upper().startswith("JNLPBOX_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield workdir


@pytest.fixture
def default_umask() -> Generator[int, None, None]:
    """Run with umask 022, so newly created files are expected at 0o644."""
    previous = os.umask(0o022)
    yield 0o022
    os.umask(previous)
