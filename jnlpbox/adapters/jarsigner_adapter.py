"""Adapter running the JDK ``jarsigner`` tool."""

import os
import shutil
import subprocess
import sys
from pathlib import Path

from jnlpbox.config.models import SigningConfig
from jnlpbox.core.errors import ConfigError, ExternalToolError, SignerTimeoutError
from jnlpbox.core.structlog_logger import StructlogMixin
from jnlpbox.protocols.signer_protocol import SignerProtocol
from jnlpbox.utils import stream_process
from jnlpbox.utils.stream_process import ProcessResult


MASK = "*****"
_SECRET_OPTIONS = ("-storepass", "-keypass")


def find_executable(
    command: str, home_dir: str | Path | None, sub_dirs: tuple[str, ...]
) -> Path | None:
    """Find ``command`` in one of ``sub_dirs`` under a JDK/JRE home directory."""
    if not home_dir:
        return None
    for sub_dir in sub_dirs:
        candidate = Path(home_dir) / sub_dir / command
        if candidate.is_file():
            return candidate.resolve()
    return None


def locate_tool(name: str, jar_home: Path | None = None) -> str:
    """Locate a JDK tool.

    Search order: ``jar_home`` (``../bin``, ``bin``, ``../sh``), then
    ``JDK_HOME`` and ``JAVA_HOME`` (``bin``, ``sh``), then ``PATH``. Falls back
    to the bare command name.
    """
    command = name + (".exe" if sys.platform == "win32" else "")

    executable = find_executable(command, jar_home, ("../bin", "bin", "../sh"))
    for variable in ("JDK_HOME", "JAVA_HOME"):
        if executable is not None:
            break
        executable = find_executable(
            command, os.environ.get(variable), ("bin", "sh")
        )

    if executable is not None:
        return str(executable)
    return shutil.which(command) or command


def mask_command(cmd: list[str]) -> list[str]:
    """Copy of ``cmd`` with password option values replaced."""
    masked = list(cmd)
    for index, arg in enumerate(masked[:-1]):
        if arg in _SECRET_OPTIONS:
            masked[index + 1] = MASK
    return masked


class JarsignerAdapter(StructlogMixin):
    """Signs jars in place by running ``jarsigner``."""

    service_name = "jarsigner"

    def __init__(self, config: SigningConfig, executable: str) -> None:
        super().__init__()
        self.config = config
        self.executable = executable

    def build_command(self, archive_path: Path) -> list[str]:
        """Options in jarsigner's documented order, then the jar, then the alias."""
        config = self.config
        storepass = config.storepass.get_secret_value() if config.storepass else None
        keypass = config.keypass.get_secret_value() if config.keypass else None
        options: list[tuple[str, str | None]] = [
            ("-keystore", config.keystore),
            ("-storepass", storepass),
            ("-keypass", keypass),
            ("-storetype", config.storetype),
            ("-providerName", config.provider_name),
            ("-providerClass", config.provider_class),
            ("-providerArg", config.provider_arg),
            ("-sigfile", config.sigfile),
            ("-digestalg", config.digest_algorithm),
            ("-tsa", config.tsa),
        ]

        cmd = [self.executable]
        for option, value in options:
            if value:
                cmd.extend([option, value])
        cmd.append(str(archive_path))
        if config.alias:
            cmd.append(config.alias)
        return cmd

    def sign(self, archive_path: Path) -> ProcessResult:
        cmd = self.build_command(archive_path)
        masked = mask_command(cmd)
        timeout = self.config.timeout_seconds
        self.logger.debug(
            "jarsigner_executing", command=" ".join(masked), timeout=timeout
        )

        try:
            return stream_process.run_command(cmd, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise SignerTimeoutError(
                f"Signing {archive_path} timed out after {timeout} seconds",
                command=masked,
                timeout=timeout,
            ) from e
        except OSError as e:
            raise ExternalToolError(
                f"Could not launch {self.executable}: {e}", command=masked
            ) from e


def create_jarsigner_adapter(
    config: SigningConfig, executable: str | None = None
) -> SignerProtocol:
    """Create a jarsigner adapter for ``config``.

    Raises:
        ConfigError: If no alias is configured
    """
    if not config.alias:
        raise ConfigError("signing.alias is required unless signing.skip is set")
    if executable is None:
        if config.jarsigner_executable is not None:
            executable = str(config.jarsigner_executable)
        else:
            executable = locate_tool("jarsigner", config.jar_home)
    return JarsignerAdapter(config, executable)


__all__ = [
    "JarsignerAdapter",
    "create_jarsigner_adapter",
    "find_executable",
    "locate_tool",
    "mask_command",
]
