"""Exception hierarchy for jnlpbox.

Per-artifact failures derive from ``ArchiveError`` or ``ExternalToolError`` and
are caught at the artifact boundary by the orchestrator. ``PreconditionSkip``
is a control signal, not a failure.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from jnlpbox.models.results import BatchResult


class JnlpboxError(Exception):
    """Base exception for all jnlpbox errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        return self.message


class ConfigError(JnlpboxError):
    """Invalid or unreadable configuration."""


class ArchiveError(JnlpboxError):
    """Failure tied to one archive on disk."""

    def __init__(
        self,
        message: str,
        archive_path: Path | str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.archive_path = Path(archive_path) if archive_path is not None else None


class ArchiveCorruptError(ArchiveError):
    """The container cannot be parsed as a zip/jar archive."""


class MissingManifestError(ArchiveError):
    """The archive has no META-INF/MANIFEST.MF entry."""


class FilesystemError(ArchiveError):
    """Temporary files or directories could not be created or removed."""


class StateRegressionError(ArchiveError):
    """A write would reset packNormalized from true back to false."""


class ExternalToolError(JnlpboxError):
    """An external process failed to launch or exited with a non-zero code."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        exit_code: int | None = None,
        stdout_lines: list[str] | None = None,
        stderr_lines: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.command = list(command or [])
        self.exit_code = exit_code
        self.stdout_lines = list(stdout_lines or [])
        self.stderr_lines = list(stderr_lines or [])


class SignerTimeoutError(ExternalToolError):
    """The external signer did not finish within the configured timeout."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        timeout: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, command=command, context=context)
        self.timeout = timeout


class PreconditionSkip(JnlpboxError):
    """The stage precondition is not met for this archive; nothing was done."""


class BatchFailedError(JnlpboxError):
    """One or more artifacts failed during a batch run."""

    def __init__(self, result: "BatchResult") -> None:
        self.result = result
        self.failure_count = result.failed_count
        super().__init__(
            f"Could not {result.stage} {self.failure_count} of "
            f"{result.total_count} archive(s)",
            {"stage": result.stage, "failed": self.failure_count},
        )


__all__ = [
    "ArchiveCorruptError",
    "ArchiveError",
    "BatchFailedError",
    "ConfigError",
    "ExternalToolError",
    "FilesystemError",
    "JnlpboxError",
    "MissingManifestError",
    "PreconditionSkip",
    "SignerTimeoutError",
    "StateRegressionError",
]
