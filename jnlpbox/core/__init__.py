from .errors import (
    ArchiveCorruptError,
    ArchiveError,
    BatchFailedError,
    ConfigError,
    ExternalToolError,
    FilesystemError,
    JnlpboxError,
    MissingManifestError,
    PreconditionSkip,
    SignerTimeoutError,
    StateRegressionError,
)
from .logging import setup_logging


__all__ = [
    "setup_logging",
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
