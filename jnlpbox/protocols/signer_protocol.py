"""Protocol definition for the external jar signer."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from jnlpbox.utils.stream_process import ProcessResult


@runtime_checkable
class SignerProtocol(Protocol):
    """Signs one jar in place with configured credentials."""

    def sign(self, archive_path: Path) -> ProcessResult:
        """Run the signer on ``archive_path`` and wait for it to exit.

        Args:
            archive_path: Jar to sign

        Returns:
            Exit code plus complete stdout and stderr lines; a non-zero exit
            code is reported here, not raised

        Raises:
            ExternalToolError: If the signer cannot be launched
            SignerTimeoutError: If the signer exceeded its timeout
        """
        ...
