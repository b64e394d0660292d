"""Protocol definition for artifact sources."""

from typing import Protocol, runtime_checkable

from jnlpbox.models.artifact import Artifact


@runtime_checkable
class ArtifactWalkerProtocol(Protocol):
    """Supplies the ordered, finite artifact list for one invocation."""

    def artifacts(self) -> list[Artifact]:
        """Return artifacts in processing order."""
        ...
