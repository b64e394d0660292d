"""Protocol definition for the launch descriptor builder."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LaunchDescriptorProtocol(Protocol):
    """Source of the signed launch descriptor embedded in the main jar."""

    @property
    def main_class(self) -> str:
        """Fully qualified application main class."""
        ...

    @property
    def entry_name(self) -> str:
        """Archive path the descriptor is stored under."""
        ...

    def descriptor_bytes(self) -> bytes:
        """Descriptor content to embed."""
        ...
