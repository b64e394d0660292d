"""Protocol definitions for jnlpbox collaborators.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator to enable both static type checking and runtime
isinstance() checks.
"""

from .descriptor_protocol import LaunchDescriptorProtocol
from .signer_protocol import SignerProtocol
from .walker_protocol import ArtifactWalkerProtocol


__all__ = [
    "ArtifactWalkerProtocol",
    "LaunchDescriptorProtocol",
    "SignerProtocol",
]
