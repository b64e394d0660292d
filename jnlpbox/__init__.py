"""jnlpbox - Eclipse jar preparation for Java Web Start."""

from importlib.metadata import distribution

from .models.artifact import FeatureArtifact, PluginArtifact
from .models.results import ArchiveState, BatchResult


__version__ = distribution(__package__ or "jnlpbox").version

__all__ = [
    "ArchiveState",
    "BatchResult",
    "FeatureArtifact",
    "PluginArtifact",
    "__version__",
]

# Import CLI after setting __version__ to avoid circular imports
from .cli import app, main


__all__ += ["app", "main"]
