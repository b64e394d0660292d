"""Common CLI parameter definitions for reuse across commands."""

from pathlib import Path
from typing import Annotated

import typer

from jnlpbox.core.errors import ConfigError
from jnlpbox.models.artifact import Artifact
from jnlpbox.pipeline.walker import ArtifactListWalker, ProductDirectoryWalker
from jnlpbox.protocols import ArtifactWalkerProtocol


TargetArgument = Annotated[
    Path,
    typer.Argument(
        help="Eclipse product directory containing features/ and plugins/",
        file_okay=False,
    ),
]

ArtifactsOption = Annotated[
    Path | None,
    typer.Option(
        "--artifacts",
        "-a",
        help="YAML artifact list to process instead of scanning the product",
        dir_okay=False,
    ),
]

WorkersOption = Annotated[
    int | None,
    typer.Option(
        "--workers",
        "-j",
        min=1,
        help="Number of archives processed in parallel (default from config)",
    ),
]

DeleteUnpackedOption = Annotated[
    bool | None,
    typer.Option(
        "--delete-unpacked-jars/--keep-unpacked-jars",
        help="Delete each jar after its .pack.gz was written",
    ),
]

JnlpOutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="JNLP file to write (default: descriptor.jnlp_file or <product>.jnlp)",
        dir_okay=False,
    ),
]

OutputFormatOption = Annotated[
    str,
    typer.Option(
        "--output-format",
        help="Output format: table|json (default: table)",
    ),
]


def resolve_artifacts(target: Path, artifacts_file: Path | None) -> list[Artifact]:
    """Artifacts from ``--artifacts`` when given, else from the product directory.

    Raises:
        ConfigError: If neither source yields a readable artifact list
    """
    walker: ArtifactWalkerProtocol
    if artifacts_file is not None:
        if not artifacts_file.is_file():
            raise ConfigError(f"Artifact list not found: {artifacts_file}")
        walker = ArtifactListWalker(artifacts_file)
    else:
        walker = ProductDirectoryWalker(target)
    return walker.artifacts()


__all__ = [
    "ArtifactsOption",
    "DeleteUnpackedOption",
    "JnlpOutputOption",
    "OutputFormatOption",
    "TargetArgument",
    "WorkersOption",
    "resolve_artifacts",
]
