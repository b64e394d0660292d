"""jnlp-file command: write the launch descriptor for the product."""

from pathlib import Path

import typer

from jnlpbox.cli.app import AppContext
from jnlpbox.cli.decorators import handle_errors
from jnlpbox.cli.helpers.output import print_success_message
from jnlpbox.cli.helpers.parameters import (
    ArtifactsOption,
    JnlpOutputOption,
    TargetArgument,
    resolve_artifacts,
)
from jnlpbox.config.models import DescriptorConfig
from jnlpbox.pipeline import create_jnlp_file_builder, create_platform_table


def default_jnlp_path(target: Path, config: DescriptorConfig) -> Path:
    """``descriptor.jnlp_file`` when set, else ``<product>/<product name>.jnlp``."""
    if config.jnlp_file is not None:
        return config.jnlp_file
    return target / f"{target.resolve().name}.jnlp"


@handle_errors
def jnlp_file(
    ctx: typer.Context,
    target: TargetArgument,
    artifacts_file: ArtifactsOption = None,
    output: JnlpOutputOption = None,
) -> None:
    """Write the JNLP file listing every plugin jar per target environment.

    The file is built from descriptor.jnlp_template with one <resources>
    element per environment. Features are not listed.
    """
    app_ctx: AppContext = ctx.obj
    settings = app_ctx.settings
    artifacts = resolve_artifacts(target, artifacts_file)

    builder = create_jnlp_file_builder(
        settings.descriptor, artifacts, create_platform_table(settings.environments)
    )
    written = builder.write_jnlp_file(
        output or default_jnlp_path(target, settings.descriptor)
    )
    print_success_message(f"Wrote {written}")


def register_commands(app: typer.Typer) -> None:
    """Register the jnlp-file command with the main app.

    Args:
        app: The main Typer app
    """
    app.command(name="jnlp-file")(jnlp_file)
