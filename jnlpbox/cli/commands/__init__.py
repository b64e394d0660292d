"""CLI command modules."""

import typer

from jnlpbox.cli.commands.jnlp_file import register_commands as register_jnlp_commands
from jnlpbox.cli.commands.pipeline import (
    register_commands as register_pipeline_commands,
)
from jnlpbox.cli.commands.status import register_commands as register_status_commands


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_pipeline_commands(app)
    register_jnlp_commands(app)
    register_status_commands(app)


__all__ = ["register_all_commands"]
