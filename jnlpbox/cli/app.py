"""Main CLI application for jnlpbox."""

import logging
import sys

# Import version from package metadata directly to avoid circular imports
from importlib.metadata import distribution
from typing import Annotated

import typer

from jnlpbox.cli.decorators.error_handling import print_stack_trace_if_verbose
from jnlpbox.config.models import JnlpboxSettings
from jnlpbox.config.settings import JnlpboxConfig, create_jnlpbox_config
from jnlpbox.core.errors import ConfigError
from jnlpbox.core.logging import setup_logging
from jnlpbox.core.structlog_logger import get_struct_logger


__all__ = ["AppContext", "app", "main", "__version__"]


__version__ = distribution("jnlpbox").version

logger = get_struct_logger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
    ):
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self._config: JnlpboxConfig | None = None

    @property
    def config(self) -> JnlpboxConfig:
        """Loaded on first use so configuration errors surface in the command."""
        if self._config is None:
            self._config = create_jnlpbox_config(cli_config_path=self.config_file)
        return self._config

    @property
    def settings(self) -> JnlpboxSettings:
        return self.config.settings


app = typer.Typer(
    name="jnlpbox",
    help=f"""jnlpbox v{__version__}

Prepares the plugin and feature jars of an Eclipse product for Java Web Start:

  normalize → (external signing) → pack

Common workflows:
  • Add security attributes and normalize:  jnlpbox normalize target/product
  • Sign every jar:                         jnlpbox sign target/product
  • Write .pack.gz files:                   jnlpbox pack target/product
  • Write the JNLP file:                    jnlpbox jnlp-file target/product
  • Inspect processing state:               jnlpbox status target/product""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _settings_log_level(app_context: AppContext) -> int:
    try:
        level_name = app_context.settings.log_level
    except ConfigError as e:
        # Reported again, with exit code, by the command that needs settings
        logger.debug("settings_unavailable_for_logging", error=str(e))
        return logging.WARNING
    return int(getattr(logging, level_name, logging.WARNING))


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Also write JSON logs to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """jnlpbox jar preparation tool."""
    if version:
        print(f"jnlpbox v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    app_context = AppContext(
        verbose=verbose, log_file=log_file, config_file=config_file
    )
    ctx.obj = app_context

    # Set log level based on verbosity, debug flag, or config
    log_level: int | None = None
    if debug or verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO

    # Configure before loading settings so their debug events are filtered
    setup_logging(level=log_level or logging.WARNING, log_file=log_file)
    if log_level is None:
        configured_level = _settings_log_level(app_context)
        if configured_level != logging.WARNING:
            setup_logging(level=configured_level, log_file=log_file)


def main() -> int:
    """Main CLI entry point."""
    exit_code = 0

    try:
        from jnlpbox.cli.commands import register_all_commands

        register_all_commands(app)

        app()

    except SystemExit as e:
        # Capture SystemExit code (normal CLI exit)
        exit_code = e.code if isinstance(e.code, int) else 0

    except Exception as e:
        logger.error("unexpected_error", error=str(e))
        print_stack_trace_if_verbose()
        exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
