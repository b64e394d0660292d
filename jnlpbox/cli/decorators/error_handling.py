"""Error handling decorators for CLI commands."""

import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

import typer

from jnlpbox.core.errors import (
    ArchiveError,
    BatchFailedError,
    ConfigError,
    ExternalToolError,
    JnlpboxError,
)
from jnlpbox.core.structlog_logger import get_struct_logger


__all__ = ["handle_errors", "print_stack_trace_if_verbose"]

logger = get_struct_logger(__name__)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to handle common exceptions in CLI commands.

    Every failure is logged and turned into exit status 1, so a build tool
    invoking jnlpbox sees the step fail.

    Args:
        func: The function to decorate

    Returns:
        Decorated function with error handling
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BatchFailedError as e:
            logger.error("batch_failed", error=str(e), **e.context)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ConfigError as e:
            logger.error("configuration_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ArchiveError as e:
            logger.error("archive_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ExternalToolError as e:
            logger.error("external_tool_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except JnlpboxError as e:
            logger.error("jnlpbox_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except Exception as e:
            exc_info = logging.getLogger().isEnabledFor(logging.DEBUG)
            logger.error("unexpected_error", error=str(e), exc_info=exc_info)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e

    return wrapper


def print_stack_trace_if_verbose() -> None:
    """Print stack trace if verbose/debug mode is enabled."""
    # Check if we're in verbose/debug mode based on command line args
    if any(arg in sys.argv for arg in ["-v", "-vv", "--verbose", "--debug"]):
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
