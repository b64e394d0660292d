"""CLI helper functions."""

from jnlpbox.cli.helpers.output import (
    print_batch_result,
    print_error_message,
    print_success_message,
)


__all__ = ["print_batch_result", "print_error_message", "print_success_message"]
