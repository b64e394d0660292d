"""CLI package for jnlpbox."""

from jnlpbox.cli.app import app, main


__all__ = ["app", "main"]
