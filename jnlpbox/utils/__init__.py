"""Utility helpers for jnlpbox."""

from .resources import (
    remove_quietly,
    replace_atomically,
    scoped_cleanup,
    scoped_temp_dir,
    write_bytes_atomically,
)
from .stream_process import ProcessResult, run_command


__all__ = [
    "ProcessResult",
    "remove_quietly",
    "replace_atomically",
    "run_command",
    "scoped_cleanup",
    "scoped_temp_dir",
    "write_bytes_atomically",
]
