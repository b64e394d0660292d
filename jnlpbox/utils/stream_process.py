"""Process execution with fully materialized output.

Example:
    ```python
    from jnlpbox.utils.stream_process import run_command

    result = run_command(["jar", "tf", "demo.jar"], timeout=60)
    if result.exit_code != 0:
        print("\\n".join(result.stderr_lines))
    ```
"""

import shlex
import subprocess
from pathlib import Path
from typing import NamedTuple


class ProcessResult(NamedTuple):
    """Exit code plus the complete stdout and stderr of a finished process."""

    exit_code: int
    stdout_lines: list[str]
    stderr_lines: list[str]


def _split_lines(output: str | None) -> list[str]:
    if not output:
        return []
    return [line.rstrip() for line in output.splitlines()]


def run_command(
    cmd: str | list[str],
    timeout: float | None = None,
    cwd: Path | None = None,
) -> ProcessResult:
    """Run a command to completion and collect its output.

    Args:
        cmd: Command to run, either as a string or list of arguments
        timeout: Seconds to wait before the process is killed; None waits forever
        cwd: Working directory for the process

    Returns:
        ProcessResult with the exit code and output lines

    Raises:
        FileNotFoundError: If the executable does not exist
        subprocess.TimeoutExpired: If the timeout elapsed (the child is killed)
    """
    if isinstance(cmd, str):
        cmd = shlex.split(cmd)

    completed = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=cwd,
        check=False,
    )
    return ProcessResult(
        completed.returncode,
        _split_lines(completed.stdout),
        _split_lines(completed.stderr),
    )


__all__ = ["ProcessResult", "run_command"]
