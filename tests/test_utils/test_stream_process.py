"""Tests for materialized process execution."""

import subprocess
from unittest.mock import patch

import pytest

from jnlpbox.utils.stream_process import ProcessResult, run_command


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestRunCommand:
    def test_collects_output_lines(self):
        completed = _completed(0, "jar signed.\n\nWarning: \n", "")
        with patch("subprocess.run", return_value=completed) as mock_run:
            result = run_command(["jarsigner", "demo.jar", "release"], timeout=5)

        assert result == ProcessResult(0, ["jar signed.", "", "Warning:"], [])
        args, kwargs = mock_run.call_args
        assert args[0] == ["jarsigner", "demo.jar", "release"]
        assert kwargs["timeout"] == 5
        assert kwargs["capture_output"] is True
        assert kwargs["check"] is False

    def test_string_command_is_split(self):
        with patch("subprocess.run", return_value=_completed()) as mock_run:
            run_command("jar tf 'my demo.jar'")

        assert mock_run.call_args[0][0] == ["jar", "tf", "my demo.jar"]

    def test_nonzero_exit_is_returned(self):
        completed = _completed(1, None, "jarsigner error: keystore not found\n")
        with patch("subprocess.run", return_value=completed):
            result = run_command(["jarsigner"])

        assert result.exit_code == 1
        assert result.stdout_lines == []
        assert result.stderr_lines == ["jarsigner error: keystore not found"]

    def test_timeout_propagates(self):
        with (
            patch(
                "subprocess.run",
                side_effect=subprocess.TimeoutExpired(["jarsigner"], 1.0),
            ),
            pytest.raises(subprocess.TimeoutExpired),
        ):
            run_command(["jarsigner"], timeout=1.0)
