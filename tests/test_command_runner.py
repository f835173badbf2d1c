"""Tests for the retried command runner"""

from __future__ import annotations

import os
import sys

import pytest

from relentless.application.retry_driver import RetryDriver
from relentless.domain.models.budget import Bounded
from relentless.errors import AttemptsExhausted
from relentless.infrastructure.command_runner import ATTEMPT_ENV_VAR, CommandFailed, run_command_with_retries


def _driver(attempts: int) -> RetryDriver:
    return RetryDriver(Bounded(attempts), sleep=lambda _: None)


def _python(code: str) -> list:
    return [sys.executable, "-c", code]


class TestRunCommandWithRetries:
    """Tests for run_command_with_retries"""

    def test_success_first_try(self):
        """Test a passing command runs once"""
        proc = run_command_with_retries(_python("pass"), _driver(3))
        assert proc.returncode == 0

    def test_succeeds_on_third_attempt(self):
        """Test attempt index is exported and retries continue until exit 0"""
        code = f"import os, sys; sys.exit(0 if os.environ['{ATTEMPT_ENV_VAR}'] == '3' else 1)"
        proc = run_command_with_retries(_python(code), _driver(5))
        assert proc.returncode == 0

    def test_exhausted_reports_last_exit_status(self):
        """Test last non-zero status and stderr are kept as the cause"""
        code = "import os, sys; sys.stderr.write('attempt ' + os.environ['RELENTLESS_ATTEMPT'] + ' failed\\n'); sys.exit(3)"

        with pytest.raises(AttemptsExhausted) as exc_info:
            run_command_with_retries(_python(code), _driver(2))

        cause = exc_info.value.__cause__
        assert isinstance(cause, CommandFailed)
        assert cause.returncode == 3
        assert "attempt 2 failed" in cause.stderr
        assert str(cause).endswith("exited with status 3: attempt 2 failed")

    def test_custom_env(self):
        """Test the base environment can be replaced"""
        code = "import os, sys; sys.exit(0 if os.environ.get('ONLY_ME') == 'yes' else 1)"
        env = {"ONLY_ME": "yes", "PATH": os.environ.get("PATH", "")}
        proc = run_command_with_retries(_python(code), _driver(1), env=env)
        assert proc.returncode == 0

    def test_missing_program_is_retried(self, tmp_path):
        """Test a command that cannot start fails with OSError as the cause"""
        with pytest.raises(AttemptsExhausted) as exc_info:
            run_command_with_retries([str(tmp_path / "does-not-exist")], _driver(2))
        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.attempts == 2

    def test_empty_command(self):
        """Test empty command is rejected before any attempt"""
        with pytest.raises(ValueError):
            run_command_with_retries([], _driver(1))


class TestCommandFailed:
    """Tests for CommandFailed"""

    def test_str_without_stderr(self):
        """Test message without stderr output"""
        assert str(CommandFailed(["false"], 1)) == "false exited with status 1"

    def test_str_uses_last_stderr_line(self):
        """Test message shows the last stderr line"""
        err = CommandFailed(["make", "test"], 2, "building\nerror: tests failed\n")
        assert str(err) == "make test exited with status 2: error: tests failed"
