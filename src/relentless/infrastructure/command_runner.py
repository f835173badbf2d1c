"""Shell command operation retried by the driver."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Dict, Optional, Sequence

from relentless.application.retry_driver import RetryDriver

logger = logging.getLogger(__name__)

ATTEMPT_ENV_VAR = "RELENTLESS_ATTEMPT"


class CommandFailed(Exception):
    """Command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(command, returncode, stderr)

    def __str__(self) -> str:
        message = f"{' '.join(self.command)} exited with status {self.returncode}"
        last_line = self.stderr.strip().splitlines()[-1:] if self.stderr else []
        if last_line:
            message += f": {last_line[0]}"
        return message


def run_command_with_retries(
    command: Sequence[str],
    driver: RetryDriver,
    *,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """Run command until it exits with status 0

    The attempt index is exported to the command as RELENTLESS_ATTEMPT.
    Output goes to the inherited stdout; stderr is captured, logged and used
    to describe the failure.

    Args:
        command: Program and arguments
        driver: Retry policy
        env: Base environment (os.environ if None)

    Returns:
        CompletedProcess of the successful run

    Raises:
        AttemptsExhausted: If every attempt failed (cause: CommandFailed,
            or OSError if the program could not be started)
    """
    if not command:
        raise ValueError("command must not be empty")
    base_env = dict(os.environ if env is None else env)

    def _run(attempt: int) -> subprocess.CompletedProcess:
        logger.debug(f"Running {command[0]} (attempt {attempt})")
        proc = subprocess.run(
            list(command),
            env={**base_env, ATTEMPT_ENV_VAR: str(attempt)},
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
        if proc.stderr:
            logger.info(proc.stderr.rstrip())
        if proc.returncode != 0:
            raise CommandFailed(command, proc.returncode, proc.stderr or "")
        return proc

    return driver.run(_run)
