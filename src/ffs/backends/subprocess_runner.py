"""Subprocess process runner implementation."""

import subprocess
from typing import List, Optional

import structlog

from ffs.errors import ExternalToolError
from ffs.interfaces.process import ProcessResult, ProcessRunner

log = structlog.get_logger(__name__)


class SubprocessRunner(ProcessRunner):
    """Run processes using the subprocess module."""

    def run(self, command: List[str], timeout: Optional[int] = None) -> ProcessResult:
        log.debug("command_started", command=command)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                timeout=timeout,
                text=True,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            log.error("command_not_run", command=command, error=str(e))
            raise ExternalToolError(command, None, str(e)) from e

        if result.returncode != 0:
            log.error(
                "command_failed",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr,
            )
            raise ExternalToolError(command, result.returncode, result.stderr)

        return ProcessResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
