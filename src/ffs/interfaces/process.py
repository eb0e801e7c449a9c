"""Abstract interface for running external tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class ProcessResult:
    """Result of process execution."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessRunner(ABC):
    """Runs a command and captures its output."""

    @abstractmethod
    def run(self, command: List[str], timeout: Optional[int] = None) -> ProcessResult:
        """
        Run ``command`` to completion.

        Raises ExternalToolError if the command cannot be started or exits
        non-zero.
        """
        pass
