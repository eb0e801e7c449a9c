"""Abstract interfaces implemented by ffs backends."""

from ffs.interfaces.backend import FormatBackend
from ffs.interfaces.process import ProcessResult, ProcessRunner

__all__ = ["FormatBackend", "ProcessResult", "ProcessRunner"]
