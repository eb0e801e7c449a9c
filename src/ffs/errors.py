"""Exceptions raised by the flat file storage backend."""

from typing import List, Optional


class FFSError(Exception):
    """Base class for all ffs errors."""


class MissingConfigurationParameter(FFSError, ValueError):
    """A required device_config key was not supplied."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Required device_config:{parameter} not present")


class SRNotAttached(FFSError, LookupError):
    def __init__(self, sr: str):
        self.sr = sr
        super().__init__(f"SR {sr} is not attached")


class VDIDoesNotExist(FFSError, LookupError):
    def __init__(self, vdi: str, message: Optional[str] = None):
        self.vdi = vdi
        super().__init__(message or f"VDI {vdi} does not exist")


class DeviceBindingNotFound(VDIDoesNotExist):
    """The VDI has no device symlink, i.e. it is not attached."""

    def __init__(self, vdi: str, binding: str):
        self.binding = binding
        super().__init__(vdi, f"VDI {vdi} is not attached (no binding at {binding})")


class FormatTagError(FFSError):
    """The sm_config:type tag of a VDI is missing or unrecognised."""

    def __init__(self, sr: str, vdi: str, tag: Optional[str] = None):
        self.sr = sr
        self.vdi = vdi
        self.tag = tag
        if tag is None:
            message = f"VDI {sr}/{vdi} has no sm-config:type"
        else:
            message = f"VDI {sr}/{vdi} has unrecognised sm-config:type={tag}"
        super().__init__(message)


class BackendError(FFSError):
    """Generic backend failure, reported to the caller as (code, params)."""

    def __init__(self, code: str, params: Optional[List[str]] = None):
        self.code = code
        self.params = list(params or [])
        super().__init__(f"{code}: {', '.join(self.params)}" if self.params else code)


class SizeRangeError(BackendError):
    def __init__(self, size: int, minimum: int, maximum: int):
        self.size = size
        self.minimum = minimum
        self.maximum = maximum
        super().__init__("VDI_SIZE", [str(size), str(minimum), str(maximum)])


class ExternalToolError(BackendError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, command: List[str], returncode: Optional[int], stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        params = [" ".join(self.command)]
        if returncode is not None:
            params.append(str(returncode))
        if stderr:
            params.append(stderr.strip())
        super().__init__("TOOL_FAILED", params)


class ImageInfoError(BackendError):
    """The image tool produced a report we could not parse."""

    def __init__(self, message: str):
        super().__init__("IMAGE_INFO", [message])


class UnimplementedError(BackendError):
    def __init__(self, backend: str, operation: str):
        super().__init__("UNIMPLEMENTED", [backend, operation])
