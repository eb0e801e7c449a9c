"""Interface shared by all VDI format backends."""

from abc import ABC, abstractmethod
from pathlib import Path

from ffs.errors import UnimplementedError
from ffs.models import AttachInfo, ImageInfo


class FormatBackend(ABC):
    """Lifecycle operations for one on-disk VDI representation."""

    name: str = "abstract"

    @abstractmethod
    def create(self, path: Path, size: int) -> None:
        """Create a VDI of ``size`` bytes at ``path``."""
        pass

    @abstractmethod
    def destroy(self, path: Path) -> None:
        """Remove the VDI at ``path``; a missing file is not an error."""
        pass

    @abstractmethod
    def attach(self, path: Path, read_write: bool) -> AttachInfo:
        """Make the VDI available and return its device handle."""
        pass

    @abstractmethod
    def detach(self, device: str) -> None:
        """Release a device handle returned by attach."""
        pass

    @abstractmethod
    def activate(self, device: str, path: Path) -> None:
        pass

    @abstractmethod
    def deactivate(self, device: str) -> None:
        pass

    def info(self, path: Path) -> ImageInfo:
        """Describe the image at ``path``."""
        raise UnimplementedError(self.name, "info")
