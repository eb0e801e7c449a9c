"""Format backends and the dispatcher that picks one per VDI."""

from typing import Dict, Optional

from ffs.backends.qemu_disk import QemuImageBackend, QemuImg
from ffs.backends.sparse import SparseFileBackend
from ffs.backends.subprocess_runner import SubprocessRunner
from ffs.config import Settings
from ffs.interfaces.backend import FormatBackend
from ffs.interfaces.process import ProcessRunner
from ffs.models import DiskFormat


class BackendDispatcher:
    """
    Maps each DiskFormat to the backend that implements it.

    Usage:
        dispatcher = BackendDispatcher.from_settings(settings)
        dispatcher.for_format(DiskFormat.RAW).create(path, size)
    """

    def __init__(self, backends: Dict[DiskFormat, FormatBackend]):
        missing = set(DiskFormat) - set(backends)
        if missing:
            raise ValueError(f"No backend for formats: {sorted(f.value for f in missing)}")
        self._backends = dict(backends)

    def for_format(self, disk_format: DiskFormat) -> FormatBackend:
        return self._backends[disk_format]

    @classmethod
    def from_settings(
        cls, settings: Settings, runner: Optional[ProcessRunner] = None
    ) -> "BackendDispatcher":
        runner = runner or SubprocessRunner()
        return cls(
            {
                DiskFormat.VHD: QemuImageBackend(
                    QemuImg(runner, settings.qemu_img), settings.image_format
                ),
                DiskFormat.RAW: SparseFileBackend(runner, settings.losetup),
            }
        )


__all__ = [
    "BackendDispatcher",
    "QemuImageBackend",
    "QemuImg",
    "SparseFileBackend",
    "SubprocessRunner",
]
