"""Raw VDIs stored as sparse files and exposed through loop devices."""

from pathlib import Path

import structlog

from ffs.errors import SizeRangeError
from ffs.interfaces.backend import FormatBackend
from ffs.interfaces.process import ProcessRunner
from ffs.models import AttachInfo

log = structlog.get_logger(__name__)

MAXIMUM_SIZE = 2**63 - 1


class SparseFileBackend(FormatBackend):
    """Raw VDIs: a sparse file attached with losetup."""

    name = "sparse"

    def __init__(self, runner: ProcessRunner, losetup: str = "losetup"):
        self.runner = runner
        self.losetup = losetup

    def create(self, path: Path, size: int) -> None:
        if size < 0 or size > MAXIMUM_SIZE:
            raise SizeRangeError(size, 0, MAXIMUM_SIZE)
        with open(path, "xb") as f:
            f.truncate(size)
        log.debug("sparse_file_created", path=str(path), size=size)

    def destroy(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def attach(self, path: Path, read_write: bool) -> AttachInfo:
        command = [self.losetup, "--find", "--show"]
        if not read_write:
            command.append("--read-only")
        command.append(str(path))
        device = self.runner.run(command).stdout.strip()
        log.info("loop_device_attached", path=str(path), device=device, read_write=read_write)
        return AttachInfo(params=device)

    def detach(self, device: str) -> None:
        # losetup -d fails with EBUSY while udev still has the device open
        self.runner.run([self.losetup, "-d", device])
        log.info("loop_device_detached", device=device)

    def activate(self, device: str, path: Path) -> None:
        pass

    def deactivate(self, device: str) -> None:
        pass
