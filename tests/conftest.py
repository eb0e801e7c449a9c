"""
Pytest fixtures and configuration for ffs tests.
"""
from pathlib import Path
from typing import List, Optional

import pytest

from ffs.backends import BackendDispatcher
from ffs.config import Settings
from ffs.errors import ExternalToolError
from ffs.interfaces.process import ProcessResult, ProcessRunner
from ffs.service import FlatFileStorage

QEMU_IMG_INFO = """image: glacier.qcow2
file format: qcow2
virtual size: 8.0G (8589934592 bytes)
disk size: 1.4M
cluster_size: 65536
"""


class FakeRunner(ProcessRunner):
    """
    Stands in for qemu-img and losetup.

    ``qemu-img create`` makes an empty file at the target path so the rest
    of the lifecycle sees a real data file. ``losetup -d`` fails with a busy
    error ``detach_failures`` times before succeeding.
    """

    def __init__(self):
        self.commands: List[List[str]] = []
        self.info_output = QEMU_IMG_INFO
        self.detach_failures = 0
        self._next_loop = 0

    def run(self, command: List[str], timeout: Optional[int] = None) -> ProcessResult:
        self.commands.append(list(command))
        tool = Path(command[0]).name
        stdout = ""

        if tool == "qemu-img" and command[1] == "create":
            Path(command[-2]).touch()
        elif tool == "qemu-img" and command[1] == "info":
            stdout = self.info_output
        elif tool == "losetup" and "--find" in command:
            stdout = f"/dev/loop{self._next_loop}\n"
            self._next_loop += 1
        elif tool == "losetup" and command[1] == "-d":
            if self.detach_failures > 0:
                self.detach_failures -= 1
                raise ExternalToolError(command, 1, "losetup: device is busy")

        return ProcessResult(returncode=0, stdout=stdout, stderr="")

    def commands_for(self, tool: str) -> List[List[str]]:
        return [c for c in self.commands if Path(c[0]).name == tool]


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing the runtime directory into the test's tmp dir."""
    return Settings(
        runtime_dir=tmp_path / "run",
        qemu_img="/usr/bin/qemu-img",
        detach_retry_interval=0.01,
    )


@pytest.fixture
def storage(settings, runner):
    return FlatFileStorage(settings, BackendDispatcher.from_settings(settings, runner))


@pytest.fixture
def sr_dir(tmp_path):
    path = tmp_path / "sr"
    path.mkdir()
    return path


@pytest.fixture
def vhd_sr(storage, sr_dir):
    """An attached SR whose VDIs default to the qemu-img backend."""
    storage.sr_attach("sr-vhd", {"path": str(sr_dir), "format": "vhd"})
    return "sr-vhd"


@pytest.fixture
def raw_sr(storage, sr_dir):
    """An attached SR whose VDIs default to sparse files."""
    storage.sr_attach("sr-raw", {"path": str(sr_dir), "format": "raw"})
    return "sr-raw"
