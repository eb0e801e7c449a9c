"""qemu-img backed VDIs and the parser for ``qemu-img info`` reports."""

import re
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ffs.errors import ImageInfoError, SizeRangeError
from ffs.interfaces.backend import FormatBackend
from ffs.interfaces.process import ProcessRunner
from ffs.models import AttachInfo, ImageInfo

log = structlog.get_logger(__name__)

MIB = 1024 * 1024

# Largest virtual size a qcow2 image can address
# (http://rwmj.wordpress.com/2011/10/03/maximum-qcow2-disk-size/)
MAXIMUM_SIZE = 9223372036854774784
MINIMUM_SIZE = 0

# keys in the qemu-img info output
_FILE_FORMAT = "file format"
_VIRTUAL_SIZE = "virtual size"
_DISK_SIZE = "disk size"
_CLUSTER_SIZE = "cluster_size"
_BACKING_FILE = "backing file"

_SEPARATOR = re.compile(r":[ ]*")
_EXACT_SIZE = re.compile(r"\((\d+)")
_SUFFIXED_SIZE = re.compile(r"(\d+(?:\.\d+)?) ?([KMGT])(?:iB)?\b")
_MULTIPLIERS = {"K": 1, "M": 2, "G": 3, "T": 4}


def check_size(size: int) -> None:
    """Reject sizes qemu-img cannot create."""
    if size < MINIMUM_SIZE or size > MAXIMUM_SIZE:
        log.error(
            "vdi_size_out_of_range",
            virtual_size_mib=size // MIB,
            minimum_mib=MINIMUM_SIZE // MIB,
            maximum_mib=MAXIMUM_SIZE // MIB,
        )
        raise SizeRangeError(size, MINIMUM_SIZE, MAXIMUM_SIZE)


def parse_size(text: str) -> int:
    """
    Parse a size as printed by qemu-img, e.g. ``1.4M`` or
    ``8.0G (8589934592 bytes)``.

    An exact byte count in parentheses always wins. Otherwise the suffixed
    number is scaled by powers of 1024 and truncated.
    """
    exact = _EXACT_SIZE.search(text)
    if exact:
        return int(exact.group(1))
    suffixed = _SUFFIXED_SIZE.search(text)
    if suffixed:
        number, suffix = suffixed.groups()
        value = float(number)
        for _ in range(_MULTIPLIERS[suffix]):
            value *= 1024.0
        return int(value)
    raise ImageInfoError(f"Failed to parse_size '{text}'")


def parse_table(report: str) -> Dict[str, str]:
    """
    Split a ``key: value`` report into a dict; later keys win.

    Keys keep their indentation so the nested ``Child node`` sections of
    newer qemu-img releases do not shadow the top-level fields.
    """
    table = {}
    for line in report.split("\n"):
        fields = _SEPARATOR.split(line, maxsplit=1)
        if len(fields) == 2:
            table[fields[0].rstrip()] = fields[1]
    return table


def parse_info(report: str) -> ImageInfo:
    """
    Parse the text printed by ``qemu-img info``::

        image: glacier.qcow2
        file format: qcow2
        virtual size: 8.0G (8589934592 bytes)
        disk size: 1.4M
        cluster_size: 65536
        backing file: name
    """
    table = parse_table(report)

    def find(key: str) -> str:
        if key not in table:
            raise ImageInfoError(f"failed to find '{key}' in qemu-img info output")
        return table[key]

    raw_cluster_size = find(_CLUSTER_SIZE)
    try:
        cluster_size = int(raw_cluster_size)
    except ValueError as e:
        raise ImageInfoError(f"cluster_size '{raw_cluster_size}' is not an integer") from e

    return ImageInfo(
        format=find(_FILE_FORMAT),
        virtual_size=parse_size(find(_VIRTUAL_SIZE)),
        disk_size=parse_size(find(_DISK_SIZE)),
        cluster_size=cluster_size,
        backing_file=table.get(_BACKING_FILE),
    )


class QemuImg:
    """Thin wrapper over the qemu-img command line."""

    def __init__(self, runner: ProcessRunner, binary: str = "/usr/bin/qemu-img"):
        self.runner = runner
        self.binary = binary

    def create(
        self,
        path: Path,
        size: int,
        format: str = "qcow2",
        options: Optional[str] = None,
    ) -> None:
        check_size(size)
        args: List[str] = ["create", "-f", format]
        if options:
            args.extend(["-o", options])
        args.extend([str(path), str(size)])
        self.runner.run([self.binary] + args)

    def resize(self, path: Path, size: int, format: str = "qcow2") -> int:
        check_size(size)
        self.runner.run([self.binary, "resize", "-f", format, str(path), str(size)])
        return size

    def info(self, path: Path, format: str = "qcow2") -> str:
        result = self.runner.run([self.binary, "info", "-f", format, str(path)])
        return result.stdout


class QemuImageBackend(FormatBackend):
    """VDIs stored as qemu-img images (qcow2 unless configured otherwise)."""

    name = "qemu-img"

    def __init__(self, tool: QemuImg, image_format: str = "qcow2"):
        self.tool = tool
        self.image_format = image_format

    def create(self, path: Path, size: int) -> None:
        self.tool.create(path, size, format=self.image_format)

    def destroy(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def attach(self, path: Path, read_write: bool) -> AttachInfo:
        return AttachInfo(params=str(path), xenstore_data={"format": self.image_format})

    def detach(self, device: str) -> None:
        pass

    def activate(self, device: str, path: Path) -> None:
        pass

    def deactivate(self, device: str) -> None:
        pass

    def info(self, path: Path) -> ImageInfo:
        return parse_info(self.tool.info(path, format=self.image_format))
