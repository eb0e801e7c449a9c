"""
Pydantic models for repositories, disk metadata and image information.
"""

from enum import Enum
from typing import Dict, Optional

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger(__name__)

# sm_config key holding the disk format chosen at creation time
FORMAT_KEY = "type"

# iso8601_of_float 0.
EPOCH = "19700101T00:00:00Z"


class DiskFormat(str, Enum):
    """On-disk representation of a VDI, fixed when the VDI is created."""

    VHD = "vhd"
    RAW = "raw"

    @classmethod
    def parse(cls, value: str) -> Optional["DiskFormat"]:
        """Case-insensitive lookup; unknown names are logged and give None."""
        try:
            return cls(value.lower())
        except ValueError:
            log.warning(
                "unknown_disk_format",
                requested=value,
                possible_values=[f.value for f in cls],
            )
            return None


def format_of_kvpairs(key: str, default: DiskFormat, pairs: Dict[str, str]) -> DiskFormat:
    """Read a format from ``pairs[key]``, falling back to ``default``."""
    if key in pairs:
        parsed = DiskFormat.parse(pairs[key])
        if parsed is not None:
            return parsed
    return default


class SRRecord(BaseModel):
    """An attached storage repository."""

    id: str = Field(description="SR identifier")
    path: str = Field(description="Directory holding images and metadata")
    format: DiskFormat = Field(default=DiskFormat.VHD, description="Default VDI format")


class VDIInfo(BaseModel):
    """Descriptive metadata of one VDI, persisted in its sidecar file."""

    vdi: str = ""
    content_id: str = ""
    name_label: str = ""
    name_description: str = ""
    ty: str = "user"
    metadata_of_pool: str = ""
    is_a_snapshot: bool = False
    snapshot_time: str = EPOCH
    snapshot_of: str = ""
    read_only: bool = False
    virtual_size: int = 0
    physical_utilisation: int = 0
    sm_config: Dict[str, str] = Field(default_factory=dict)
    persistent: bool = True

    @property
    def format_tag(self) -> Optional[str]:
        return self.sm_config.get(FORMAT_KEY)

    def with_format(self, disk_format: DiskFormat) -> "VDIInfo":
        """Copy of this record with the format tag replaced."""
        sm_config = {k: v for k, v in self.sm_config.items() if k != FORMAT_KEY}
        sm_config[FORMAT_KEY] = disk_format.value
        return self.model_copy(update={"sm_config": sm_config})


class AttachInfo(BaseModel):
    """What a backend hands back when a VDI is attached."""

    params: str
    xenstore_data: Dict[str, str] = Field(default_factory=dict)


class ImageInfo(BaseModel):
    """Parsed ``qemu-img info`` report."""

    format: str
    virtual_size: int
    disk_size: int
    cluster_size: int
    backing_file: Optional[str] = None
