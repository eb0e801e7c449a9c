"""
Flat File Storage: VDIs as plain files in a directory.

:class:`FlatFileStorage` is the entry point the storage manager talks to.
It ties together the SR registry, the sidecar metadata, filename
allocation and the device bindings.
"""

import os
from typing import Any, Dict, List, Mapping, Optional

import structlog

from ffs import __version__
from ffs.backends import BackendDispatcher
from ffs.bindings import DeviceBindings
from ffs.config import Settings
from ffs.errors import UnimplementedError, VDIDoesNotExist
from ffs.filenames import choose_filename
from ffs.logging import log_operation
from ffs.metadata import MetadataStore
from ffs.models import (
    EPOCH,
    FORMAT_KEY,
    AttachInfo,
    DiskFormat,
    ImageInfo,
    VDIInfo,
    format_of_kvpairs,
)
from ffs.paths import DRIVER_NAME, md_path_of, state_path, vdi_path_of
from ffs.registry import FORMAT_KEY as CONFIG_FORMAT_KEY
from ffs.registry import PATH_KEY, AttachedSRs

log = structlog.get_logger(__name__)

DESCRIPTION = "Flat File Storage Repository"
VENDOR = "ffs"
COPYRIGHT = "ffs contributors"
REQUIRED_API_VERSION = "2.0"
FEATURES = [
    "VDI_CREATE",
    "VDI_DELETE",
    "VDI_ATTACH",
    "VDI_DETACH",
    "VDI_ACTIVATE",
    "VDI_DEACTIVATE",
]
CONFIGURATION = {
    PATH_KEY: "path in the filesystem to store images and metadata",
    CONFIG_FORMAT_KEY: "default format for disks (either 'vhd' or 'raw')",
}


class FlatFileStorage:
    """SR and VDI operations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dispatcher: Optional[BackendDispatcher] = None,
    ):
        self.settings = settings or Settings()
        self.dispatcher = dispatcher or BackendDispatcher.from_settings(self.settings)
        self.metadata = MetadataStore()
        self.srs = AttachedSRs(
            state_path(self.settings.runtime_dir), self.settings.default_format
        )
        self.bindings = DeviceBindings(
            self.settings.runtime_dir,
            self.metadata,
            self.dispatcher,
            retry_interval=self.settings.detach_retry_interval,
            retry_max_attempts=self.settings.detach_retry_max_attempts,
        )

    # -- plugin ------------------------------------------------------------

    def query(self) -> Dict[str, Any]:
        return {
            "driver": DRIVER_NAME,
            "name": DRIVER_NAME,
            "description": DESCRIPTION,
            "vendor": VENDOR,
            "copyright": COPYRIGHT,
            "version": __version__,
            "required_api_version": REQUIRED_API_VERSION,
            "features": list(FEATURES),
            "configuration": dict(CONFIGURATION),
        }

    def diagnostics(self) -> str:
        return "Not available"

    def set_default_format(self, name: str) -> DiskFormat:
        parsed = DiskFormat.parse(name)
        if parsed is not None:
            self.srs.default_format = parsed
        log.info("default_format", format=self.srs.default_format.value)
        return self.srs.default_format

    def get_default_format(self) -> str:
        return self.srs.default_format.value

    # -- SR ------------------------------------------------------------------

    def sr_attach(self, sr: str, device_config: Mapping[str, str]) -> None:
        with log_operation(log, "sr_attach", sr=sr):
            self.srs.attach(sr, device_config)

    def sr_detach(self, sr: str) -> None:
        with log_operation(log, "sr_detach", sr=sr):
            self.srs.detach(sr)

    def sr_create(self, sr: str, device_config: Mapping[str, str], physical_size: int = 0) -> None:
        with log_operation(log, "sr_create", sr=sr):
            self.srs.create(sr, device_config, physical_size)

    def sr_list(self) -> List[str]:
        return self.srs.list()

    def sr_scan(self, sr: str) -> List[VDIInfo]:
        with log_operation(log, "sr_scan", sr=sr) as oplog:
            vdis = self.metadata.scan(self.srs.get(sr))
            oplog.debug("sr_scanned", count=len(vdis))
            return vdis

    # -- VDI -----------------------------------------------------------------

    def vdi_create(self, sr: str, vdi_info: VDIInfo) -> VDIInfo:
        with log_operation(log, "vdi_create", sr=sr, name_label=vdi_info.name_label) as oplog:
            record = self.srs.get(sr)
            disk_format = format_of_kvpairs(FORMAT_KEY, record.format, vdi_info.sm_config)
            vdi_info = vdi_info.with_format(disk_format).model_copy(
                update={
                    "vdi": choose_filename(vdi_info.name_label, os.listdir(record.path)),
                    "snapshot_time": EPOCH,
                }
            )
            backend = self.dispatcher.for_format(disk_format)
            backend.create(vdi_path_of(record.path, vdi_info.vdi), vdi_info.virtual_size)
            self.metadata.write(record, vdi_info)
            oplog.info("vdi_created", vdi=vdi_info.vdi, format=disk_format.value)
            return vdi_info

    def vdi_destroy(self, sr: str, vdi: str) -> None:
        with log_operation(log, "vdi_destroy", sr=sr, vdi=vdi):
            record = self.srs.get(sr)
            vdi_path = vdi_path_of(record.path, vdi)
            if not vdi_path.exists() and not md_path_of(record.path, vdi).exists():
                raise VDIDoesNotExist(vdi)
            backend = self.dispatcher.for_format(self.metadata.format_of(record, vdi))
            backend.destroy(vdi_path)
            self.metadata.remove(record, vdi)

    def vdi_stat(self, sr: str, vdi: str) -> VDIInfo:
        with log_operation(log, "vdi_stat", sr=sr, vdi=vdi):
            raise UnimplementedError(DRIVER_NAME, "VDI.stat")

    def vdi_attach(self, sr: str, vdi: str, read_write: bool = True) -> AttachInfo:
        with log_operation(log, "vdi_attach", sr=sr, vdi=vdi, read_write=read_write):
            return self.bindings.attach(self.srs.get(sr), vdi, read_write)

    def vdi_detach(self, sr: str, vdi: str) -> None:
        with log_operation(log, "vdi_detach", sr=sr, vdi=vdi):
            self.bindings.detach(self.srs.get(sr), vdi)

    def vdi_activate(self, sr: str, vdi: str) -> None:
        with log_operation(log, "vdi_activate", sr=sr, vdi=vdi):
            self.bindings.activate(self.srs.get(sr), vdi)

    def vdi_deactivate(self, sr: str, vdi: str) -> None:
        with log_operation(log, "vdi_deactivate", sr=sr, vdi=vdi):
            self.bindings.deactivate(self.srs.get(sr), vdi)

    def vdi_image_info(self, sr: str, vdi: str) -> ImageInfo:
        """What the format backend can tell about the VDI's image file."""
        with log_operation(log, "vdi_image_info", sr=sr, vdi=vdi):
            record = self.srs.get(sr)
            backend = self.dispatcher.for_format(self.metadata.format_of(record, vdi))
            return backend.info(vdi_path_of(record.path, vdi))
