"""
Per-VDI sidecar metadata.

Every VDI ``<sr.path>/<vdi>`` has its metadata in ``<sr.path>/<vdi>.json``.
Files dropped into the SR directory by hand have no sidecar; for those
:func:`placeholder_vdi_info` makes up a record so that they still show up
in an SR scan. Such placeholders carry no format tag, so every
format-specific operation on them fails until a sidecar is written.
"""

import json
import os
import stat
from pathlib import Path
from typing import List, Optional

import structlog

from ffs.errors import FormatTagError
from ffs.models import EPOCH, DiskFormat, SRRecord, VDIInfo
from ffs.paths import JSON_SUFFIX, md_path_of, sidecar_of, vdi_path_of

log = structlog.get_logger(__name__)


def placeholder_vdi_info(path: Path, st: os.stat_result) -> VDIInfo:
    """Reconcile a sidecar-less data file into a "user" VDI record."""
    return VDIInfo(
        vdi=path.name,
        name_label=path.name,
        ty="user",
        snapshot_time=EPOCH,
        virtual_size=st.st_size,
        physical_utilisation=st.st_size,
        sm_config={},
        persistent=True,
    )


class MetadataStore:
    """Reads and writes sidecar files."""

    def read(self, path: Path) -> Optional[VDIInfo]:
        """
        Metadata for the data file at ``path``: the sidecar if there is
        one, else a placeholder if ``path`` is a regular non-sidecar file,
        else None.
        """
        md_path = sidecar_of(path)
        if md_path.exists():
            return VDIInfo.model_validate(json.loads(md_path.read_text()))

        try:
            st = path.stat()
        except FileNotFoundError:
            return None
        if stat.S_ISREG(st.st_mode) and not path.name.endswith(JSON_SUFFIX):
            return placeholder_vdi_info(path, st)
        return None

    def write(self, sr: SRRecord, vdi_info: VDIInfo) -> Path:
        md_path = md_path_of(sr.path, vdi_info.vdi)
        # ends in .json so a scan never mistakes it for a data file
        tmp = md_path.with_name(f".{vdi_info.vdi}.tmp{JSON_SUFFIX}")
        tmp.write_text(vdi_info.model_dump_json(indent=2))
        os.replace(tmp, md_path)
        return md_path

    def remove(self, sr: SRRecord, vdi: str) -> None:
        try:
            md_path_of(sr.path, vdi).unlink()
        except FileNotFoundError:
            pass

    def format_of(self, sr: SRRecord, vdi: str) -> DiskFormat:
        """Decode the format tag written when the VDI was created."""
        vdi_info = self.read(vdi_path_of(sr.path, vdi))
        tag = vdi_info.format_tag if vdi_info is not None else None
        if tag is None:
            log.error("vdi_format_missing", sr=sr.id, vdi=vdi)
            raise FormatTagError(sr.id, vdi)
        try:
            return DiskFormat(tag.lower())
        except ValueError:
            log.error("vdi_format_unrecognised", sr=sr.id, vdi=vdi, tag=tag)
            raise FormatTagError(sr.id, vdi, tag) from None

    def scan(self, sr: SRRecord) -> List[VDIInfo]:
        """All VDIs in the SR directory, in no particular order."""
        root = Path(sr.path)
        if not root.exists():
            return []
        results = []
        for name in os.listdir(root):
            vdi_info = self.read(root / name)
            if vdi_info is not None:
                results.append(vdi_info)
        return results
