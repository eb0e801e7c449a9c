"""
Canonical path helpers for the registry file, VDI data files, sidecars and
device bindings.
"""

import os
from pathlib import Path

DRIVER_NAME = "ffs"
JSON_SUFFIX = ".json"
DEVICE_SUFFIX = ".device"

DEFAULT_RUNTIME_DIR = "/var/run/nonpersistent"


def runtime_dir() -> Path:
    """Non-persistent runtime directory (cleared on host reboot)."""
    return Path(os.getenv("FFS_RUNTIME_DIR", DEFAULT_RUNTIME_DIR))


def state_path(root: Path) -> Path:
    """Registry of attached SRs."""
    return root / f"{DRIVER_NAME}{JSON_SUFFIX}"


def vdi_path_of(sr_path: str, vdi: str) -> Path:
    return Path(sr_path) / vdi


def md_path_of(sr_path: str, vdi: str) -> Path:
    return sidecar_of(vdi_path_of(sr_path, vdi))


def sidecar_of(data_path: Path) -> Path:
    return data_path.with_name(data_path.name + JSON_SUFFIX)


def device_path_of(root: Path, sr: str, vdi: str) -> Path:
    """Symlink recording the device a VDI is attached as."""
    return root / DRIVER_NAME / sr / f"{vdi}{DEVICE_SUFFIX}"
