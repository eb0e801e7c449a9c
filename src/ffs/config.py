"""
Service configuration for ffs, loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ffs.models import DiskFormat
from ffs.paths import runtime_dir as default_runtime_dir

DEFAULT_CONFIG_FILE = Path("/etc/ffs.yaml")


class Settings(BaseModel):
    """Process-wide settings."""

    default_format: DiskFormat = Field(
        default=DiskFormat.VHD, description="Format for VDIs when the SR does not say"
    )
    runtime_dir: Path = Field(
        default_factory=default_runtime_dir, description="Directory for the registry and device links"
    )
    qemu_img: str = Field(default="/usr/bin/qemu-img", description="Path to qemu-img")
    image_format: Literal["qcow2", "raw", "vpc"] = Field(
        default="qcow2", description="Image format written by the qemu-img backend"
    )
    losetup: str = Field(default="losetup", description="Path to losetup")
    detach_retry_interval: float = Field(
        default=0.1, gt=0, description="Seconds between detach attempts"
    )
    detach_retry_max_attempts: Optional[int] = Field(
        default=None, ge=1, description="Give up after this many attempts (None: never)"
    )

    @field_validator("default_format", mode="before")
    @classmethod
    def format_is_case_insensitive(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v

    def save(self, path: Path) -> None:
        """Save settings to a YAML file."""
        data = self.model_dump(mode="json", exclude_none=True)
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML; a missing default file gives defaults."""
        if path is None:
            if not DEFAULT_CONFIG_FILE.exists():
                return cls()
            path = DEFAULT_CONFIG_FILE
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        data = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(data)
