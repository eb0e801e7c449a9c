"""
ffs - Flat File Storage repository backend.

Keeps virtual disk images as plain files in a directory, with JSON sidecar
metadata and symlinks recording which disks are attached.
"""

__version__ = "0.1.0"

from ffs.config import Settings
from ffs.service import FlatFileStorage

__all__ = ["FlatFileStorage", "Settings", "__version__"]
