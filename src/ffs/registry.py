"""
Registry of attached SRs, mirrored to a JSON file in the runtime directory.
"""

import json
import os
import threading
from pathlib import Path
from typing import Dict, List, Mapping

import structlog

from ffs.errors import MissingConfigurationParameter, SRNotAttached
from ffs.models import DiskFormat, SRRecord, format_of_kvpairs

log = structlog.get_logger(__name__)

PATH_KEY = "path"
FORMAT_KEY = "format"


class AttachedSRs:
    """
    The set of attached SRs.

    The whole table is rewritten to ``state_path`` after every change and
    read back when the object is created, so attachments survive a service
    restart (but not a host reboot, as the runtime directory is not
    persistent).
    """

    def __init__(self, state_path: Path, default_format: DiskFormat = DiskFormat.VHD):
        self.state_path = state_path
        self.default_format = default_format
        self._table: Dict[str, SRRecord] = {}
        self._lock = threading.RLock()
        self.load()

    def load(self) -> None:
        with self._lock:
            if not self.state_path.exists():
                log.info("registry_empty", state_path=str(self.state_path))
                return
            log.info("registry_loading", state_path=str(self.state_path))
            data = json.loads(self.state_path.read_text())
            self._table = {sr: SRRecord.model_validate(record) for sr, record in data.items()}

    def save(self) -> None:
        with self._lock:
            data = {sr: record.model_dump(mode="json") for sr, record in self._table.items()}
            self.state_path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
            tmp = self.state_path.with_name(self.state_path.name + ".tmp")
            tmp.write_text(json.dumps(data, indent=2))
            os.replace(tmp, self.state_path)

    def get(self, sr: str) -> SRRecord:
        with self._lock:
            if sr not in self._table:
                raise SRNotAttached(sr)
            return self._table[sr]

    def list(self) -> List[str]:
        with self._lock:
            return list(self._table)

    def put(self, record: SRRecord) -> None:
        # TODO: reject a re-attach whose configuration differs from the
        # recorded one instead of replacing it.
        with self._lock:
            self._table[record.id] = record
            self.save()

    def remove(self, sr: str) -> None:
        with self._lock:
            self._table.pop(sr, None)
            self.save()

    def attach(self, sr: str, device_config: Mapping[str, str]) -> SRRecord:
        """Validate ``device_config`` and record the SR as attached."""
        if PATH_KEY not in device_config:
            log.error("missing_configuration_parameter", sr=sr, parameter=PATH_KEY)
            raise MissingConfigurationParameter(PATH_KEY)
        record = SRRecord(
            id=sr,
            path=device_config[PATH_KEY],
            format=format_of_kvpairs(FORMAT_KEY, self.default_format, dict(device_config)),
        )
        self.put(record)
        log.info("sr_attached", sr=sr, path=record.path, format=record.format.value)
        return record

    def detach(self, sr: str) -> None:
        self.remove(sr)
        log.info("sr_detached", sr=sr)

    def create(
        self, sr: str, device_config: Mapping[str, str], physical_size: int = 0
    ) -> None:
        """Check ``device_config`` by attaching and immediately detaching."""
        self.attach(sr, device_config)
        self.detach(sr)
