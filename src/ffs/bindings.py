"""
Device bindings: a symlink per attached VDI pointing at the device the
backend handed out.
"""

import os
from pathlib import Path
from typing import Optional

import structlog

from ffs.backends import BackendDispatcher
from ffs.errors import BackendError, DeviceBindingNotFound
from ffs.interfaces.backend import FormatBackend
from ffs.metadata import MetadataStore
from ffs.models import AttachInfo, SRRecord
from ffs.paths import device_path_of, vdi_path_of
from ffs.retry import retry_every

log = structlog.get_logger(__name__)


class DeviceBindings:
    """Attach state of VDIs, kept as symlinks under the runtime directory."""

    def __init__(
        self,
        root: Path,
        metadata: MetadataStore,
        dispatcher: BackendDispatcher,
        retry_interval: float = 0.1,
        retry_max_attempts: Optional[int] = None,
    ):
        self.root = root
        self.metadata = metadata
        self.dispatcher = dispatcher
        self.retry_interval = retry_interval
        self.retry_max_attempts = retry_max_attempts

    def binding_path(self, sr: SRRecord, vdi: str) -> Path:
        return device_path_of(self.root, sr.id, vdi)

    def device_of(self, sr: SRRecord, vdi: str) -> str:
        symlink = self.binding_path(sr, vdi)
        try:
            return os.readlink(symlink)
        except FileNotFoundError:
            raise DeviceBindingNotFound(vdi, str(symlink)) from None

    def _backend(self, sr: SRRecord, vdi: str) -> FormatBackend:
        # looked up on every call: the sidecar may have been edited
        return self.dispatcher.for_format(self.metadata.format_of(sr, vdi))

    def attach(self, sr: SRRecord, vdi: str, read_write: bool) -> AttachInfo:
        backend = self._backend(sr, vdi)
        attach_info = backend.attach(vdi_path_of(sr.path, vdi), read_write)
        symlink = self.binding_path(sr, vdi)
        try:
            symlink.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            os.symlink(attach_info.params, symlink)
        except OSError:
            log.error("vdi_bind_failed", sr=sr.id, vdi=vdi, device=attach_info.params)
            backend.detach(attach_info.params)
            raise
        log.info("vdi_bound", sr=sr.id, vdi=vdi, device=attach_info.params, backend=backend.name)
        return attach_info

    def detach(self, sr: SRRecord, vdi: str) -> None:
        device = self.device_of(sr, vdi)
        backend = self._backend(sr, vdi)
        # background tasks probing the device make detach fail transiently;
        # detach itself must never fail
        retry_every(
            self.retry_interval,
            lambda: backend.detach(device),
            max_attempts=self.retry_max_attempts,
            retry_on=(BackendError,),
        )
        symlink = self.binding_path(sr, vdi)
        try:
            symlink.unlink()
        except OSError as e:
            log.warning("binding_not_removed", binding=str(symlink), error=str(e))
        log.info("vdi_unbound", sr=sr.id, vdi=vdi, device=device)

    def activate(self, sr: SRRecord, vdi: str) -> None:
        device = self.device_of(sr, vdi)
        self._backend(sr, vdi).activate(device, vdi_path_of(sr.path, vdi))

    def deactivate(self, sr: SRRecord, vdi: str) -> None:
        device = self.device_of(sr, vdi)
        self._backend(sr, vdi).deactivate(device)
