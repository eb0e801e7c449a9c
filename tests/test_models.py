#!/usr/bin/env python3
"""Tests for Pydantic models and error types."""

import pytest

from ffs.errors import (
    BackendError,
    DeviceBindingNotFound,
    ExternalToolError,
    FormatTagError,
    MissingConfigurationParameter,
    VDIDoesNotExist,
)
from ffs.models import DiskFormat, SRRecord, VDIInfo, format_of_kvpairs


class TestDiskFormat:
    @pytest.mark.parametrize("value,expected", [
        ("vhd", DiskFormat.VHD),
        ("VHD", DiskFormat.VHD),
        ("Raw", DiskFormat.RAW),
        ("qcow2", None),
        ("", None),
    ])
    def test_parse(self, value, expected):
        assert DiskFormat.parse(value) == expected

    def test_format_of_kvpairs(self):
        assert format_of_kvpairs("type", DiskFormat.VHD, {"type": "raw"}) == DiskFormat.RAW
        assert format_of_kvpairs("type", DiskFormat.VHD, {"type": "nope"}) == DiskFormat.VHD
        assert format_of_kvpairs("type", DiskFormat.RAW, {}) == DiskFormat.RAW


class TestVDIInfo:
    def test_default_values(self):
        vdi_info = VDIInfo()
        assert vdi_info.ty == "user"
        assert vdi_info.persistent is True
        assert vdi_info.sm_config == {}
        assert vdi_info.format_tag is None

    def test_with_format_replaces_tag(self):
        vdi_info = VDIInfo(sm_config={"type": "vhd", "other": "1"})
        updated = vdi_info.with_format(DiskFormat.RAW)
        assert updated.sm_config == {"type": "raw", "other": "1"}
        assert updated.format_tag == "raw"
        assert vdi_info.format_tag == "vhd"

    def test_json_round_trip(self):
        vdi_info = VDIInfo(vdi="d", virtual_size=2**40, sm_config={"type": "vhd"})
        assert VDIInfo.model_validate_json(vdi_info.model_dump_json()) == vdi_info


class TestSRRecord:
    def test_format_serialises_lowercase(self):
        record = SRRecord(id="sr1", path="/srv", format=DiskFormat.RAW)
        assert record.model_dump(mode="json") == {"id": "sr1", "path": "/srv", "format": "raw"}


class TestErrors:
    def test_missing_parameter_is_value_error(self):
        assert isinstance(MissingConfigurationParameter("path"), ValueError)

    def test_binding_not_found_is_not_found(self):
        error = DeviceBindingNotFound("disk", "/run/ffs/sr/disk.device")
        assert isinstance(error, VDIDoesNotExist)
        assert error.vdi == "disk"

    def test_format_tag_messages(self):
        assert "has no sm-config:type" in str(FormatTagError("sr", "d"))
        assert "unrecognised sm-config:type=zip" in str(FormatTagError("sr", "d", "zip"))

    def test_external_tool_error_params(self):
        error = ExternalToolError(["qemu-img", "info"], 1, "boom\n")
        assert isinstance(error, BackendError)
        assert error.code == "TOOL_FAILED"
        assert error.params == ["qemu-img info", "1", "boom"]
