"""Tests for the qemu-img backend and its info parser."""

from pathlib import Path

import pytest

from ffs.backends.qemu_disk import (
    MAXIMUM_SIZE,
    QemuImageBackend,
    QemuImg,
    check_size,
    parse_info,
    parse_size,
    parse_table,
)
from ffs.errors import BackendError, ImageInfoError, SizeRangeError, UnimplementedError
from ffs.backends.sparse import SparseFileBackend

from conftest import QEMU_IMG_INFO


class TestParseSize:
    def test_exact_byte_count_wins(self):
        assert parse_size("8.0G (8589934592 bytes)") == 8589934592

    def test_exact_byte_count_wins_over_rounded_value(self):
        assert parse_size("1.5G (1000 bytes)") == 1000

    @pytest.mark.parametrize("text,expected", [
        ("1.4M", int(1.4 * 1024 * 1024)),
        ("512K", 512 * 1024),
        ("2G", 2 * 1024 ** 3),
        ("1.5T", int(1.5 * 1024 ** 4)),
        ("196 KiB", 196 * 1024),
    ])
    def test_suffixed_values(self, text, expected):
        assert parse_size(text) == expected

    def test_truncates(self):
        assert parse_size("1.0000001K") == 1024

    @pytest.mark.parametrize("text", ["abc", "65536", "", "12X"])
    def test_unparsable(self, text):
        with pytest.raises(ImageInfoError):
            parse_size(text)


class TestParseInfo:
    def test_example_report(self):
        info = parse_info(QEMU_IMG_INFO)
        assert info.format == "qcow2"
        assert info.virtual_size == 8589934592
        assert info.disk_size == int(1.4 * 1024 * 1024)
        assert info.cluster_size == 65536
        assert info.backing_file is None

    def test_backing_file(self):
        info = parse_info(QEMU_IMG_INFO + "backing file: base.qcow2\n")
        assert info.backing_file == "base.qcow2"

    def test_value_keeps_later_colons(self):
        table = parse_table("backing file: /srv/a:b.qcow2")
        assert table["backing file"] == "/srv/a:b.qcow2"

    def test_child_node_does_not_shadow_top_level(self):
        report = QEMU_IMG_INFO.replace("disk size: 1.4M", "disk size: 196 KiB") + (
            "Child node '/file':\n"
            "    filename: glacier.qcow2\n"
            "    protocol type: file\n"
            "    file length: 192 KiB (197120 bytes)\n"
            "    disk size: 1 MiB\n"
        )
        assert parse_info(report).disk_size == 200704
        assert parse_table(report)["    disk size"] == "1 MiB"

    def test_last_duplicate_wins(self):
        info = parse_info(QEMU_IMG_INFO + "cluster_size: 2097152\n")
        assert info.cluster_size == 2097152

    @pytest.mark.parametrize("key", ["file format", "virtual size", "disk size", "cluster_size"])
    def test_missing_required_key(self, key):
        report = "\n".join(
            line for line in QEMU_IMG_INFO.splitlines() if not line.startswith(key)
        )
        with pytest.raises(ImageInfoError, match=key):
            parse_info(report)

    def test_bad_cluster_size(self):
        with pytest.raises(ImageInfoError):
            parse_info(QEMU_IMG_INFO.replace("65536", "lots"))


class TestCheckSize:
    @pytest.mark.parametrize("size", [0, 1, MAXIMUM_SIZE])
    def test_in_range(self, size):
        check_size(size)

    @pytest.mark.parametrize("size", [-1, MAXIMUM_SIZE + 1])
    def test_out_of_range(self, size):
        with pytest.raises(SizeRangeError) as excinfo:
            check_size(size)
        assert excinfo.value.size == size
        assert excinfo.value.minimum == 0
        assert excinfo.value.maximum == 9223372036854774784
        assert excinfo.value.code == "VDI_SIZE"
        assert isinstance(excinfo.value, BackendError)


class TestQemuImg:
    def test_create_command(self, runner):
        tool = QemuImg(runner, "/usr/bin/qemu-img")
        tool.create(Path("/srv/disk"), 1024, format="qcow2", options="preallocation=off")
        assert runner.commands == [[
            "/usr/bin/qemu-img", "create", "-f", "qcow2",
            "-o", "preallocation=off", "/srv/disk", "1024",
        ]]

    def test_create_checks_size_before_running(self, runner):
        tool = QemuImg(runner)
        with pytest.raises(SizeRangeError):
            tool.create(Path("/srv/disk"), -1)
        assert runner.commands == []

    def test_resize(self, runner):
        tool = QemuImg(runner, "qemu-img")
        assert tool.resize(Path("/srv/disk"), 4096) == 4096
        assert runner.commands == [["qemu-img", "resize", "-f", "qcow2", "/srv/disk", "4096"]]

    def test_info_returns_raw_text(self, runner):
        tool = QemuImg(runner, "qemu-img")
        assert tool.info(Path("/srv/disk")) == QEMU_IMG_INFO
        assert runner.commands == [["qemu-img", "info", "-f", "qcow2", "/srv/disk"]]


class TestQemuImageBackend:
    @pytest.fixture
    def backend(self, runner):
        return QemuImageBackend(QemuImg(runner, "qemu-img"))

    def test_create_and_destroy(self, backend, tmp_path):
        path = tmp_path / "disk"
        backend.create(path, 1024)
        assert path.exists()
        backend.destroy(path)
        assert not path.exists()

    def test_destroy_missing_file_is_fine(self, backend, tmp_path):
        backend.destroy(tmp_path / "missing")

    def test_attach_returns_path(self, backend, tmp_path):
        attach_info = backend.attach(tmp_path / "disk", read_write=True)
        assert attach_info.params == str(tmp_path / "disk")
        assert attach_info.xenstore_data == {"format": "qcow2"}

    def test_info_is_parsed(self, backend, tmp_path):
        assert backend.info(tmp_path / "disk").virtual_size == 8589934592


class TestUnimplementedInfo:
    def test_sparse_backend_has_no_info(self, runner, tmp_path):
        with pytest.raises(UnimplementedError) as excinfo:
            SparseFileBackend(runner).info(tmp_path / "disk")
        assert excinfo.value.params == ["sparse", "info"]
