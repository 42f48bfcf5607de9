"""Tests for slug packing and unpacking."""

import io
import os
import stat
import tarfile

import pytest

from tfe_client.slug import IllegalSlugError, SlugError, pack, unpack


@pytest.fixture
def config_dir(tmp_path):
    """A small Terraform configuration with a subdirectory and a symlink."""
    src = tmp_path / "src"
    (src / "modules" / "net").mkdir(parents=True)
    (src / "main.tf").write_text('resource "null_resource" "a" {}\n')
    (src / "modules" / "net" / "vpc.tf").write_text("# vpc\n")
    script = src / "run.sh"
    script.write_text("#!/bin/sh\necho hi\n")
    script.chmod(0o755)
    os.symlink("main.tf", src / "link.tf")
    return src


class TestPack:
    def test_entries_and_size(self, config_dir):
        buffer = io.BytesIO()

        meta = pack(config_dir, buffer)

        assert meta.files == [
            "link.tf",
            "main.tf",
            "modules/",
            "run.sh",
            "modules/net/",
            "modules/net/vpc.tf",
        ]
        expected_size = sum(
            (config_dir / name).stat().st_size
            for name in ("main.tf", "run.sh", "modules/net/vpc.tf")
        )
        assert meta.size == expected_size

    def test_symlinks_are_stored_as_links(self, config_dir):
        buffer = io.BytesIO()
        pack(config_dir, buffer)
        buffer.seek(0)

        with tarfile.open(fileobj=buffer, mode="r:gz") as tar:
            link = tar.getmember("link.tf")

        assert link.issym()
        assert link.linkname == "main.tf"

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(SlugError):
            pack(tmp_path / "nope", io.BytesIO())


class TestUnpack:
    def test_round_trip_restores_files_links_and_modes(self, config_dir, tmp_path):
        buffer = io.BytesIO()
        pack(config_dir, buffer)
        buffer.seek(0)
        dst = tmp_path / "dst"

        unpack(buffer, dst)

        assert (dst / "main.tf").read_text() == 'resource "null_resource" "a" {}\n'
        assert (dst / "modules" / "net" / "vpc.tf").read_text() == "# vpc\n"
        assert os.readlink(dst / "link.tf") == "main.tf"
        assert stat.S_IMODE((dst / "run.sh").stat().st_mode) == 0o755

    def test_entry_escaping_destination_is_rejected(self, tmp_path):
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            data = b"evil"
            info = tarfile.TarInfo("../escape.txt")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        buffer.seek(0)

        with pytest.raises(IllegalSlugError):
            unpack(buffer, tmp_path / "dst")
        assert not (tmp_path / "escape.txt").exists()

    def test_corrupt_archive_raises_slug_error(self, tmp_path):
        with pytest.raises(SlugError):
            unpack(io.BytesIO(b"definitely not gzip"), tmp_path / "dst")
