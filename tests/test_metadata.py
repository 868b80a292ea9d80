"""
Tests for persisted artifact state and atomic writes.
"""

import json
from unittest.mock import patch

import pytest

from conftest import FakeVersionControl
from shipwright.build.change_detector import ChangeOracle
from shipwright.build.hasher import Fingerprinter
from shipwright.build.metadata import ArtifactStore, read_fingerprint
from shipwright.core.models import PackageDescriptor
from shipwright.utils import fileio
from shipwright.utils.fileio import atomic_write


INPUTS = ["build/svc/main.py"]


def leftovers(directory):
    return [p.name for p in directory.iterdir() if p.name.startswith(".temp_")]


class TestAtomicWrite:

    def test_creates_parents_and_replaces(self, tmp_path):
        target = tmp_path / "dist/svc/deps.sha256"

        atomic_write(target, "old")
        atomic_write(target, "new")

        assert target.read_text() == "new"
        assert leftovers(target.parent) == []

    def test_failed_rename_keeps_old_content(self, tmp_path):
        target = tmp_path / "deps.sha256"
        target.write_text("old")

        with patch.object(fileio.os, "replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write(target, "new")

        assert target.read_text() == "old"
        assert leftovers(tmp_path) == []

    def test_failed_fsync_keeps_old_content(self, tmp_path):
        target = tmp_path / "package.json"
        target.write_text('{"name": "svc"}')

        with patch.object(fileio.os, "fsync", side_effect=OSError("io error")):
            with pytest.raises(OSError):
                atomic_write(target, b'{"name": "other"}')

        assert target.read_text() == '{"name": "svc"}'
        assert leftovers(tmp_path) == []


class TestReadFingerprint:

    def test_missing_file(self, tmp_path):
        assert read_fingerprint(tmp_path / "deps.sha256") is None

    def test_strips_whitespace(self, tmp_path):
        (tmp_path / "deps.sha256").write_text("abc123\n")
        assert read_fingerprint(tmp_path / "deps.sha256") == "abc123"

    def test_other_errors_propagate(self, tmp_path):
        with pytest.raises(OSError):
            read_fingerprint(tmp_path)


class TestArtifactStore:

    @pytest.fixture
    def store(self, workspace):
        return ArtifactStore(workspace.root / "dist")

    def test_save_writes_descriptor_and_fingerprint(self, workspace, store):
        output_dir = workspace.root / "dist/svc"

        store.save(output_dir, PackageDescriptor(name="svc", version="v1", deps="d1"))

        assert json.loads(workspace.read("dist/svc/package.json")) == {
            "name": "svc", "version": "v1", "deps": "d1"
        }
        assert read_fingerprint(store.get_fingerprint_path(output_dir)) == "d1"
        assert store.load_descriptor(output_dir).version == "v1"

    def test_failed_fingerprint_write_keeps_previous_fingerprint(self, workspace, store):
        output_dir = workspace.root / "dist/svc"
        store.save(output_dir, PackageDescriptor(name="svc", version="v1", deps="d1"))

        def fail_on_fingerprint(path, data):
            if path.name == "deps.sha256":
                raise OSError("disk full")
            atomic_write(path, data)

        with patch("shipwright.build.metadata.atomic_write", side_effect=fail_on_fingerprint):
            with pytest.raises(OSError):
                store.save(output_dir, PackageDescriptor(name="svc", version="v2", deps="d2"))

        assert store.load_descriptor(output_dir).version == "v2"
        assert read_fingerprint(store.get_fingerprint_path(output_dir)) == "d1"
        assert leftovers(output_dir) == []

    @pytest.mark.asyncio
    async def test_interrupted_save_forces_rebuild(self, workspace, store, emitter):
        workspace.write("build/svc/main.py", "print(1)\n")
        fingerprinter = Fingerprinter(workspace.root)
        output_dir = workspace.root / "dist/svc"
        store.save(
            output_dir,
            PackageDescriptor(name="svc", version="v1", deps=fingerprinter.compute_fingerprint(INPUTS))
        )

        workspace.write("build/svc/main.py", "print(2)\n")

        def fail_on_fingerprint(path, data):
            if path.name == "deps.sha256":
                raise OSError("killed")
            atomic_write(path, data)

        with patch("shipwright.build.metadata.atomic_write", side_effect=fail_on_fingerprint):
            with pytest.raises(OSError):
                store.save(
                    output_dir,
                    PackageDescriptor(name="svc", version="v2", deps=fingerprinter.compute_fingerprint(INPUTS))
                )

        oracle = ChangeOracle(FakeVersionControl(workspace.root), fingerprinter, emitter)
        await oracle.resolve_revisions()

        assert await oracle.needs_processing(INPUTS, store.get_fingerprint_path(output_dir)) is True

    def test_list_artifact_dirs_requires_artifact(self, workspace, store):
        store.save(workspace.root / "dist/a", PackageDescriptor(name="a", version="1", deps="x"))
        store.save(workspace.root / "dist/b", PackageDescriptor(name="b", version="1", deps="x"))
        workspace.write_bytes("dist/b/main.pyz", b"zip")

        assert store.list_artifact_dirs() == [workspace.root / "dist/b"]
