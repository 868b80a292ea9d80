"""Pytest configuration and fixtures for Shipwright tests."""

import logging
import textwrap
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

from shipwright.adapters.base import ClusterTransport, RegistryClient, VersionControl
from shipwright.config.settings import ShipwrightConfig
from shipwright.core.events import EventEmitter, EventRecorder
from shipwright.core.exceptions import VersionControlError
from shipwright.core.models import ApplyOutput, ImageReference, RegistryAuth

logging.basicConfig(level=logging.INFO)


class Workspace:
    """A throwaway monorepo checkout"""

    def __init__(self, root: Path):
        self.root = root

    def write(self, relative: str, content: str = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        return path

    def write_bytes(self, relative: str, data: bytes) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def read(self, relative: str) -> str:
        return (self.root / relative).read_text()

    def exists(self, relative: str) -> bool:
        return (self.root / relative).exists()

    def config(self, **overrides: Any) -> ShipwrightConfig:
        return ShipwrightConfig(cwd=str(self.root), **overrides)

    def add_service(self, name: str, body: str = "print('hello')\n", helper: Optional[str] = None) -> None:
        """build/<name>/main.py, optionally importing a sibling helpers.py"""
        if helper is not None:
            self.write(f"build/{name}/helpers.py", helper)
            body = f"import helpers\n\n{body}"
        self.write(f"build/{name}/main.py", body)


class FakeVersionControl(VersionControl):
    """
    History double backed by the working tree.

    Both revisions return the current on-disk content unless a path is listed
    in `changed` (previous revision differs) or `missing` (lookup fails).
    """

    def __init__(
        self,
        root: Path,
        commits: Iterable[str] = ("head", "prev"),
        changed: Iterable[str] = (),
        missing: Iterable[str] = (),
        fail: bool = False
    ):
        self.root = Path(root)
        self.commits = list(commits)
        self.changed = set(changed)
        self.missing = set(missing)
        self.fail = fail
        self.log_calls = 0
        self.show_calls: List[tuple] = []

    async def last_two_commits(self) -> List[str]:
        self.log_calls += 1
        if self.fail:
            raise VersionControlError("fatal: not a git repository")
        return self.commits[:2]

    async def show(self, revision: str, path: str) -> bytes:
        self.show_calls.append((revision, path))
        if path in self.missing:
            raise VersionControlError(f"fatal: path '{path}' does not exist in '{revision}'")
        try:
            data = (self.root / path).read_bytes()
        except OSError as e:
            raise VersionControlError(str(e)) from e
        if path in self.changed and revision == self.commits[1]:
            return data + b"\n# previous revision\n"
        return data


class FakeRegistryClient(RegistryClient):
    """In-memory registry: images appear once pushed"""

    def __init__(
        self,
        existing: Iterable[str] = (),
        build_events: Optional[List[Dict[str, Any]]] = None,
        push_events: Optional[List[Dict[str, Any]]] = None,
        lookup_error: Optional[Exception] = None,
        auth_error: Optional[Exception] = None
    ):
        self.existing = set(existing)
        self.build_events = build_events
        self.push_events = push_events
        self.lookup_error = lookup_error
        self.auth_error = auth_error

        self.auth_checks: List[RegistryAuth] = []
        self.lookups: List[str] = []
        self.built: List[str] = []
        self.contexts: List[bytes] = []
        self.pushed: List[str] = []
        self.closed = False

    async def check_auth(self, auth: RegistryAuth) -> Dict[str, Any]:
        self.auth_checks.append(auth)
        if self.auth_error:
            raise self.auth_error
        return {"Status": "Login Succeeded"}

    async def image_exists(self, reference: ImageReference, auth: RegistryAuth) -> bool:
        self.lookups.append(reference.tag)
        if self.lookup_error:
            raise self.lookup_error
        return reference.tag in self.existing

    async def build_image(self, context: bytes, tag: str):
        self.built.append(tag)
        self.contexts.append(context)
        events = self.build_events if self.build_events is not None else [
            {"stream": "Step 1/4 : FROM python:3.12-alpine\n"},
            {"stream": "Successfully built abc123\n"},
            {"aux": {"ID": "sha256:abc123"}},
        ]
        for event in events:
            yield event

    async def push_image(self, reference: ImageReference, auth: RegistryAuth):
        events = self.push_events if self.push_events is not None else [
            {"status": "Preparing", "id": "layer1"},
            {"status": "Pushing", "id": "layer1", "progressDetail": {"current": 512, "total": 1024}},
            {"status": "Pushed", "id": "layer1"},
            {"status": "Layer already exists", "id": "layer0"},
        ]
        for event in events:
            yield event
        self.pushed.append(reference.tag)
        self.existing.add(reference.tag)

    async def close(self) -> None:
        self.closed = True


class FakeClusterTransport(ClusterTransport):
    """Captures applied documents"""

    def __init__(self, stdout: str = "", stderr: str = "", returncode: int = 0):
        self.output = ApplyOutput(stdout=stdout, stderr=stderr, returncode=returncode)
        self.documents: List[str] = []
        self.paths: List[Path] = []

    async def apply(self, manifest_path: Path) -> ApplyOutput:
        self.paths.append(Path(manifest_path))
        self.documents.append(Path(manifest_path).read_text())
        return self.output


@pytest.fixture
def workspace(tmp_path):
    """Empty monorepo root"""
    return Workspace(tmp_path)


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def recorder(emitter):
    """Records every event emitted on `emitter`"""
    return EventRecorder(emitter)
