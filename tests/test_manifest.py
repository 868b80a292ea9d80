"""
Tests for manifest dirtiness, rewriting and apply.
"""

import pytest

from conftest import FakeClusterTransport, FakeVersionControl
from shipwright.build.change_detector import ChangeOracle
from shipwright.build.hasher import Fingerprinter
from shipwright.core.enums import EventType
from shipwright.core.exceptions import ApplyError
from shipwright.core.models import ImageReference, PackageDescriptor, PublishResult
from shipwright.deployment.manifest import (
    ManifestReconciler,
    TextualManifestRewriter,
    collapse_empty_documents,
)


A_MANIFEST = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: svc-a
spec:
  template:
    spec:
      containers:
        - image: dist/svc-a
"""

B_MANIFEST = """\
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: svc-b
spec:
  template:
    spec:
      containers:
        - image: dist/svc-b
"""


def publish_result(name, pushed):
    descriptor = PackageDescriptor(name=name, version="v1", deps="d")
    return PublishResult(
        artifact=name,
        file=f"dist/{name}/main.pyz",
        output_dir=f"dist/{name}",
        descriptor=descriptor,
        reference=ImageReference.from_registry("registry.local/team", name, "v1"),
        pushed=pushed
    )


@pytest.fixture
def manifests(workspace):
    workspace.write("deploy/svc-a.yaml", A_MANIFEST)
    workspace.write("deploy/nested/svc-b.yaml", B_MANIFEST)
    workspace.write("deploy/README.md", "dist/svc-a is documented here")
    return workspace


async def make_reconciler(workspace, emitter, transport=None, vcs=None, **config):
    vcs = vcs or FakeVersionControl(workspace.root)
    oracle = ChangeOracle(vcs, Fingerprinter(workspace.root), emitter)
    await oracle.resolve_revisions()
    return ManifestReconciler(
        workspace.config(**config), oracle, transport or FakeClusterTransport(), emitter
    )


class TestRewriter:

    def test_replaces_every_occurrence(self):
        rewriter = TextualManifestRewriter()

        result = rewriter.rewrite("a: dist/x\nb: dist/x\n", {"dist/x": "reg/x:1"})

        assert result == "a: reg/x:1\nb: reg/x:1\n"

    def test_longest_path_first(self):
        rewriter = TextualManifestRewriter()

        result = rewriter.rewrite(
            "image: dist/api\nimage: dist/api/v2\n",
            {"dist/api": "reg/api:1", "dist/api/v2": "reg/api-v2:2"}
        )

        assert result == "image: reg/api:1\nimage: reg/api-v2:2\n"

    def test_collapse_empty_documents(self):
        assert collapse_empty_documents("\n---\n---\nkind: A\n") == "\n---\nkind: A\n"
        assert collapse_empty_documents("---\n---\n---\nx") == "---\nx"


class TestDiscovery:

    @pytest.mark.asyncio
    async def test_only_yaml_sorted(self, manifests, emitter):
        reconciler = await make_reconciler(manifests, emitter)

        assert reconciler.fragments == ["deploy/nested/svc-b.yaml", "deploy/svc-a.yaml"]

    @pytest.mark.asyncio
    async def test_missing_deploy_dir(self, workspace, emitter):
        reconciler = await make_reconciler(workspace, emitter)

        assert reconciler.fragments == []
        assert await reconciler.reconcile() is None

    @pytest.mark.asyncio
    async def test_dependencies_by_containment(self, manifests, emitter, recorder):
        reconciler = await make_reconciler(manifests, emitter)

        reconciler.register(publish_result("svc-a", pushed=False))

        event = recorder.of(EventType.DEPLOYMENT_DEPENDENCIES)[0]
        assert event["dependencies"] == ["deploy/svc-a.yaml"]
        assert event["file"] == "dist/svc-a/main.pyz"


class TestDirtiness:

    @pytest.mark.asyncio
    async def test_pushed_artifact_marks_its_fragments(self, manifests, emitter, recorder):
        transport = FakeClusterTransport()
        reconciler = await make_reconciler(manifests, emitter, transport)

        assert reconciler.register(publish_result("svc-a", pushed=True)) is True
        assert reconciler.register(publish_result("svc-b", pushed=False)) is False

        document = await reconciler.reconcile()

        assert reconciler.dirty == {"deploy/svc-a.yaml"}
        assert document is not None
        assert transport.documents == [document]
        assert [e["file"] for e in recorder.of(EventType.DEPLOYMENT_READY)] == ["dist/svc-a/main.pyz"]
        assert [e["file"] for e in recorder.of(EventType.DEPLOYMENT_SKIP)] == ["dist/svc-b/main.pyz"]

    @pytest.mark.asyncio
    async def test_nothing_changed_applies_nothing(self, manifests, emitter, recorder):
        transport = FakeClusterTransport()
        reconciler = await make_reconciler(manifests, emitter, transport)

        reconciler.register(publish_result("svc-a", pushed=False))
        reconciler.register(publish_result("svc-b", pushed=False))

        assert await reconciler.reconcile() is None
        assert transport.documents == []
        assert recorder.of(EventType.DEPLOYMENT_MANIFEST) == []

        diffs = recorder.of(EventType.DIFF_DEPENDENCY)
        assert [e["dependency"] for e in diffs] == ["deploy/nested/svc-b.yaml", "deploy/svc-a.yaml"]
        assert not any(e["changed"] for e in diffs)

    @pytest.mark.asyncio
    async def test_fragment_changed_in_history(self, manifests, emitter):
        transport = FakeClusterTransport()
        vcs = FakeVersionControl(manifests.root, changed=["deploy/nested/svc-b.yaml"])
        reconciler = await make_reconciler(manifests, emitter, transport, vcs=vcs)

        reconciler.register(publish_result("svc-a", pushed=False))
        reconciler.register(publish_result("svc-b", pushed=False))

        assert await reconciler.reconcile() is not None
        assert reconciler.dirty == {"deploy/nested/svc-b.yaml"}

    @pytest.mark.asyncio
    async def test_unreadable_history_marks_dirty(self, manifests, emitter, recorder):
        vcs = FakeVersionControl(manifests.root, missing=["deploy/svc-a.yaml"])
        reconciler = await make_reconciler(manifests, emitter, vcs=vcs)

        await reconciler.collect_dirty()

        assert reconciler.dirty == {"deploy/svc-a.yaml"}
        assert recorder.of(EventType.DIFF_ERROR)[0]["file"] == "deploy/svc-a.yaml"

    @pytest.mark.asyncio
    async def test_force_marks_everything(self, manifests, emitter):
        reconciler = await make_reconciler(manifests, emitter, force=True)

        assert reconciler.register(publish_result("svc-a", pushed=False)) is True
        await reconciler.collect_dirty()

        assert reconciler.dirty == {"deploy/svc-a.yaml", "deploy/nested/svc-b.yaml"}


class TestApply:

    @pytest.mark.asyncio
    async def test_document_contains_all_fragments_rewritten(self, manifests, emitter, recorder):
        transport = FakeClusterTransport()
        reconciler = await make_reconciler(manifests, emitter, transport)
        reconciler.register(publish_result("svc-a", pushed=True))
        reconciler.register(publish_result("svc-b", pushed=False))

        document = await reconciler.reconcile()

        assert "image: registry.local/team/svc-a:v1" in document
        assert "image: registry.local/team/svc-b:v1" in document
        assert "dist/svc-" not in document
        assert "---\n---" not in document
        assert document.startswith("\n---\napiVersion: apps/v1")
        assert recorder.of(EventType.DEPLOYMENT_MANIFEST)[0]["manifest"] == document
        assert reconciler.applied == ["deploy/nested/svc-b.yaml", "deploy/svc-a.yaml"]

    @pytest.mark.asyncio
    async def test_stdout_lines_become_events(self, manifests, emitter, recorder):
        transport = FakeClusterTransport(
            stdout="deployment.apps/svc-a configured\n\ndeployment.apps/svc-b unchanged\n"
        )
        reconciler = await make_reconciler(manifests, emitter, transport, force=True)

        await reconciler.reconcile()

        assert [e["stdout"] for e in recorder.of(EventType.DEPLOYMENT_OUTPUT)] == [
            "deployment.apps/svc-a configured",
            "deployment.apps/svc-b unchanged",
        ]

    @pytest.mark.asyncio
    async def test_stderr_is_failure_even_with_zero_exit(self, manifests, emitter):
        transport = FakeClusterTransport(stdout="ok\n", stderr="Warning: resource is invalid\n")
        reconciler = await make_reconciler(manifests, emitter, transport, force=True)

        with pytest.raises(ApplyError, match="resource is invalid"):
            await reconciler.reconcile()

    @pytest.mark.asyncio
    async def test_temp_file_removed(self, manifests, emitter):
        transport = FakeClusterTransport()
        reconciler = await make_reconciler(manifests, emitter, transport, force=True)

        await reconciler.reconcile()

        assert transport.paths and not transport.paths[0].exists()
