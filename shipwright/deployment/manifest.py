"""
Manifest reconciliation: decide which fragments are dirty, rewrite image
placeholders and apply the combined document.
"""
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Set

from ..adapters.base import ClusterTransport
from ..build.change_detector import ChangeOracle
from ..config.settings import ShipwrightConfig
from ..core.enums import EventType
from ..core.events import EventEmitter
from ..core.exceptions import ApplyError
from ..core.models import PublishResult


DOCUMENT_SEPARATOR = "\n---\n"
EMPTY_DOCUMENT = "---\n---"


class ManifestRewriter(ABC):
    """Replaces artifact path placeholders with image references"""

    @abstractmethod
    def rewrite(self, document: str, replacements: Dict[str, str]) -> str:
        """
        Args:
            document: Concatenated manifest text
            replacements: Output-directory path -> image reference

        Returns:
            Rewritten document
        """
        pass


class TextualManifestRewriter(ManifestRewriter):
    """
    Plain substring replacement of every occurrence.
    Longer paths go first so `dist/api/v2` is not clobbered by `dist/api`.
    """

    def rewrite(self, document: str, replacements: Dict[str, str]) -> str:
        for path in sorted(replacements, key=len, reverse=True):
            document = document.replace(path, replacements[path])
        return document


def collapse_empty_documents(document: str) -> str:
    while EMPTY_DOCUMENT in document:
        document = document.replace(EMPTY_DOCUMENT, "---")
    return document


class ManifestReconciler:
    """
    Collects manifest fragments for one deploy run.

    Call register() once per published artifact, then reconcile() once.
    """

    def __init__(
        self,
        config: ShipwrightConfig,
        oracle: ChangeOracle,
        transport: ClusterTransport,
        emitter: EventEmitter,
        rewriter: Optional[ManifestRewriter] = None
    ):
        self.config = config
        self.oracle = oracle
        self.transport = transport
        self.emitter = emitter
        self.rewriter = rewriter or TextualManifestRewriter()
        self.logger = logging.getLogger(__name__)

        self._contents: Optional[Dict[str, str]] = None
        self.replacements: Dict[str, str] = {}
        self.dirty: Set[str] = set()
        self.applied: List[str] = []

    @property
    def fragments(self) -> List[str]:
        return list(self.load().keys())

    def load(self) -> Dict[str, str]:
        if self._contents is None:
            self._contents = {}
            for fragment in self.discover_fragments():
                self._contents[fragment] = (self.config.root / fragment).read_text(encoding='utf-8')
        return self._contents

    def discover_fragments(self) -> List[str]:
        """
        Find manifest files under the deploy directory.

        Returns:
            Sorted cwd-relative paths
        """
        deploy_root = self.config.deploy_root
        if not deploy_root.exists():
            self.logger.info(f"No manifest directory at {deploy_root}")
            return []

        fragments = sorted(
            self.config.relative(path)
            for path in deploy_root.glob(self.config.manifest_pattern)
            if path.is_file()
        )
        self.logger.debug(f"Found {len(fragments)} manifest fragments")
        return fragments

    def dependencies_of(self, output_dir: str) -> List[str]:
        """Fragments whose text contains the artifact's output directory path"""
        return [
            fragment for fragment, content in self.load().items()
            if output_dir in content
        ]

    def register(self, result: PublishResult) -> bool:
        """
        Record a published artifact.

        Returns:
            True if the artifact's fragments joined the dirty set
        """
        deployment = str(self.config.root / result.file)
        dependencies = self.dependencies_of(result.output_dir)
        self.replacements[result.output_dir] = result.reference.tag

        self.emitter.emit(
            EventType.DEPLOYMENT_DEPENDENCIES,
            deployment=deployment,
            dependencies=dependencies,
            file=result.file
        )

        if result.pushed or self.config.force:
            self.dirty.update(dependencies)
            self.emitter.emit(EventType.DEPLOYMENT_READY, deployment=deployment, file=result.file)
            return True

        self.emitter.emit(EventType.DEPLOYMENT_SKIP, deployment=deployment, file=result.file)
        return False

    async def collect_dirty(self) -> Set[str]:
        """Add fragments that changed in history (or all of them when forced)"""
        fragments = self.fragments

        if self.config.force:
            self.dirty.update(fragments)
        else:
            self.dirty.update(await self.oracle.changed_files(fragments, event=EventType.DIFF_DEPENDENCY))

        return self.dirty

    def render(self) -> str:
        """Concatenate every fragment and substitute image references"""
        document = "".join(
            f"{DOCUMENT_SEPARATOR}{content}" for content in self.load().values()
        )
        document = self.rewriter.rewrite(document, self.replacements)
        return collapse_empty_documents(document)

    async def reconcile(self) -> Optional[str]:
        """
        Apply the combined manifest if anything is dirty.

        Returns:
            The applied document, or None when nothing was dirty

        Raises:
            ApplyError: If the cluster transport reports an error
        """
        dirty = await self.collect_dirty()

        if not dirty:
            self.logger.info("No dirty manifest fragments, nothing to apply")
            return None

        self.logger.info(f"{len(dirty)} dirty manifest fragment(s): {', '.join(sorted(dirty))}")

        document = self.render()
        self.emitter.emit(EventType.DEPLOYMENT_MANIFEST, manifest=document)

        await self.apply(document)
        self.applied = self.fragments
        return document

    async def apply(self, document: str) -> None:
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.yaml', prefix='shipwright-', delete=False
        ) as handle:
            handle.write(document)
            manifest_path = handle.name

        try:
            output = await self.transport.apply(Path(manifest_path))
        finally:
            os.unlink(manifest_path)

        if output.stderr.strip():
            raise ApplyError(output.stderr.strip())
        if output.returncode != 0:
            raise ApplyError(f"Apply exited with status {output.returncode}")

        for line in output.stdout.strip().splitlines():
            line = line.strip()
            if line:
                self.emitter.emit(EventType.DEPLOYMENT_OUTPUT, stdout=line)
