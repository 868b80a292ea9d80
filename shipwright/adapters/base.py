from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from ..core.models import ApplyOutput, BundleReport, ImageReference, LintReport, RegistryAuth


class DependencyExtractor(ABC):
    """
    Resolves the transitive file dependency graph of an entry point.
    """

    @abstractmethod
    def extract(self, entry: Path, bundle_config_path: Optional[Path] = None) -> Dict[str, List[str]]:
        """
        Build the dependency graph of `entry`.

        Args:
            entry: Absolute path to the entry file
            bundle_config_path: Bundler configuration the resolver should honour

        Returns:
            Mapping of absolute file path to the absolute paths it depends on.
            The entry itself is always a key.
        """
        pass


class LintEngine(ABC):
    """
    Static analysis over a single file's content.
    Severity 2 findings are blocking.
    """

    @abstractmethod
    def lint(self, content: str, filename: str, config: Dict[str, Any]) -> LintReport:
        """
        Lint one file.

        Args:
            content: File text
            filename: Path reported in findings
            config: Engine configuration

        Returns:
            LintReport with severity-tagged messages
        """
        pass


class Bundler(ABC):
    """
    Turns an entry point and its dependencies into a single artifact.
    """

    @abstractmethod
    async def run(self, config: Dict[str, Any]) -> BundleReport:
        """
        Bundle according to a merged configuration containing at least
        `entry` and `output: {path, filename}`.

        Returns:
            BundleReport; a non-empty error list means failure
        """
        pass


class VersionControl(ABC):
    """
    Read-only history access. Every failure raises VersionControlError.
    """

    @abstractmethod
    async def last_two_commits(self) -> List[str]:
        """Most recent commit hashes reachable from the working tree, newest first"""
        pass

    @abstractmethod
    async def show(self, revision: str, path: str) -> bytes:
        """Blob content of a cwd-relative path at a revision"""
        pass


class RegistryClient(ABC):
    """
    Container build and registry transport.
    """

    @abstractmethod
    async def check_auth(self, auth: RegistryAuth) -> Dict[str, Any]:
        """Validate credentials against the registry"""
        pass

    @abstractmethod
    async def image_exists(self, reference: ImageReference, auth: RegistryAuth) -> bool:
        """
        Existence check.

        Returns:
            False only for a not-found answer; other failures raise RegistryError
        """
        pass

    @abstractmethod
    def build_image(self, context: bytes, tag: str) -> AsyncIterator[Dict[str, Any]]:
        """Build from a tar context, yielding `{stream?, aux?, error?}` events"""
        pass

    @abstractmethod
    def push_image(self, reference: ImageReference, auth: RegistryAuth) -> AsyncIterator[Dict[str, Any]]:
        """Push a tag, yielding `{id, status, progressDetail, error?}` events"""
        pass

    async def close(self) -> None:
        """Release transport resources"""
        pass


class ClusterTransport(ABC):
    """
    Applies a manifest document to a cluster.
    """

    @abstractmethod
    async def apply(self, manifest_path: Path) -> ApplyOutput:
        """
        Apply the document at `manifest_path`.
        Callers treat any stderr output as failure regardless of return code.
        """
        pass
