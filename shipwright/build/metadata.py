"""
Manages the persisted fingerprint and package descriptor of each artifact.
"""
import json
from pathlib import Path
from typing import Optional, List
import logging

from ..core.models import PackageDescriptor
from ..utils.fileio import atomic_write


def read_fingerprint(path: Path) -> Optional[str]:
    """
    Read a persisted fingerprint sidecar.

    Returns:
        Digest string, or None if the file does not exist

    Raises:
        OSError: For any read failure other than a missing file
    """
    try:
        return Path(path).read_text().strip()
    except FileNotFoundError:
        return None


class ArtifactStore:
    """Reads and writes the per-output-directory state files"""

    def __init__(
        self,
        output_root: Path,
        fingerprint_file: str = "deps.sha256",
        descriptor_file: str = "package.json",
        artifact_name: str = "main.pyz"
    ):
        """
        Initialize artifact store.

        Args:
            output_root: Root of all unit output directories
            fingerprint_file: Name of the fingerprint sidecar
            descriptor_file: Name of the package descriptor
            artifact_name: Name of the bundled artifact
        """
        self.output_root = Path(output_root)
        self.fingerprint_file = fingerprint_file
        self.descriptor_file = descriptor_file
        self.artifact_name = artifact_name
        self.logger = logging.getLogger(__name__)

    def get_fingerprint_path(self, output_dir: Path) -> Path:
        """Get path to fingerprint file for an output directory"""
        return Path(output_dir) / self.fingerprint_file

    def get_descriptor_path(self, output_dir: Path) -> Path:
        """Get path to package descriptor for an output directory"""
        return Path(output_dir) / self.descriptor_file

    def get_artifact_path(self, output_dir: Path) -> Path:
        """Get path to bundled artifact for an output directory"""
        return Path(output_dir) / self.artifact_name

    def load_descriptor(self, output_dir: Path) -> Optional[PackageDescriptor]:
        """
        Load the package descriptor.

        Returns:
            PackageDescriptor or None if not found
        """
        descriptor_path = self.get_descriptor_path(output_dir)

        if not descriptor_path.exists():
            return None

        with open(descriptor_path, 'r') as f:
            data = json.load(f)

        return PackageDescriptor.from_dict(data)

    def save(self, output_dir: Path, descriptor: PackageDescriptor) -> None:
        """
        Persist descriptor and fingerprint for a freshly built artifact.

        The fingerprint is written last: a crash in between leaves the old
        fingerprint, which can only cause an extra rebuild, never a skip over
        a stale descriptor.
        """
        atomic_write(
            self.get_descriptor_path(output_dir),
            json.dumps(descriptor.to_dict(), separators=(',', ':'))
        )
        atomic_write(self.get_fingerprint_path(output_dir), descriptor.deps)

        self.logger.debug(
            f"Saved descriptor for {descriptor.name} (version {descriptor.version})"
        )

    def list_artifact_dirs(self) -> List[Path]:
        """
        List output directories that hold a descriptor and an artifact.

        Returns:
            Sorted list of absolute output directories
        """
        dirs = []

        if not self.output_root.exists():
            return dirs

        for descriptor_path in sorted(self.output_root.rglob(self.descriptor_file)):
            output_dir = descriptor_path.parent

            if self.get_artifact_path(output_dir).exists():
                dirs.append(output_dir)
            else:
                self.logger.warning(
                    f"Found descriptor without artifact: {descriptor_path}"
                )

        return dirs
