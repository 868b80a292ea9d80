"""
Canonical content hashing for build inputs.
Hashes raw bytes only, never file metadata, so digests match across checkouts.
"""
import hashlib
import json
from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging

from ..core.exceptions import InputReadError


def hash_bytes(data: bytes, length: Optional[int] = None) -> str:
    """SHA256 hex digest, optionally truncated to `length` characters"""
    digest = hashlib.sha256(data).hexdigest()
    return digest[:length] if length else digest


class Fingerprinter:
    """Computes per-file and per-unit digests"""

    def __init__(self, root: Optional[Path] = None, hash_length: int = 10):
        """
        Initialize fingerprinter.

        Args:
            root: Base directory for relative paths (defaults to the process cwd)
            hash_length: Number of hex characters kept from each digest
        """
        self.root = Path(root) if root else None
        self.hash_length = hash_length
        self.logger = logging.getLogger(__name__)

    def _resolve(self, file_path: Union[str, Path]) -> Path:
        path = Path(file_path)
        if self.root is not None and not path.is_absolute():
            return self.root / path
        return path

    def compute_file_hash(self, file_path: Union[str, Path]) -> str:
        """
        Compute truncated hash of raw file content.

        Args:
            file_path: Path to file

        Returns:
            Truncated SHA256 hex string

        Raises:
            InputReadError: If the file cannot be read
        """
        path = self._resolve(file_path)
        try:
            with open(path, 'rb') as f:
                content = f.read()
        except OSError as e:
            self.logger.error(f"Failed to compute file hash for {file_path}: {e}")
            raise InputReadError(str(file_path), e) from e

        return hash_bytes(content, self.hash_length)

    def compute_fingerprint(self, file_paths: Iterable[Union[str, Path]]) -> str:
        """
        Compute the unit digest over a set of input files.
        Paths are sorted first so enumeration order never changes the result.

        Args:
            file_paths: Input file paths

        Returns:
            Truncated SHA256 hex string of the JSON list of per-file hashes
        """
        ordered = sorted({str(p) for p in file_paths})
        file_hashes: List[str] = [self.compute_file_hash(p) for p in ordered]

        canonical_json = json.dumps(file_hashes, separators=(',', ':'))
        return hash_bytes(canonical_json.encode('utf-8'), self.hash_length)

    def compute_artifact_version(self, artifact_path: Union[str, Path]) -> str:
        """Version string for an emitted artifact: hash of its bytes"""
        return self.compute_file_hash(artifact_path)
