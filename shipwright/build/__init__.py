"""
Build phase: change detection and bundling of build units.
"""

from .hasher import Fingerprinter, hash_bytes
from .scanner import BuildScanner
from .change_detector import ChangeOracle, RevisionPair
from .lock import RunLock
from .metadata import ArtifactStore
from .pipeline import BuildPipeline, UnitOutcome

__all__ = [
    'Fingerprinter',
    'hash_bytes',
    'BuildScanner',
    'ChangeOracle',
    'RevisionPair',
    'RunLock',
    'ArtifactStore',
    'BuildPipeline',
    'UnitOutcome',
]
