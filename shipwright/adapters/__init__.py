"""
Boundaries to external tools, plus the default implementations.
"""

from .base import (
    DependencyExtractor,
    LintEngine,
    Bundler,
    VersionControl,
    RegistryClient,
    ClusterTransport,
)
from .import_graph import ImportGraphExtractor
from .linter import Flake8Linter
from .bundler import ZipappBundler
from .git_client import GitClient
from .docker_client import DockerEngineClient
from .kubectl import KubectlTransport

__all__ = [
    'DependencyExtractor',
    'LintEngine',
    'Bundler',
    'VersionControl',
    'RegistryClient',
    'ClusterTransport',
    'ImportGraphExtractor',
    'Flake8Linter',
    'ZipappBundler',
    'GitClient',
    'DockerEngineClient',
    'KubectlTransport',
]
