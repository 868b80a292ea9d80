"""
Deploy phase: image publishing and manifest reconciliation for built artifacts.
"""

from .credentials import parse_docker_auth, resolve_auth, registry_host
from .publisher import ImagePublisher
from .manifest import ManifestRewriter, TextualManifestRewriter, ManifestReconciler
from .service import DeploymentService

__all__ = [
    'parse_docker_auth',
    'resolve_auth',
    'registry_host',
    'ImagePublisher',
    'ManifestRewriter',
    'TextualManifestRewriter',
    'ManifestReconciler',
    'DeploymentService',
]
