"""
Shipwright - change-aware build and deploy orchestration for service monorepos

Main modules:
- core: Events, models and the error taxonomy
- config: Run configuration
- adapters: Interfaces to external tools and their default implementations
- build: Fingerprinting, change detection and the build pipeline
- deployment: Image publishing and manifest reconciliation
"""

from .config.settings import ShipwrightConfig, load_config
from .core.enums import EventType
from .core.events import Event, EventEmitter, EventRecorder
from .core.models import BuildReport, DeploymentReport
from .build.pipeline import BuildPipeline
from .deployment.service import DeploymentService
from .orchestrator import Shipwright

__version__ = "1.0.0"
__all__ = [
    'ShipwrightConfig',
    'load_config',
    'EventType',
    'Event',
    'EventEmitter',
    'EventRecorder',
    'BuildReport',
    'DeploymentReport',
    'BuildPipeline',
    'DeploymentService',
    'Shipwright',
]
