from .enums import EventType, PushStatus, LintSeverity
from .events import Event, EventEmitter, EventRecorder
from .models import (
    BuildUnit,
    PackageDescriptor,
    ImageReference,
    RegistryAuth,
    LintMessage,
    LintReport,
    BundleReport,
    ApplyOutput,
    BuildReport,
    PublishResult,
    DeploymentReport,
)
from .exceptions import (
    ShipwrightError,
    InputReadError,
    LintError,
    LintEngineError,
    BundleError,
    DiffError,
    VersionControlError,
    InvalidAuthError,
    RegistryError,
    ImageBuildError,
    ImagePushError,
    ApplyError,
)

__all__ = [
    'EventType',
    'PushStatus',
    'LintSeverity',
    'Event',
    'EventEmitter',
    'EventRecorder',
    'BuildUnit',
    'PackageDescriptor',
    'ImageReference',
    'RegistryAuth',
    'LintMessage',
    'LintReport',
    'BundleReport',
    'ApplyOutput',
    'BuildReport',
    'PublishResult',
    'DeploymentReport',
    'ShipwrightError',
    'InputReadError',
    'LintError',
    'LintEngineError',
    'BundleError',
    'DiffError',
    'VersionControlError',
    'InvalidAuthError',
    'RegistryError',
    'ImageBuildError',
    'ImagePushError',
    'ApplyError',
]
