"""
Error taxonomy for build and deploy runs.

Per-unit errors are converted into events by the phase that owns the unit;
only InvalidAuthError and lock timeouts escape a phase entry point.
"""
from typing import Any, Dict, List, Optional


class ShipwrightError(Exception):
    """Base class for all orchestrator errors"""


class InputReadError(ShipwrightError):
    """A declared input file could not be read for hashing"""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot read input file {path}: {cause}")


class LintError(ShipwrightError):
    """Blocking (severity 2) lint findings"""

    def __init__(self, build: str, errors: List[Dict[str, Any]]):
        self.build = build
        self.errors = errors
        super().__init__(f"{len(errors)} lint error(s) in {build}")


class LintEngineError(ShipwrightError):
    """The lint engine itself could not run"""


class BundleError(ShipwrightError):
    """The bundler reported errors"""

    def __init__(self, build: str, errors: List[str]):
        self.build = build
        self.errors = errors
        super().__init__(f"Bundling {build} failed: {'; '.join(errors)}")


class DiffError(ShipwrightError):
    """History lookup failed; reported, never raised out of a phase"""

    def __init__(self, file: Optional[str], cause: BaseException):
        self.file = file
        self.cause = cause
        target = file if file else "history"
        super().__init__(f"Diff failed for {target}: {cause}")


class VersionControlError(ShipwrightError):
    """A version-control command failed"""


class InvalidAuthError(ShipwrightError):
    """No usable credentials for a registry host"""


class RegistryError(ShipwrightError):
    """Registry request failed for a reason other than not-found"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class ImageBuildError(ShipwrightError):
    """The container build stream reported an error"""


class ImagePushError(ShipwrightError):
    """The container push stream reported an error"""


class ApplyError(ShipwrightError):
    """The cluster apply transport wrote to its error stream"""
