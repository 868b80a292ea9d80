from enum import Enum


class EventType(str, Enum):
    # build phase
    BUILDS = "builds"
    BUILD_DEPENDENCIES = "build.dependencies"
    LINT_FILE_ERROR = "lint.file.error"
    LINT_FILE = "lint.file"
    LINT_ERROR = "lint.error"
    LINT = "lint"
    DIFF_FILE = "diff.file"
    DIFF_ERROR = "diff.error"
    BUILD_SKIP = "build.skip"
    BUILD_READY = "build.ready"
    BUILD_ERROR = "build.error"
    BUILD = "build"
    BUILD_STATS = "build.stats"

    # deploy phase
    DEPLOYMENTS = "deployments"
    IMAGE_TAG = "deployment.image.tag"
    IMAGE_EXISTS = "deployment.image.exists"
    IMAGE_BUILD = "deployment.image.build"
    IMAGE_BUILD_COMPLETE = "deployment.image.build.complete"
    IMAGE_PUSH = "deployment.image.push"
    IMAGE_PUSHED = "deployment.image.pushed"
    DEPLOYMENT_DEPENDENCIES = "deployment.dependencies"
    DEPLOYMENT_READY = "deployment.ready"
    DEPLOYMENT_SKIP = "deployment.skip"
    DIFF_DEPENDENCY = "diff.dependency"
    DEPLOYMENT_MANIFEST = "deployment.manifest"
    DEPLOYMENT_OUTPUT = "deployment.output"
    DEPLOYMENT_ERROR = "deployment.error"
    DEPLOYMENT_STATS = "deployment.stats"


class PushStatus(str, Enum):
    """Normalized per-layer push status"""
    PUSHING = "pushing"
    PUSHED = "pushed"
    LAYER_EXISTS = "layer already exists"

    @classmethod
    def parse(cls, status):
        if not status:
            return None
        try:
            return cls(status.strip().lower())
        except ValueError:
            return None


class LintSeverity(int, Enum):
    OFF = 0
    WARNING = 1
    ERROR = 2
