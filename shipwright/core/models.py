"""
Models for the build and deploy domain.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Dict, Optional, Any


@dataclass(frozen=True)
class BuildUnit:
    """One buildable entry point"""
    name: str
    entry: Path
    file: str  # entry path relative to cwd
    output_dir: Path

    @property
    def build(self) -> str:
        return str(self.entry)


@dataclass
class PackageDescriptor:
    """Descriptor written next to every built artifact"""
    name: str
    version: str
    deps: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackageDescriptor':
        """Create from dictionary"""
        return cls(
            name=data['name'],
            version=data['version'],
            deps=data.get('deps', '')
        )


@dataclass(frozen=True)
class ImageReference:
    """Fully qualified image tag for an artifact"""
    host: str
    repository: str
    name: str
    version: str

    @classmethod
    def from_registry(cls, registry: str, name: str, version: str) -> 'ImageReference':
        """
        Compose a reference from a registry string such as
        'my.registry.local:5000/team' and an artifact identity.
        """
        host, _, repository = registry.strip('/').partition('/')
        return cls(host=host, repository=repository, name=name, version=version)

    @property
    def image(self) -> str:
        """Reference without the tag"""
        parts = [self.host, self.repository, self.name]
        return "/".join(part for part in parts if part)

    @property
    def tag(self) -> str:
        return f"{self.image}:{self.version}"

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class RegistryAuth:
    """Credentials for one registry host"""
    username: str
    password: str
    serveraddress: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class LintMessage:
    """Single lint finding"""
    line: int
    column: int
    message: str
    rule: str
    severity: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LintReport:
    """Lint result for one file"""
    file: str
    messages: List[LintMessage] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == 2)

    @property
    def warning_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == 1)

    @property
    def errors(self) -> List[LintMessage]:
        return [m for m in self.messages if m.severity == 2]


@dataclass
class BundleReport:
    """Completion report returned by a bundler"""
    errors: List[str] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0
    hash: Optional[str] = None
    files: List[str] = field(default_factory=list)

    @property
    def duration_ms(self) -> int:
        return int((self.end_time - self.start_time) * 1000)

    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class ApplyOutput:
    """Result of a cluster apply call"""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class BuildReport:
    """Outcome of one build run"""
    success: bool = True
    units: List[str] = field(default_factory=list)
    built: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)


@dataclass
class PublishResult:
    """Outcome of publishing one artifact"""
    artifact: str
    file: str
    output_dir: str
    descriptor: PackageDescriptor
    reference: ImageReference
    pushed: bool = False


@dataclass
class DeploymentReport:
    """Outcome of one deploy run"""
    success: bool = True
    artifacts: List[str] = field(default_factory=list)
    deployed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    manifest: Optional[str] = None
    applied_fragments: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)
