import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass, field, fields, replace


@dataclass(frozen=True)
class ShipwrightConfig:
    """Immutable settings for one build or deploy invocation"""
    cwd: str = field(default_factory=os.getcwd)

    # layout
    source_dir: str = "build"
    output_dir: str = "dist"
    deploy_dir: str = "deploy"
    entry_name: str = "main.py"
    artifact_name: str = "main.pyz"
    source_suffix: str = ".py"
    manifest_pattern: str = "**/*.yaml"

    # collaborator configs (relative to cwd)
    bundle_config: str = "bundle.yaml"
    lint_config: str = ".lintrc.yaml"

    # persisted state
    fingerprint_file: str = "deps.sha256"
    descriptor_file: str = "package.json"
    hash_length: int = 10

    # run behaviour
    fail_fast: bool = False
    force: bool = False
    lock_timeout: int = 30

    # deploy
    registry: str = "docker.io"
    docker_auth: Tuple[str, ...] = ()
    docker_host: Optional[str] = None
    insecure_registry: bool = False
    base_image: str = "python:3.12-alpine"
    kubectl: str = "kubectl"

    def __post_init__(self):
        # YAML hands us lists
        if not isinstance(self.docker_auth, tuple):
            object.__setattr__(self, 'docker_auth', tuple(self.docker_auth or ()))

    @property
    def root(self) -> Path:
        return Path(self.cwd).resolve()

    @property
    def source_root(self) -> Path:
        return self.root / self.source_dir

    @property
    def output_root(self) -> Path:
        return self.root / self.output_dir

    @property
    def deploy_root(self) -> Path:
        return self.root / self.deploy_dir

    @property
    def bundle_config_path(self) -> Path:
        return self.root / self.bundle_config

    @property
    def lint_config_path(self) -> Path:
        return self.root / self.lint_config

    def relative(self, path) -> str:
        """Path relative to cwd, posix separators"""
        path = Path(path)
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def with_overrides(self, **overrides: Any) -> 'ShipwrightConfig':
        """
        Return a copy with the given values applied.
        None values are ignored so unset CLI options keep file/default values.
        """
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ShipwrightConfig':
        """Create ShipwrightConfig from dictionary"""
        data = {key: value for key, value in (data or {}).items() if value is not None}
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ShipwrightConfig':
        """Load ShipwrightConfig from YAML file"""
        path = Path(yaml_path)
        if not path.exists():
            # Return default config if file doesn't exist
            return cls.default()

        with open(path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def default(cls) -> 'ShipwrightConfig':
        """Return default configuration"""
        return cls()


SEARCH_PATHS = (
    Path("./shipwright.yaml"),
    Path("./config/shipwright.yaml"),
    Path("/etc/shipwright/shipwright.yaml"),
)


def load_config(config_path: Optional[str] = None, **overrides: Any) -> ShipwrightConfig:
    """
    Load configuration from YAML and apply explicit overrides.
    If no path provided, looks for shipwright.yaml in standard locations.
    """
    if config_path:
        config = ShipwrightConfig.from_yaml(config_path)
    else:
        config = ShipwrightConfig.default()
        for path in SEARCH_PATHS:
            if path.exists():
                config = ShipwrightConfig.from_yaml(str(path))
                break

    return config.with_overrides(**overrides)


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Read an optional collaborator config; missing file means empty config"""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data
