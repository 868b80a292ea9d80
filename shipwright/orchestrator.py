"""
Facade wiring the build and deploy phases to their default adapters.
"""
import logging
from typing import Optional

from .adapters import (
    Bundler,
    ClusterTransport,
    DependencyExtractor,
    DockerEngineClient,
    GitClient,
    ImportGraphExtractor,
    KubectlTransport,
    LintEngine,
    RegistryClient,
    Flake8Linter,
    VersionControl,
    ZipappBundler,
)
from .build.pipeline import BuildPipeline
from .config.settings import ShipwrightConfig
from .core.events import EventEmitter, Listener
from .core.models import BuildReport, DeploymentReport
from .deployment.manifest import ManifestRewriter
from .deployment.service import DeploymentService


class Shipwright:
    """
    Entry point for headless use:

        shipwright = Shipwright(load_config(cwd="/repo"))
        shipwright.on(EventType.BUILD, print)
        report = await shipwright.build()

    Any collaborator left as None gets the default adapter.
    """

    def __init__(
        self,
        config: Optional[ShipwrightConfig] = None,
        emitter: Optional[EventEmitter] = None,
        extractor: Optional[DependencyExtractor] = None,
        linter: Optional[LintEngine] = None,
        bundler: Optional[Bundler] = None,
        vcs: Optional[VersionControl] = None,
        registry: Optional[RegistryClient] = None,
        transport: Optional[ClusterTransport] = None,
        rewriter: Optional[ManifestRewriter] = None
    ):
        self.config = config or ShipwrightConfig.default()
        self.emitter = emitter or EventEmitter()
        self.extractor = extractor or ImportGraphExtractor()
        self.linter = linter or Flake8Linter()
        self.bundler = bundler or ZipappBundler()
        self.vcs = vcs or GitClient(self.config.root)
        self.registry = registry
        self.transport = transport or KubectlTransport(self.config.kubectl)
        self.rewriter = rewriter
        self.logger = logging.getLogger(__name__)

    def on(self, event_type, listener: Listener) -> Listener:
        return self.emitter.on(event_type, listener)

    def on_any(self, listener: Listener) -> Listener:
        return self.emitter.on_any(listener)

    async def build(self) -> BuildReport:
        pipeline = BuildPipeline(
            self.config,
            self.emitter,
            extractor=self.extractor,
            linter=self.linter,
            bundler=self.bundler,
            vcs=self.vcs
        )
        return await pipeline.run()

    async def deploy(self) -> DeploymentReport:
        owns_registry = self.registry is None
        registry = self.registry or DockerEngineClient(
            docker_host=self.config.docker_host,
            insecure=self.config.insecure_registry
        )

        service = DeploymentService(
            self.config,
            self.emitter,
            client=registry,
            transport=self.transport,
            vcs=self.vcs,
            rewriter=self.rewriter
        )

        try:
            return await service.deploy()
        finally:
            if owns_registry:
                await registry.close()
