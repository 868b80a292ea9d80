"""
Deployment service: publish built artifacts and reconcile cluster manifests.
"""
import logging
from pathlib import Path
from typing import Optional

from ..adapters.base import ClusterTransport, RegistryClient, VersionControl
from ..build.change_detector import ChangeOracle
from ..build.hasher import Fingerprinter
from ..build.lock import RunLock
from ..build.metadata import ArtifactStore
from ..config.settings import ShipwrightConfig
from ..core.enums import EventType
from ..core.events import EventEmitter
from ..core.exceptions import ShipwrightError
from ..core.models import DeploymentReport, PublishResult, RegistryAuth
from .credentials import parse_docker_auth, resolve_auth
from .manifest import ManifestReconciler, ManifestRewriter
from .publisher import ImagePublisher


class DeploymentService:
    """
    Service for deploying built artifacts.
    Handles image publishing and manifest application.
    """

    def __init__(
        self,
        config: ShipwrightConfig,
        emitter: EventEmitter,
        client: RegistryClient,
        transport: ClusterTransport,
        vcs: VersionControl,
        store: Optional[ArtifactStore] = None,
        lock_manager: Optional[RunLock] = None,
        rewriter: Optional[ManifestRewriter] = None
    ):
        """
        Initialize deployment service.

        Args:
            config: Run configuration
            emitter: Event channel
            client: Registry/container transport
            transport: Cluster apply transport
            vcs: Version-control client for the manifest history signal
            store: Defaults to one rooted at config.output_root
            lock_manager: Defaults to a lock on config.output_root
            rewriter: Manifest rewriter (textual replacement by default)
        """
        self.config = config
        self.emitter = emitter
        self.client = client
        self.transport = transport
        self.vcs = vcs
        self.rewriter = rewriter

        self.store = store or ArtifactStore(
            config.output_root,
            fingerprint_file=config.fingerprint_file,
            descriptor_file=config.descriptor_file,
            artifact_name=config.artifact_name
        )
        self.lock_manager = lock_manager or RunLock(config.output_root, config.lock_timeout)
        self.publisher = ImagePublisher(config, client, emitter)
        self.logger = logging.getLogger(__name__)

    async def deploy(self) -> DeploymentReport:
        """
        Publish every artifact and apply the manifests that need it.

        Report lists hold cwd-relative artifact paths.

        Raises:
            InvalidAuthError: If the configured registry has no credentials
            TimeoutError: If another run holds the lock
        """
        self.logger.info("Starting deployment...")

        async with self.lock_manager:
            return await self._deploy()

    async def _deploy(self) -> DeploymentReport:
        artifact_dirs = self.store.list_artifact_dirs()
        artifact_paths = [self.store.get_artifact_path(d) for d in artifact_dirs]

        report = DeploymentReport(artifacts=[self.config.relative(p) for p in artifact_paths])
        self.emitter.emit(EventType.DEPLOYMENTS, deployments=[str(p) for p in artifact_paths])

        oracle = ChangeOracle(
            self.vcs, Fingerprinter(self.config.root, self.config.hash_length), self.emitter
        )
        reconciler = ManifestReconciler(
            self.config, oracle, self.transport, self.emitter, rewriter=self.rewriter
        )

        auth: Optional[RegistryAuth] = None
        if artifact_dirs:
            # credentials are settled before the first network call
            auth = resolve_auth(parse_docker_auth(self.config.docker_auth), self.config.registry)

            try:
                await self.client.check_auth(auth)
            except Exception as e:
                self.logger.error(f"Registry login failed: {e}", exc_info=not isinstance(e, ShipwrightError))
                self.emitter.emit(EventType.DEPLOYMENT_ERROR, deployment=None, file=None, errors=[e])
                report.success = False
                return report

        if not self.config.force:
            await oracle.resolve_revisions()

        try:
            reconciler.load()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Cannot read manifest fragments: {e}")
            self.emitter.emit(EventType.DEPLOYMENT_ERROR, deployment=None, file=None, errors=[e])
            report.success = False
            return report

        for artifact_dir, artifact_path in zip(artifact_dirs, artifact_paths):
            file = self.config.relative(artifact_path)
            result = await self._publish(artifact_dir, artifact_path, auth)

            if result is None:
                report.failed.append(file)
                report.success = False

                if self.config.fail_fast:
                    self.logger.error(f"Deployment aborted at {file}")
                    return report
                continue

            if reconciler.register(result):
                report.deployed.append(file)
            else:
                report.skipped.append(file)

        if report.failed:
            self.logger.error(
                f"Not applying manifests: {len(report.failed)} artifact(s) failed to publish"
            )
        else:
            try:
                report.manifest = await reconciler.reconcile()
            except (ShipwrightError, OSError) as e:
                self.logger.error(f"Manifest apply failed: {e}")
                self.emitter.emit(EventType.DEPLOYMENT_ERROR, deployment=None, file=None, errors=[e])
                report.success = False
                return report

            if report.manifest is None:
                report.skipped = list(report.artifacts)
                report.deployed = []
            else:
                report.applied_fragments = list(reconciler.applied)

        self.emitter.emit(
            EventType.DEPLOYMENT_STATS,
            files=[str(p) for p in artifact_paths],
            deployed=list(report.deployed),
            skipped=list(report.skipped),
            failed=list(report.failed)
        )

        self.logger.info(
            f"Deployment complete: deployed={len(report.deployed)}, "
            f"skipped={len(report.skipped)}, failed={len(report.failed)}"
        )
        return report

    async def _publish(
        self,
        artifact_dir: Path,
        artifact_path: Path,
        auth: RegistryAuth
    ) -> Optional[PublishResult]:
        """Publish one artifact; failures become deployment.error events"""
        file = self.config.relative(artifact_path)

        try:
            descriptor = self.store.load_descriptor(artifact_dir)
            if descriptor is None:
                raise FileNotFoundError(f"Package descriptor missing for {file}")
            return await self.publisher.publish(descriptor, artifact_path, auth)
        except Exception as e:
            self.logger.error(
                f"Deployment failed for {file}: {e}",
                exc_info=not isinstance(e, ShipwrightError)
            )
            self.emitter.emit(
                EventType.DEPLOYMENT_ERROR, deployment=str(artifact_path), file=file, errors=[e]
            )
            return None
