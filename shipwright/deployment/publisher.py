"""
Image publisher: turns a built artifact into a pushed container image.
"""
import io
import logging
import tarfile
from pathlib import Path
from typing import Any, Dict

from ..adapters.base import RegistryClient
from ..config.settings import ShipwrightConfig
from ..core.enums import EventType, PushStatus
from ..core.events import EventEmitter
from ..core.exceptions import ImageBuildError, ImagePushError
from ..core.models import ImageReference, PackageDescriptor, PublishResult, RegistryAuth


APP_DIR = "/usr/src/app"


def _stream_error(event: Dict[str, Any]) -> str:
    detail = event.get('errorDetail') or {}
    return event.get('error') or detail.get('message') or "unknown error"


class ImagePublisher:
    """
    Publishes one artifact at a time.
    The registry decides existence; only a not-found answer triggers a build and push.
    """

    def __init__(
        self,
        config: ShipwrightConfig,
        client: RegistryClient,
        emitter: EventEmitter
    ):
        self.config = config
        self.client = client
        self.emitter = emitter
        self.logger = logging.getLogger(__name__)

    def reference_for(self, descriptor: PackageDescriptor) -> ImageReference:
        return ImageReference.from_registry(self.config.registry, descriptor.name, descriptor.version)

    def dockerfile(self, descriptor: PackageDescriptor) -> str:
        artifact = self.config.artifact_name
        return "\n".join([
            f"FROM {self.config.base_image}",
            "",
            f'ENV APP_NAME="{descriptor.name}"',
            f'ENV APP_VERSION="{descriptor.version}"',
            "",
            f"COPY {artifact} {APP_DIR}/{artifact}",
            "",
            f'CMD ["python", "{APP_DIR}/{artifact}"]',
        ]) + "\n"

    def build_context(self, descriptor: PackageDescriptor, artifact_path: Path) -> bytes:
        """
        In-memory tar build context holding the Dockerfile and the artifact.
        Headers are normalized so the same inputs give the same bytes.
        """
        members = [
            ("Dockerfile", self.dockerfile(descriptor).encode('utf-8')),
            (self.config.artifact_name, Path(artifact_path).read_bytes()),
        ]

        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode='w') as archive:
            for name, data in members:
                info = tarfile.TarInfo(name=name)
                info.size = len(data)
                info.mtime = 0
                info.mode = 0o644
                info.uid = info.gid = 0
                info.uname = info.gname = ""
                archive.addfile(info, io.BytesIO(data))

        return buffer.getvalue()

    async def publish(
        self,
        descriptor: PackageDescriptor,
        artifact_path: Path,
        auth: RegistryAuth
    ) -> PublishResult:
        """
        Check the registry and build/push the image when it is missing.

        Args:
            descriptor: Package descriptor of the artifact
            artifact_path: Absolute path of the artifact file
            auth: Credentials for the configured registry

        Returns:
            PublishResult; pushed is True only when an image was built and pushed

        Raises:
            RegistryError: Existence check failed for a reason other than not-found
            ImageBuildError: The build stream reported an error
            ImagePushError: The push stream reported an error
        """
        artifact_path = Path(artifact_path)
        deployment = str(artifact_path)
        file = self.config.relative(artifact_path)
        reference = self.reference_for(descriptor)
        tag = reference.tag

        result = PublishResult(
            artifact=descriptor.name,
            file=file,
            output_dir=self.config.relative(artifact_path.parent),
            descriptor=descriptor,
            reference=reference
        )

        self.emitter.emit(EventType.IMAGE_TAG, deployment=deployment, file=file, tag=tag)

        if await self.client.image_exists(reference, auth):
            self.logger.info(f"Image already published: {tag}")
            self.emitter.emit(EventType.IMAGE_EXISTS, deployment=deployment, file=file, tag=tag)
            return result

        self.logger.info(f"Image not found, building: {tag}")
        context = self.build_context(descriptor, artifact_path)

        async for event in self.client.build_image(context, tag):
            if 'error' in event or 'errorDetail' in event:
                raise ImageBuildError(f"Image build for {tag} failed: {_stream_error(event)}")

            if event.get('stream'):
                self.emitter.emit(
                    EventType.IMAGE_BUILD, deployment=deployment, file=file, stdout=event['stream']
                )

            aux = event.get('aux')
            if isinstance(aux, dict) and aux.get('ID'):
                self.emitter.emit(
                    EventType.IMAGE_BUILD_COMPLETE, deployment=deployment, file=file, hash=aux['ID']
                )

        async for event in self.client.push_image(reference, auth):
            if 'error' in event or 'errorDetail' in event:
                raise ImagePushError(f"Image push for {tag} failed: {_stream_error(event)}")

            status = PushStatus.parse(event.get('status'))
            layer = event.get('id')

            if status == PushStatus.PUSHING:
                detail = event.get('progressDetail') or {}
                self.emitter.emit(
                    EventType.IMAGE_PUSH,
                    deployment=deployment,
                    file=file,
                    tag=tag,
                    layer=layer,
                    progress=100 if detail.get('current') else 0,
                    status=status.value
                )
            elif status in (PushStatus.PUSHED, PushStatus.LAYER_EXISTS):
                self.emitter.emit(
                    EventType.IMAGE_PUSHED,
                    deployment=deployment,
                    file=file,
                    tag=tag,
                    layer=layer,
                    status=status.value
                )

        self.logger.info(f"Pushed image: {tag}")
        result.pushed = True
        return result
