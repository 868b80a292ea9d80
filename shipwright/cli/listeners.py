"""
Event listeners that turn run events into log lines.
"""
import logging

from ..core.enums import EventType
from ..core.events import EventEmitter


logger = logging.getLogger("shipwright")


def _file_suffix(file) -> str:
    return f" on file {file}" if file else ""


def attach_build_listeners(emitter: EventEmitter) -> None:
    """Log every build-phase event"""

    @emitter.on(EventType.BUILDS)
    def on_builds(event):
        logger.info(f"Found {len(event['builds'])} build targets")

    @emitter.on(EventType.BUILD_DEPENDENCIES)
    def on_dependencies(event):
        logger.debug(f"Found {len(event['dependencies'])} dependencies for file {event['file']}")

    @emitter.on(EventType.LINT_FILE_ERROR)
    def on_lint_file_error(event):
        for error in event['errors']:
            logger.error(
                f"Lint error on file {event['file']} at line {error['line']}:{error['column']}. "
                f"rule={error['rule']} error={error['message']}"
            )

    @emitter.on(EventType.LINT_FILE)
    def on_lint_file(event):
        logger.debug(f"File {event['file']} linted with no errors")

    @emitter.on(EventType.LINT_ERROR)
    def on_lint_error(event):
        logger.error(f"Linter finished with {len(event['errors'])} errors")

    @emitter.on(EventType.LINT)
    def on_lint(event):
        logger.debug(
            f"Linter for {event['file']} finished on {len(event['dependencies'])} dependencies"
        )

    @emitter.on(EventType.DIFF_FILE)
    def on_diff_file(event):
        logger.debug(
            f"Diff computed on file {event['file']}. changed={event['changed']} "
            f"currentHash={event['current_hash']} previousHash={event['previous_hash']}"
        )

    @emitter.on(EventType.BUILD)
    def on_build(event):
        stats = event['stats']
        logger.info(
            f"Build for {event['file']} completed in {stats.duration_ms}ms. "
            f"hash={event['hash']} bundleHash={stats.hash} modules={len(stats.files)}"
        )

    @emitter.on(EventType.BUILD_ERROR)
    def on_build_error(event):
        for error in event['errors']:
            logger.error(f"Build error on file {event['file']}. error={error}")

    @emitter.on(EventType.BUILD_READY)
    def on_build_ready(event):
        logger.info(f"Build for {event['file']} ready")

    @emitter.on(EventType.BUILD_SKIP)
    def on_build_skip(event):
        logger.info(f"Build skipped for {event['file']}")

    @emitter.on(EventType.BUILD_STATS)
    def on_build_stats(event):
        total = len(event['files'])
        if event['built']:
            logger.info(f"Builds completed for {len(event['built'])} of {total} files")
        if event['skipped']:
            logger.warning(f"Skipped {len(event['skipped'])} of {total} files")
        if event['failed']:
            logger.error(f"Failed {len(event['failed'])} of {total} files")


def attach_deploy_listeners(emitter: EventEmitter) -> None:
    """Log every deploy-phase event"""

    @emitter.on(EventType.DEPLOYMENTS)
    def on_deployments(event):
        logger.info(f"Found {len(event['deployments'])} deployment targets")

    @emitter.on(EventType.DIFF_DEPENDENCY)
    def on_diff_dependency(event):
        logger.debug(
            f"Diff computed on dependency {event['dependency']}. changed={event['changed']} "
            f"currentHash={event['current_hash']} previousHash={event['previous_hash']}"
        )

    @emitter.on(EventType.DEPLOYMENT_DEPENDENCIES)
    def on_dependencies(event):
        logger.debug(f"Found {len(event['dependencies'])} dependencies for file {event['file']}")

    @emitter.on(EventType.IMAGE_TAG)
    def on_image_tag(event):
        logger.debug(f"Got image tag for {event['file']} image build. tag={event['tag']}")

    @emitter.on(EventType.IMAGE_EXISTS)
    def on_image_exists(event):
        logger.info(f"Found existing image for {event['file']}. tag={event['tag']}")

    @emitter.on(EventType.IMAGE_BUILD)
    def on_image_build(event):
        output = str(event['stdout']).strip()
        if output:
            logger.debug(f"Building image for {event['file']}: {output}")

    @emitter.on(EventType.IMAGE_BUILD_COMPLETE)
    def on_image_build_complete(event):
        logger.debug(f"Completed image build for {event['file']}. hash={event['hash']}")

    @emitter.on(EventType.IMAGE_PUSH)
    def on_image_push(event):
        logger.debug(
            f"Pushing image layer for {event['file']}. tag={event['tag']} "
            f"layer={event['layer']} progress={event['progress']}"
        )

    @emitter.on(EventType.IMAGE_PUSHED)
    def on_image_pushed(event):
        logger.debug(f"Completed image layer push for {event['file']}. layer={event['layer']}")

    @emitter.on(EventType.DEPLOYMENT_SKIP)
    def on_deployment_skip(event):
        logger.info(f"Deployment skipped for {event['file']}")

    @emitter.on(EventType.DEPLOYMENT_READY)
    def on_deployment_ready(event):
        logger.info(f"Deployment for {event['file']} ready")

    @emitter.on(EventType.DEPLOYMENT_OUTPUT)
    def on_deployment_output(event):
        logger.info(event['stdout'])

    @emitter.on(EventType.DEPLOYMENT_ERROR)
    def on_deployment_error(event):
        for error in event['errors']:
            logger.error(f"Deployment error{_file_suffix(event['file'])}. error={error}")

    @emitter.on(EventType.DEPLOYMENT_MANIFEST)
    def on_manifest(event):
        logger.info(f"Applying manifest:\n{event['manifest']}")

    @emitter.on(EventType.DEPLOYMENT_STATS)
    def on_deployment_stats(event):
        total = len(event['files'])
        if event['deployed']:
            logger.info(f"Deployments completed for {len(event['deployed'])} of {total} files")
        if event['skipped']:
            logger.warning(f"Skipped {len(event['skipped'])} of {total} files")
        if event['failed']:
            logger.error(f"Failed {len(event['failed'])} of {total} files")


def attach_diff_error_listener(emitter: EventEmitter) -> None:
    @emitter.on(EventType.DIFF_ERROR)
    def on_diff_error(event):
        for error in event['errors']:
            logger.warning(f"Diff error{_file_suffix(event['file'])}. error={error}")
