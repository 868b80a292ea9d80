"""
Command line entry point.
Thin wrapper over the Shipwright facade.
"""
import asyncio
import logging
import sys

import click

from ..config.settings import load_config
from ..orchestrator import Shipwright
from .listeners import attach_build_listeners, attach_deploy_listeners, attach_diff_error_listener


@click.group()
@click.option('--config', 'config_path', default=None, type=click.Path(dir_okay=False),
              help='Path to shipwright.yaml')
@click.option('--log-level', default='INFO', envvar='LOG_LEVEL',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Log level')
@click.pass_context
def cli(ctx, config_path: str, log_level: str):
    """Build and deploy independently bundled services"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command()
@click.option('--cwd', default=None, type=click.Path(file_okay=False),
              help='Working directory. Defaults to the current directory')
@click.option('--bundle-config', default=None, help='Bundler config file relative to cwd (e.g. bundle.yaml)')
@click.option('--fail-fast/--no-fail-fast', default=None, help='Stop at the first failing unit')
@click.option('--force/--no-force', default=None, help='Skip change detection and build every unit')
@click.pass_context
def build(ctx, cwd: str, bundle_config: str, fail_fast: bool, force: bool):
    """Build every unit whose inputs changed"""
    logger = logging.getLogger(__name__)

    config = load_config(
        ctx.obj['config_path'],
        cwd=cwd,
        bundle_config=bundle_config,
        fail_fast=fail_fast,
        force=force
    )

    shipwright = Shipwright(config)
    attach_build_listeners(shipwright.emitter)
    attach_diff_error_listener(shipwright.emitter)

    logger.info("Starting build")

    try:
        report = asyncio.run(shipwright.build())
    except Exception as e:
        logger.error(f"Build failed: {e}", exc_info=True)
        raise click.ClickException(str(e))

    if report.success:
        logger.info("Builds complete")
        sys.exit(0)

    logger.error("Build failed")
    sys.exit(1)


@cli.command()
@click.option('--cwd', default=None, type=click.Path(file_okay=False),
              help='Working directory. Defaults to the current directory')
@click.option('--registry', default=None, help='Registry and repository, e.g. my.registry.local:5000/team')
@click.option('--insecure-registry/--secure-registry', default=None,
              help='Skip TLS verification when talking to the Docker daemon')
@click.option('--docker-auth', multiple=True, envvar='SHIPWRIGHT_DOCKER_AUTH',
              help='Registry credentials, username:password or registry:username:password (repeatable)')
@click.option('--docker-host', default=None, envvar='DOCKER_HOST', help='Docker daemon address')
@click.option('--fail-fast/--no-fail-fast', default=None, help='Stop at the first failing artifact')
@click.option('--force/--no-force', default=None, help='Apply every manifest fragment')
@click.pass_context
def deploy(
    ctx,
    cwd: str,
    registry: str,
    insecure_registry: bool,
    docker_auth: tuple,
    docker_host: str,
    fail_fast: bool,
    force: bool
):
    """Publish images for built artifacts and apply changed manifests"""
    logger = logging.getLogger(__name__)

    config = load_config(
        ctx.obj['config_path'],
        cwd=cwd,
        registry=registry,
        insecure_registry=insecure_registry,
        docker_auth=docker_auth or None,
        docker_host=docker_host,
        fail_fast=fail_fast,
        force=force
    )

    shipwright = Shipwright(config)
    attach_deploy_listeners(shipwright.emitter)
    attach_diff_error_listener(shipwright.emitter)

    logger.info("Starting deployment")

    try:
        report = asyncio.run(shipwright.deploy())
    except Exception as e:
        logger.error(f"Deployment failed: {e}", exc_info=True)
        raise click.ClickException(str(e))

    if report.success:
        logger.info("Deployments complete")
        sys.exit(0)

    logger.error("Deployment failed")
    sys.exit(1)


if __name__ == '__main__':
    cli()
