"""
Command Line Interface for DockCopy.
"""
import os

import click
from loguru import logger

from ..ACCESS.docker_access import DockerAccess
from ..MANAGERS.copy_orchestrator import CopyOrchestrator
from ..MODELS.build_label import BuildLabel
from ..MODELS.image_configuration import ImageConfiguration
from ..PARSERS.project_parser import ProjectParser
from ..SERVICES.archive_service import ArchiveService
from ..SERVICES.container_tracker import ContainerTracker
from ..SERVICES.run_service import RunService
from ..errors import DockCopyError


def configure_logging(verbose: bool):
    """
    Sends log output to stderr, at DEBUG level when verbose.
    """
    logger.remove()
    logger.add(lambda message: click.echo(message, err=True, nl=False),
               level="DEBUG" if verbose else "INFO",
               format="{level: <8} | {message}")


@click.group()
@click.option('--file', '-f', default='dockcopy.yml', help='Project file path')
@click.option('--build-label', '-b', default=None, help='Build identity as project:version')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, file, build_label, verbose):
    """
    DockCopy - copy files and directories out of Docker containers.

    Copies from the containers a start step tracked for this build, or from
    temporary containers created for the copy and removed afterwards.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    if os.path.exists(file):
        try:
            project = ProjectParser().parse(file)
        except DockCopyError as e:
            raise click.ClickException(str(e))
        ctx.obj['project'] = project
        ctx.obj['build_label'] = BuildLabel.parse(build_label) if build_label else project.build_label()
        ctx.obj['tracker'] = ContainerTracker(os.path.join(project.base_dir, '.dockcopy'))


def _require_project(ctx):
    project = ctx.obj.get('project')
    if project is None:
        click.echo(f"Error: {ctx.obj['file']} not found.")
        ctx.exit(1)
    return project


@cli.command()
@click.option('--remove-volumes/--keep-volumes', default=None,
              help='Remove volumes of temporary containers along with them')
@click.option('--container-name-pattern', default=None, help='Naming pattern for temporary containers')
@click.option('--standalone', is_flag=True, help='Always copy from temporary containers')
@click.pass_context
def copy(ctx, remove_volumes, container_name_pattern, standalone):
    """Copy configured entries from containers to the host."""
    project = _require_project(ctx)
    build_label = ctx.obj['build_label']
    tracker = ctx.obj['tracker']

    docker_access = DockerAccess()
    orchestrator = CopyOrchestrator.from_project(
        project,
        RunService(docker_access, tracker),
        docker_access,
        ArchiveService(),
        build_label=build_label,
        remove_volumes=remove_volumes,
        container_name_pattern=container_name_pattern,
    )
    start_invoked = not standalone and tracker.start_invoked(build_label)
    try:
        copied = orchestrator.run(project.images, start_invoked)
    except DockCopyError as e:
        click.echo(f"Error: {e}")
        ctx.exit(1)
    click.echo(f"Copied {copied} entries.")


@cli.command()
@click.argument('container_id')
@click.argument('image_name')
@click.pass_context
def track(ctx, container_id, image_name):
    """Record a container started for this build."""
    project = _require_project(ctx)
    image_config = next((image for image in project.images if image.name == image_name or image.alias == image_name),
                        None)
    if image_config is None:
        image_config = ImageConfiguration(name=image_name)
    ctx.obj['tracker'].register(ctx.obj['build_label'], container_id, image_config)
    click.echo(f"Tracking {container_id} ({image_config.name}) for {ctx.obj['build_label']}.")


@cli.command()
@click.pass_context
def untrack(ctx):
    """Forget the containers tracked for this build."""
    _require_project(ctx)
    if ctx.obj['tracker'].clear(ctx.obj['build_label']):
        click.echo(f"Cleared {ctx.obj['build_label']}.")
    else:
        click.echo(f"Nothing tracked for {ctx.obj['build_label']}.")


@cli.command()
@click.pass_context
def images(ctx):
    """List configured images and their copy entries"""
    project = _require_project(ctx)
    click.echo(f"{'IMAGE':30} {'ENTRIES':7}")
    click.echo("-" * 38)
    for image in project.images:
        copy_config = image.copy_config
        count = len(copy_config.entries or []) if copy_config else 0
        click.echo(f"{image.description:30} {count:<7}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
