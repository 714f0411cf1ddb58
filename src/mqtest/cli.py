#!/usr/bin/env python
import sys
import logging

import click

from .config import load_config
from .exceptions import ActiveStandbyError, ConfigError, MQTestException
from .logging_setup import setup_logging
from .multi_instance import classify_pair
from .probe import QueueManagerProbe
from .runtime import ContainerRuntime


def _runtime(config) -> ContainerRuntime:
    return ContainerRuntime(
        docker_binary=config.docker_binary,
        label=config.resource_label,
        command_timeout=config.command_timeout_sec,
    )


@click.group()
@click.option("-V", "--verbose", is_flag=True, help="Enable verbose (DEBUG level) logging.")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None,
              help="YAML configuration file (defaults to $MQTEST_CONFIG).")
@click.pass_context
def cli(ctx, verbose, config_file):
    """mqtest - multi-instance queue manager failover harness"""
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    try:
        ctx.obj = load_config(config_file)
    except ConfigError as e:
        click.echo(click.style(f"Configuration error: {e.detail}", fg="red"), err=True)
        sys.exit(2)


@cli.command()
@click.pass_obj
def check(config):
    """Check that Docker is reachable and the image under test is present."""
    runtime = _runtime(config)
    if not runtime.is_available():
        click.echo(click.style(f"Docker is not available (binary: {config.docker_binary})", fg="red"))
        sys.exit(1)
    click.echo("Docker: available")

    if not runtime.image_exists(config.image):
        click.echo(click.style(f"Image {config.image} not found", fg="red"))
        sys.exit(1)
    click.echo(f"Image: {config.image}")


@cli.command()
@click.argument("container")
@click.option("--qmgr", default=None, help="Queue manager name (defaults to the configured one).")
@click.pass_obj
def status(config, container, qmgr):
    """Print the queue manager status reported inside CONTAINER."""
    probe = QueueManagerProbe(_runtime(config))
    try:
        result = probe.status(container, qmgr or config.queue_manager_name)
    except MQTestException as e:
        click.echo(click.style(f"Error: {e.detail}", fg="red"))
        sys.exit(1)
    click.echo(result.value)


@cli.command()
@click.argument("container_a")
@click.argument("container_b")
@click.option("--qmgr", default=None, help="Queue manager name (defaults to the configured one).")
@click.pass_obj
def pair(config, container_a, container_b, qmgr):
    """Show which of two containers holds the active queue manager."""
    probe = QueueManagerProbe(_runtime(config))
    name = qmgr or config.queue_manager_name
    try:
        result = classify_pair(
            container_a, probe.status_text(container_a, name),
            container_b, probe.status_text(container_b, name),
        )
    except ActiveStandbyError as e:
        click.echo(click.style(e.detail, fg="red"))
        sys.exit(1)
    except MQTestException as e:
        click.echo(click.style(f"Error: {e.detail}", fg="red"))
        sys.exit(1)
    click.echo(f"Active:  {result.active}")
    click.echo(f"Standby: {result.standby}")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def cleanup(config, yes):
    """Remove leftover containers and volumes created by the harness."""
    runtime = _runtime(config)
    containers = runtime.list_containers()
    volumes = runtime.list_volumes()
    if not containers and not volumes:
        click.echo("Nothing to clean up.")
        return

    click.echo(f"Found {len(containers)} container(s) and {len(volumes)} volume(s) labelled '{config.resource_label}'.")
    if not yes:
        click.confirm("Remove them?", abort=True)

    failed = 0
    for container_id in containers:
        try:
            runtime.remove_container(container_id, force=True, volumes=True)
            click.echo(f"Removed container {container_id}")
        except MQTestException as e:
            failed += 1
            click.echo(click.style(f"Failed to remove container {container_id}: {e.detail}", fg="red"))
    for name in volumes:
        try:
            runtime.remove_volume(name)
            click.echo(f"Removed volume {name}")
        except MQTestException as e:
            failed += 1
            click.echo(click.style(f"Failed to remove volume {name}: {e.detail}", fg="red"))

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
