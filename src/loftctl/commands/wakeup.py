"""Wakeup command for resuming a sleeping space."""

from __future__ import annotations

import sys

import click

from ..errors import LoftError
from ..sleepmode import SleepModeWaker
from ..start import ClusterClient


@click.command("wakeup")
@click.argument("space")
@click.option("--context", "kube_context", default=None, help="The kube context the space lives in")
@click.pass_context
def wakeup(ctx, space, kube_context):
    """Wake up a sleeping space.

    Examples:

        loft wakeup myspace
        loft wakeup myspace --context my-cluster
    """
    obj = ctx.ensure_object(dict)
    try:
        cluster = obj.get("cluster") or ClusterClient.from_context(kube_context)
        click.echo("Waiting until the space wakes up...")
        SleepModeWaker(cluster).wake(space)
    except LoftError as e:
        click.echo(f"Error: error waiting for space to wake up: {e}", err=True)
        sys.exit(1)

    click.echo(f"Successfully woken up space {space}")
