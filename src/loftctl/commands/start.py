"""Start command for installing and connecting to loft.

This module provides the `loft start` command which installs loft into
the current kubernetes cluster (or reconnects to an existing install) and
keeps port-forwarding running when loft has no public hostname.
"""

from __future__ import annotations

import sys

import click

from ..config import CLIConfig, save_config
from ..errors import ClusterAccessError, LoftError
from ..shared.logging import get_logger
from ..start import (
    ClusterClient,
    PortForwardSession,
    Prompter,
    StartOptions,
    StartOrchestrator,
    StartResult,
    load_kube_contexts,
    resolve_kube_context,
)
from ..start.cluster import KUBECONFIG_HINT
from ..start.constants import DEFAULT_LOCAL_PORT, DEFAULT_NAMESPACE
from ..upgrade import LatestVersionLookup, VersionConfig, newer_version_available

logger = get_logger(__name__)


@click.command("start")
@click.option(
    "--namespace",
    default=DEFAULT_NAMESPACE,
    show_default=True,
    help="The namespace to install loft into",
)
@click.option(
    "--local-port",
    default=DEFAULT_LOCAL_PORT,
    type=int,
    show_default=True,
    help="The local port to bind to if using port-forwarding",
)
@click.option("--password", default=None, help="The password to use for the admin account")
@click.option("--version", "chart_version", default=None, help="The loft chart version to deploy")
@click.option(
    "--reset",
    is_flag=True,
    help="Delete an existing loft instance before installing loft",
)
@click.option(
    "--context",
    "kube_context",
    default=None,
    help="The kube context to use for installation",
)
@click.pass_context
def start(ctx, namespace, local_port, password, chart_version, reset, kube_context):
    """Start a loft instance and connect via port-forwarding.

    Examples:

        # Install loft or connect to an existing install
        loft start

        # Delete an existing install and start over
        loft start --reset

        # Install into another namespace and pin the chart version
        loft start --namespace loft-test --version 1.2.3
    """
    obj = ctx.ensure_object(dict)
    cli_config: CLIConfig = obj.get("cli_config") or CLIConfig()

    _warn_if_outdated(obj.get("version_config"), obj.get("version_lookup"))

    options = StartOptions(
        namespace=namespace,
        local_port=local_port,
        password=password,
        version=chart_version,
        reset=reset,
        kube_context=kube_context,
    )
    prompter = obj.get("prompter") or Prompter()

    try:
        result = _run_start(options, cli_config, prompter, obj.get("config_path"))
        if result.session is not None:
            _hold(result.session)
    except LoftError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nAborted.", err=True)
        sys.exit(1)


def _run_start(
    options: StartOptions,
    cli_config: CLIConfig,
    prompter: Prompter,
    config_path: str | None,
) -> StartResult:
    """Pick the kube context, remember it and run the orchestrator."""
    kube_context = options.kube_context
    if not kube_context:
        contexts = load_kube_contexts()
        last = cli_config.last_install_context
        if last not in contexts.names:
            # The context was removed from the kubeconfig since the last install
            last = None
        kube_context = resolve_kube_context(contexts.current, last, prompter)
    if not kube_context:
        raise ClusterAccessError(
            message="There is no current kube context set in your kube config",
            hint=KUBECONFIG_HINT,
        )

    if kube_context != cli_config.last_install_context:
        try:
            save_config("last_install_context", kube_context, config_path)
        except OSError as e:
            logger.warning("config.save_failed", path=config_path, error=str(e))
    options.kube_context = kube_context
    logger.info("start.context", kube_context=kube_context, namespace=options.namespace)

    cluster = ClusterClient.from_context(kube_context)
    orchestrator = StartOrchestrator(
        options,
        cluster,
        kube_context,
        prompter=prompter,
        chart_repo=cli_config.chart_repo,
    )
    return orchestrator.run()


def _hold(session: PortForwardSession) -> None:
    """Keep port-forwarding alive until it dies or the operator hits Ctrl+C."""
    try:
        session.wait()
    except KeyboardInterrupt:
        session.stop()
        click.echo("\nPort-forwarding stopped.")


def _warn_if_outdated(
    version_config: VersionConfig | None,
    lookup: LatestVersionLookup | None,
) -> None:
    if version_config is None or lookup is None:
        return
    newer = newer_version_available(version_config, lookup)
    if newer:
        click.echo(
            click.style(
                f"There is a newer version of loft: v{newer}. "
                "Please update loftctl to the newest version.\n",
                fg="yellow",
            ),
            err=True,
        )
