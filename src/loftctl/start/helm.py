"""Helm operations for loft start.

Each operation is one helm invocation with a fixed argument list. A
non-zero exit is fatal and never retried: after a partial failure helm's
own release state is unknown.
"""

from __future__ import annotations

from collections.abc import Callable

import click

from ..errors import ClusterAccessError, LoftError
from ..shared.logging import get_logger
from .cluster import ClusterClient
from .constants import (
    APP_LABEL,
    APP_URL_ANNOTATION,
    INGRESS_NGINX_CHART,
    INGRESS_NGINX_NAMESPACE,
    INGRESS_NGINX_RELEASE,
    INGRESS_NGINX_REPO,
    INGRESS_NGINX_SECRET_SELECTOR,
    LOFT_CHART,
    LOFT_CHART_REPO,
    LOFT_DEPLOYMENT,
    LOFT_RELEASE,
    RELEASE_LABEL,
)
from .executor import CommandExecutor, CommandResult, format_command
from .plan import InstallPlan
from .prompts import IngressControllerChoice, Prompter

logger = get_logger(__name__)

SECRET_VALUE_KEYS = ("admin.password",)


def display_command(args: list[str]) -> str:
    """Format a helm command for the terminal with secret values masked."""
    masked = []
    for arg in args:
        key, sep, _ = arg.partition("=")
        masked.append(f"{key}{sep}*****" if sep and key in SECRET_VALUE_KEYS else arg)
    return format_command(masked)


class HelmDeployer:
    """Install, upgrade and uninstall the loft release."""

    def __init__(
        self,
        executor: CommandExecutor,
        cluster: ClusterClient,
        kube_context: str,
        namespace: str,
        version: str | None = None,
        chart_repo: str = LOFT_CHART_REPO,
        echo: Callable[[str], None] = click.echo,
    ):
        """Initialize deployer.

        Args:
            executor: Runs the helm binary.
            cluster: Used to re-check release ownership before uninstalling.
            kube_context: Kube context passed to helm.
            namespace: Namespace of the loft release.
            version: Optional chart version pin.
            chart_repo: Helm repository URL of the loft chart.
            echo: Where progress lines go.
        """
        self.executor = executor
        self.cluster = cluster
        self.kube_context = kube_context
        self.namespace = namespace
        self.version = version
        self.chart_repo = chart_repo
        self.echo = echo

    def _chart_args(self, command: str, release: str, namespace: str) -> list[str]:
        return [
            "helm",
            command,
            release,
            LOFT_CHART,
            "--repository-config=''",
            "--repo",
            self.chart_repo,
            "--kube-context",
            self.kube_context,
            "--namespace",
            namespace,
        ]

    def _run(self, args: list[str], waiting: str | None = None) -> CommandResult:
        self.echo(f"\nExecuting command: {display_command(args)}\n")
        if waiting:
            self.echo(waiting)
        logger.info("helm.run", command=args[1], release=args[2])
        return self.executor.check(args, message="Error during helm command")

    def install_args(self, plan: InstallPlan) -> list[str]:
        """Build the helm install command for a plan."""
        args = self._chart_args("install", plan.release, plan.namespace)
        for key, value in plan.helm_values():
            args.extend(["--set", f"{key}={value}"])
        args.append("--wait")
        if plan.version:
            args.extend(["--version", plan.version])
        return args

    def install(self, plan: InstallPlan) -> CommandResult:
        """Install loft as described by ``plan``.

        Raises:
            ExternalToolError: If helm fails.
        """
        result = self._run(
            self.install_args(plan),
            waiting="Waiting for loft deployment, this can take several minutes...",
        )
        self.echo("Successfully deployed loft to your kubernetes cluster!")
        return result

    def upgrade_add_ingress(self, host: str) -> CommandResult:
        """Upgrade the existing release, keeping its values, to serve ``host``.

        Raises:
            ExternalToolError: If helm fails.
        """
        args = self._chart_args("upgrade", LOFT_RELEASE, self.namespace)
        args.extend(
            [
                "--reuse-values",
                "--set",
                "ingress.enabled=true",
                "--set",
                f"ingress.host={host}",
                "--wait",
            ]
        )
        if self.version:
            args.extend(["--version", self.version])

        result = self._run(args, waiting="Waiting for loft, this can take several minutes...")
        self.echo("Successfully upgraded loft to use an ingress!")
        return result

    def installed_release(self) -> str:
        """Name of the helm release that owns the loft deployment.

        Raises:
            LoftError: If the deployment carries no release label.
            ClusterAccessError: If the deployment cannot be read.
        """
        deployment = self.cluster.get_deployment(self.namespace, LOFT_DEPLOYMENT)
        labels = deployment.metadata.labels or {}
        release = labels.get(RELEASE_LABEL)
        if not release:
            raise LoftError(message="loft was not installed via helm, cannot delete it then")
        return release

    def uninstall(self) -> CommandResult:
        """Uninstall the release that owns the loft deployment.

        Raises:
            LoftError: If the deployment is not owned by a helm release.
            ExternalToolError: If helm fails.
        """
        release = self.installed_release()
        args = [
            "helm",
            "uninstall",
            release,
            "--kube-context",
            self.kube_context,
            "--namespace",
            self.namespace,
        ]
        return self._run(args)


class IngressControllerInstaller:
    """Optionally install ingress-nginx ahead of an ingress deployment."""

    def __init__(
        self,
        executor: CommandExecutor,
        cluster: ClusterClient,
        prompter: Prompter,
        kube_context: str,
        echo: Callable[[str], None] = click.echo,
    ):
        self.executor = executor
        self.cluster = cluster
        self.prompter = prompter
        self.kube_context = kube_context
        self.echo = echo

    def install_args(self) -> list[str]:
        return [
            "helm",
            "install",
            INGRESS_NGINX_RELEASE,
            INGRESS_NGINX_CHART,
            "--repository-config=''",
            "--repo",
            INGRESS_NGINX_REPO,
            "--kube-context",
            self.kube_context,
            "--namespace",
            INGRESS_NGINX_NAMESPACE,
            "--create-namespace",
            "--set-string",
            "controller.config.hsts=false",
            "--wait",
        ]

    def controller_present(self) -> bool:
        """True if the cluster already has an ingress class registered."""
        try:
            classes = self.cluster.list_ingress_classes()
        except ClusterAccessError as e:
            logger.warning("ingress_class.list_failed", error=str(e))
            return False
        return len(classes) > 0

    def ensure(self) -> bool:
        """Install ingress-nginx if no controller is found and the operator agrees.

        Returns:
            True if the controller was installed by this call.

        Raises:
            ExternalToolError: If the helm install fails.
        """
        if self.controller_present():
            logger.info("ingress_controller.present")
            return False

        answer = self.prompter.select(
            "Ingress controller required. Should the nginx-ingress controller be installed?",
            IngressControllerChoice,
            default=IngressControllerChoice.INSTALL,
        )
        if answer is IngressControllerChoice.SKIP:
            return False

        args = self.install_args()
        self.echo(f"\nExecuting command: {display_command(args)}\n")
        self.echo("Waiting for ingress controller deployment, this can take several minutes...")
        self.executor.check(args, message="Error during helm command")

        self.label_release_secret()
        self.echo("Successfully installed ingress-nginx to your kubernetes cluster!")
        return True

    def label_release_secret(self) -> bool:
        """Mark the ingress-nginx release secret as a loft app.

        Best effort: the controller is already installed, so a missing secret
        or a failed patch is only logged.

        Returns:
            True if the secret was patched.
        """
        try:
            secrets = self.cluster.list_secrets(
                INGRESS_NGINX_NAMESPACE, INGRESS_NGINX_SECRET_SELECTOR
            )
        except ClusterAccessError as e:
            logger.warning("ingress_nginx.secret_list_failed", error=str(e))
            return False

        if len(secrets) != 1:
            logger.warning("ingress_nginx.secret_not_unique", count=len(secrets))
            return False

        secret = secrets[0]
        patch = {
            "metadata": {
                "labels": {APP_LABEL: "true"},
                "annotations": {APP_URL_ANNOTATION: INGRESS_NGINX_REPO},
            }
        }
        try:
            self.cluster.patch_secret(
                secret.metadata.namespace or INGRESS_NGINX_NAMESPACE, secret.metadata.name, patch
            )
        except ClusterAccessError as e:
            logger.warning(
                "ingress_nginx.secret_patch_failed", secret=secret.metadata.name, error=str(e)
            )
            return False
        return True
