"""Prerequisite detection for loft start.

Checks that helm and kubectl are installed and working, and that the
current kube context has admin access to the cluster.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ClusterAccessError, PreflightError
from .cluster import ClusterClient
from .executor import CommandExecutor

HELM_INSTALL_URL = "https://helm.sh/docs/intro/install/"
KUBECTL_INSTALL_URL = "https://kubernetes.io/docs/tasks/tools/install-kubectl/"

ADMIN_CLUSTER_ROLE = "cluster-admin"


@dataclass
class ToolInfo:
    """Detection result for one external tool."""

    name: str
    available: bool
    version_output: str | None = None
    error: str | None = None


class ToolDetector:
    """Detect an external CLI tool and check that it responds."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def detect(self, name: str, version_args: list[str], install_url: str) -> ToolInfo:
        """Look the tool up on PATH and run its version command.

        Args:
            name: Executable name.
            version_args: Arguments that make the tool report its version.
            install_url: Where to point the operator if it is missing.
        """
        if not self.executor.which(name):
            return ToolInfo(
                name=name,
                available=False,
                error=(
                    f"Seems like {name} is not installed. {name} is required for the "
                    f"installation of loft. Please visit {install_url} for install instructions"
                ),
            )

        result = self.executor.run([name, *version_args], timeout=30)
        if not result.ok:
            return ToolInfo(
                name=name,
                available=False,
                version_output=result.output,
                error=f"Seems like there are issues with your {name} client:\n\n{result.output}",
            )
        return ToolInfo(name=name, available=True, version_output=result.output.strip())


class PreflightValidator:
    """Validate the local environment before touching the cluster."""

    def __init__(self, executor: CommandExecutor, cluster: ClusterClient, kube_context: str):
        self.executor = executor
        self.cluster = cluster
        self.kube_context = kube_context
        self.detector = ToolDetector(executor)

    def validate(self) -> list[ToolInfo]:
        """Run all checks.

        Returns:
            Detection results for helm and kubectl.

        Raises:
            PreflightError: On the first failed check.
        """
        helm = self.detector.detect("helm", ["version"], HELM_INSTALL_URL)
        if not helm.available:
            raise PreflightError(message=helm.error or "helm is not usable")

        kubectl = self.detector.detect(
            "kubectl", ["version", "--context", self.kube_context], KUBECTL_INSTALL_URL
        )
        if not kubectl.available:
            if kubectl.version_output is not None:
                raise PreflightError(
                    message=(
                        "Seems like kubectl cannot connect to your Kubernetes cluster:"
                        f"\n\n{kubectl.version_output}"
                    )
                )
            raise PreflightError(message=kubectl.error or "kubectl is not usable")

        self.check_admin_access()
        return [helm, kubectl]

    def check_admin_access(self) -> None:
        """Require that the cluster-admin role can be read.

        Raises:
            PreflightError: If RBAC is missing or the role is not accessible.
        """
        try:
            self.cluster.get_cluster_role(ADMIN_CLUSTER_ROLE)
        except ClusterAccessError as e:
            raise PreflightError(
                message=f"Error retrieving cluster role '{ADMIN_CLUSTER_ROLE}': {e.message}",
                hint="Please make sure RBAC is correctly configured in your cluster",
            ) from e
