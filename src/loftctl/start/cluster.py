"""Kubernetes API access for loft start.

A thin wrapper around the official ``kubernetes`` client. Its only job
beyond forwarding calls is error classification: a 404 becomes
:class:`NotFoundError`, everything else :class:`ClusterAccessError`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from ..errors import ClusterAccessError, NotFoundError

KUBECONFIG_HINT = (
    "Please make sure you have access to a kubernetes cluster and the command "
    "`kubectl get namespaces` is working"
)


@dataclass
class KubeContexts:
    """Contexts found in the kubeconfig."""

    names: list[str]
    current: str | None


def load_kube_contexts() -> KubeContexts:
    """Read the available contexts from the default kubeconfig.

    Raises:
        ClusterAccessError: If the kubeconfig cannot be loaded.
    """
    try:
        contexts, active = config.list_kube_config_contexts()
    except (ConfigException, OSError) as e:
        raise ClusterAccessError(
            message=f"There is an error loading your current kube config ({e})",
            hint=KUBECONFIG_HINT,
        ) from e
    return KubeContexts(
        names=[c["name"] for c in contexts or []],
        current=active["name"] if active else None,
    )


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Convert client exceptions raised inside the block into LoftErrors."""
    try:
        yield
    except ApiException as e:
        if e.status == 404:
            raise NotFoundError(message=f"{action}: not found") from e
        raise ClusterAccessError(
            message=f"{action}: {e.reason or e}",
            status=e.status,
        ) from e
    except urllib3.exceptions.HTTPError as e:
        raise ClusterAccessError(message=f"{action}: {e}") from e


class ClusterClient:
    """Typed access to the cluster objects loft start reads and writes."""

    def __init__(self, api_client: client.ApiClient, context: str | None = None):
        """Initialize cluster client.

        Args:
            api_client: Configured kubernetes ApiClient.
            context: Name of the kube context the client was built for.
        """
        self.api_client = api_client
        self.context = context
        self.core = client.CoreV1Api(api_client)
        self.apps = client.AppsV1Api(api_client)
        self.networking = client.NetworkingV1Api(api_client)
        self.rbac = client.RbacAuthorizationV1Api(api_client)
        self.admission = client.AdmissionregistrationV1Api(api_client)
        self.apiregistration = client.ApiregistrationV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)

    @classmethod
    def from_context(cls, context: str | None) -> ClusterClient:
        """Build a client for a kube context of the default kubeconfig.

        Raises:
            ClusterAccessError: If the kubeconfig or context cannot be loaded.
        """
        try:
            api_client = config.new_client_from_config(context=context)
        except (ConfigException, OSError) as e:
            raise ClusterAccessError(
                message=f"There is an error loading your current kube config ({e})",
                hint=KUBECONFIG_HINT,
            ) from e
        return cls(api_client, context)

    @property
    def host(self) -> str:
        """API server URL of the cluster."""
        return self.api_client.configuration.host

    # Namespaces

    def get_namespace(self, name: str) -> client.V1Namespace:
        with translate_errors(f"reading namespace {name}"):
            return self.core.read_namespace(name)

    def create_namespace(self, name: str) -> client.V1Namespace:
        body = client.V1Namespace(metadata=client.V1ObjectMeta(name=name))
        with translate_errors(f"creating namespace {name}"):
            return self.core.create_namespace(body)

    # Workloads

    def get_deployment(self, namespace: str, name: str) -> client.V1Deployment:
        with translate_errors(f"reading deployment {namespace}/{name}"):
            return self.apps.read_namespaced_deployment(name, namespace)

    def list_pods(self, namespace: str, label_selector: str) -> list[client.V1Pod]:
        with translate_errors(f"listing pods in {namespace}"):
            return self.core.list_namespaced_pod(namespace, label_selector=label_selector).items

    def get_ingress(self, namespace: str, name: str) -> client.V1Ingress:
        with translate_errors(f"reading ingress {namespace}/{name}"):
            return self.networking.read_namespaced_ingress(name, namespace)

    def list_ingress_classes(self) -> list[client.V1IngressClass]:
        with translate_errors("listing ingress classes"):
            return self.networking.list_ingress_class().items

    # Cluster-scoped registrations

    def get_cluster_role(self, name: str) -> client.V1ClusterRole:
        with translate_errors(f"reading cluster role {name}"):
            return self.rbac.read_cluster_role(name)

    def delete_validating_webhook(self, name: str) -> None:
        with translate_errors(f"deleting validating webhook configuration {name}"):
            self.admission.delete_validating_webhook_configuration(name)

    def delete_api_service(self, name: str) -> None:
        with translate_errors(f"deleting api service {name}"):
            self.apiregistration.delete_api_service(name)

    def delete_cluster_custom_object(
        self, group: str, version: str, plural: str, name: str
    ) -> None:
        with translate_errors(f"deleting {plural}.{group}/{name}"):
            self.custom.delete_cluster_custom_object(group, version, plural, name)

    # Secrets

    def list_secrets(self, namespace: str, label_selector: str) -> list[client.V1Secret]:
        with translate_errors(f"listing secrets in {namespace}"):
            return self.core.list_namespaced_secret(namespace, label_selector=label_selector).items

    def patch_secret(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        with translate_errors(f"patching secret {namespace}/{name}"):
            self.core.patch_namespaced_secret(name, namespace, body)

    # Custom resources

    def list_custom_objects(
        self, group: str, version: str, namespace: str, plural: str
    ) -> list[dict[str, Any]]:
        with translate_errors(f"listing {plural}.{group} in {namespace}"):
            result = self.custom.list_namespaced_custom_object(group, version, namespace, plural)
        return result.get("items", [])

    def create_custom_object(
        self, group: str, version: str, namespace: str, plural: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        with translate_errors(f"creating {plural}.{group} in {namespace}"):
            return self.custom.create_namespaced_custom_object(
                group, version, namespace, plural, body
            )
