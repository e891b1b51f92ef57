"""Detection of an existing loft installation.

The result describes the cluster at the moment it was read. Nothing is
cached; callers that are about to delete something read again.
"""

from __future__ import annotations

from enum import Enum

from ..errors import RESET_HINT, LoftError, NotFoundError
from ..shared.logging import get_logger
from .cluster import ClusterClient
from .constants import LOFT_DEPLOYMENT, LOFT_INGRESS

logger = get_logger(__name__)


class DeploymentState(Enum):
    """What loft start found in the target namespace."""

    ABSENT = "absent"  # No loft deployment
    PRESENT_LOCAL = "present_local"  # Deployed without an ingress
    PRESENT_REMOTE = "present_remote"  # Deployed with an ingress

    @property
    def installed(self) -> bool:
        return self is not DeploymentState.ABSENT


class InstallStateDetector:
    """Classify the loft installation in a namespace."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    def detect(self, namespace: str) -> DeploymentState:
        """Detect the current deployment state.

        Args:
            namespace: Namespace loft is (or would be) installed in.

        Returns:
            DeploymentState for this instant.

        Raises:
            ClusterAccessError: If a lookup fails for any reason but not-found.
        """
        try:
            self.cluster.get_deployment(namespace, LOFT_DEPLOYMENT)
        except NotFoundError:
            logger.info("state.detected", namespace=namespace, state="absent")
            return DeploymentState.ABSENT

        try:
            self.cluster.get_ingress(namespace, LOFT_INGRESS)
        except NotFoundError:
            state = DeploymentState.PRESENT_LOCAL
        else:
            state = DeploymentState.PRESENT_REMOTE

        logger.info("state.detected", namespace=namespace, state=state.value)
        return state

    def ingress_host(self, namespace: str) -> str:
        """Host of the first rule on the loft ingress.

        Raises:
            LoftError: If the ingress has no rule with a host.
            ClusterAccessError: If the ingress cannot be read.
        """
        ingress = self.cluster.get_ingress(namespace, LOFT_INGRESS)
        rules = ingress.spec.rules if ingress.spec else None
        if not rules or not rules[0].host:
            raise LoftError(
                message=f"couldn't find any host in loft ingress '{namespace}/{LOFT_INGRESS}'",
                hint=RESET_HINT,
            )
        return rules[0].host
