"""Admin password resolution."""

from __future__ import annotations

from ..errors import NotFoundError
from ..shared.logging import get_logger
from .cluster import ClusterClient

logger = get_logger(__name__)


class PasswordResolver:
    """Resolve the admin password for a run.

    An explicit password wins. Otherwise the UID of the target namespace is
    used, so the password stays the same for as long as the namespace
    exists and nothing has to be stored.
    """

    def __init__(self, cluster: ClusterClient, namespace: str, explicit: str | None = None):
        self.cluster = cluster
        self.namespace = namespace
        self.explicit = explicit

    def resolve(self) -> str:
        """Return the admin password, creating the namespace if needed.

        Raises:
            ClusterAccessError: If the namespace cannot be read or created.
        """
        if self.explicit:
            return self.explicit

        try:
            namespace = self.cluster.get_namespace(self.namespace)
        except NotFoundError:
            logger.info("namespace.create", namespace=self.namespace)
            namespace = self.cluster.create_namespace(self.namespace)

        return str(namespace.metadata.uid)
