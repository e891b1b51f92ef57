"""Values that flow through one ``loft start`` run."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidPlanError
from .constants import DEFAULT_LOCAL_PORT, DEFAULT_NAMESPACE, LOFT_RELEASE
from .validation import validate_hostname


@dataclass
class StartOptions:
    """Operator-supplied options for ``loft start``."""

    namespace: str = DEFAULT_NAMESPACE
    local_port: int = DEFAULT_LOCAL_PORT
    password: str | None = None
    version: str | None = None
    reset: bool = False
    kube_context: str | None = None


@dataclass(frozen=True)
class InstallPlan:
    """Everything the deployment driver needs for a fresh install.

    Built once by the orchestrator and never modified afterwards.
    """

    namespace: str
    password: str
    release: str = LOFT_RELEASE
    version: str | None = None
    admin_email: str | None = None
    ingress_host: str | None = None
    use_ingress: bool = False

    def __post_init__(self) -> None:
        if self.use_ingress:
            if not self.ingress_host:
                raise InvalidPlanError(message="An ingress install needs a hostname")
            error = validate_hostname(self.ingress_host)
            if error:
                raise InvalidPlanError(message=error)
        elif self.ingress_host:
            raise InvalidPlanError(message="ingress_host is set but use_ingress is False")

    def helm_values(self) -> list[tuple[str, str]]:
        """Chart values as ordered key/value pairs."""
        values = [("certIssuer.create", "false")]
        if self.use_ingress:
            values.append(("ingress.host", self.ingress_host or ""))
        else:
            values.append(("ingress.enabled", "false"))
        values.append(("cluster.connect.local", "true"))
        values.append(("admin.password", self.password))
        if self.admin_email:
            values.append(("admin.email", self.admin_email))
        return values


@dataclass(frozen=True)
class RemoteTarget:
    """Reach loft on a public hostname through an ingress."""

    host: str


@dataclass(frozen=True)
class LocalTarget:
    """Reach loft on localhost through kubectl port-forward."""

    port: int = DEFAULT_LOCAL_PORT


ConnectivityTarget = RemoteTarget | LocalTarget
