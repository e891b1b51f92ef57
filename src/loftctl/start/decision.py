"""The ``loft start`` decision tree.

StartOrchestrator reads the cluster, asks the operator what is needed and
then runs exactly one of:

- fresh install (local or remote),
- reset followed by a fresh install,
- upgrade of a local install to an ingress,
- reconnect to an existing install.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import click

from ..errors import BadResponseError, NotFoundError
from ..shared.logging import get_logger
from .cluster import ClusterClient
from .connectivity import LocalConnector, PortForwardSession, RemoteConnector
from .constants import (
    LOFT_ADMIN_USER,
    LOFT_API_SERVICE,
    LOFT_CHART_REPO,
    LOFT_POD_SELECTOR,
    LOFT_USER_GROUP,
    LOFT_USER_PLURAL,
    LOFT_USER_VERSION,
    LOFT_WEBHOOK,
    UNINSTALL_POLL_INTERVAL,
    UNINSTALL_POLL_TIMEOUT,
)
from .credentials import PasswordResolver
from .executor import CommandExecutor
from .health import ReachabilityProbe, ReadinessVerifier
from .helm import HelmDeployer, IngressControllerInstaller
from .plan import ConnectivityTarget, InstallPlan, LocalTarget, RemoteTarget, StartOptions
from .poller import Poller, PollSpec
from .prerequisites import PreflightValidator
from .prompts import (
    AccessMethodChoice,
    IngressUpgradeChoice,
    LocalClusterChoice,
    Prompter,
    RemoteClusterChoice,
    TunnelFallbackChoice,
)
from .report import WELCOME, local_success, remote_success
from .state import DeploymentState, InstallStateDetector
from .validation import (
    ClusterLocation,
    classify_cluster_endpoint,
    has_mx_record,
    validate_email,
    validate_hostname,
)

logger = get_logger(__name__)

HOSTNAME_QUESTION = "Enter a hostname for your loft instance (e.g. loft.my-domain.tld):"
EMAIL_QUESTION = "Enter an email address for your admin user"


class StartAction(Enum):
    """What a run ended up doing."""

    FRESH_INSTALL = "fresh_install"
    RESET_INSTALL = "reset_install"
    UPGRADE_INGRESS = "upgrade_ingress"
    RECONNECT = "reconnect"


@dataclass
class StartResult:
    """Outcome of a successful run.

    ``session`` is set for local targets; the caller keeps it alive.
    """

    action: StartAction
    target: ConnectivityTarget
    password: str
    session: PortForwardSession | None = None


def resolve_kube_context(
    current: str | None,
    last_install_context: str | None,
    prompter: Prompter,
) -> str | None:
    """Pick the kube context for a run.

    When the current context differs from the one loft was last installed
    into, the operator decides which one to use.
    """
    if not last_install_context or last_install_context == current:
        return current
    if not current:
        return last_install_context
    return prompter.select_value(
        "Seems like you try to use 'loft start' with a different kubernetes context "
        "than before. Please choose which kubernetes context you want to use",
        [current, last_install_context],
        default=current,
    )


class StartOrchestrator:
    """Drive one ``loft start`` run from detection to a reachable loft."""

    def __init__(
        self,
        options: StartOptions,
        cluster: ClusterClient,
        kube_context: str,
        executor: CommandExecutor | None = None,
        prompter: Prompter | None = None,
        probe: ReachabilityProbe | None = None,
        poller: Poller | None = None,
        mx_lookup: Callable[[str], bool] = has_mx_record,
        chart_repo: str = LOFT_CHART_REPO,
        echo: Callable[[str], None] = click.echo,
    ):
        self.options = options
        self.cluster = cluster
        self.kube_context = kube_context
        self.executor = executor or CommandExecutor()
        self.prompter = prompter or Prompter()
        self.probe = probe or ReachabilityProbe()
        self.poller = poller or Poller()
        self.mx_lookup = mx_lookup
        self.echo = echo

        namespace = options.namespace
        self.preflight = PreflightValidator(self.executor, cluster, kube_context)
        self.detector = InstallStateDetector(cluster)
        self.passwords = PasswordResolver(cluster, namespace, options.password)
        self.deployer = HelmDeployer(
            self.executor,
            cluster,
            kube_context,
            namespace,
            version=options.version,
            chart_repo=chart_repo,
            echo=echo,
        )
        self.ingress_controller = IngressControllerInstaller(
            self.executor, cluster, self.prompter, kube_context, echo=echo
        )
        self.readiness = ReadinessVerifier(cluster, namespace, poller=self.poller)
        self.local = LocalConnector(
            self.executor, kube_context, namespace, self.probe, poller=self.poller, echo=echo
        )
        self.remote = RemoteConnector(self.probe, poller=self.poller, echo=echo)

        self._password: str | None = None

    @property
    def namespace(self) -> str:
        return self.options.namespace

    def password(self) -> str:
        """Admin password, resolved on first use and reused afterwards."""
        if self._password is None:
            self._password = self.passwords.resolve()
        return self._password

    def run(self) -> StartResult:
        """Run preflight, detection and the matching branch.

        Raises:
            LoftError: On any fatal condition.
            KeyboardInterrupt: If the operator cancels a question.
        """
        self.preflight.validate()

        state = self.detector.detect(self.namespace)
        if state.installed:
            if self.options.reset:
                self.echo("Found an existing loft installation, resetting it")
                self.reset()
                return self.fresh_install(StartAction.RESET_INSTALL)

            self.echo(
                "Found an existing loft installation, if you want to reinstall loft "
                "run 'loft start --reset'"
            )
            if state is DeploymentState.PRESENT_LOCAL:
                return self.reconnect_local()
            return self.reconnect_remote()

        return self.fresh_install(StartAction.FRESH_INSTALL)

    # Reset

    def reset(self) -> None:
        """Uninstall loft and remove what the chart leaves behind.

        Raises:
            LoftError: If the deployment is not a helm release or helm fails.
            PollTimeoutError: If loft pods are still there after 10 minutes.
            ClusterAccessError: On any cluster error but not-found.
        """
        self.deployer.uninstall()

        self.echo("Waiting for loft pod to be deleted...")
        spec = PollSpec(
            interval=UNINSTALL_POLL_INTERVAL,
            timeout=UNINSTALL_POLL_TIMEOUT,
            description="loft pods to be deleted",
        )
        self.poller.wait(spec, self._pods_gone)

        self._delete_if_present(self.cluster.delete_validating_webhook, LOFT_WEBHOOK)
        self._delete_if_present(self.cluster.delete_api_service, LOFT_API_SERVICE)
        self._delete_if_present(
            self.cluster.delete_cluster_custom_object,
            LOFT_USER_GROUP,
            LOFT_USER_VERSION,
            LOFT_USER_PLURAL,
            LOFT_ADMIN_USER,
        )
        self.echo("Successfully uninstalled loft")

    def _pods_gone(self) -> bool:
        return len(self.cluster.list_pods(self.namespace, LOFT_POD_SELECTOR)) == 0

    def _delete_if_present(self, delete: Callable[..., None], *args: str) -> None:
        try:
            delete(*args)
        except NotFoundError:
            logger.debug("reset.already_deleted", target=args[-1])

    # Existing installs

    def reconnect_local(self) -> StartResult:
        """Existing install without ingress: offer to add one, else port-forward."""
        self.password()
        answer = self.prompter.select(
            "Loft was installed without an ingress. Do you want to upgrade loft "
            "and install an ingress now?",
            IngressUpgradeChoice,
            default=IngressUpgradeChoice.NO,
        )
        if answer is IngressUpgradeChoice.NO:
            return self.connect_local(StartAction.RECONNECT)

        host = self.ask_hostname(allow_empty=False)
        self.ingress_controller.ensure()
        self.deployer.upgrade_add_ingress(host)
        return self.connect_remote(host, StartAction.UPGRADE_INGRESS)

    def reconnect_remote(self) -> StartResult:
        """Existing install with ingress: use it if reachable, else offer port-forwarding."""
        self.password()
        host = self.detector.ingress_host(self.namespace)

        try:
            reachable = self.probe.probe(host)
        except BadResponseError as e:
            self.echo(str(e))
            reachable = False

        if not reachable:
            answer = self.prompter.select(
                f"Unfortunately, loft is not reachable at https://{host}. "
                "Do you want to start port-forwarding instead?",
                TunnelFallbackChoice,
                default=TunnelFallbackChoice.YES,
            )
            if answer is TunnelFallbackChoice.YES:
                return self.connect_local(StartAction.RECONNECT)

        return self.connect_remote(host, StartAction.RECONNECT)

    # Fresh install

    def fresh_install(self, action: StartAction) -> StartResult:
        """Ask where loft should be reachable and install it accordingly."""
        self.echo(WELCOME)

        host = ""
        location = classify_cluster_endpoint(self.cluster.host)
        if location is ClusterLocation.REMOTE:
            answer = self.prompter.select(
                "Seems like your cluster is running remotely (GKE, EKS, AKS, private cloud etc.). "
                "Is that correct?",
                RemoteClusterChoice,
                default=RemoteClusterChoice.YES,
            )
            if answer is RemoteClusterChoice.YES:
                host = self.ask_access_method()
        else:
            answer = self.prompter.select(
                "Seems like your cluster is running locally (docker desktop, minikube, kind etc.). "
                "Is that correct?",
                LocalClusterChoice,
                default=LocalClusterChoice.YES,
            )
            if answer is LocalClusterChoice.REMOTE:
                host = self.ask_access_method()

        email = self.prompter.text(
            EMAIL_QUESTION, validate=lambda value: validate_email(value, self.mx_lookup)
        )

        if host:
            return self.install_remote(host, email, action)
        return self.install_local(email, action)

    def ask_access_method(self) -> str:
        """Ask how a remote cluster's loft is reached.

        Returns:
            The ingress hostname, or "" for port-forwarding.
        """
        answer = self.prompter.select(
            "How do you want to access loft?",
            AccessMethodChoice,
            default=AccessMethodChoice.PORT_FORWARDING,
        )
        if answer is AccessMethodChoice.PORT_FORWARDING:
            return ""
        return self.ask_hostname(allow_empty=True)

    def ask_hostname(self, allow_empty: bool) -> str:
        def validate(value: str) -> str | None:
            if allow_empty and not value.strip():
                return None
            return validate_hostname(value)

        return self.prompter.text(HOSTNAME_QUESTION, validate=validate)

    def install_local(self, email: str | None, action: StartAction) -> StartResult:
        self.echo(
            "This will install loft without an externally reachable URL and instead "
            "use port-forwarding to connect to loft"
        )
        plan = InstallPlan(
            namespace=self.namespace,
            password=self.password(),
            version=self.options.version,
            admin_email=email or None,
        )
        self._deploy(plan)
        return self.connect_local(action)

    def install_remote(self, host: str, email: str | None, action: StartAction) -> StartResult:
        self.ingress_controller.ensure()
        plan = InstallPlan(
            namespace=self.namespace,
            password=self.password(),
            version=self.options.version,
            admin_email=email or None,
            ingress_host=host,
            use_ingress=True,
        )
        self._deploy(plan)
        return self.connect_remote(host, action)

    def _deploy(self, plan: InstallPlan) -> None:
        logger.info(
            "install.start",
            namespace=plan.namespace,
            ingress=plan.use_ingress,
            version=plan.version,
        )
        self.deployer.install(plan)
        self.echo("Waiting until loft pod has been started...")
        self.readiness.wait()
        self.echo("Loft pod successfully started")

    # Connectivity

    def connect_local(self, action: StartAction) -> StartResult:
        port = self.options.local_port
        session = self.local.connect(port)
        password = self.password()
        self.echo(local_success(port, password))
        return StartResult(action, LocalTarget(port=port), password, session=session)

    def connect_remote(self, host: str, action: StartAction) -> StartResult:
        self.remote.connect(host)
        password = self.password()
        self.echo(remote_success(host, password))
        return StartResult(action, RemoteTarget(host=host), password)
