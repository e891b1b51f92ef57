"""Connecting the operator to a running loft.

Exactly one of two paths runs per invocation:

- remote: wait (up to a day) until DNS for the ingress host points at the
  cluster and loft answers on it;
- local: keep a ``kubectl port-forward`` running and wait until loft
  answers through it.
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable

import click

from ..errors import PollTimeoutError, TunnelClosedError
from ..shared.logging import get_logger
from .constants import (
    DNS_POLL_INTERVAL,
    DNS_POLL_TIMEOUT,
    LOFT_CONTAINER_PORT,
    LOFT_DEPLOYMENT,
    TUNNEL_POLL_INTERVAL,
    TUNNEL_POLL_TIMEOUT,
)
from .executor import CommandExecutor, format_command
from .health import ReachabilityProbe
from .poller import Poller, PollSpec
from .report import dns_instructions

logger = get_logger(__name__)

STOP_GRACE_SECONDS = 5


class PortForwardSession:
    """One ``kubectl port-forward`` process and the thread watching it.

    The process is the deliverable of a local run. When it exits while the
    session has not been stopped, the session is closed for good; nothing
    restarts it.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        kube_context: str,
        namespace: str,
        local_port: int,
        remote_port: int = LOFT_CONTAINER_PORT,
        echo: Callable[[str], None] = click.echo,
    ):
        self.executor = executor
        self.kube_context = kube_context
        self.namespace = namespace
        self.local_port = local_port
        self.remote_port = remote_port
        self.echo = echo

        self.process: subprocess.Popen | None = None
        self.returncode: int | None = None
        self._exited = threading.Event()
        self._stopping = False
        self._supervisor: threading.Thread | None = None

    def args(self) -> list[str]:
        return [
            "kubectl",
            "port-forward",
            f"deploy/{LOFT_DEPLOYMENT}",
            "--context",
            self.kube_context,
            "--namespace",
            self.namespace,
            f"{self.local_port}:{self.remote_port}",
        ]

    def start(self) -> None:
        """Spawn the process and its supervising thread.

        Raises:
            ExternalToolError: If kubectl could not be started.
        """
        args = self.args()
        self.echo(f"Starting command: {format_command(args)}")
        self.process = self.executor.spawn(args)
        self._supervisor = threading.Thread(
            target=self._supervise,
            name="port-forward-supervisor",
            daemon=True,
        )
        self._supervisor.start()

    def _supervise(self) -> None:
        assert self.process is not None
        self.returncode = self.process.wait()
        if not self._stopping:
            logger.error(
                "port_forward.exited",
                returncode=self.returncode,
                port=self.local_port,
            )
        self._exited.set()

    @property
    def closed(self) -> bool:
        """True once the process ended without :meth:`stop` being called."""
        return self._exited.is_set() and not self._stopping

    def check(self) -> None:
        """Raise if the process has ended unexpectedly.

        Raises:
            TunnelClosedError: If the port-forward is gone.
        """
        if self.closed:
            raise TunnelClosedError()

    def wait(self, tick: float = 1.0) -> None:
        """Block for as long as the port-forward runs.

        Returns normally only after :meth:`stop`.

        Raises:
            TunnelClosedError: When the process ends on its own.
        """
        while not self._exited.wait(tick):
            pass
        self.check()

    def stop(self) -> None:
        """Terminate the process."""
        self._stopping = True
        if self.process is None or self.process.poll() is not None:
            self._exited.set()
            return
        self.process.terminate()
        try:
            self.process.wait(timeout=STOP_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
        self._exited.set()


class LocalConnector:
    """Establish a port-forward to loft and wait until it serves traffic."""

    spec = PollSpec(
        interval=TUNNEL_POLL_INTERVAL,
        timeout=TUNNEL_POLL_TIMEOUT,
        immediate=True,
        description="loft to be reachable through port-forwarding",
    )

    def __init__(
        self,
        executor: CommandExecutor,
        kube_context: str,
        namespace: str,
        probe: ReachabilityProbe,
        poller: Poller | None = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self.executor = executor
        self.kube_context = kube_context
        self.namespace = namespace
        self.probe = probe
        self.poller = poller or Poller()
        self.echo = echo

    def session(self, local_port: int) -> PortForwardSession:
        return PortForwardSession(
            self.executor, self.kube_context, self.namespace, local_port, echo=self.echo
        )

    def connect(self, local_port: int) -> PortForwardSession:
        """Start port-forwarding and wait until loft answers on localhost.

        Returns:
            The running session; the caller owns it.

        Raises:
            TunnelClosedError: If kubectl exits before loft is reachable.
            PollTimeoutError: If loft is not reachable within 10 minutes.
        """
        self.echo("\nLoft will now start port-forwarding to the loft pod")
        session = self.session(local_port)
        session.start()

        host = f"localhost:{local_port}"

        def tunnel_serving() -> bool:
            session.check()
            return self.probe.serving(host)

        self.echo(f"Waiting until loft is reachable at https://{host}")
        try:
            self.poller.wait(self.spec, tunnel_serving)
        except (PollTimeoutError, TunnelClosedError):
            session.stop()
            raise
        return session


class RemoteConnector:
    """Wait until loft is reachable on its ingress hostname."""

    spec = PollSpec(
        interval=DNS_POLL_INTERVAL,
        timeout=DNS_POLL_TIMEOUT,
        immediate=True,
        description="loft to be reachable via DNS",
    )

    def __init__(
        self,
        probe: ReachabilityProbe,
        poller: Poller | None = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self.probe = probe
        self.poller = poller or Poller()
        self.echo = echo

    def connect(self, host: str) -> None:
        """Return once ``https://<host>/version`` answers.

        Connection failures mean DNS is not set up yet and are waited out.

        Raises:
            BadResponseError: If loft answers with a corrupted response.
            PollTimeoutError: If loft is not reachable within 24 hours.
        """
        if self.probe.probe(host):
            return

        self.echo(dns_instructions(host))
        self.echo(f"Waiting for you to configure DNS, so loft can be reached on https://{host}")
        self.poller.wait(self.spec, lambda: self.probe.probe(host))
        self.echo(f"loft is reachable at https://{host}")
