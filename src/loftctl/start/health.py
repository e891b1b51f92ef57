"""Health checks for a loft deployment.

Two independent checks:

- ReachabilityProbe: is loft answering on ``GET /version`` at a host?
- ReadinessVerifier: is the loft pod running with all containers ready?
"""

from __future__ import annotations

import json

import httpx

from ..errors import BadResponseError, ClusterAccessError
from ..shared.logging import get_logger
from .cluster import ClusterClient
from .constants import (
    LOFT_POD_SELECTOR,
    PROBE_REQUEST_TIMEOUT,
    READY_POLL_INTERVAL,
    READY_POLL_TIMEOUT,
)
from .poller import Poller, PollSpec

logger = get_logger(__name__)

SUPPORT_URL = "https://loft.sh/"


class ReachabilityProbe:
    """Probe loft's unauthenticated ``/version`` endpoint over HTTPS.

    loft ships a self-signed certificate by default, so the certificate is
    not verified.
    """

    def __init__(
        self,
        timeout_seconds: float = PROBE_REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize probe.

        Args:
            timeout_seconds: Timeout for each HTTP request.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            verify=False,
            timeout=self.timeout_seconds,
            transport=self.transport,
        )

    def version_url(self, host: str) -> str:
        return f"https://{host}/version"

    def probe(self, host: str) -> bool:
        """Check whether loft answers at ``host``.

        Args:
            host: Hostname, optionally with ``:port``.

        Returns:
            True if loft returned a version, False if it is not reachable
            yet (connection error, timeout, non-200 status).

        Raises:
            BadResponseError: If a 200 response has no usable version.
        """
        url = self.version_url(host)
        try:
            with self._client() as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug("probe.unreachable", url=url, error=str(e))
            return False

        if response.status_code != 200:
            logger.debug("probe.not_ready", url=url, status=response.status_code)
            return False

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BadResponseError(
                message=f"error decoding response from {url}: {e}",
                url=url,
            ) from e

        version = data.get("version") if isinstance(data, dict) else None
        if not version:
            raise BadResponseError(
                message=f"unexpected response from {url}: {response.text}",
                url=url,
            )
        return True

    def serving(self, host: str) -> bool:
        """True if ``host`` answers ``/version`` with 200, whatever the body."""
        url = self.version_url(host)
        try:
            with self._client() as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug("probe.unreachable", url=url, error=str(e))
            return False
        return response.status_code == 200


class ReadinessVerifier:
    """Wait until the loft pod is running and ready."""

    spec = PollSpec(
        interval=READY_POLL_INTERVAL,
        timeout=READY_POLL_TIMEOUT,
        immediate=True,
        description="loft pod to become ready",
    )

    def __init__(self, cluster: ClusterClient, namespace: str, poller: Poller | None = None):
        self.cluster = cluster
        self.namespace = namespace
        self.poller = poller or Poller()

    def is_ready(self) -> bool:
        """Check the first loft pod once.

        Listing errors are logged and count as not ready: right after a
        deployment the pod may not exist yet.
        """
        try:
            pods = self.cluster.list_pods(self.namespace, LOFT_POD_SELECTOR)
        except ClusterAccessError as e:
            logger.warning("readiness.list_failed", namespace=self.namespace, error=str(e))
            return False
        if not pods:
            return False

        pod = pods[0]
        statuses = pod.status.container_statuses if pod.status else None
        if not statuses:
            return False

        for status in statuses:
            state = status.state
            if state and state.running and status.ready:
                continue
            if state and state.terminated and state.terminated.exit_code != 0:
                logger.warning(
                    "readiness.container_failed",
                    support=SUPPORT_URL,
                    pod=pod.metadata.name,
                    container=status.name,
                    message=state.terminated.message,
                    reason=state.terminated.reason,
                )
                continue
            return False

        return True

    def wait(self) -> int:
        """Block until ready.

        Returns:
            Number of checks it took.

        Raises:
            PollTimeoutError: If the pod is not ready within 10 minutes.
        """
        return self.poller.wait(self.spec, self.is_ready)
