"""Wake up a sleeping space."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from .errors import ClusterAccessError
from .shared.logging import get_logger
from .start.cluster import ClusterClient
from .start.poller import Poller, PollSpec

logger = get_logger(__name__)

SLEEP_MODE_GROUP = "cluster.loft.sh"
SLEEP_MODE_VERSION = "v1"
SLEEP_MODE_PLURAL = "sleepmodeconfigs"


class SleepModeWaker:
    """Clear a space's forced sleep and wait until it is awake."""

    spec = PollSpec(interval=1, timeout=60, description="space to wake up")

    def __init__(
        self,
        cluster: ClusterClient,
        poller: Poller | None = None,
        now: Callable[[], float] = time.time,
    ):
        self.cluster = cluster
        self.poller = poller or Poller()
        self.now = now

    def _configs(self, space: str) -> list[dict[str, Any]]:
        configs = self.cluster.list_custom_objects(
            SLEEP_MODE_GROUP, SLEEP_MODE_VERSION, space, SLEEP_MODE_PLURAL
        )
        if not configs:
            raise ClusterAccessError(message=f"No sleep mode config found in space {space}")
        return configs

    def awake(self, space: str) -> bool:
        """True if the space's sleep mode config reports it is not sleeping.

        Raises:
            ClusterAccessError: If the configs cannot be listed.
        """
        status = self._configs(space)[0].get("status") or {}
        return not status.get("sleepingSince")

    def wake(self, space: str) -> None:
        """Wake up ``space`` and block until it is awake.

        Raises:
            ClusterAccessError: If no config exists or an API call fails.
            PollTimeoutError: If the space is still sleeping after a minute.
        """
        config = self._configs(space)[0]

        metadata = config.get("metadata") or {}
        body = {
            "apiVersion": f"{SLEEP_MODE_GROUP}/{SLEEP_MODE_VERSION}",
            "kind": config.get("kind", "SleepModeConfig"),
            "metadata": {
                key: metadata[key] for key in ("name", "generateName", "labels", "annotations")
                if key in metadata
            },
            "spec": dict(config.get("spec") or {}),
            "status": dict(config.get("status") or {}),
        }
        body["spec"]["forceSleep"] = False
        body["spec"].pop("forceSleepDuration", None)
        body["status"]["lastActivity"] = int(self.now())

        logger.info("sleepmode.wake", space=space)
        self.cluster.create_custom_object(
            SLEEP_MODE_GROUP, SLEEP_MODE_VERSION, space, SLEEP_MODE_PLURAL, body
        )
        self.poller.wait(self.spec, lambda: self.awake(space))
