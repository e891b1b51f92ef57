"""Check GitHub for a newer loftctl release."""

from __future__ import annotations

import re
import threading
from collections.abc import Callable

import httpx

from .shared.logging import get_logger

logger = get_logger(__name__)

GITHUB_SLUG = "loft-sh/loft"
LATEST_RELEASE_URL = f"https://api.github.com/repos/{GITHUB_SLUG}/releases/latest"
VERSION_RE = re.compile(r"\d+\.\d+\.\d+")


def erase_version_prefix(raw: str) -> str | None:
    """Strip anything before the first ``X.Y.Z`` (``v1.2.3`` -> ``1.2.3``)."""
    match = VERSION_RE.search(raw)
    if match is None:
        return None
    return raw[match.start():]


def version_key(version: str) -> tuple[int, int, int] | None:
    match = VERSION_RE.match(version)
    if match is None:
        return None
    major, minor, patch = (int(part) for part in match.group(0).split("."))
    return major, minor, patch


class VersionConfig:
    """Version of the running binary."""

    def __init__(self, raw_version: str | None = None):
        self.raw_version = raw_version or ""
        self.version: str | None = None
        if self.raw_version:
            self.version = erase_version_prefix(self.raw_version)
            if self.version is None:
                logger.error("version.not_semver", raw_version=self.raw_version)


def fetch_latest_release(
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Return the tag of the latest loft release on GitHub.

    Raises:
        httpx.HTTPError: If the request fails.
        ValueError: If the response has no tag.
    """
    with httpx.Client(timeout=timeout, transport=transport) as client:
        response = client.get(LATEST_RELEASE_URL, headers={"Accept": "application/vnd.github+json"})
        response.raise_for_status()
        tag = response.json().get("tag_name")
    if not tag:
        raise ValueError(f"no tag_name in response from {LATEST_RELEASE_URL}")
    return str(tag)


class LatestVersionLookup:
    """Compute the latest released version once per process."""

    def __init__(self, fetch: Callable[[], str] = fetch_latest_release):
        self.fetch = fetch
        self._lock = threading.Lock()
        self._done = False
        self._latest: str | None = None
        self._error: Exception | None = None

    def get(self) -> tuple[str | None, Exception | None]:
        """Return ``(latest, error)``; only the first call hits the network."""
        with self._lock:
            if not self._done:
                try:
                    tag = self.fetch()
                except (httpx.HTTPError, ValueError) as e:
                    self._error = e
                else:
                    self._latest = erase_version_prefix(tag)
                    if self._latest is None:
                        self._error = ValueError(f"latest release {tag} is not a semantic version")
                self._done = True
            return self._latest, self._error


def newer_version_available(config: VersionConfig, lookup: LatestVersionLookup) -> str | None:
    """The latest version if it is strictly newer than the running one."""
    if not config.version:
        return None

    latest, error = lookup.get()
    if error is not None:
        logger.debug("version.lookup_failed", error=str(error))
        return None
    if not latest:
        return None

    current_key = version_key(config.version)
    latest_key = version_key(latest)
    if current_key is None or latest_key is None:
        return None
    if latest_key > current_key:
        return latest
    return None
