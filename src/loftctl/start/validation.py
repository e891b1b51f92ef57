"""Validation of operator answers and cluster endpoint classification.

Validators return an error message, or None when the value is fine. That
is the shape questionary needs to re-prompt on a bad answer.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable
from enum import Enum
from urllib.parse import urlsplit

import dns.exception
import dns.resolver

from ..shared.logging import get_logger

logger = get_logger(__name__)

# Addresses that mean the API server runs on the operator's machine or LAN
LOCAL_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "127.0.0.0/8",  # IPv4 loopback
        "10.0.0.0/8",  # RFC1918
        "172.16.0.0/12",  # RFC1918
        "192.168.0.0/16",  # RFC1918
        "169.254.0.0/16",  # IPv4 link-local
        "::1/128",  # IPv6 loopback
        "fe80::/10",  # IPv6 link-local
        "fc00::/7",  # IPv6 unique local
    )
]

LOCAL_HOSTNAME_SUFFIXES = (".internal", ".localhost")

HOSTNAME_LABEL_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]*[A-Za-z0-9])?$")

EMAIL_RE = re.compile(r"^[^@]+@[^.]+\..+$")

HOSTNAME_ERROR = (
    "Please enter a valid hostname without protocol (https://), without path "
    "and without port, e.g. loft.my-domain.tld"
)


class ClusterLocation(Enum):
    """Where the cluster's API server appears to run."""

    LOCAL = "local"
    REMOTE = "remote"


def is_local_address(hostname: str) -> bool:
    """True if ``hostname`` is an IP literal inside a local range."""
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return any(ip.version == net.version and ip in net for net in LOCAL_NETWORKS)


def classify_hostname(hostname: str) -> ClusterLocation:
    """Classify a bare hostname or IP literal."""
    hostname = hostname.lower().rstrip(".")
    if is_local_address(hostname):
        return ClusterLocation.LOCAL
    if hostname == "localhost" or hostname.endswith(LOCAL_HOSTNAME_SUFFIXES):
        return ClusterLocation.LOCAL
    return ClusterLocation.REMOTE


def classify_cluster_endpoint(server_url: str) -> ClusterLocation:
    """Classify a kube API server URL such as ``https://127.0.0.1:6443``.

    A URL that cannot be parsed is treated as remote.
    """
    try:
        hostname = urlsplit(server_url).hostname
    except ValueError as e:
        logger.warning("cluster_endpoint.unparseable", url=server_url, error=str(e))
        return ClusterLocation.REMOTE
    if not hostname:
        logger.warning("cluster_endpoint.no_hostname", url=server_url)
        return ClusterLocation.REMOTE
    return classify_hostname(hostname)


def validate_hostname(answer: str) -> str | None:
    """Check that ``answer`` is a bare hostname like ``loft.example.com``.

    Rejects a scheme, a path or a port. Needs at least two dot-separated
    labels made of letters, digits and inner hyphens.
    """
    answer = answer.strip()
    if not answer or "://" in answer:
        return HOSTNAME_ERROR
    try:
        parts = urlsplit(f"https://{answer}")
        port = parts.port
    except ValueError:
        return HOSTNAME_ERROR
    if (
        port is not None
        or parts.netloc != answer
        or parts.path
        or parts.query
        or parts.fragment
        or ":" in answer
        or "@" in answer
    ):
        return HOSTNAME_ERROR
    labels = answer.split(".")
    if len(labels) < 2 or not all(HOSTNAME_LABEL_RE.match(label) for label in labels):
        return HOSTNAME_ERROR
    return None


def has_mx_record(domain: str) -> bool:
    """True if the domain publishes at least one mail exchanger."""
    try:
        answers = dns.resolver.resolve(domain, "MX")
    except dns.exception.DNSException as e:
        logger.debug("email.mx_lookup_failed", domain=domain, error=str(e))
        return False
    return len(answers) > 0


def validate_email(
    answer: str,
    mx_lookup: Callable[[str], bool] = has_mx_record,
) -> str | None:
    """Check the shape of an email address and that its domain receives mail."""
    answer = answer.strip()
    if not EMAIL_RE.match(answer):
        return f"{answer} is not a valid email address"
    domain = answer.split("@", 1)[1]
    if not mx_lookup(domain):
        return f"{answer} is not a valid email address"
    return None
