"""Start package for installing and connecting to loft.

This package provides the `loft start` command which:
1. Checks that helm, kubectl and cluster-admin access are available
2. Detects an existing loft installation
3. Installs, upgrades or resets loft via helm
4. Waits for the loft pod to become ready
5. Connects the operator via ingress/DNS or kubectl port-forward
"""

from .cluster import ClusterClient, KubeContexts, load_kube_contexts
from .connectivity import LocalConnector, PortForwardSession, RemoteConnector
from .credentials import PasswordResolver
from .decision import StartAction, StartOrchestrator, StartResult, resolve_kube_context
from .executor import CommandExecutor, CommandResult
from .health import ReachabilityProbe, ReadinessVerifier
from .helm import HelmDeployer, IngressControllerInstaller
from .plan import ConnectivityTarget, InstallPlan, LocalTarget, RemoteTarget, StartOptions
from .poller import Poller, PollSpec, poll, poll_immediate
from .prerequisites import PreflightValidator, ToolDetector, ToolInfo
from .prompts import Prompter
from .state import DeploymentState, InstallStateDetector
from .validation import (
    ClusterLocation,
    classify_cluster_endpoint,
    validate_email,
    validate_hostname,
)

__all__ = [
    # Cluster access
    "ClusterClient",
    "KubeContexts",
    "load_kube_contexts",
    "CommandExecutor",
    "CommandResult",
    # Preflight
    "PreflightValidator",
    "ToolDetector",
    "ToolInfo",
    # State and decisions
    "DeploymentState",
    "InstallStateDetector",
    "StartAction",
    "StartOrchestrator",
    "StartResult",
    "StartOptions",
    "resolve_kube_context",
    "Prompter",
    # Plan
    "InstallPlan",
    "ConnectivityTarget",
    "LocalTarget",
    "RemoteTarget",
    "PasswordResolver",
    # Deployment
    "HelmDeployer",
    "IngressControllerInstaller",
    # Health and connectivity
    "ReachabilityProbe",
    "ReadinessVerifier",
    "LocalConnector",
    "RemoteConnector",
    "PortForwardSession",
    # Polling
    "Poller",
    "PollSpec",
    "poll",
    "poll_immediate",
    # Validation
    "ClusterLocation",
    "classify_cluster_endpoint",
    "validate_email",
    "validate_hostname",
]
