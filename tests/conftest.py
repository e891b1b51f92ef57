"""Shared test fixtures for loftctl tests.

This module provides in-memory stand-ins for everything loft start talks to:
- FakeExecutor: records helm/kubectl invocations and returns canned results
- FakeProcess: a port-forward process that runs until the test ends it
- FakeCluster: the subset of ClusterClient used by loft start, backed by dicts
- ScriptedPrompter: answers questions from a list
- FakeClock: sleep/clock pair for the poller that never really sleeps
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest
from kubernetes import client

from loftctl.errors import ClusterAccessError, NotFoundError
from loftctl.start.executor import CommandExecutor, CommandResult
from loftctl.start.poller import Poller

# =============================================================================
# External commands
# =============================================================================


class FakeProcess:
    """Popen look-alike whose lifetime is controlled by the test."""

    def __init__(self, args: list[str]):
        self.args = args
        self.returncode: int | None = None
        self.terminated = False
        self._done = threading.Event()

    def exit(self, code: int = 1) -> None:
        self.returncode = code
        self._done.set()

    def wait(self, timeout: float | None = None) -> int:
        self._done.wait(timeout)
        return self.returncode if self.returncode is not None else 0

    def poll(self) -> int | None:
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.exit(-15)

    def kill(self) -> None:
        self.exit(-9)


class FakeExecutor(CommandExecutor):
    """CommandExecutor that never starts a subprocess.

    Results are matched on the longest registered argument prefix; anything
    unregistered succeeds with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.spawned: list[FakeProcess] = []
        self.missing: set[str] = set()
        self._results: dict[tuple[str, ...], tuple[int, str]] = {}

    def respond(self, *prefix: str, returncode: int = 0, output: str = "") -> None:
        self._results[prefix] = (returncode, output)

    def which(self, tool: str) -> str | None:
        return None if tool in self.missing else f"/usr/local/bin/{tool}"

    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        self.calls.append(list(args))
        best: tuple[int, str] = (0, "")
        best_len = -1
        for prefix, result in self._results.items():
            if tuple(args[: len(prefix)]) == prefix and len(prefix) > best_len:
                best, best_len = result, len(prefix)
        returncode, output = best
        return CommandResult(list(args), returncode=returncode, output=output)

    def spawn(self, args: list[str]) -> FakeProcess:  # type: ignore[override]
        process = FakeProcess(list(args))
        self.spawned.append(process)
        return process

    def commands(self, *prefix: str) -> list[list[str]]:
        """Recorded calls starting with ``prefix``."""
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


# =============================================================================
# Cluster
# =============================================================================


def make_pod(
    name: str = "loft-0",
    running: bool = True,
    ready: bool = True,
    exit_code: int | None = None,
    containers: int = 1,
) -> client.V1Pod:
    """Build a pod whose containers all share the given state."""
    if exit_code is not None:
        state = client.V1ContainerState(
            terminated=client.V1ContainerStateTerminated(
                exit_code=exit_code, reason="Error", message="boom"
            )
        )
    elif running:
        state = client.V1ContainerState(running=client.V1ContainerStateRunning())
    else:
        state = client.V1ContainerState(
            waiting=client.V1ContainerStateWaiting(reason="ContainerCreating")
        )

    statuses = [
        client.V1ContainerStatus(
            name=f"c{i}",
            ready=ready,
            restart_count=0,
            image="loftsh/loft:latest",
            image_id="",
            state=state,
        )
        for i in range(containers)
    ]
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace="loft"),
        status=client.V1PodStatus(container_statuses=statuses),
    )


class FakeCluster:
    """In-memory ClusterClient."""

    def __init__(self, host: str = "https://127.0.0.1:6443") -> None:
        self.host = host
        self.context = "kind-loft"
        self.namespaces: dict[str, str] = {}
        self.deployments: dict[tuple[str, str], dict[str, str]] = {}
        self.ingresses: dict[tuple[str, str], list[str | None]] = {}
        self.ingress_classes: list[str] = []
        self.cluster_roles: set[str] = {"cluster-admin"}
        self.secrets: dict[str, list[client.V1Secret]] = {}
        self.custom_objects: dict[tuple[str, str], list[dict[str, Any]]] = {}

        # Each list_pods call pops the next entry; the last one repeats.
        self.pod_lists: list[list[client.V1Pod]] = []

        self.created: list[tuple[str, Any]] = []
        self.deleted: list[tuple[str, str]] = []
        self.patched: list[tuple[str, str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        error = self.failures.get(method)
        if error is not None:
            raise error

    # Setup helpers

    def add_deployment(self, namespace: str = "loft", labels: dict[str, str] | None = None) -> None:
        self.deployments[(namespace, "loft")] = (
            labels if labels is not None else {"release": "loft"}
        )

    def add_ingress(self, namespace: str = "loft", hosts: list[str | None] | None = None) -> None:
        self.ingresses[(namespace, "loft-ingress")] = hosts if hosts is not None else []

    # ClusterClient API

    def get_namespace(self, name: str) -> client.V1Namespace:
        self._enter("get_namespace")
        if name not in self.namespaces:
            raise NotFoundError(message=f"reading namespace {name}: not found")
        return client.V1Namespace(metadata=client.V1ObjectMeta(name=name, uid=self.namespaces[name]))

    def create_namespace(self, name: str) -> client.V1Namespace:
        self._enter("create_namespace")
        self.namespaces[name] = f"uid-{name}"
        self.created.append(("namespace", name))
        return client.V1Namespace(metadata=client.V1ObjectMeta(name=name, uid=self.namespaces[name]))

    def get_deployment(self, namespace: str, name: str) -> client.V1Deployment:
        self._enter("get_deployment")
        if (namespace, name) not in self.deployments:
            raise NotFoundError(message=f"reading deployment {namespace}/{name}: not found")
        return client.V1Deployment(
            metadata=client.V1ObjectMeta(
                name=name, namespace=namespace, labels=self.deployments[(namespace, name)]
            ),
            spec=client.V1DeploymentSpec(
                selector=client.V1LabelSelector(match_labels={"app": "loft"}),
                template=client.V1PodTemplateSpec(),
            ),
        )

    def list_pods(self, namespace: str, label_selector: str) -> list[client.V1Pod]:
        self._enter("list_pods")
        if not self.pod_lists:
            return []
        if len(self.pod_lists) > 1:
            return self.pod_lists.pop(0)
        return self.pod_lists[0]

    def get_ingress(self, namespace: str, name: str) -> client.V1Ingress:
        self._enter("get_ingress")
        if (namespace, name) not in self.ingresses:
            raise NotFoundError(message=f"reading ingress {namespace}/{name}: not found")
        rules = [client.V1IngressRule(host=h) for h in self.ingresses[(namespace, name)]]
        return client.V1Ingress(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            spec=client.V1IngressSpec(rules=rules or None),
        )

    def list_ingress_classes(self) -> list[client.V1IngressClass]:
        self._enter("list_ingress_classes")
        return [
            client.V1IngressClass(metadata=client.V1ObjectMeta(name=n)) for n in self.ingress_classes
        ]

    def get_cluster_role(self, name: str) -> client.V1ClusterRole:
        self._enter("get_cluster_role")
        if name not in self.cluster_roles:
            raise NotFoundError(message=f"reading cluster role {name}: not found")
        return client.V1ClusterRole(metadata=client.V1ObjectMeta(name=name))

    def delete_validating_webhook(self, name: str) -> None:
        self._enter("delete_validating_webhook")
        self.deleted.append(("validatingwebhookconfiguration", name))

    def delete_api_service(self, name: str) -> None:
        self._enter("delete_api_service")
        self.deleted.append(("apiservice", name))

    def delete_cluster_custom_object(self, group: str, version: str, plural: str, name: str) -> None:
        self._enter("delete_cluster_custom_object")
        self.deleted.append((f"{plural}.{group}", name))

    def list_secrets(self, namespace: str, label_selector: str) -> list[client.V1Secret]:
        self._enter("list_secrets")
        return self.secrets.get(namespace, [])

    def patch_secret(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        self._enter("patch_secret")
        self.patched.append((namespace, name, body))

    def list_custom_objects(
        self, group: str, version: str, namespace: str, plural: str
    ) -> list[dict[str, Any]]:
        self._enter("list_custom_objects")
        return self.custom_objects.get((namespace, plural), [])

    def create_custom_object(
        self, group: str, version: str, namespace: str, plural: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        self._enter("create_custom_object")
        self.created.append((plural, body))
        return body


# =============================================================================
# Prompts and time
# =============================================================================


class ScriptedPrompter:
    """Prompter that answers from a script.

    ``None`` in the script means "accept the default". Text answers that the
    validator rejects are recorded and the next answer is used, the way
    questionary re-prompts.
    """

    def __init__(self, answers: list[Any] | None = None) -> None:
        self.answers = list(answers or [])
        self.questions: list[str] = []
        self.rejected: list[tuple[str, str]] = []

    def _next(self, question: str) -> Any:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected question: {question}")
        return self.answers.pop(0)

    def select(self, question, choices, default=None):
        answer = self._next(question)
        if answer is None:
            answer = default
        assert isinstance(answer, choices), f"{answer!r} is not a {choices.__name__}"
        return answer

    def select_value(self, question, values, default=None):
        answer = self._next(question)
        if answer is None:
            answer = default
        assert answer in values
        return answer

    def text(self, question, validate: Callable[[str], str | None] | None = None) -> str:
        while True:
            answer = self._next(question)
            error = validate(answer) if validate else None
            if error is None:
                return answer.strip()
            self.rejected.append((answer, error))


class FakeProbe:
    """ReachabilityProbe stand-in answering from two scripts.

    Each script entry is a bool, an exception to raise, or a callable
    returning a bool. The last entry repeats once the script runs out.
    """

    def __init__(self, probe: list[Any] | None = None, serving: list[Any] | None = None) -> None:
        self.probe_script = list(probe or [True])
        self.serving_script = list(serving or [True])
        self.probe_calls: list[str] = []
        self.serving_calls: list[str] = []

    @staticmethod
    def _answer(script: list[Any]) -> bool:
        entry = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            return entry()
        return entry

    def probe(self, host: str) -> bool:
        self.probe_calls.append(host)
        return self._answer(self.probe_script)

    def serving(self, host: str) -> bool:
        self.serving_calls.append(host)
        return self._answer(self.serving_script)


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def poller(clock: FakeClock) -> Poller:
    return Poller(sleep=clock.sleep, clock=clock)


@pytest.fixture
def pod_factory() -> Callable[..., client.V1Pod]:
    return make_pod


@pytest.fixture
def cluster_error() -> Callable[..., ClusterAccessError]:
    def factory(message: str = "forbidden", status: int = 403) -> ClusterAccessError:
        return ClusterAccessError(message=message, status=status)

    return factory


@pytest.fixture
def prompter_factory() -> Callable[..., ScriptedPrompter]:
    return ScriptedPrompter


@pytest.fixture
def probe_factory() -> Callable[..., FakeProbe]:
    return FakeProbe
