"""Error types for loftctl.

Every fatal condition of a run is a LoftError. The command layer prints
``message`` (and ``hint`` when present) to stderr and exits non-zero.
"""

from dataclasses import dataclass, field

RESET_HINT = "Try running 'loft start --reset'"
RESTART_HINT = "Please restart the command via 'loft start'"


@dataclass
class LoftError(Exception):
    """Base error class for loftctl errors."""

    message: str
    hint: str | None = None

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}. {self.hint}"
        return self.message


@dataclass
class PreflightError(LoftError):
    """A required tool is missing or the cluster is not usable."""


@dataclass
class ClusterAccessError(LoftError):
    """A cluster API call failed for a reason other than not-found."""

    status: int | None = None


@dataclass
class NotFoundError(ClusterAccessError):
    """The requested cluster object does not exist."""

    status: int | None = 404


@dataclass
class ExternalToolError(LoftError):
    """An external command exited non-zero.

    ``output`` is the command's combined stdout/stderr, unmodified.
    """

    command: list[str] = field(default_factory=list)
    output: str = ""
    returncode: int | None = None

    def __str__(self) -> str:
        return f"{self.message}: {self.output} (exit code {self.returncode})"


@dataclass
class PollTimeoutError(LoftError):
    """A bounded wait elapsed without the condition becoming true."""

    elapsed_seconds: float = 0.0

    def __str__(self) -> str:
        return f"{self.message} (gave up after {self.elapsed_seconds:.0f}s)"


@dataclass
class TunnelClosedError(LoftError):
    """The port-forwarding process ended while the run still needed it."""

    message: str = "Port-forwarding has unexpectedly ended"
    hint: str | None = RESTART_HINT


@dataclass
class BadResponseError(LoftError):
    """The /version endpoint answered 200 with an unusable body."""

    url: str = ""
    hint: str | None = RESET_HINT


@dataclass
class InvalidPlanError(LoftError):
    """An InstallPlan was built with inconsistent values."""
