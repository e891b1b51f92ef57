"""External command execution.

helm and kubectl are always invoked through a :class:`CommandExecutor` so
the orchestration logic can run against a fake one in tests.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass, field

from ..errors import ExternalToolError
from ..shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Result of a finished external command."""

    args: list[str] = field(default_factory=list)
    returncode: int = 0
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def format_command(args: list[str]) -> str:
    """Render an argument list the way it would be typed in a shell."""
    return " ".join(shlex.quote(arg) for arg in args)


class CommandExecutor:
    """Run external tools as subprocesses."""

    def which(self, tool: str) -> str | None:
        """Return the path of ``tool`` on PATH, or None."""
        return shutil.which(tool)

    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        """Run a command to completion.

        stdout and stderr are captured together so the output can be shown
        to the operator exactly as the tool printed it.

        Args:
            args: Full argument list, tool name first.
            timeout: Optional timeout in seconds.

        Returns:
            CommandResult with the exit code and combined output.
        """
        logger.debug("command.run", command=format_command(args))
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return CommandResult(args, returncode=127, output=f"{args[0]}: command not found")
        except subprocess.TimeoutExpired as e:
            output = e.output if isinstance(e.output, str) else ""
            return CommandResult(args, returncode=-1, output=f"{output}\ntimed out after {timeout}s")
        return CommandResult(args, returncode=result.returncode, output=result.stdout or "")

    def check(self, args: list[str], message: str) -> CommandResult:
        """Run a command and raise if it fails.

        Raises:
            ExternalToolError: On non-zero exit, with the verbatim output.
        """
        result = self.run(args)
        if not result.ok:
            raise ExternalToolError(
                message=message,
                command=list(args),
                output=result.output,
                returncode=result.returncode,
            )
        return result

    def spawn(self, args: list[str]) -> subprocess.Popen:
        """Start a long-running command in the background.

        Raises:
            ExternalToolError: If the process could not be started.
        """
        logger.debug("command.spawn", command=format_command(args))
        try:
            return subprocess.Popen(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise ExternalToolError(
                message=f"Error starting {args[0]} command",
                command=list(args),
                output=str(e),
            ) from e
