"""CLI commands for loftctl."""

from .start import start
from .wakeup import wakeup

__all__ = ["start", "wakeup"]
