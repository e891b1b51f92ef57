"""Shared modules for loftctl.

Paths and logging setup used by every command.
"""

from .logging import configure_logging, get_logger, level_for_verbosity
from .paths import CONFIG_FILE, LOFT_DIR, ensure_dirs

__all__ = [
    # Paths
    "LOFT_DIR",
    "CONFIG_FILE",
    "ensure_dirs",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
