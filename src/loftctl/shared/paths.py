"""Path management for loftctl.

All local state lives under ~/.loft/.
"""

from pathlib import Path

# Base directory for all loft CLI data
LOFT_DIR = Path.home() / ".loft"

# CLI configuration file
CONFIG_FILE = LOFT_DIR / "config.yaml"


def ensure_dirs() -> None:
    """Create ~/.loft/ (mode 0o700) if missing."""
    LOFT_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
