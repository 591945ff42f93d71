from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import PlatformDirs

__all__ = [
    "DEFAULT_APP_NAME",
    "ENV_DEV",
    "ENV_STORE_DIR",
    "is_development",
    "default_store_path",
    "ensure_dir",
]

DEFAULT_APP_NAME = "SaveGame"

# Environment variable overrides (useful for tests and development checkouts)
ENV_STORE_DIR = "SAVEGAME_STORE_DIR"
ENV_DEV = "SAVEGAME_DEV"

_TRUTHY = {"1", "true", "yes", "on"}

_logger = logging.getLogger(__name__)


def is_development() -> bool:
    """Return True when running from a development checkout.

    Enabled when the SAVEGAME_DEV environment variable is set to one of
    "1", "true", "yes" or "on" (case-insensitive).
    """
    return os.getenv(ENV_DEV, "").strip().lower() in _TRUTHY


def default_store_path(app_name: str = DEFAULT_APP_NAME) -> Path:
    """Return the directory where save files live when none is configured.

    - SAVEGAME_STORE_DIR, if set
    - Development: <cwd>/Saves
    - Otherwise: <platform user data dir>/saves
    """
    override = os.getenv(ENV_STORE_DIR)
    if override:
        return Path(override).expanduser().resolve()
    if is_development():
        return Path.cwd().resolve() / "Saves"
    dirs = PlatformDirs(appname=app_name, appauthor=False)
    return Path(dirs.user_data_dir) / "saves"


def ensure_dir(path: Path) -> Path:
    """Create the directory if it doesn't exist. Log and raise on failure."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        _logger.error("Failed to create directory '%s': %s", path, exc)
        raise
    return path
