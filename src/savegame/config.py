from __future__ import annotations

import json
import logging
import os
import zlib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import DEFAULT_APP_NAME, ENV_STORE_DIR

logger = logging.getLogger(__name__)


CONFIG_PATHS = [
    Path("configs/savegame.json"),
    Path("savegame.json"),
]

ENV_EXTENSION = "SAVEGAME_EXTENSION"


def normalize_extension(extension: str) -> str:
    if not isinstance(extension, str):
        raise ValueError(f"Save file extension must be a string, got {extension!r}")
    ext = extension.strip()
    if not ext or ext == ".":
        raise ValueError("Save file extension must not be empty")
    return ext if ext.startswith(".") else f".{ext}"


@dataclass
class SaveGameConfig:
    """
    Save store configuration with sensible defaults.

    You can override by providing configs/savegame.json (or savegame.json)
    with keys:
      - store_path: str (default: platform user data dir, see savegame.paths)
      - file_extension: str (default ".sav")
      - app_name: str (default "SaveGame")
      - encrypt: bool (default True)
      - compress: bool (default False)
      - compression_level: int, -1..9 (default -1, zlib's default)

    SAVEGAME_STORE_DIR and SAVEGAME_EXTENSION take precedence over the file.
    """

    store_path: Optional[Path] = None
    file_extension: str = ".sav"
    app_name: str = DEFAULT_APP_NAME
    encrypt: bool = True
    compress: bool = False
    compression_level: int = zlib.Z_DEFAULT_COMPRESSION

    def __post_init__(self) -> None:
        self.file_extension = normalize_extension(self.file_extension)
        level = self.compression_level
        if isinstance(level, bool) or not isinstance(level, int) or not -1 <= level <= 9:
            raise ValueError(f"compression_level must be an integer between -1 and 9, got {level!r}")
        if self.store_path is not None:
            self.store_path = Path(self.store_path).expanduser()

    @staticmethod
    def default() -> "SaveGameConfig":
        return SaveGameConfig()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SaveGameConfig":
        known = {f.name for f in fields(SaveGameConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown save config keys: %s", unknown)
        return SaveGameConfig(**{k: v for k, v in data.items() if k in known})

    @staticmethod
    def load(path: Optional[Path] = None) -> "SaveGameConfig":
        data: Dict[str, Any] = {}
        candidates = [Path(path)] if path is not None else CONFIG_PATHS
        for candidate in candidates:
            if candidate.exists():
                try:
                    loaded = json.loads(candidate.read_text(encoding="utf-8"))
                    if not isinstance(loaded, dict):
                        raise ValueError("top-level JSON value must be an object")
                    data = loaded
                    logger.info("Loaded save config from %s", candidate)
                    break
                except (OSError, ValueError) as e:
                    logger.warning("Failed to load save config from %s: %s", candidate, e)
                    data = {}

        store_dir = os.getenv(ENV_STORE_DIR)
        if store_dir:
            data["store_path"] = store_dir
        extension = os.getenv(ENV_EXTENSION)
        if extension:
            data["file_extension"] = extension

        try:
            return SaveGameConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid save config, using defaults: %s", e)
            return SaveGameConfig.default()
