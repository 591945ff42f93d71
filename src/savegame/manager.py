from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Tuple

from .codec import decode_record, encode_record
from .config import SaveGameConfig
from .paths import default_store_path, ensure_dir
from .providers import (
    AesCryptoProvider,
    CompressionProvider,
    CryptoProvider,
    DeflateCompressionProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


class SaveGameManager:
    """Persists named save data as framed records under a store directory.

    Each name maps to ``<store_path>/<name><extension>``.  A write handle is
    opened on the first save of a name and reused by later saves of the same
    name; it is closed before that name is loaded or deleted, and all handles
    are closed by :meth:`dispose`.

    Public operations report failure through their return value (``False`` or
    ``None``) and log a warning instead of raising.  A manager is meant to be
    used from one thread; callers serialize access per name.
    """

    def __init__(
        self,
        store_path: Optional[Path] = None,
        crypto_provider: Optional[CryptoProvider] = None,
        compression_provider: Optional[CompressionProvider] = None,
        config: Optional[SaveGameConfig] = None,
    ) -> None:
        self.config = config or SaveGameConfig.default()
        if store_path is not None:
            self._store_path = Path(store_path)
        elif self.config.store_path is not None:
            self._store_path = Path(self.config.store_path)
        else:
            self._store_path = default_store_path(self.config.app_name)
        self._crypto = crypto_provider or AesCryptoProvider()
        self._compression = compression_provider or DeflateCompressionProvider(
            level=self.config.compression_level
        )
        self._handles: Optional[Dict[str, BinaryIO]] = {}

    def __enter__(self) -> "SaveGameManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    @property
    def store_path(self) -> Path:
        return self._store_path

    @property
    def crypto_provider(self) -> CryptoProvider:
        return self._crypto

    @property
    def compression_provider(self) -> CompressionProvider:
        return self._compression

    # Paths

    def get_file_path(self, name: str, auto_create_folder: bool = False) -> Optional[Path]:
        """Return the file path for ``name``, optionally creating the store directory."""
        if not name:
            return None
        if auto_create_folder:
            try:
                ensure_dir(self._store_path)
            except OSError as exc:
                logger.warning("Create save folder failed: %s", exc)
                return None
        return self._store_path / f"{name}{self.config.file_extension}"

    def exists_save_data(self, name: str) -> bool:
        path = self.get_file_path(name)
        return path is not None and path.is_file()

    # Loading

    def load_game_data(self, name: str) -> Optional[bytes]:
        """Load and decode the record saved under ``name``.

        Returns None when the name is empty, nothing is stored, the file
        can not be read, or the record decodes under neither layout.
        """
        path = self.get_file_path(name)
        if path is None:
            return None

        # A pending writer for this name must not be read through.
        self._close_handle(name)

        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            logger.debug("No save data for %r at %s", name, path)
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Can not load save data %r: %s", name, exc)
            return None

        return self.decode_game_data(raw)

    def load_game(self, name: str) -> Optional[str]:
        return self._to_text(self.load_game_data(name), name)

    def try_load_game_data(self, name: str) -> Tuple[bool, Optional[bytes]]:
        if not self.exists_save_data(name):
            return False, None
        data = self.load_game_data(name)
        return data is not None, data

    def try_load_game(self, name: str) -> Tuple[bool, Optional[str]]:
        found, data = self.try_load_game_data(name)
        text = self._to_text(data, name) if found else None
        return text is not None, text

    def decode_game_data(self, raw: bytes) -> Optional[bytes]:
        """Decode a record already held in memory with this manager's providers."""
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            return None
        return decode_record(raw, self._crypto, self._compression)

    def decode_game(self, raw: bytes) -> Optional[str]:
        return self._to_text(self.decode_game_data(raw), "<bytes>")

    # Saving

    def save_game(
        self,
        name: str,
        data: str,
        encrypt: Optional[bool] = None,
        compress: Optional[bool] = None,
    ) -> bool:
        if not isinstance(data, str):
            return False
        try:
            raw = data.encode(DEFAULT_ENCODING)
        except UnicodeEncodeError as exc:
            logger.warning("Save data %r is not encodable as %s: %s", name, DEFAULT_ENCODING, exc)
            return False
        return self.save_game_data(name, raw, encrypt, compress)

    def save_game_data(
        self,
        name: str,
        data: bytes,
        encrypt: Optional[bool] = None,
        compress: Optional[bool] = None,
    ) -> bool:
        """Frame ``data`` and overwrite the file for ``name`` with it.

        ``encrypt`` and ``compress`` default to the configured values.
        Returns False on invalid input or any failure while encoding or writing.
        """
        if not name or not isinstance(data, (bytes, bytearray, memoryview)):
            return False
        encrypt = self.config.encrypt if encrypt is None else encrypt
        compress = self.config.compress if compress is None else compress

        try:
            record = encode_record(data, encrypt, compress, self._crypto, self._compression)
            handle = self._open_handle(name)
            handle.seek(0)
            handle.write(record)
            handle.truncate(len(record))
            handle.flush()
            os.fsync(handle.fileno())
        except Exception as exc:  # noqa: BLE001 reported through the return value
            logger.warning("Save game data %r failed: %s", name, exc, exc_info=True)
            return False
        logger.debug(
            "Saved %r (%d bytes, encrypt=%s, compress=%s)", name, len(record), encrypt, compress
        )
        return True

    # Deleting / teardown

    def delete_save_data(self, name: str) -> bool:
        """Delete the save file for ``name``; returns True if a file was removed."""
        if not self.exists_save_data(name):
            return False
        self._close_handle(name)
        try:
            self.get_file_path(name).unlink()
        except OSError as exc:
            logger.warning("Can not delete save data %r: %s", name, exc)
            return False
        logger.info("Deleted save data %r", name)
        return True

    def dispose(self) -> None:
        """Close every open write handle.  Safe to call more than once."""
        if self._handles is None:
            return
        for name in list(self._handles):
            self._close_handle(name)
        self._handles = None

    # Internal utilities

    def _open_handle(self, name: str) -> BinaryIO:
        if self._handles is None:
            raise RuntimeError("SaveGameManager has been disposed")
        handle = self._handles.get(name)
        if handle is None:
            path = self.get_file_path(name, auto_create_folder=True)
            if path is None:
                raise OSError(f"Can not resolve save path for {name!r}")
            # Open without truncating; the record length is set after writing.
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | getattr(os, "O_BINARY", 0), 0o644)
            handle = os.fdopen(fd, "wb")
            self._handles[name] = handle
        return handle

    def _close_handle(self, name: str) -> None:
        if not self._handles:
            return
        handle = self._handles.pop(name, None)
        if handle is None:
            return
        try:
            handle.close()
        except OSError as exc:
            logger.warning("Closing save handle for %r failed: %s", name, exc)

    @staticmethod
    def _to_text(data: Optional[bytes], name: str) -> Optional[str]:
        if data is None:
            return None
        try:
            return data.decode(DEFAULT_ENCODING)
        except UnicodeDecodeError as exc:
            logger.warning("Save data %r is not valid %s text: %s", name, DEFAULT_ENCODING, exc)
            return None
