import logging
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from savegame.providers import CompressionProvider, CryptoProvider  # noqa: E402


class XorCryptoProvider(CryptoProvider):
    """Deterministic stand-in for AES; rejects content prefixed by anything but its marker."""

    MARKER = b"XOR"

    def encrypt(self, data: bytes, key: bytes) -> bytes:
        return self.MARKER + bytes(b ^ key[i % len(key)] for i, b in enumerate(data))

    def decrypt(self, data: bytes, key: bytes) -> bytes:
        if not data.startswith(self.MARKER):
            raise ValueError("not an XOR ciphertext")
        body = data[len(self.MARKER):]
        return bytes(b ^ key[i % len(key)] for i, b in enumerate(body))


class FailingCryptoProvider(CryptoProvider):
    def encrypt(self, data: bytes, key: bytes) -> bytes:
        raise RuntimeError("encrypt exploded")

    def decrypt(self, data: bytes, key: bytes) -> bytes:
        raise RuntimeError("decrypt exploded")


class FailingCompressionProvider(CompressionProvider):
    def compress(self, data: bytes) -> bytes:
        raise RuntimeError("compress exploded")

    def decompress(self, data: bytes) -> bytes:
        raise RuntimeError("decompress exploded")


@pytest.fixture()
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "saves"


@pytest.fixture()
def clean_env(monkeypatch):
    for var in ("SAVEGAME_STORE_DIR", "SAVEGAME_DEV", "SAVEGAME_EXTENSION"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    pkg = logging.getLogger("savegame")
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
    pkg.setLevel(logging.NOTSET)
