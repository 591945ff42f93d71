"""
Save data persistence.

This package provides:
- A binary record codec that frames payloads with encryption and
  compression flags, and still reads records written before compression
  support existed
- Pluggable crypto (AES) and compression (Deflate) providers
- A SaveGameManager that maps save names to files under a store directory

Applications should construct one SaveGameManager and call dispose() (or use
it as a context manager) before shutting down.
"""

from .codec import (
    ENCRYPTION_KEY_LENGTH,
    DecodeResult,
    RecordHeader,
    RecordLayout,
    decode_record,
    decode_record_detailed,
    encode_record,
    read_header,
)
from .config import SaveGameConfig
from .errors import MalformedRecordError, SaveGameError
from .manager import SaveGameManager
from .providers import (
    AesCryptoProvider,
    CompressionProvider,
    CryptoProvider,
    DeflateCompressionProvider,
)

__version__ = "1.0.0"

__all__ = [
    "ENCRYPTION_KEY_LENGTH",
    "DecodeResult",
    "RecordHeader",
    "RecordLayout",
    "decode_record",
    "decode_record_detailed",
    "encode_record",
    "read_header",
    "SaveGameConfig",
    "SaveGameError",
    "MalformedRecordError",
    "SaveGameManager",
    "AesCryptoProvider",
    "CompressionProvider",
    "CryptoProvider",
    "DeflateCompressionProvider",
]
