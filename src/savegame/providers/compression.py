from __future__ import annotations

import zlib
from abc import ABC, abstractmethod

# Negative window bits select a raw Deflate stream without zlib/gzip framing.
RAW_DEFLATE_WBITS = -zlib.MAX_WBITS


class CompressionProvider(ABC):
    """Compresses and decompresses save data."""

    @abstractmethod
    def compress(self, data: bytes) -> bytes:
        """Return the compressed form of ``data``."""

    @abstractmethod
    def decompress(self, data: bytes) -> bytes:
        """Return the original bytes; raise when ``data`` is not a valid stream."""


class DeflateCompressionProvider(CompressionProvider):
    """Raw Deflate implementation of :class:`CompressionProvider`.

    Decompression is strict: a truncated stream or bytes trailing the end of
    the stream raise :class:`zlib.error`.
    """

    def __init__(self, level: int = zlib.Z_DEFAULT_COMPRESSION) -> None:
        if not -1 <= level <= 9:
            raise ValueError(f"Compression level must be between -1 and 9, got {level}")
        self.level = level

    def compress(self, data: bytes) -> bytes:
        compressor = zlib.compressobj(self.level, zlib.DEFLATED, RAW_DEFLATE_WBITS)
        return compressor.compress(data) + compressor.flush()

    def decompress(self, data: bytes) -> bytes:
        decompressor = zlib.decompressobj(RAW_DEFLATE_WBITS)
        out = decompressor.decompress(data) + decompressor.flush()
        if not decompressor.eof:
            raise zlib.error("Incomplete deflate stream")
        if decompressor.unused_data:
            raise zlib.error(f"{len(decompressor.unused_data)} bytes trailing deflate stream")
        return out
