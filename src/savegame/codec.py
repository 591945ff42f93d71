"""Binary record framing for save data.

Current layout::

    encryption_flag (1) [key (16) if encrypted] compression_flag (1) content

Legacy layout, written before compression existed and only ever decoded::

    encryption_flag (1) [key (16) if encrypted] content

Neither layout carries a version tag.  Decoding tries the current layout
first and falls back to the legacy one when that attempt fails for any
reason.  A legacy record that also parses cleanly as a current record is
decoded as a current record; that ambiguity is part of the format.

Compression is applied before encryption, so decoding decrypts first and
decompresses second.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import MalformedRecordError
from .providers import CompressionProvider, CryptoProvider

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_LENGTH = 16
FLAG_SIZE = 1
FLAG_TRUE = b"\x01"
FLAG_FALSE = b"\x00"


class RecordLayout(enum.Enum):
    CURRENT = "current"
    LEGACY = "legacy"


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of one decode attempt (or of the whole two-stage decode)."""

    payload: Optional[bytes] = None
    layout: Optional[RecordLayout] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.payload is not None

    @staticmethod
    def failed(error: BaseException) -> "DecodeResult":
        return DecodeResult(error=error)


@dataclass(frozen=True)
class RecordHeader:
    """Current-layout header fields of a record, read without decrypting."""

    encrypted: bool
    compressed: bool
    key: Optional[bytes]
    header_length: int
    content_length: int


def _flag(value: bool) -> bytes:
    return FLAG_TRUE if value else FLAG_FALSE


def _read_flag(data: bytes, offset: int) -> bool:
    if len(data) < offset + FLAG_SIZE:
        raise MalformedRecordError(f"Record too short for flag at offset {offset} ({len(data)} bytes)")
    # Any non-zero byte reads as true.
    return data[offset] != 0


def _read_key(data: bytes, offset: int) -> bytes:
    end = offset + ENCRYPTION_KEY_LENGTH
    if len(data) < end:
        raise MalformedRecordError(f"Record too short for {ENCRYPTION_KEY_LENGTH}-byte key ({len(data)} bytes)")
    return data[offset:end]


def encode_record(
    payload: bytes,
    encrypt: bool,
    compress: bool,
    crypto: CryptoProvider,
    compressor: CompressionProvider,
) -> bytes:
    """Frame ``payload`` into the current record layout.

    Errors raised by the providers propagate to the caller.
    """
    output = bytes(payload)
    if compress:
        output = compressor.compress(output)

    if encrypt:
        key = crypto.generate_random_key(ENCRYPTION_KEY_LENGTH)
        output = crypto.encrypt(output, key)
        return b"".join((FLAG_TRUE, key, _flag(compress), output))

    return b"".join((FLAG_FALSE, _flag(compress), output))


def read_header(data: bytes) -> RecordHeader:
    """Parse the current-layout header of ``data``.

    Raises :class:`MalformedRecordError` if ``data`` is shorter than the header
    its encryption flag implies.
    """
    encrypted = _read_flag(data, 0)
    offset = FLAG_SIZE
    key = None
    if encrypted:
        key = _read_key(data, offset)
        offset += ENCRYPTION_KEY_LENGTH
    compressed = _read_flag(data, offset)
    offset += FLAG_SIZE
    return RecordHeader(
        encrypted=encrypted,
        compressed=compressed,
        key=key,
        header_length=offset,
        content_length=len(data) - offset,
    )


def _decode_current(data: bytes, crypto: CryptoProvider, compressor: CompressionProvider) -> DecodeResult:
    try:
        header = read_header(data)
        content = data[header.header_length:]
        if header.encrypted:
            content = crypto.decrypt(content, header.key)
        if header.compressed:
            content = compressor.decompress(content)
    except Exception as exc:  # noqa: BLE001 any failure selects the legacy layout
        return DecodeResult.failed(exc)
    return DecodeResult(payload=bytes(content), layout=RecordLayout.CURRENT)


def _decode_legacy(data: bytes, crypto: CryptoProvider) -> DecodeResult:
    try:
        if not _read_flag(data, 0):
            return DecodeResult(payload=bytes(data[FLAG_SIZE:]), layout=RecordLayout.LEGACY)
        key = _read_key(data, FLAG_SIZE)
        content = crypto.decrypt(data[FLAG_SIZE + ENCRYPTION_KEY_LENGTH:], key)
    except Exception as exc:  # noqa: BLE001
        return DecodeResult.failed(exc)
    return DecodeResult(payload=bytes(content), layout=RecordLayout.LEGACY)


def decode_record_detailed(
    data: bytes,
    crypto: CryptoProvider,
    compressor: CompressionProvider,
) -> DecodeResult:
    """Decode ``data``, reporting which layout matched.  Never raises."""
    current = _decode_current(data, crypto, compressor)
    if current.ok:
        return current
    logger.debug("Current layout decode failed (%s); trying legacy layout", current.error)

    legacy = _decode_legacy(data, crypto)
    if not legacy.ok:
        logger.warning("Can not decode save record (%d bytes): %s", len(data), legacy.error)
    return legacy


def decode_record(
    data: bytes,
    crypto: CryptoProvider,
    compressor: CompressionProvider,
) -> Optional[bytes]:
    """Return the payload framed in ``data``, or ``None`` if neither layout decodes."""
    return decode_record_detailed(data, crypto, compressor).payload
