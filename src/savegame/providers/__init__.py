"""Pluggable encryption and compression used by the record codec."""

from .compression import CompressionProvider, DeflateCompressionProvider
from .crypto import AesCryptoProvider, CryptoProvider

__all__ = [
    "AesCryptoProvider",
    "CompressionProvider",
    "CryptoProvider",
    "DeflateCompressionProvider",
]
