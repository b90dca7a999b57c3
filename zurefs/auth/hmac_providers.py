"""
HMAC-SHA256 providers for SharedKey signing.

The signer takes one of these as a constructor argument; callers pick the
implementation for their platform instead of having it discovered at runtime.
"""

import hashlib
import hmac
from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac


@runtime_checkable
class HmacProvider(Protocol):
    """Single-method cryptographic capability consumed by the signer."""

    def hmac_sha256(self, key: bytes, message: bytes) -> bytes:
        ...


class HashlibHmacProvider:
    """HMAC-SHA256 backed by the standard library."""

    def hmac_sha256(self, key: bytes, message: bytes) -> bytes:
        return hmac.new(key, message, hashlib.sha256).digest()


class CryptographyHmacProvider:
    """HMAC-SHA256 backed by the ``cryptography`` package (OpenSSL)."""

    def hmac_sha256(self, key: bytes, message: bytes) -> bytes:
        mac = crypto_hmac.HMAC(key, hashes.SHA256())
        mac.update(message)
        return mac.finalize()
