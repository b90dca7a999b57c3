"""
zurefs Authentication Module.

SharedKey request signing with an injectable HMAC-SHA256 provider.
"""

from zurefs.auth.hmac_providers import (
    CryptographyHmacProvider,
    HashlibHmacProvider,
    HmacProvider,
)
from zurefs.auth.sharedkey import (
    SharedKeyCredentials,
    SharedKeySigner,
    build_canonicalized_headers,
    build_canonicalized_resource,
    build_string_to_sign,
    compute_signature,
)

__all__ = [
    # HMAC providers
    "HmacProvider",
    "HashlibHmacProvider",
    "CryptographyHmacProvider",
    # SharedKey
    "SharedKeyCredentials",
    "SharedKeySigner",
    "build_canonicalized_headers",
    "build_canonicalized_resource",
    "build_string_to_sign",
    "compute_signature",
]
