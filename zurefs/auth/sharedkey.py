"""
SharedKey request signing for Azure Blob Storage.

Builds the canonical string-to-sign for an outgoing request and attaches the
``Authorization: SharedKey <account>:<signature>`` header. Signing is a pure
function of the request, the account name and the account key.

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/authorize-with-shared-key

Author: Ayodele Oladeji
Date: 2025
"""

import base64
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional
from urllib.parse import unquote

import httpx

from zurefs.auth.hmac_providers import HashlibHmacProvider, HmacProvider

logger = logging.getLogger(__name__)

CUSTOM_HEADER_PREFIX = "x-ms-"

# Standard headers, in string-to-sign order, between the verb and the
# canonicalized headers.
STANDARD_HEADERS = (
    "content-encoding",
    "content-language",
    "content-length",
    "content-md5",
    "content-type",
    "date",
    "if-modified-since",
    "if-match",
    "if-none-match",
    "if-unmodified-since",
    "range",
)


@dataclass(frozen=True)
class SharedKeyCredentials:
    """Credentials for SharedKey authentication."""

    account_name: str
    account_key: str  # Base64-encoded


def _lower_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Lower-case header names; the first occurrence of a name wins."""
    lowered: Dict[str, str] = {}
    for name, value in headers.items():
        lowered.setdefault(name.lower(), value)
    return lowered


def build_canonicalized_headers(headers: Mapping[str, str]) -> str:
    """
    Build CanonicalizedHeaders string.

    Rules:
    1. Include all headers whose lower-cased name starts with "x-ms-"
    2. Deduplicate by name and sort lexicographically
    3. Replace newlines in values with a space, then trim
    4. Format: "name:value", joined by "\\n"

    Args:
        headers: Final request headers, client-wide defaults included

    Returns:
        Canonicalized headers string
    """
    ms_headers = {
        name: value
        for name, value in _lower_headers(headers).items()
        if name.startswith(CUSTOM_HEADER_PREFIX)
    }

    return "\n".join(
        f"{name}:{ms_headers[name].replace(chr(10), ' ').strip()}"
        for name in sorted(ms_headers)
    )


def build_canonicalized_resource(account_name: str, path: str, query: str = "") -> str:
    """
    Build CanonicalizedResource string.

    Format:
        /account-name/resource-path
        param1:value1
        param2:value2,value3

    Each raw ``key=value`` pair is unescaped and the pairs are sorted as whole
    strings before being grouped by lower-cased key, so duplicate keys list
    their values in the order of that sort.

    Args:
        account_name: Storage account name
        path: Absolute request path as sent (still URL-encoded)
        query: Raw query string without the leading "?"

    Returns:
        Canonicalized resource string
    """
    resource = f"/{account_name.strip()}{path or '/'}"

    params = sorted(unquote(param) for param in query.lstrip("?").split("&") if param)
    if not params:
        return resource

    grouped: Dict[str, List[str]] = {}
    for param in params:
        key = param.split("=")[0].lower()
        grouped.setdefault(key, []).append(param[param.find("=") + 1:])

    lines = [f"{key}:{','.join(values)}" for key, values in grouped.items()]
    return resource + "\n" + "\n".join(lines)


def build_string_to_sign(
    method: str,
    headers: Mapping[str, str],
    account_name: str,
    path: str,
    query: str = "",
) -> str:
    """
    Build the SharedKey string-to-sign.

    Format:
        VERB\\n
        Content-Encoding\\n
        Content-Language\\n
        Content-Length\\n
        Content-MD5\\n
        Content-Type\\n
        Date\\n
        If-Modified-Since\\n
        If-Match\\n
        If-None-Match\\n
        If-Unmodified-Since\\n
        Range\\n
        CanonicalizedHeaders\\n
        CanonicalizedResource
    """
    lowered = _lower_headers(headers)

    parts = [method.upper()]
    for name in STANDARD_HEADERS:
        value = lowered.get(name, "")
        # Zero-length bodies sign an empty Content-Length
        if name == "content-length" and value == "0":
            value = ""
        parts.append(value)

    parts.append(build_canonicalized_headers(headers))
    parts.append(build_canonicalized_resource(account_name, path, query))

    return "\n".join(parts)


def compute_signature(
    string_to_sign: str,
    account_key: str,
    hmac_provider: Optional[HmacProvider] = None,
) -> str:
    """
    Compute the SharedKey signature.

    Signature = Base64(HMAC-SHA256(Base64Decode(AccountKey), UTF8(StringToSign)))
    """
    provider = hmac_provider or HashlibHmacProvider()
    digest = provider.hmac_sha256(base64.b64decode(account_key), string_to_sign.encode("utf-8"))
    return base64.b64encode(digest).decode("utf-8")


class SharedKeySigner:
    """
    Signs outgoing httpx requests with the SharedKey scheme.

    Must run after every other header (x-ms-date included) is attached, so the
    signature covers the final header set.
    """

    SCHEME = "SharedKey"

    def __init__(
        self,
        credentials: SharedKeyCredentials,
        hmac_provider: Optional[HmacProvider] = None,
    ):
        """
        Initialize the signer.

        Args:
            credentials: Account name and base64 account key
            hmac_provider: HMAC-SHA256 implementation; defaults to the stdlib one
        """
        self.credentials = credentials
        self.hmac_provider = hmac_provider or HashlibHmacProvider()

    def string_to_sign(self, request: httpx.Request) -> str:
        raw_path = request.url.raw_path.decode("ascii")
        path = raw_path.split("?", 1)[0]
        query = request.url.query.decode("ascii")
        return build_string_to_sign(
            request.method,
            request.headers,
            self.credentials.account_name,
            path,
            query,
        )

    def sign(self, request: httpx.Request) -> httpx.Request:
        """Attach the Authorization header to ``request`` and return it."""
        string_to_sign = self.string_to_sign(request)
        signature = compute_signature(string_to_sign, self.credentials.account_key, self.hmac_provider)
        request.headers["Authorization"] = (
            f"{self.SCHEME} {self.credentials.account_name.strip()}:{signature}"
        )
        logger.debug(f"Signed {request.method} {request.url.path}; string-to-sign: {string_to_sign!r}")
        return request
