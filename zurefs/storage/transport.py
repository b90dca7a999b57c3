"""
Signed HTTP transport for the blob service.

Turns a relative resource and query into a full request against the
configured endpoint, attaches the service headers, signs the request and maps
non-success responses to typed errors.

Author: Ayodele Oladeji
Date: 2025
"""

import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional, Sequence, Tuple, Union
from urllib.parse import quote

import httpx

from zurefs.auth.hmac_providers import HmacProvider
from zurefs.auth.sharedkey import SharedKeyCredentials, SharedKeySigner
from zurefs.core.config_manager import StorageEndpointConfig
from zurefs.core.logging_config import log_with_context
from zurefs.exceptions import AdapterError, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

QueryParams = Sequence[Tuple[str, str]]


def format_http_date(moment: datetime) -> str:
    """RFC1123 date, always in GMT."""
    return moment.astimezone(timezone.utc).strftime('%a, %d %b %Y %H:%M:%S GMT')


def build_query(params: Optional[QueryParams]) -> str:
    """Encode query parameters in order, escaping every reserved character."""
    if not params:
        return ""
    return "&".join(f"{key}={quote(value, safe='')}" for key, value in params)


def raise_for_status(response: httpx.Response) -> None:
    """
    Map a non-success response to the adapter error taxonomy.

    Raises:
        NotFoundError: 404
        UnauthorizedError: 401
        AdapterError: Any other non-2xx status
    """
    if response.is_success:
        return

    reason = response.reason_phrase
    if response.status_code == 404:
        raise NotFoundError(reason or "Not Found", reason=reason)
    if response.status_code == 401:
        raise UnauthorizedError(reason or "Unauthorized", reason=reason)
    raise AdapterError(
        f"Unexpected response from storage service\n{response.status_code}: {reason}",
        status_code=response.status_code,
        reason=reason,
    )


class BlobReadStream:
    """
    Byte stream over a blob download.

    Wraps a streamed httpx response; the body is read as it arrives. Close it
    (or use it as an async context manager) to release the connection.
    """

    def __init__(self, response: httpx.Response):
        self._response = response
        self._chunks = response.aiter_bytes()
        self._buffer = b""
        self._exhausted = False

    @property
    def content_length(self) -> Optional[int]:
        value = self._response.headers.get("content-length")
        return int(value) if value is not None else None

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``-1`` reads to the end of the body."""
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer += await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True

        if size < 0:
            data, self._buffer = self._buffer, b""
        else:
            data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._buffer:
            data, self._buffer = self._buffer, b""
            yield data
        async for chunk in self._chunks:
            yield chunk
        self._exhausted = True

    async def aclose(self) -> None:
        await self._response.aclose()

    async def __aenter__(self) -> "BlobReadStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class BlobTransport:
    """
    Sends SharedKey-signed requests to one storage account.

    The underlying httpx.AsyncClient is shared by every call. A client passed
    in by the caller is never closed here.
    """

    def __init__(
        self,
        config: StorageEndpointConfig,
        client: Optional[httpx.AsyncClient] = None,
        hmac_provider: Optional[HmacProvider] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Endpoint configuration
            client: Optional shared httpx client
            hmac_provider: HMAC-SHA256 implementation used by the signer
        """
        self.config = config
        self.signer = SharedKeySigner(
            SharedKeyCredentials(config.account_name, config.account_key),
            hmac_provider,
        )
        self.default_headers: Dict[str, str] = {"x-ms-version": config.api_version}
        if config.client_request_id and config.client_request_id.strip():
            self.default_headers["x-ms-client-request-id"] = config.client_request_id

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(headers=self.default_headers)

    def build_url(self, resource: str, params: Optional[QueryParams] = None) -> str:
        url = self.config.endpoint + "/" + resource.lstrip("/")
        query = build_query(params)
        return f"{url}?{query}" if query else url

    def build_request(
        self,
        method: str,
        resource: str,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[Union[bytes, str]] = None,
    ) -> httpx.Request:
        """Build and sign a request; x-ms-date is stamped here."""
        request_headers = dict(self.default_headers)
        if headers:
            request_headers.update(headers)
        request_headers["x-ms-date"] = format_http_date(datetime.now(timezone.utc))

        request = self._client.build_request(
            method,
            self.build_url(resource, params),
            headers=request_headers,
            content=content,
        )
        return self.signer.sign(request)

    async def send(
        self,
        method: str,
        resource: str,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[Union[bytes, str]] = None,
    ) -> httpx.Response:
        """
        Send a signed request and return the fully read response.

        Raises:
            NotFoundError, UnauthorizedError, AdapterError: On non-success status
        """
        request = self.build_request(method, resource, params, headers, content)
        response = await self._client.send(request)
        self._log_response(request, response)
        raise_for_status(response)
        return response

    async def open_stream(
        self,
        method: str,
        resource: str,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> BlobReadStream:
        """Send a signed request and return its body as a stream."""
        request = self.build_request(method, resource, params, headers)
        response = await self._client.send(request, stream=True)
        self._log_response(request, response)
        try:
            raise_for_status(response)
        except AdapterError:
            await response.aclose()
            raise
        return BlobReadStream(response)

    def _log_response(self, request: httpx.Request, response: httpx.Response) -> None:
        level = logging.DEBUG if response.is_success else logging.WARNING
        log_with_context(
            logger,
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            request_id=response.headers.get("x-ms-request-id"),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "BlobTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
