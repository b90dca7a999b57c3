"""
Blob Storage Filesystem Service

Virtual filesystem over Azure Blob Storage. Top-level directories are
containers; anything deeper is a blob-name prefix with no backend record of
its own.

Author: Ayodele Oladeji
Date: 2025
"""

import asyncio
import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from zurefs.auth.hmac_providers import HmacProvider
from zurefs.core.config_manager import StorageEndpointConfig
from zurefs.exceptions import AdapterError, ArgumentError, ConfigurationError, NotFoundError
from zurefs.storage.blocks import MAX_BLOCK_SIZE, BlockUploader
from zurefs.storage.interface import VirtualFileSystem
from zurefs.storage.listing import PaginatedLister, parse_http_date
from zurefs.storage.models import (
    ContainerHandle,
    DirectoryEntity,
    FileEntity,
    PublicAccessLevel,
)
from zurefs.storage.paths import (
    BLOB_DELIMITER,
    ResolvedPath,
    clean,
    combine,
    encode_resource,
    get_file_name,
    resolve,
)
from zurefs.storage.transport import BlobReadStream, BlobTransport

logger = logging.getLogger(__name__)


class BlobStorageService(VirtualFileSystem):
    """
    Filesystem-shaped API over one blob storage account.

    Example:
        config = StorageEndpointConfig(account_name="myaccount", account_key=key)
        async with BlobStorageService(config) as fs:
            await fs.create_directory("photos")
            await fs.save_file("photos/2024/cat.jpg", open("cat.jpg", "rb"))
            async with await fs.read_file("photos/2024/cat.jpg") as stream:
                data = await stream.read()

    Every operation is a coroutine; cancelling the task that awaits it aborts
    the in-flight request. Nothing already deleted or uploaded is rolled back.
    """

    def __init__(
        self,
        config: Optional[StorageEndpointConfig] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        hmac_provider: Optional[HmacProvider] = None,
        max_list_pages: int = PaginatedLister.MAX_PAGES,
        block_size: int = MAX_BLOCK_SIZE,
    ):
        """
        Initialize the service.

        Args:
            config: Endpoint configuration; may be supplied later via configure()
            client: Optional shared httpx client (not closed by the service)
            hmac_provider: HMAC-SHA256 implementation for request signing
            max_list_pages: Safety bound on listing pages
            block_size: Upload block size, at most MAX_BLOCK_SIZE
        """
        self._config = config
        self._client = client
        self._hmac_provider = hmac_provider
        self._max_list_pages = max_list_pages
        self._block_size = block_size
        self._transport: Optional[BlobTransport] = None
        self._lister: Optional[PaginatedLister] = None
        self._uploader: Optional[BlockUploader] = None

    @property
    def configuration(self) -> Optional[StorageEndpointConfig]:
        return self._config

    async def configure(self, config: StorageEndpointConfig) -> None:
        """Replace the configuration; the next call uses a fresh transport."""
        await self.aclose()
        self._config = config
        self._transport = self._lister = self._uploader = None

    def _require_configuration(self) -> StorageEndpointConfig:
        if self._config is None:
            raise ConfigurationError()
        return self._config

    def _ensure_components(self) -> None:
        config = self._require_configuration()
        if self._transport is None:
            self._transport = BlobTransport(config, self._client, self._hmac_provider)
            self._lister = PaginatedLister(self._transport, self._max_list_pages)
            self._uploader = BlockUploader(self._transport, self._block_size)

    @property
    def transport(self) -> BlobTransport:
        self._ensure_components()
        return self._transport

    @property
    def lister(self) -> PaginatedLister:
        self._ensure_components()
        return self._lister

    @property
    def uploader(self) -> BlockUploader:
        self._ensure_components()
        return self._uploader

    def _resolve(self, path: Optional[str]) -> ResolvedPath:
        config = self._require_configuration()
        if path is None:
            raise ArgumentError("path")
        return resolve(path, config.directory_separator)

    def _resolve_file(self, path: Optional[str]) -> ResolvedPath:
        resolved = self._resolve(path)
        if not resolved.blob_key:
            raise ArgumentError("path", f"'{path}' does not name a file")
        return resolved

    @staticmethod
    def _container_resource(container_name: str) -> str:
        return "/" + quote(container_name, safe="")

    # Container operations

    async def create_container(
        self,
        container_name: str,
        access: Optional[PublicAccessLevel] = None,
    ) -> None:
        """
        Create a container.

        Args:
            container_name: Container name
            access: Public access level; defaults to the configured one
        """
        config = self._require_configuration()
        if container_name is None:
            raise ArgumentError("container_name")

        access = PublicAccessLevel(access or config.default_container_access)
        headers = {}
        if access != PublicAccessLevel.PRIVATE:
            headers["x-ms-blob-public-access"] = access.value

        await self.transport.send(
            "PUT",
            self._container_resource(container_name),
            params=[("restype", "container")],
            headers=headers,
        )
        logger.info(f"Created container '{container_name}' (access: {access.value})")

    async def get_container_properties(self, container_name: str) -> ContainerHandle:
        """
        Raises:
            NotFoundError: If the container does not exist
        """
        self._require_configuration()
        if container_name is None:
            raise ArgumentError("container_name")

        response = await self.transport.send(
            "HEAD",
            self._container_resource(container_name),
            params=[("restype", "container")],
        )
        properties = {
            name: value
            for name, value in response.headers.items()
            if name.lower().startswith("x-ms-")
        }
        return ContainerHandle(name=container_name, properties=properties)

    async def container_exists(self, container_name: str) -> bool:
        try:
            await self.get_container_properties(container_name)
            return True
        except NotFoundError:
            return False

    async def get_containers(self) -> List[str]:
        self._require_configuration()
        return await self.lister.list_containers()

    async def delete_container(self, container_name: str) -> None:
        """Delete a container and every blob in it."""
        self._require_configuration()
        if container_name is None:
            raise ArgumentError("container_name")

        await self.transport.send(
            "DELETE",
            self._container_resource(container_name),
            params=[("restype", "container")],
        )
        logger.info(f"Deleted container '{container_name}'")

    # Directories

    async def create_directory(self, path: str) -> None:
        """
        Ensure the owning container exists.

        Directories below container level exist implicitly and are never
        materialized.
        """
        resolved = self._resolve(path)
        if resolved.is_root:
            return

        if not await self.container_exists(resolved.container):
            await self.create_container(resolved.container)

    async def delete_directory(self, path: str) -> None:
        """
        Delete a directory.

        A container-level path deletes the whole container. Deeper paths
        delete every blob under the prefix concurrently.

        Raises:
            NotFoundError: If no blob lives under the prefix
            ArgumentError: If path is the root
        """
        resolved = self._resolve(path)
        if resolved.is_root:
            raise ArgumentError("path", "The root directory cannot be deleted")

        if resolved.is_container:
            await self.delete_container(resolved.container)
            return

        blobs = await self.lister.list_blobs(resolved.container, resolved.directory_prefix)
        if not blobs:
            raise NotFoundError(f"Directory not found: {path}")

        logger.info(f"Deleting {len(blobs)} blob(s) under '{path}'")
        results = await asyncio.gather(
            *(
                self.transport.send("DELETE", encode_resource(ResolvedPath(resolved.container, blob.name, False)))
                for blob in blobs
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def directory_exists(self, path: str) -> bool:
        """
        The root always exists; any other directory exists when its container
        does. Sub-paths are not probed.
        """
        resolved = self._resolve(path)
        if resolved.is_root:
            return True
        return await self.container_exists(resolved.container)

    async def get_directories(self, path: str) -> List[DirectoryEntity]:
        resolved = self._resolve(path)
        separator = self._config.directory_separator

        if resolved.is_root:
            return [
                DirectoryEntity(name=name, path=name)
                for name in await self.lister.list_containers()
            ]

        prefixes = await self.lister.list_blob_prefixes(
            resolved.container, resolved.directory_prefix, BLOB_DELIMITER
        )
        return [
            DirectoryEntity(
                name=get_file_name(BLOB_DELIMITER, prefix),
                path=combine(separator, resolved.container, *prefix.split(BLOB_DELIMITER)),
            )
            for prefix in prefixes
        ]

    # Files

    async def file_exists(self, path: str) -> bool:
        try:
            await self.get_file(path)
            return True
        except NotFoundError:
            return False

    async def get_file(self, path: str) -> FileEntity:
        """
        Metadata-only probe; the body is not fetched.

        Raises:
            NotFoundError: If the blob does not exist
            AdapterError: If the response carries no Last-Modified header
        """
        resolved = self._resolve(path)
        if not resolved.blob_key:
            raise NotFoundError(f"File not found: {path}")

        separator = self._config.directory_separator
        response = await self.transport.send("HEAD", encode_resource(resolved))
        headers = response.headers
        last_modified = headers.get("last-modified")
        if not last_modified:
            raise AdapterError(
                f"Blob properties for {path} are missing Last-Modified",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

        return FileEntity(
            path=clean(separator, path),
            name=get_file_name(separator, path),
            size=int(headers.get("content-length") or 0),
            last_modified=parse_http_date(last_modified),
            blob_type=headers.get("x-ms-blob-type"),
        )

    async def get_files(self, path: str) -> List[FileEntity]:
        """Files directly inside the directory; nested blobs are excluded."""
        resolved = self._resolve(path)
        if resolved.is_root:
            return []

        separator = self._config.directory_separator
        blobs = await self.lister.list_blobs(
            resolved.container, resolved.directory_prefix, BLOB_DELIMITER
        )
        return [
            FileEntity(
                path=combine(separator, resolved.container, *blob.name.split(BLOB_DELIMITER)),
                name=get_file_name(BLOB_DELIMITER, blob.name),
                size=blob.content_length,
                last_modified=blob.last_modified,
                blob_type=blob.blob_type,
            )
            for blob in blobs
        ]

    async def read_file(self, path: str) -> BlobReadStream:
        """
        Open the blob content as a stream read from the response body.

        Raises:
            NotFoundError: If the blob does not exist
        """
        resolved = self._resolve(path)
        if not resolved.blob_key:
            raise NotFoundError(f"File not found: {path}")
        return await self.transport.open_stream("GET", encode_resource(resolved))

    async def save_file(self, path: str, stream: Any) -> None:
        """
        Create or overwrite a file.

        Args:
            path: Logical file path
            stream: bytes, a binary file object, or an object with ``async read(n)``
        """
        resolved = self._resolve_file(path)
        if stream is None:
            raise ArgumentError("stream")
        await self.uploader.save(encode_resource(resolved), stream)

    async def delete_file(self, path: str) -> None:
        """
        Raises:
            NotFoundError: If the blob does not exist
        """
        resolved = self._resolve_file(path)
        await self.transport.send("DELETE", encode_resource(resolved))
        logger.info(f"Deleted file '{path}'")

    async def append_file(
        self,
        path: str,
        buffer: bytes,
        offset: int = 0,
        count: Optional[int] = None,
    ) -> None:
        """
        Append ``buffer[offset:offset + count]`` to a file, creating it if needed.

        Raises:
            AdapterError: If count exceeds MAX_BLOCK_SIZE
            ArgumentError: If buffer is None
        """
        resolved = self._resolve_file(path)
        await self.uploader.append(encode_resource(resolved), buffer, offset, count)

    # Lifecycle

    async def aclose(self) -> None:
        if self._transport is not None:
            await self._transport.aclose()

    async def __aenter__(self) -> "BlobStorageService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
