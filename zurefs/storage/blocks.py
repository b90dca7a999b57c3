"""
Chunked block upload.

Files are written as block blobs: the source is split into blocks of at most
MAX_BLOCK_SIZE bytes, each block is uploaded under a fresh random id, and a
block list naming the ids in order is committed. The committed block list is
the only source of truth for byte order.

Author: Ayodele Oladeji
Date: 2025
"""

import base64
import inspect
import io
import logging
import uuid
import xml.etree.ElementTree as ET
from typing import Any, BinaryIO, Iterable, List, Optional, Union

from zurefs.exceptions import AdapterError, ArgumentError, NotFoundError
from zurefs.storage.models import BlobType
from zurefs.storage.transport import BlobTransport

logger = logging.getLogger(__name__)

MAX_BLOCK_SIZE = 4_000_000

# bytes, a binary file object, or any object with ``async def read(n)``
ByteSource = Union[bytes, bytearray, memoryview, BinaryIO, Any]


def new_block_id() -> str:
    """Random 128-bit block id, base64-encoded."""
    return base64.b64encode(uuid.uuid4().bytes).decode("ascii")


def build_block_list_xml(block_ids: Iterable[str]) -> bytes:
    """
    Build a Put Block List body.

    Every id is listed as <Latest>, so the most recently uploaded copy of the
    block is used whether it is committed or not.
    """
    root = ET.Element("BlockList")
    for block_id in block_ids:
        ET.SubElement(root, "Latest").text = block_id
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def parse_block_list_xml(xml_data: bytes) -> List[str]:
    """Committed block ids, in manifest order, from a Get Block List response."""
    root = ET.fromstring(xml_data)
    return [block.findtext("Name", "") for block in root.iterfind("CommittedBlocks/Block")]


async def read_chunk(source: Any, size: int) -> bytes:
    """
    Read up to ``size`` bytes from a sync or async binary source.

    Short reads are retried until the chunk is full or the source is exhausted.
    """
    chunk = bytearray()
    while len(chunk) < size:
        data = source.read(size - len(chunk))
        if inspect.isawaitable(data):
            data = await data
        if not data:
            break
        chunk.extend(data)
    return bytes(chunk)


class BlockUploader:
    """
    Writes block blobs through a BlobTransport.

    ``resource`` arguments are URL paths relative to the service endpoint, as
    produced by ``paths.encode_resource``.
    """

    def __init__(self, transport: BlobTransport, block_size: int = MAX_BLOCK_SIZE):
        if not 0 < block_size <= MAX_BLOCK_SIZE:
            raise ArgumentError("block_size", f"Block size must be between 1 and {MAX_BLOCK_SIZE} bytes")
        self.transport = transport
        self.block_size = block_size

    async def put_block(self, resource: str, data: bytes) -> str:
        """
        Upload one block under a freshly generated id.

        Returns:
            The block id, for manifest assembly
        """
        if data is None:
            raise ArgumentError("data")
        if len(data) > MAX_BLOCK_SIZE:
            raise AdapterError(f"Block of {len(data)} bytes exceeds the {MAX_BLOCK_SIZE} byte limit")

        block_id = new_block_id()
        await self.transport.send(
            "PUT",
            resource,
            params=[("comp", "block"), ("blockId", block_id)],
            content=bytes(data),
        )
        logger.debug(f"Uploaded block {block_id} ({len(data)} bytes) to {resource}")
        return block_id

    async def put_block_list(self, resource: str, block_ids: Iterable[str]) -> None:
        """Commit the manifest: the blob becomes the blocks in this order."""
        block_ids = list(block_ids)
        await self.transport.send(
            "PUT",
            resource,
            params=[("comp", "blocklist")],
            headers={"Content-Type": "application/xml"},
            content=build_block_list_xml(block_ids),
        )
        logger.debug(f"Committed {len(block_ids)} block(s) to {resource}")

    async def get_committed_block_ids(self, resource: str) -> List[str]:
        """
        Raises:
            NotFoundError: If the blob does not exist
        """
        response = await self.transport.send(
            "GET",
            resource,
            params=[("comp", "blocklist"), ("blocklisttype", "committed")],
        )
        return parse_block_list_xml(response.content)

    async def _blob_exists(self, resource: str) -> bool:
        try:
            await self.transport.send("HEAD", resource)
            return True
        except NotFoundError:
            return False

    async def save(self, resource: str, source: ByteSource) -> List[str]:
        """
        Overwrite the blob with the content of ``source``.

        Deletes any existing blob, creates an empty block blob, uploads the
        source in read order and commits exactly those blocks. An empty source
        commits an empty block list.

        Returns:
            The committed block ids
        """
        if source is None:
            raise ArgumentError("stream")
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))

        if await self._blob_exists(resource):
            await self.transport.send("DELETE", resource)

        await self.transport.send(
            "PUT",
            resource,
            headers={"x-ms-blob-type": BlobType.BLOCK_BLOB.value},
            content=b"",
        )

        block_ids: List[str] = []
        while chunk := await read_chunk(source, self.block_size):
            block_ids.append(await self.put_block(resource, chunk))

        await self.put_block_list(resource, block_ids)
        logger.info(f"Saved {resource} as {len(block_ids)} block(s)")
        return block_ids

    async def append(
        self,
        resource: str,
        buffer: Optional[bytes],
        offset: int = 0,
        count: Optional[int] = None,
    ) -> List[str]:
        """
        Append ``buffer[offset:offset + count]`` as one new block.

        The committed manifest is extended at the tail; existing blocks are
        neither re-uploaded nor reordered. A missing blob is created with the
        buffer window as its entire content.

        Returns:
            The committed block ids

        Raises:
            AdapterError: If count exceeds MAX_BLOCK_SIZE (no request is issued)
            ArgumentError: If buffer is None or the window is out of range
        """
        if count is not None and count > MAX_BLOCK_SIZE:
            raise AdapterError(
                f"Cannot append {count} bytes in one call; the limit is {MAX_BLOCK_SIZE} bytes",
                details={"count": count, "limit": MAX_BLOCK_SIZE},
            )
        if buffer is None:
            raise ArgumentError("buffer")
        if count is None:
            count = len(buffer) - offset
        if offset < 0 or count < 0 or offset + count > len(buffer):
            raise ArgumentError("count", f"Range [{offset}, {offset + count}) is outside the buffer")
        if count > MAX_BLOCK_SIZE:
            raise AdapterError(f"Cannot append {count} bytes in one call; the limit is {MAX_BLOCK_SIZE} bytes")

        data = bytes(buffer[offset:offset + count])

        try:
            existing_ids = await self.get_committed_block_ids(resource)
        except NotFoundError:
            logger.info(f"{resource} does not exist; appending creates it")
            return await self.save(resource, io.BytesIO(data))

        block_id = await self.put_block(resource, data)
        block_ids = existing_ids + [block_id]
        await self.put_block_list(resource, block_ids)
        return block_ids
