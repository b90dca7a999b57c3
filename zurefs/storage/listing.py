"""
Marker-based listing of containers, blobs and blob prefixes.

Every listing call drives the backend's continuation protocol to the end and
returns the fully materialized result.

Author: Ayodele Oladeji
Date: 2025
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from zurefs.exceptions import AdapterError
from zurefs.storage.transport import BlobTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (entries, next_marker)
Page = Tuple[List[T], str]


@dataclass(frozen=True)
class BlobItem:
    """One <Blob> entry of a blob listing."""

    name: str
    content_length: int
    last_modified: datetime
    blob_type: Optional[str] = None


def parse_http_date(value: str) -> datetime:
    return datetime.strptime(value, '%a, %d %b %Y %H:%M:%S GMT').replace(tzinfo=timezone.utc)


def _next_marker(root: ET.Element) -> str:
    return root.findtext("NextMarker") or ""


def parse_container_page(xml_data: bytes) -> Page[str]:
    """
    Parse a List Containers response.

    Returns:
        Tuple of (container names, next marker)
    """
    root = ET.fromstring(xml_data)
    names = [
        container.findtext("Name", "")
        for container in root.iterfind("Containers/Container")
    ]
    return names, _next_marker(root)


def parse_blob_page(xml_data: bytes) -> Tuple[List[BlobItem], List[str], str]:
    """
    Parse a List Blobs response.

    Returns:
        Tuple of (blobs, blob prefixes, next marker)
    """
    root = ET.fromstring(xml_data)

    blobs = []
    for blob in root.iterfind("Blobs/Blob"):
        properties = blob.find("Properties")
        if properties is None:
            raise AdapterError(f"Blob listing entry without properties: {blob.findtext('Name')}")
        blobs.append(BlobItem(
            name=blob.findtext("Name", ""),
            content_length=int(properties.findtext("Content-Length") or 0),
            last_modified=parse_http_date(properties.findtext("Last-Modified", "")),
            blob_type=properties.findtext("BlobType"),
        ))

    prefixes = [prefix.findtext("Name", "") for prefix in root.iterfind("Blobs/BlobPrefix")]

    return blobs, prefixes, _next_marker(root)


class PaginatedLister:
    """
    Drives marker-based enumeration against the blob service.

    The loop continues purely on the returned marker, independent of how many
    entries a page holds, and gives up after ``max_pages`` pages.
    """

    MAX_PAGES = 10_000

    def __init__(self, transport: BlobTransport, max_pages: int = MAX_PAGES):
        self.transport = transport
        self.max_pages = max_pages

    async def collect(self, fetch_page: Callable[[str], Awaitable[Page[T]]]) -> List[T]:
        """
        Fetch pages until the next marker comes back empty.

        Args:
            fetch_page: Coroutine taking the current marker, returning (entries, next_marker)

        Returns:
            All entries, page by page, in the order the backend returned them

        Raises:
            AdapterError: If the backend keeps returning markers past max_pages
        """
        entries: List[T] = []
        marker = ""
        for page_number in range(1, self.max_pages + 1):
            page_entries, marker = await fetch_page(marker)
            entries.extend(page_entries)
            if not marker:
                logger.debug(f"Listing finished after {page_number} page(s), {len(entries)} entries")
                return entries

        raise AdapterError(
            f"Listing did not terminate after {self.max_pages} pages",
            details={"last_marker": marker},
        )

    async def list_containers(self) -> List[str]:
        async def fetch(marker: str) -> Page[str]:
            response = await self.transport.send(
                "GET", "/", params=[("comp", "list"), ("marker", marker)]
            )
            return parse_container_page(response.content)

        return await self.collect(fetch)

    async def _blob_pages(
        self,
        container: str,
        prefix: str,
        delimiter: Optional[str],
        marker: str,
    ) -> Tuple[List[BlobItem], List[str], str]:
        params = [
            ("restype", "container"),
            ("comp", "list"),
            ("marker", marker),
            ("prefix", prefix),
        ]
        if delimiter:
            params.append(("delimiter", delimiter))

        response = await self.transport.send("GET", container, params=params)
        return parse_blob_page(response.content)

    async def list_blobs(
        self,
        container: str,
        prefix: str = "",
        delimiter: Optional[str] = None,
    ) -> List[BlobItem]:
        """
        List blobs whose names start with ``prefix``.

        With a delimiter, blobs nested below the next delimiter are excluded.
        """
        async def fetch(marker: str) -> Page[BlobItem]:
            blobs, _, next_marker = await self._blob_pages(container, prefix, delimiter, marker)
            return blobs, next_marker

        return await self.collect(fetch)

    async def list_blob_prefixes(self, container: str, prefix: str, delimiter: str) -> List[str]:
        """List the distinct sub-prefixes ("subdirectories") directly below ``prefix``."""
        async def fetch(marker: str) -> Page[str]:
            _, prefixes, next_marker = await self._blob_pages(container, prefix, delimiter, marker)
            return prefixes, next_marker

        return await self.collect(fetch)
