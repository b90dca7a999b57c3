"""
Filesystem Models

Pydantic models for the entities returned by the blob filesystem: containers,
files and virtual directories.

Author: Ayodele Oladeji
Date: 2025
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class PublicAccessLevel(str, Enum):
    """Container public access levels."""
    PRIVATE = "private"
    BLOB = "blob"
    CONTAINER = "container"


class BlobType(str, Enum):
    """Blob type."""
    BLOCK_BLOB = "BlockBlob"
    APPEND_BLOB = "AppendBlob"
    PAGE_BLOB = "PageBlob"


class ContainerHandle(BaseModel):
    """
    Azure Blob Storage container.

    Properties hold the x-ms-* headers returned by the container probe.
    """

    name: str = Field(description="Container name")
    properties: Dict[str, str] = Field(default_factory=dict)

    @property
    def public_access(self) -> PublicAccessLevel:
        value = self.properties.get("x-ms-blob-public-access")
        return PublicAccessLevel(value) if value else PublicAccessLevel.PRIVATE


class FileEntity(BaseModel):
    """
    Snapshot of a blob, viewed as a file.

    Produced by a listing or a metadata probe; not a live handle.
    """

    path: str = Field(description="Logical path including the container")
    name: str = Field(description="Last path segment")
    size: int = Field(description="Size in bytes")
    last_modified: datetime = Field(description="Last modified timestamp")
    blob_type: Optional[str] = Field(default=None, description="Backend blob type tag")

    model_config = ConfigDict(frozen=True)


class DirectoryEntity(BaseModel):
    """
    Virtual directory.

    Has no backend record; it is a container or a shared blob-name prefix.
    """

    name: str
    path: str

    model_config = ConfigDict(frozen=True)
