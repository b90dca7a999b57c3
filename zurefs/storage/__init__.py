"""
zurefs Blob Storage Filesystem

Path resolution, paginated listing, chunked block upload and the
filesystem-shaped service built on them.

Author: Ayodele Oladeji
Date: 2025
"""

from zurefs.storage.models import (
    BlobType,
    ContainerHandle,
    DirectoryEntity,
    FileEntity,
    PublicAccessLevel,
)
from zurefs.storage.service import BlobStorageService

__all__ = [
    # Service
    "BlobStorageService",
    # Models
    "BlobType",
    "ContainerHandle",
    "DirectoryEntity",
    "FileEntity",
    "PublicAccessLevel",
]
