"""
Virtual Filesystem Interface

Defines the filesystem-shaped operation set a storage backend exposes.

Author: Ayodele Oladeji
Date: 2025
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from zurefs.storage.models import DirectoryEntity, FileEntity


class VirtualFileSystem(ABC):
    """
    Abstract filesystem over a storage backend.

    Paths are logical: the first segment names a top-level namespace
    (container) and the rest name an entry inside it. The empty path is the
    root, which always exists.

    **Error Handling**:
    - Raise NotFoundError when the target does not exist
    - Raise ConfigurationError when the backend is not configured
    - Raise ArgumentError for missing arguments, before any I/O
    """

    @abstractmethod
    async def create_directory(self, path: str) -> None:
        """Ensure the directory exists."""

    @abstractmethod
    async def delete_directory(self, path: str) -> None:
        """Delete the directory and everything below it."""

    @abstractmethod
    async def directory_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def file_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def get_file(self, path: str) -> FileEntity:
        """Metadata for one file."""

    @abstractmethod
    async def get_files(self, path: str) -> List[FileEntity]:
        """Files directly inside the directory."""

    @abstractmethod
    async def get_directories(self, path: str) -> List[DirectoryEntity]:
        """Directories directly inside the directory."""

    @abstractmethod
    async def read_file(self, path: str) -> Any:
        """Open the file content as an async byte stream."""

    @abstractmethod
    async def save_file(self, path: str, stream: Any) -> None:
        """Create or overwrite the file with the stream's content."""

    @abstractmethod
    async def delete_file(self, path: str) -> None:
        pass

    @abstractmethod
    async def append_file(
        self,
        path: str,
        buffer: bytes,
        offset: int = 0,
        count: Optional[int] = None,
    ) -> None:
        """Append ``buffer[offset:offset + count]`` to the file."""
