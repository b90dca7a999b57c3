"""
Logical path handling.

A logical path uses the configured separator. Its first segment names a
container and the remaining segments form the blob key, which is always
joined with "/" on the wire.
"""

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from zurefs.exceptions import ArgumentError

BLOB_DELIMITER = "/"


def _segments(separator: str, path: str) -> List[str]:
    return [part for part in path.split(separator) if part]


def clean(separator: str, path: Optional[str]) -> str:
    """
    Collapse redundant separators and strip leading/trailing ones.

    >>> clean("/", "//photos///2024/")
    'photos/2024'
    """
    if path is None:
        raise ArgumentError("path")
    return separator.join(_segments(separator, path))


def is_root_path(path: Optional[str], separator: str = "/") -> bool:
    return clean(separator, path) == ""


def combine(separator: str, *parts: str) -> str:
    """Join path parts with the separator, dropping empty segments."""
    segments: List[str] = []
    for part in parts:
        segments.extend(_segments(separator, part))
    return separator.join(segments)


def get_file_name(separator: str, path: str) -> str:
    segments = _segments(separator, path)
    return segments[-1] if segments else ""


@dataclass(frozen=True)
class ResolvedPath:
    """A logical path split into its container and blob key."""

    container: Optional[str]
    blob_key: str
    is_root: bool

    @property
    def is_container(self) -> bool:
        """True when the path names a container and nothing below it."""
        return not self.is_root and not self.blob_key

    @property
    def directory_prefix(self) -> str:
        """Blob-name prefix of everything below this path."""
        return self.blob_key + BLOB_DELIMITER if self.blob_key else ""

    def to_path(self, separator: str = "/") -> str:
        if self.is_root:
            return ""
        return combine(separator, self.container or "", *self.blob_key.split(BLOB_DELIMITER))


def resolve(path: Optional[str], separator: str = "/") -> ResolvedPath:
    """
    Resolve a logical path into (container, blob key, is_root).

    Args:
        path: Logical path using the configured separator
        separator: Directory separator character

    Returns:
        ResolvedPath for the cleaned path

    Raises:
        ArgumentError: If path is None, or a segment contains "/" while the
            separator is another character
    """
    if path is None:
        raise ArgumentError("path")

    segments = _segments(separator, path)
    if not segments:
        return ResolvedPath(container=None, blob_key="", is_root=True)

    # "/" would split the segment once the blob key is joined
    if separator != BLOB_DELIMITER and any(BLOB_DELIMITER in segment for segment in segments):
        raise ArgumentError(
            "path",
            f"Path segments cannot contain '{BLOB_DELIMITER}' when the directory separator is '{separator}'"
        )

    return ResolvedPath(
        container=segments[0],
        blob_key=BLOB_DELIMITER.join(segments[1:]),
        is_root=False,
    )


def encode_resource(resolved: ResolvedPath) -> str:
    """URL path of the container or blob, relative to the service endpoint."""
    if resolved.is_root:
        return "/"
    resource = "/" + quote(resolved.container or "", safe="")
    if resolved.blob_key:
        resource += "/" + quote(resolved.blob_key, safe="/")
    return resource
