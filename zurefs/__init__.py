"""
zurefs: virtual filesystem over Azure Blob Storage

Containers become top-level directories, blob-name prefixes become
subdirectories and block blobs become files.
"""

__version__ = "0.1.0"
__author__ = "Ayodele Oladeji"

from .exceptions import (
    AdapterError,
    ArgumentError,
    ConfigurationError,
    NotFoundError,
    UnauthorizedError,
)
# storage before core: core.config_manager imports storage.models
from .storage.service import BlobStorageService
from .core.config_manager import StorageEndpointConfig

__all__ = [
    "AdapterError",
    "ArgumentError",
    "BlobStorageService",
    "ConfigurationError",
    "NotFoundError",
    "StorageEndpointConfig",
    "UnauthorizedError",
    "__version__",
]
