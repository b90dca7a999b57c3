"""Core module initialization."""

from .config_manager import ConfigManager, LoggingConfig, StorageEndpointConfig, ZureFSConfig
from .logging_config import setup_logging, setup_logging_from_config

__all__ = [
    "ConfigManager",
    "LoggingConfig",
    "StorageEndpointConfig",
    "ZureFSConfig",
    "setup_logging",
    "setup_logging_from_config",
]
