"""
Configuration management for zurefs.

Storage account settings and logging options are validated with pydantic and
can come from a YAML/JSON file, ZUREFS_* environment variables, explicit
overrides or an Azure storage connection string.
"""

import base64
import binascii
import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from zurefs.exceptions import ConfigurationError
from zurefs.storage.models import PublicAccessLevel

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def parse_connection_string(connection_string: str) -> Dict[str, Any]:
    """
    Translate an Azure storage connection string into StorageEndpointConfig fields.

    Understands AccountName, AccountKey, DefaultEndpointsProtocol, BlobEndpoint
    and EndpointSuffix; other keys are ignored. BlobEndpoint wins over
    EndpointSuffix and decides the scheme on its own.

    Raises:
        ConfigurationError: If a segment is malformed or the account name or key is missing
    """
    parts: Dict[str, str] = {}
    for segment in connection_string.split(";"):
        if not segment.strip():
            continue
        key, separator, value = segment.strip().partition("=")
        if not separator:
            raise ConfigurationError(f"Malformed connection string segment: {key!r}")
        parts[key.strip().lower()] = value.strip()

    missing = [
        name for name, key in (("AccountName", "accountname"), ("AccountKey", "accountkey"))
        if not parts.get(key)
    ]
    if missing:
        raise ConfigurationError(f"Connection string is missing {' and '.join(missing)}")

    settings: Dict[str, Any] = {
        "account_name": parts["accountname"],
        "account_key": parts["accountkey"],
    }
    if protocol := parts.get("defaultendpointsprotocol"):
        settings["use_https"] = protocol.lower() == "https"

    if blob_endpoint := parts.get("blobendpoint"):
        url = urlsplit(blob_endpoint)
        settings["use_https"] = url.scheme.lower() == "https"
        settings["api_address"] = (url.netloc + url.path).rstrip("/")
    elif suffix := parts.get("endpointsuffix"):
        settings["api_address"] = "{account_name}.blob." + suffix

    return settings


class StorageEndpointConfig(BaseModel):
    """
    Immutable settings for one blob storage account endpoint.

    The address template is formatted with the account name, e.g.
    "{account_name}.blob.core.windows.net"; the scheme is chosen by use_https.
    """

    account_name: str = Field(description="Storage account name")
    account_key: str = Field(description="Base64-encoded storage account key")
    api_address: str = Field(
        default="{account_name}.blob.core.windows.net",
        description="Endpoint address template"
    )
    api_version: str = Field(default="2021-08-06", description="x-ms-version header value")
    use_https: bool = True
    directory_separator: str = "/"
    default_container_access: PublicAccessLevel = PublicAccessLevel.PRIVATE
    client_request_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("account_name")
    @classmethod
    def validate_account_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Account name must be set")
        return v

    @field_validator("account_key")
    @classmethod
    def validate_account_key(cls, v: str) -> str:
        """Account key must be valid base64."""
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Account key must be base64-encoded: {e}")
        return v

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Invalid configuration, api_version must be set")
        return v

    @field_validator("directory_separator")
    @classmethod
    def validate_directory_separator(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("Directory separator must be a single character")
        return v

    @classmethod
    def from_connection_string(cls, connection_string: str, **overrides: Any) -> "StorageEndpointConfig":
        """
        Build the settings from a connection string.

        Example:
            StorageEndpointConfig.from_connection_string(
                os.environ["AZURE_STORAGE_CONNECTION_STRING"],
                directory_separator="\\\\",
            )
        """
        return cls(**{**parse_connection_string(connection_string), **overrides})

    @property
    def endpoint(self) -> str:
        """Base URL of the blob service, without a trailing slash."""
        scheme = "https" if self.use_https else "http"
        address = self.api_address.format(account_name=self.account_name)
        return f"{scheme}://{address.strip('/')}"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'zurefs.storage.transport': 'DEBUG'}"
    )

    model_config = ConfigDict(use_enum_values=True)


class ZureFSConfig(BaseModel):
    """Top-level zurefs configuration schema."""

    storage: StorageEndpointConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """
    Loads and validates the zurefs configuration.

    Sources, highest precedence first:
    1. Explicit overrides passed to load()
    2. ZUREFS_* environment variables
    3. A YAML or JSON configuration file
    4. Model defaults

    A ``connection_string`` entry in the storage section is expanded after
    merging; individual storage fields from any source win over it.
    """

    ENV_STORAGE_KEYS = {
        "ZUREFS_CONNECTION_STRING": "connection_string",
        "ZUREFS_ACCOUNT_NAME": "account_name",
        "ZUREFS_ACCOUNT_KEY": "account_key",
        "ZUREFS_API_ADDRESS": "api_address",
        "ZUREFS_API_VERSION": "api_version",
        "ZUREFS_DIRECTORY_SEPARATOR": "directory_separator",
        "ZUREFS_DEFAULT_CONTAINER_ACCESS": "default_container_access",
        "ZUREFS_CLIENT_REQUEST_ID": "client_request_id",
    }
    ENV_LOGGING_KEYS = {
        "ZUREFS_LOG_LEVEL": "level",
        "ZUREFS_LOG_FORMAT": "format",
        "ZUREFS_LOG_FILE": "file",
    }
    FILE_PARSERS: Dict[str, Callable[[Any], Any]] = {
        ".yaml": yaml.safe_load,
        ".yml": yaml.safe_load,
        ".json": json.load,
    }

    def __init__(self):
        self._config: Optional[ZureFSConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> ZureFSConfig:
        """
        Load and validate configuration from every source.

        Args:
            config_file: Path to a YAML or JSON configuration file
            overrides: Nested dictionary applied last, e.g. {"storage": {"api_version": "..."}}

        Returns:
            Validated ZureFSConfig instance

        Raises:
            ConfigurationError: If the merged configuration is invalid or incomplete
            FileNotFoundError: If the configuration file does not exist
            ValueError: If the configuration file has an unsupported extension
        """
        sources: List[Tuple[str, Dict[str, Any]]] = []
        if config_file:
            sources.append((f"file {config_file}", self._read_file(Path(config_file))))
        sources.append(("environment", self._read_environment()))
        if overrides:
            sources.append(("overrides", overrides))

        merged: Dict[str, Any] = {}
        for source_name, values in sources:
            if values:
                logger.debug(f"Applying configuration from {source_name}: {sorted(values)}")
                merged = _deep_merge(merged, values)

        if isinstance(merged.get("storage"), dict):
            merged["storage"] = self._expand_connection_string(merged["storage"])

        try:
            config = ZureFSConfig(**merged)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        self._config = config
        self._config_file = Path(config_file) if config_file else None
        logger.info(
            f"Configuration loaded for account '{config.storage.account_name}' at {config.storage.endpoint}"
        )
        self._log_configuration()
        return config

    def _read_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        parser = self.FILE_PARSERS.get(path.suffix.lower())
        if parser is None:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        with path.open("r", encoding="utf-8") as f:
            data = parser(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return data

    def _read_environment(self) -> Dict[str, Any]:
        config: Dict[str, Dict[str, Any]] = {}

        for env_name, field_name in self.ENV_STORAGE_KEYS.items():
            if value := os.getenv(env_name):
                config.setdefault("storage", {})[field_name] = value
        if use_https := os.getenv("ZUREFS_USE_HTTPS"):
            config.setdefault("storage", {})["use_https"] = use_https.strip().lower() in ("true", "1", "yes")

        for env_name, field_name in self.ENV_LOGGING_KEYS.items():
            if value := os.getenv(env_name):
                config.setdefault("logging", {})[field_name] = value.upper() if field_name == "level" else value

        return config

    @staticmethod
    def _expand_connection_string(storage: Dict[str, Any]) -> Dict[str, Any]:
        storage = dict(storage)
        connection_string = storage.pop("connection_string", None)
        if not connection_string:
            return storage
        return {**parse_connection_string(connection_string), **storage}

    def _log_configuration(self) -> None:
        """Dump the active configuration at DEBUG, account key redacted."""
        if self._config is None:
            return
        dump = self._config.model_dump(mode="json")
        dump["storage"]["account_key"] = "***REDACTED***"
        logger.debug(f"Active configuration: {json.dumps(dump, indent=2)}")

    def get_config(self) -> ZureFSConfig:
        """
        Raises:
            ConfigurationError: If load() has not succeeded yet
        """
        if self._config is None:
            raise ConfigurationError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> ZureFSConfig:
        """Load again from the same file and the current environment."""
        return self.load(config_file=str(self._config_file) if self._config_file else None)
