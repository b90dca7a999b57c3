"""
Tests for ConfigManager.
"""

import base64
import json

import pytest
import yaml
from pydantic import ValidationError

from zurefs.core.config_manager import (
    ConfigManager,
    LogLevel,
    parse_connection_string,
    StorageEndpointConfig,
    ZureFSConfig,
)
from zurefs.exceptions import ConfigurationError
from zurefs.storage.models import PublicAccessLevel

KEY = base64.b64encode(b"config-test-key").decode()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep ZUREFS_* variables from the host out of the tests."""
    for name in [*ConfigManager.ENV_STORAGE_KEYS, *ConfigManager.ENV_LOGGING_KEYS, "ZUREFS_USE_HTTPS"]:
        monkeypatch.delenv(name, raising=False)


class TestStorageEndpointConfig:
    """Test endpoint settings validation."""

    def test_defaults(self):
        config = StorageEndpointConfig(account_name="myaccount", account_key=KEY)

        assert config.api_version == "2021-08-06"
        assert config.use_https is True
        assert config.directory_separator == "/"
        assert config.default_container_access == PublicAccessLevel.PRIVATE
        assert config.client_request_id is None
        assert config.endpoint == "https://myaccount.blob.core.windows.net"

    def test_endpoint_from_template(self):
        config = StorageEndpointConfig(
            account_name="devstoreaccount1",
            account_key=KEY,
            api_address="127.0.0.1:10000/{account_name}/",
            use_https=False,
        )
        assert config.endpoint == "http://127.0.0.1:10000/devstoreaccount1"

    def test_immutable(self):
        config = StorageEndpointConfig(account_name="myaccount", account_key=KEY)
        with pytest.raises(ValidationError):
            config.account_name = "other"

    @pytest.mark.parametrize("field,value", [
        ("account_name", "  "),
        ("account_key", "not base64!"),
        ("api_version", ""),
        ("directory_separator", "//"),
        ("directory_separator", ""),
    ])
    def test_invalid_values(self, field, value):
        settings = {"account_name": "myaccount", "account_key": KEY, field: value}
        with pytest.raises(ValidationError):
            StorageEndpointConfig(**settings)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_from_overrides(self):
        """Test loading configuration from explicit overrides only."""
        manager = ConfigManager()
        config = manager.load(overrides={"storage": {"account_name": "myaccount", "account_key": KEY}})

        assert isinstance(config, ZureFSConfig)
        assert config.storage.account_name == "myaccount"
        assert config.logging.level == LogLevel.INFO

    def test_missing_storage_section(self):
        """Test loading without account settings fails."""
        with pytest.raises(ConfigurationError):
            ConfigManager().load()

    def test_load_from_yaml_file(self, tmp_path):
        """Test loading configuration from YAML file."""
        config_file = tmp_path / "zurefs.yaml"
        config_file.write_text(yaml.dump({
            "storage": {
                "account_name": "yamlaccount",
                "account_key": KEY,
                "default_container_access": "blob",
            },
            "logging": {"level": "DEBUG"},
        }))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.storage.account_name == "yamlaccount"
        assert config.storage.default_container_access == PublicAccessLevel.BLOB
        assert config.logging.level == LogLevel.DEBUG

    def test_load_from_json_file(self, tmp_path):
        """Test loading configuration from JSON file."""
        config_file = tmp_path / "zurefs.json"
        config_file.write_text(json.dumps({
            "storage": {"account_name": "jsonaccount", "account_key": KEY, "use_https": False},
        }))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.storage.account_name == "jsonaccount"
        assert config.storage.endpoint.startswith("http://")

    def test_load_from_env_variables(self, monkeypatch):
        """Test loading configuration from environment variables."""
        monkeypatch.setenv("ZUREFS_ACCOUNT_NAME", "envaccount")
        monkeypatch.setenv("ZUREFS_ACCOUNT_KEY", KEY)
        monkeypatch.setenv("ZUREFS_API_VERSION", "2019-02-02")
        monkeypatch.setenv("ZUREFS_USE_HTTPS", "false")
        monkeypatch.setenv("ZUREFS_CLIENT_REQUEST_ID", "trace-1")
        monkeypatch.setenv("ZUREFS_LOG_LEVEL", "warning")

        config = ConfigManager().load()

        assert config.storage.account_name == "envaccount"
        assert config.storage.api_version == "2019-02-02"
        assert config.storage.use_https is False
        assert config.storage.client_request_id == "trace-1"
        assert config.logging.level == LogLevel.WARNING

    def test_configuration_precedence(self, tmp_path, monkeypatch):
        """Test configuration precedence: OVERRIDES > ENV > FILE > DEFAULTS."""
        config_file = tmp_path / "zurefs.yaml"
        config_file.write_text(yaml.dump({
            "storage": {
                "account_name": "fileaccount",
                "account_key": KEY,
                "api_version": "2018-03-28",
                "directory_separator": "\\",
            },
        }))
        monkeypatch.setenv("ZUREFS_ACCOUNT_NAME", "envaccount")
        monkeypatch.setenv("ZUREFS_API_VERSION", "2019-02-02")

        config = ConfigManager().load(
            config_file=str(config_file),
            overrides={"storage": {"api_version": "2021-08-06"}},
        )

        assert config.storage.account_name == "envaccount"
        assert config.storage.api_version == "2021-08-06"
        assert config.storage.directory_separator == "\\"
        assert config.storage.account_key == KEY

    def test_invalid_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager().load(overrides={"storage": {"account_name": "a", "account_key": "***"}})
        assert "account_key" in exc_info.value.message

    def test_file_not_found(self):
        """Test error when config file doesn't exist."""
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/zurefs.yaml")

    def test_unsupported_file_format(self, tmp_path):
        """Test error for unsupported file format."""
        config_file = tmp_path / "zurefs.txt"
        config_file.write_text("account_name = a")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigManager().load(config_file=str(config_file))

    def test_get_config_before_load(self):
        """Test getting config before loading raises error."""
        with pytest.raises(ConfigurationError, match="Configuration not loaded"):
            ConfigManager().get_config()

    def test_get_config_after_load(self):
        manager = ConfigManager()
        loaded = manager.load(overrides={"storage": {"account_name": "a", "account_key": KEY}})
        assert manager.get_config() is loaded

    def test_reload_configuration(self, tmp_path):
        """Test reloading picks up file changes."""
        config_file = tmp_path / "zurefs.yaml"
        config_file.write_text(yaml.dump({"storage": {"account_name": "first", "account_key": KEY}}))

        manager = ConfigManager()
        assert manager.load(config_file=str(config_file)).storage.account_name == "first"

        config_file.write_text(yaml.dump({"storage": {"account_name": "second", "account_key": KEY}}))
        assert manager.reload().storage.account_name == "second"

    def test_logged_configuration_redacts_key(self, caplog):
        with caplog.at_level("DEBUG", logger="zurefs.core.config_manager"):
            ConfigManager().load(overrides={"storage": {"account_name": "a", "account_key": KEY}})

        assert KEY not in caplog.text
        assert "***REDACTED***" in caplog.text


class TestConnectionString:
    """Test Azure storage connection string support."""

    def test_account_defaults(self):
        settings = parse_connection_string(
            f"DefaultEndpointsProtocol=https;AccountName=myaccount;AccountKey={KEY};EndpointSuffix=core.windows.net"
        )
        assert settings == {
            "account_name": "myaccount",
            "account_key": KEY,
            "use_https": True,
            "api_address": "{account_name}.blob.core.windows.net",
        }

    def test_blob_endpoint(self):
        """Test an explicit BlobEndpoint decides scheme and address."""
        config = StorageEndpointConfig.from_connection_string(
            "DefaultEndpointsProtocol=https;AccountName=devstoreaccount1;"
            f"AccountKey={KEY};BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1/;"
        )
        assert config.endpoint == "http://127.0.0.1:10000/devstoreaccount1"

    def test_key_with_padding(self):
        """Test '=' inside the key value is kept."""
        key = base64.b64encode(b"ab").decode()
        assert key.endswith("=")
        assert parse_connection_string(f"AccountName=a;AccountKey={key}")["account_key"] == key

    def test_overrides(self):
        config = StorageEndpointConfig.from_connection_string(
            f"AccountName=myaccount;AccountKey={KEY}",
            directory_separator="\\",
        )
        assert config.directory_separator == "\\"
        assert config.use_https is True

    @pytest.mark.parametrize("connection_string", [
        f"AccountKey={KEY}",
        "AccountName=myaccount",
        "AccountName=myaccount;AccountKey=",
        f"AccountName=myaccount;AccountKey={KEY};garbage",
    ])
    def test_invalid(self, connection_string):
        with pytest.raises(ConfigurationError):
            parse_connection_string(connection_string)

    def test_loaded_from_environment(self, monkeypatch):
        monkeypatch.setenv("ZUREFS_CONNECTION_STRING", f"AccountName=envaccount;AccountKey={KEY}")

        config = ConfigManager().load()

        assert config.storage.account_name == "envaccount"
        assert config.storage.account_key == KEY

    def test_explicit_fields_win(self, tmp_path, monkeypatch):
        """Test individual fields from any source override the connection string."""
        config_file = tmp_path / "zurefs.yaml"
        config_file.write_text(yaml.dump({
            "storage": {
                "connection_string": f"DefaultEndpointsProtocol=http;AccountName=fromstring;AccountKey={KEY}",
                "api_version": "2019-02-02",
            },
        }))
        monkeypatch.setenv("ZUREFS_ACCOUNT_NAME", "fromenv")

        config = ConfigManager().load(config_file=str(config_file))

        assert config.storage.account_name == "fromenv"
        assert config.storage.api_version == "2019-02-02"
        assert config.storage.use_https is False
