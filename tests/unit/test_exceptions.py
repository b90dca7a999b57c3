"""
Tests for the adapter error hierarchy.
"""

import pytest

from zurefs.exceptions import (
    AdapterError,
    ArgumentError,
    ConfigurationError,
    NotFoundError,
    UnauthorizedError,
)


class TestAdapterErrors:
    """Test error classification and formatting."""

    @pytest.mark.parametrize("error", [
        ConfigurationError(),
        ArgumentError("path"),
        NotFoundError(),
        UnauthorizedError(),
    ])
    def test_all_derive_from_adapter_error(self, error):
        assert isinstance(error, AdapterError)

    def test_argument_error_is_value_error(self):
        error = ArgumentError("buffer")
        assert isinstance(error, ValueError)
        assert error.argument == "buffer"
        assert "buffer" in str(error)

    def test_status_codes(self):
        assert NotFoundError().status_code == 404
        assert UnauthorizedError().status_code == 401
        assert AdapterError().status_code is None

    def test_configuration_default_message(self):
        assert "Configuration must be set" in str(ConfigurationError())

    def test_to_dict(self):
        error = AdapterError("Conflict", status_code=409, reason="Conflict", details={"path": "c/b"})
        assert error.to_dict() == {
            "error": {
                "code": "AdapterError",
                "message": "Conflict",
                "status_code": 409,
                "reason": "Conflict",
                "details": {"path": "c/b"},
            }
        }

    def test_not_found_reason(self):
        error = NotFoundError("The specified blob does not exist.", reason="Not Found")
        assert error.to_dict()["error"]["code"] == "NotFound"
        assert error.reason == "Not Found"
