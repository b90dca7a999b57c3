"""
Tests for the public package surface.
"""

import subprocess
import sys
from pathlib import Path

import pytest

import zurefs
import zurefs.auth
import zurefs.core
import zurefs.storage


class TestExports:
    """Test every name in __all__ resolves."""

    @pytest.mark.parametrize("package", [zurefs, zurefs.auth, zurefs.core, zurefs.storage])
    def test_all_names_importable(self, package):
        missing = [name for name in package.__all__ if not hasattr(package, name)]
        assert missing == []

    def test_storage_star_import(self):
        namespace = {}
        exec("from zurefs.storage import *", namespace)

        assert namespace["BlobStorageService"] is zurefs.BlobStorageService
        assert {"ContainerHandle", "DirectoryEntity", "FileEntity"} <= set(namespace)

    @pytest.mark.parametrize("module", [
        "zurefs.core.config_manager",
        "zurefs.storage",
        "zurefs.storage.models",
        "zurefs.storage.service",
    ])
    def test_fresh_interpreter_import(self, module):
        """Test each entry module imports cleanly on its own."""
        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            cwd=Path(__file__).resolve().parents[2],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr
