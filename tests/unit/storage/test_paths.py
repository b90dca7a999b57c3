"""
Unit tests for logical path resolution.
"""

import pytest

from zurefs.exceptions import ArgumentError
from zurefs.storage.paths import (
    ResolvedPath,
    clean,
    combine,
    encode_resource,
    get_file_name,
    is_root_path,
    resolve,
)


class TestResolve:
    """Test splitting paths into container and blob key."""

    def test_root_path(self):
        """Test the empty path resolves to the root."""
        resolved = resolve("")
        assert resolved.is_root
        assert resolved.container is None
        assert resolved.blob_key == ""

    def test_separator_only_is_root(self):
        """Test a path of separators is the root."""
        assert resolve("///").is_root

    def test_container_only(self):
        """Test a single segment names a container."""
        resolved = resolve("photos")
        assert resolved.container == "photos"
        assert resolved.blob_key == ""
        assert resolved.is_container
        assert not resolved.is_root

    def test_nested_path(self):
        """Test remaining segments form the blob key."""
        resolved = resolve("photos/2024/summer/beach.jpg")
        assert resolved.container == "photos"
        assert resolved.blob_key == "2024/summer/beach.jpg"
        assert not resolved.is_container

    def test_redundant_separators_collapsed(self):
        """Test the path is cleaned before splitting."""
        resolved = resolve("//photos///2024//beach.jpg/")
        assert resolved.container == "photos"
        assert resolved.blob_key == "2024/beach.jpg"

    def test_custom_separator(self):
        """Test a non-slash separator still yields a slash-joined blob key."""
        resolved = resolve("photos\\2024\\beach.jpg", separator="\\")
        assert resolved.container == "photos"
        assert resolved.blob_key == "2024/beach.jpg"

    def test_case_preserved(self):
        """Test blob keys are case-sensitive."""
        assert resolve("c/Dir/File.TXT").blob_key == "Dir/File.TXT"

    def test_none_rejected(self):
        """Test None raises ArgumentError."""
        with pytest.raises(ArgumentError):
            resolve(None)

    @pytest.mark.parametrize("path", [
        "",
        "photos",
        "photos/2024",
        "//photos//2024///beach.jpg",
        "a/b/c/d/e/f",
        "container/dir with spaces/file.txt",
    ])
    def test_rejoin_reconstructs_cleaned_path(self, path):
        """Test resolve followed by re-joining gives back the cleaned path."""
        assert resolve(path).to_path("/") == clean("/", path)

    def test_rejoin_with_custom_separator(self):
        """Test re-joining uses the given separator."""
        path = "\\photos\\\\2024\\beach.jpg"
        assert resolve(path, "\\").to_path("\\") == clean("\\", path)

    @pytest.mark.parametrize("path", [
        "photos\\2024/beach.jpg",
        "photos/2024\\beach.jpg",
        "photos\\2024\\/",
    ])
    def test_slash_in_segment_with_custom_separator(self, path):
        """Test a "/" inside a segment is rejected rather than split into the blob key."""
        with pytest.raises(ArgumentError) as exc_info:
            resolve(path, "\\")
        assert exc_info.value.argument == "path"

    def test_slash_paths_stay_distinct(self):
        """Test two different logical paths never share a blob key."""
        assert resolve("c\\a\\b", "\\").blob_key == "a/b"
        with pytest.raises(ArgumentError):
            resolve("c\\a/b", "\\")


class TestDirectoryPrefix:
    """Test blob-name prefixes for directory listings."""

    def test_container_level_prefix_is_empty(self):
        assert resolve("photos").directory_prefix == ""

    def test_nested_prefix_has_trailing_delimiter(self):
        assert resolve("photos/2024/summer").directory_prefix == "2024/summer/"


class TestHelpers:
    """Test path helper functions."""

    def test_clean(self):
        assert clean("/", "/a//b/") == "a/b"

    def test_clean_none_rejected(self):
        with pytest.raises(ArgumentError):
            clean("/", None)

    def test_is_root_path(self):
        assert is_root_path("")
        assert is_root_path("/")
        assert not is_root_path("a")

    def test_combine(self):
        assert combine("/", "photos", "2024/", "/beach.jpg") == "photos/2024/beach.jpg"

    def test_get_file_name(self):
        assert get_file_name("/", "photos/2024/beach.jpg") == "beach.jpg"
        assert get_file_name("/", "photos/2024/") == "2024"
        assert get_file_name("/", "") == ""


class TestEncodeResource:
    """Test URL paths for containers and blobs."""

    def test_root(self):
        assert encode_resource(ResolvedPath(None, "", True)) == "/"

    def test_container(self):
        assert encode_resource(resolve("photos")) == "/photos"

    def test_blob_keeps_slashes(self):
        assert encode_resource(resolve("photos/2024/beach.jpg")) == "/photos/2024/beach.jpg"

    def test_special_characters_escaped(self):
        assert encode_resource(resolve("photos/my file#1.jpg")) == "/photos/my%20file%231.jpg"
