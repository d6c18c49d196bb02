"""
Unit tests for sccache release descriptors.
"""

from pathlib import Path

import pytest

from buildcachekit.caching.release import (
    SCCACHE_VERSION,
    ToolRelease,
    normalize_version,
)
from buildcachekit.core.exceptions import FetchError
from buildcachekit.core.platform import PlatformInfo


class TestNormalizeVersion:
    """Tests for version tag normalization."""

    def test_adds_prefix(self):
        assert normalize_version("0.10.0") == "v0.10.0"

    def test_keeps_prefix(self):
        assert normalize_version(" v0.10.0 ") == "v0.10.0"

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="Version cannot be empty"):
            normalize_version("  ")


class TestToolRelease:
    """Tests for ToolRelease.for_platform and derived properties."""

    def test_linux_x64(self, linux_platform):
        release = ToolRelease.for_platform("v0.10.0", linux_platform)

        assert release.target == "x86_64-unknown-linux-musl"
        assert release.archive_name == "sccache-v0.10.0-x86_64-unknown-linux-musl.tar.gz"
        assert release.archive_url == (
            "https://github.com/mozilla/sccache/releases/download/v0.10.0/"
            "sccache-v0.10.0-x86_64-unknown-linux-musl.tar.gz"
        )
        assert release.binary_name == "sccache"

    def test_macos_arm64(self):
        release = ToolRelease.for_platform("v0.10.0", PlatformInfo("macos", "arm64"))

        assert release.target == "aarch64-apple-darwin"
        assert release.archive_ext == ".tar.gz"

    def test_windows_uses_zip_and_exe(self):
        release = ToolRelease.for_platform("0.10.0", PlatformInfo("windows", "x64"))

        assert release.version == "v0.10.0"
        assert release.target == "x86_64-pc-windows-msvc"
        assert release.archive_name.endswith(".zip")
        assert release.binary_name == "sccache.exe"

    def test_unsupported_arch(self):
        """Test platforms without a published release fail as a fetch error."""
        with pytest.raises(FetchError, match="No sccache release") as exc_info:
            ToolRelease.for_platform("v0.10.0", PlatformInfo("linux", "arm"))

        assert exc_info.value.step == "resolve-platform"

    def test_binary_path_is_deterministic(self, linux_platform):
        release = ToolRelease.for_platform(SCCACHE_VERSION, linux_platform)

        assert release.binary_path(Path("target/sccache")) == Path("target/sccache/sccache")

    def test_pinned_version_is_tag(self):
        assert SCCACHE_VERSION.startswith("v")
