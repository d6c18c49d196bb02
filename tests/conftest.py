"""
Pytest configuration and shared fixtures for buildcachekit tests.
"""

import tempfile
from pathlib import Path

import pytest
import responses

from buildcachekit.caching.release import SCCACHE_VERSION, ToolRelease
from buildcachekit.core.environment import Environment, JobFiles
from buildcachekit.core.platform import PlatformInfo
from tests.fixtures.archives import build_release_archive, is_posix


def pytest_collection_modifyitems(config, items):
    """Skip tests that execute shell-script stand-ins on non-POSIX hosts."""
    if is_posix():
        return
    skip_posix = pytest.mark.skip(reason="requires a POSIX shell")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip_posix)


# ============================================================================
# Platform and Release Fixtures
# ============================================================================


@pytest.fixture
def linux_platform() -> PlatformInfo:
    """Linux x64 platform."""
    return PlatformInfo(os="linux", arch="x64")


@pytest.fixture
def linux_release(linux_platform) -> ToolRelease:
    """Pinned sccache release for Linux x64."""
    return ToolRelease.for_platform(SCCACHE_VERSION, linux_platform)


@pytest.fixture
def release_archive(linux_release) -> bytes:
    """Fake upstream release archive for linux_release."""
    return build_release_archive(linux_release.archive_stem)


@pytest.fixture
def mock_release_download(linux_release, release_archive):
    """Serve the fake release archive at the real release URL."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            responses.GET,
            linux_release.archive_url,
            body=release_archive,
            status=200,
            content_type="application/gzip",
        )
        yield rsps


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def empty_bin_dir(tmp_path) -> Path:
    """A directory on the base PATH that holds nothing."""
    directory = tmp_path / "empty-bin"
    directory.mkdir()
    return directory


@pytest.fixture
def env(empty_bin_dir) -> Environment:
    """Isolated process environment with a minimal PATH."""
    return Environment({"PATH": str(empty_bin_dir)})


@pytest.fixture
def job_files(tmp_path) -> JobFiles:
    """Job-wide propagation files backed by temporary files."""
    env_file = tmp_path / "github_env"
    path_file = tmp_path / "github_path"
    env_file.touch()
    path_file.touch()
    return JobFiles(env_file=env_file, path_file=path_file)


@pytest.fixture
def temp_root(tmp_path, monkeypatch) -> Path:
    """Redirect tempfile to a directory the test can inspect for leftovers."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from buildcachekit.core import platform

    platform.clear_platform_cache()
    yield
    platform.clear_platform_cache()
