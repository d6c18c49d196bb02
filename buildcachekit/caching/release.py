"""
Pinned sccache release descriptors.

A ToolRelease identifies the exact archive to fetch for the host platform and
where its binary lands once installed.

Usage:
    from buildcachekit.caching.release import SCCACHE_VERSION, ToolRelease

    release = ToolRelease.for_platform(SCCACHE_VERSION)
    print(release.archive_url)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.exceptions import FetchError
from ..core.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

TOOL_NAME = "sccache"

# Pinned release; bump deliberately, never float to 'latest'
SCCACHE_VERSION = "v0.10.0"

# https://github.com/mozilla/sccache/releases
RELEASE_URL_TEMPLATE = (
    "https://github.com/mozilla/sccache/releases/download/"
    "{version}/sccache-{version}-{arch}-{os_triple}{ext}"
)

ARCH_NAMES = {
    "x64": "x86_64",
    "x86": "i686",
    "arm64": "aarch64",
}

OS_TRIPLES = {
    "linux": "unknown-linux-musl",
    "macos": "apple-darwin",
    "windows": "pc-windows-msvc",
}


def normalize_version(version: str) -> str:
    """
    Normalize a version tag to the 'vX.Y.Z' form used by release URLs.

    Example:
        >>> normalize_version("0.10.0")
        'v0.10.0'
    """
    version = version.strip()
    if not version:
        raise ValueError("Version cannot be empty")
    return version if version.startswith("v") else f"v{version}"


@dataclass(frozen=True)
class ToolRelease:
    """
    Immutable description of one platform-specific sccache release.

    Attributes:
        version: Release tag (e.g., 'v0.10.0')
        arch: Release architecture name ('x86_64', 'i686', 'aarch64')
        os_triple: Target OS triple suffix (e.g., 'unknown-linux-musl')
        archive_ext: Archive extension ('.tar.gz' or '.zip')
        exe_suffix: Executable suffix ('.exe' on Windows)
    """

    version: str
    arch: str
    os_triple: str
    archive_ext: str = ".tar.gz"
    exe_suffix: str = ""

    @classmethod
    def for_platform(
        cls, version: str = SCCACHE_VERSION, platform: Optional[PlatformInfo] = None
    ) -> "ToolRelease":
        """
        Build the release descriptor for a platform.

        Raises:
            FetchError: If no release is published for the platform
        """
        platform = platform or detect_platform()

        arch = ARCH_NAMES.get(platform.arch)
        os_triple = OS_TRIPLES.get(platform.os)
        if arch is None or os_triple is None:
            raise FetchError(
                f"No sccache release for platform {platform.platform_string()}. "
                f"Supported architectures: {', '.join(sorted(ARCH_NAMES))}; "
                f"operating systems: {', '.join(sorted(OS_TRIPLES))}",
                step="resolve-platform",
            )

        is_windows = platform.os == "windows"
        return cls(
            version=normalize_version(version),
            arch=arch,
            os_triple=os_triple,
            archive_ext=".zip" if is_windows else ".tar.gz",
            exe_suffix=".exe" if is_windows else "",
        )

    @property
    def target(self) -> str:
        return f"{self.arch}-{self.os_triple}"

    @property
    def archive_stem(self) -> str:
        return f"sccache-{self.version}-{self.target}"

    @property
    def archive_name(self) -> str:
        return f"{self.archive_stem}{self.archive_ext}"

    @property
    def archive_url(self) -> str:
        return RELEASE_URL_TEMPLATE.format(
            version=self.version,
            arch=self.arch,
            os_triple=self.os_triple,
            ext=self.archive_ext,
        )

    @property
    def binary_name(self) -> str:
        return f"{TOOL_NAME}{self.exe_suffix}"

    def binary_path(self, install_dir: Path) -> Path:
        """Deterministic location of the installed binary."""
        return Path(install_dir) / self.binary_name
