"""
Idempotent installation of the sccache binary into a cache directory.

The only persisted state is the binary itself: if it exists at the
deterministic path under the install directory, it is trusted as-is and no
network work happens. This makes the installer safe to run on every job,
including on a warm cache volume.

Usage:
    from pathlib import Path
    from buildcachekit.caching.installer import CacheDirInstaller

    installer = CacheDirInstaller()
    binary = installer.ensure_installed("v0.10.0", Path("target/sccache"))
"""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.download import DownloadError, download_file
from ..core.exceptions import FetchError
from ..core.filesystem import (
    ArchiveExtractionError,
    extract_archive,
    make_executable,
    temporary_directory,
)
from ..core.locking import install_lock
from ..core.platform import PlatformInfo, detect_platform
from .release import SCCACHE_VERSION, ToolRelease

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DIR = Path("target") / "sccache"


@dataclass
class InstallationState:
    """
    Observed installation state.

    Attributes:
        present: Whether the binary exists at the expected path
        path: Expected binary path
        reported_version: Output of `sccache --version` (None if absent or failed)
    """

    present: bool
    path: Path
    reported_version: Optional[str] = None


def get_reported_version(binary: Path, timeout: int = 10) -> Optional[str]:
    """
    Ask a binary for its version.

    Returns:
        Version string such as '0.10.0', or None if the query fails
    """
    try:
        result = subprocess.run(
            [str(binary), "--version"], capture_output=True, text=True, timeout=timeout
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Failed to query version of {binary}: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{binary} --version exited with {result.returncode}")
        return None

    # sccache prints "sccache 0.10.0"
    match = re.search(r"(\d+\.\d+\.\d+\S*)", result.stdout)
    return match.group(1) if match else result.stdout.strip() or None


class CacheDirInstaller:
    """
    Download and install a pinned sccache release into a directory.

    Attributes:
        platform: Host platform used to select the release archive
        lock: Serialize installs into the same directory across processes
        expected_sha256: Optional archive checksum verified during download
    """

    def __init__(
        self,
        platform: Optional[PlatformInfo] = None,
        lock: bool = False,
        expected_sha256: Optional[str] = None,
    ):
        self.platform = platform or detect_platform()
        self.lock = lock
        self.expected_sha256 = expected_sha256

    def release(self, version: str = SCCACHE_VERSION) -> ToolRelease:
        return ToolRelease.for_platform(version, self.platform)

    def inspect(
        self, version: str = SCCACHE_VERSION, install_dir: Path = DEFAULT_INSTALL_DIR
    ) -> InstallationState:
        """Report whether the binary is installed and which version it reports."""
        binary = self.release(version).binary_path(install_dir)
        if not binary.exists():
            return InstallationState(present=False, path=binary)
        return InstallationState(
            present=True, path=binary, reported_version=get_reported_version(binary)
        )

    def ensure_installed(
        self, version: str = SCCACHE_VERSION, install_dir: Path = DEFAULT_INSTALL_DIR
    ) -> Path:
        """
        Make sure the binary for version exists in install_dir.

        Args:
            version: Release tag to install (e.g., 'v0.10.0')
            install_dir: Directory that holds the binary

        Returns:
            Path to the installed binary

        Raises:
            FetchError: If download, extraction, lookup or move fails
        """
        install_dir = Path(install_dir)
        release = self.release(version)
        binary = release.binary_path(install_dir)

        if binary.exists():
            logger.info(f"sccache already installed at {binary}; skipping download")
            return binary

        with install_lock(install_dir, enabled=self.lock):
            # Another process may have finished the install while we waited
            if binary.exists():
                logger.info(f"sccache installed concurrently at {binary}")
                return binary

            logger.info(
                f"Installing sccache {release.version} for {release.target} "
                f"into {install_dir}"
            )
            self._install(release, install_dir)

        logger.info(f"Successfully installed sccache to: {binary}")
        return binary

    def _install(self, release: ToolRelease, install_dir: Path) -> None:
        with temporary_directory(prefix="sccache-install-") as temp_dir:
            archive_path = temp_dir / release.archive_name

            try:
                download_file(
                    release.archive_url,
                    archive_path,
                    expected_sha256=self.expected_sha256,
                )
            except DownloadError as e:
                raise FetchError(
                    f"Failed to download {release.archive_url}: {e}", step="download"
                ) from e

            extract_dir = temp_dir / "extract"
            try:
                extract_archive(archive_path, extract_dir)
            except ArchiveExtractionError as e:
                raise FetchError(
                    f"Failed to extract {release.archive_name}: {e}", step="extract"
                ) from e

            extracted = self._find_binary(extract_dir, release.binary_name)
            if extracted is None:
                raise FetchError(
                    f"'{release.binary_name}' not found in {release.archive_name} "
                    f"(downloaded from {release.archive_url})",
                    step="locate",
                )

            self._move_into_place(extracted, release.binary_path(install_dir))

    @staticmethod
    def _find_binary(directory: Path, binary_name: str) -> Optional[Path]:
        for item in sorted(directory.rglob(binary_name)):
            if item.is_file():
                return item
        return None

    @staticmethod
    def _move_into_place(source: Path, target: Path) -> None:
        """
        Move the extracted binary to target.

        The binary is first staged inside the install directory and then
        renamed, so target is never observed half-written on one filesystem.
        """
        staged = target.with_name(f".{target.name}.partial-{os.getpid()}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(staged))
            make_executable(staged)
            os.replace(staged, target)
        except OSError as e:
            if staged.exists():
                staged.unlink()
            raise FetchError(
                f"Failed to move sccache into {target}: {e}", step="install"
            ) from e
