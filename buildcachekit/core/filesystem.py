"""
Filesystem helpers for installing a release.

- extract_archive: unpack a .tar.gz or .zip, refusing members that would land
  outside the destination
- temporary_directory: private scratch directory removed on every exit path
- safe_rmtree: directory removal with an optional containment check
- make_executable: set the execute bits on POSIX
"""

import logging
import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TAR_SUFFIXES = (".tar.gz", ".tgz")
ZIP_SUFFIXES = (".zip",)


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Archive could not be unpacked."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive suffix is neither tar.gz nor zip."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive member would be written outside the destination."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Whether path lies at or below parent (Path.is_relative_to before 3.9).

    Example:
        >>> is_relative_to(Path('/a/b/c'), Path('/a'))
        True
    """
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


def make_executable(path: PathLike) -> None:
    if os.name == "nt":
        return
    path = Path(path)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


# ============================================================================
# Archive Extraction
# ============================================================================


def _check_members(names: Iterable[str], destination: Path) -> None:
    root = destination.resolve()
    for name in names:
        if not is_relative_to((root / name).resolve(), root):
            raise InsecureArchiveError(
                f"Archive member '{name}' escapes {destination}; refusing to extract"
            )


def extract_archive(archive_path: PathLike, destination: PathLike) -> None:
    """
    Unpack archive_path into destination.

    Raises:
        UnsupportedArchiveFormat: If the suffix is not .tar.gz, .tgz or .zip
        InsecureArchiveError: If a member would escape destination
        ArchiveExtractionError: If the archive is missing or corrupt
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    name = archive_path.name.lower()

    if not archive_path.is_file():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")
    if not name.endswith(TAR_SUFFIXES + ZIP_SUFFIXES):
        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name} (expected .tar.gz or .zip)"
        )

    destination.mkdir(parents=True, exist_ok=True)

    try:
        if name.endswith(ZIP_SUFFIXES):
            with zipfile.ZipFile(archive_path) as zf:
                _check_members(zf.namelist(), destination)
                zf.extractall(destination)
        else:
            with tarfile.open(archive_path, "r:gz") as tar:
                _check_members(tar.getnames(), destination)
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(destination, filter="data")
                else:
                    tar.extractall(destination)
    except ArchiveExtractionError:
        raise
    except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    logger.debug(f"Extracted {archive_path.name} into {destination}")


# ============================================================================
# Directory Lifecycle
# ============================================================================


def safe_rmtree(path: PathLike, require_prefix: Optional[PathLike] = None) -> None:
    """
    Remove a directory tree.

    A missing path is not an error.

    Args:
        path: Directory to remove
        require_prefix: If given, refuse to remove anything outside it

    Raises:
        ValueError: If path is outside require_prefix
        FilesystemError: If path is a file or removal fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{prefix}'"
            )

    if not path.exists():
        return
    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if os.name != "nt":
            shutil.rmtree(path)
        elif sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_clear_readonly)
        else:
            shutil.rmtree(path, onerror=_clear_readonly_legacy)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def _clear_readonly(func, path, exc):
    # Read-only files block deletion on Windows; retry once writable
    if os.access(path, os.W_OK):
        raise exc
    os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
    func(path)


def _clear_readonly_legacy(func, path, exc_info):
    _clear_readonly(func, path, exc_info[1])


@contextmanager
def temporary_directory(prefix: str = "buildcachekit_") -> Iterator[Path]:
    """
    Yield a fresh private directory under the system temp location.

    The directory is removed when the block exits, whether it returns or
    raises. A failed removal is logged and never replaces the block's own
    outcome.

    Example:
        >>> with temporary_directory(prefix="sccache-install-") as tmp:
        ...     (tmp / 'archive.tar.gz').write_bytes(b'')
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug(f"Created temporary directory: {path}")
    try:
        yield path
    finally:
        try:
            safe_rmtree(path, require_prefix=tempfile.gettempdir())
        except (FilesystemError, ValueError) as e:
            logger.warning(f"Could not remove temporary directory {path}: {e}")
        else:
            logger.debug(f"Removed temporary directory: {path}")
