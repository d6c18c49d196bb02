"""
Optional install-directory locking.

Two jobs performing a first-time install on the same cache volume can race
each other's move into place. By default this is left unguarded; callers can
opt in to serializing the install with a file lock placed next to the install
directory.

Usage:
    from buildcachekit.core.locking import install_lock

    with install_lock(install_dir, enabled=True, timeout=300):
        ...
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout as LockTimeout

from .exceptions import FetchError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 300


def lock_path_for(install_dir: Path) -> Path:
    """
    Lock file location for an install directory.

    The lock lives beside the directory, not inside it, so the install
    directory keeps holding exactly one binary.
    """
    install_dir = Path(install_dir).absolute()
    return install_dir.parent / f".{install_dir.name}.lock"


@contextmanager
def install_lock(
    install_dir: Path, enabled: bool = False, timeout: int = DEFAULT_LOCK_TIMEOUT
) -> Iterator[None]:
    """
    Serialize installs into install_dir across processes when enabled.

    Raises:
        FetchError: If the lock cannot be acquired within timeout
    """
    if not enabled:
        yield
        return

    lock_path = lock_path_for(install_dir)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path), timeout=timeout)

    try:
        with lock:
            logger.debug(f"Acquired install lock: {lock_path}")
            yield
            logger.debug(f"Released install lock: {lock_path}")
    except LockTimeout as e:
        raise FetchError(
            f"Could not acquire install lock {lock_path} after {timeout}s. "
            "Another bootstrap may be installing into the same directory.",
            step="lock",
        ) from e
