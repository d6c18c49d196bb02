"""
Release archive download.

Archives are streamed to disk with `requests`. There is no retry and no
mirror: any failure surfaces as DownloadError and the caller decides whether
it is fatal (for the bootstrap it always is).

Usage:
    from buildcachekit.core.download import download_file

    download_file(release.archive_url, temp_dir / release.archive_name)
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_TIMEOUT = 30

# Emit a debug line every this many bytes
LOG_INTERVAL = 8 * 1024 * 1024


class DownloadError(Exception):
    """The archive could not be fetched."""

    pass


class ChecksumError(DownloadError):
    """The fetched archive does not match the expected SHA-256 digest."""

    pass


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> Path:
    """
    Stream url into destination.

    Args:
        url: Archive URL
        destination: File to create; parent directories are created
        expected_sha256: Hex digest to verify, or None to skip verification
        timeout: Connect and read timeout in seconds

    Returns:
        destination

    Raises:
        DownloadError: On transport failure, an HTTP error status, or a failed
            write to destination
        ChecksumError: If expected_sha256 is given and does not match
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)

    logger.info(f"Downloading {url}")
    digest = hashlib.sha256()

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            written = _stream_to_file(response, destination, digest)
    except RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise DownloadError(f"Failed to write {url} to {destination}: {e}") from e

    if expected_sha256 is not None:
        _verify_digest(destination, digest.hexdigest(), expected_sha256)

    logger.info(f"Downloaded {written} bytes to {destination}")
    return destination


def _stream_to_file(response: requests.Response, destination: Path, digest) -> int:
    written = 0
    next_log = LOG_INTERVAL
    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            digest.update(chunk)
            written += len(chunk)
            if written >= next_log:
                logger.debug(f"{destination.name}: {written // (1024 * 1024)} MiB received")
                next_log += LOG_INTERVAL
    return written


def _verify_digest(destination: Path, actual: str, expected: str) -> None:
    if actual.lower() == expected.lower():
        logger.debug(f"SHA-256 verified for {destination.name}")
        return

    destination.unlink()
    raise ChecksumError(
        f"Checksum mismatch for {destination.name}: expected {expected}, got {actual}"
    )
