"""Test fixtures for buildcachekit tests.

- archives: fake sccache binaries and release archives
"""

__all__ = [
    "archives",
]
