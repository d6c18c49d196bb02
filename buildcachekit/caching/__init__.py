"""
Build cache bootstrap for buildcachekit.

This package installs sccache, wires it into PATH and configures its remote
cache backend.

Modules:
    release: Pinned release descriptors and download URLs
    installer: Idempotent installation into a cache directory
    path: PATH publication and wiring verification
    remote: Remote (R2/S3) cache backend configuration
    report: Diagnostics report
"""

from .installer import (
    CacheDirInstaller,
    InstallationState,
)
from .path import PathPublisher
from .release import (
    SCCACHE_VERSION,
    ToolRelease,
)
from .remote import (
    RemoteCacheConfig,
    RemoteCacheConfigurator,
    Secret,
    SecureCredentialHandler,
    Skipped,
)
from .report import DiagnosticsReporter

__all__ = [
    "CacheDirInstaller",
    "InstallationState",
    "PathPublisher",
    "SCCACHE_VERSION",
    "ToolRelease",
    "RemoteCacheConfig",
    "RemoteCacheConfigurator",
    "Secret",
    "SecureCredentialHandler",
    "Skipped",
    "DiagnosticsReporter",
]
