"""
Core functionality for buildcachekit.

This package contains the foundational modules that other components depend on.
"""

from .environment import (
    Environment,
    JobFiles,
    is_github_actions,
)

from .locking import (
    install_lock,
    lock_path_for,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .exceptions import (
    BuildCacheKitError,
    BootstrapError,
    FetchError,
    WiringError,
    ConfigurationPreconditionError,
    SettingsError,
)

__all__ = [
    "Environment",
    "JobFiles",
    "is_github_actions",
    "install_lock",
    "lock_path_for",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "BuildCacheKitError",
    "BootstrapError",
    "FetchError",
    "WiringError",
    "ConfigurationPreconditionError",
    "SettingsError",
]
