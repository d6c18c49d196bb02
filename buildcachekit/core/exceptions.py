"""
Centralized exception hierarchy for buildcachekit.

Every fatal bootstrap condition is a BootstrapError carrying the name of the
step that failed, so the CLI can report it without re-running verbosely.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class BuildCacheKitError(Exception):
    """Base exception for all buildcachekit errors."""

    pass


# ============================================================================
# Bootstrap Exceptions
# ============================================================================


class BootstrapError(BuildCacheKitError):
    """Base exception for fatal bootstrap failures."""

    def __init__(self, message: str, step: str = "bootstrap"):
        self.step = step
        super().__init__(message)


class FetchError(BootstrapError):
    """Raised when downloading, extracting or installing the release fails."""

    def __init__(self, message: str, step: str = "fetch"):
        super().__init__(message, step=step)


class WiringError(BootstrapError):
    """Raised when the installed tool cannot be resolved through PATH."""

    def __init__(self, message: str, step: str = "publish"):
        super().__init__(message, step=step)


class ConfigurationPreconditionError(BootstrapError):
    """Raised when remote cache configuration cannot safely proceed."""

    def __init__(self, message: str, step: str = "configure"):
        super().__init__(message, step=step)


# ============================================================================
# Configuration Exceptions
# ============================================================================


class SettingsError(BuildCacheKitError):
    """Raised when a settings file or override is invalid."""

    pass
