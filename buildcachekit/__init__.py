"""
buildcachekit: sccache bootstrap for CI jobs.

Installs a pinned sccache release, publishes it on PATH for the current
process and later job steps, configures an R2 remote cache when credentials
are available, and reports the resulting configuration.
"""

from .bootstrap import BootstrapResult, run_bootstrap
from .config import BootstrapSettings, load_settings

__all__ = [
    "BootstrapResult",
    "run_bootstrap",
    "BootstrapSettings",
    "load_settings",
]
