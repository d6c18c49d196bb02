"""
Host platform detection.

Only the two facts needed to pick an sccache release archive are detected:
the operating system family and the CPU architecture. Detection runs once per
process.
"""

import functools
import platform as _platform
from dataclasses import dataclass

from .exceptions import FetchError

# platform.system() (lowercased) -> our OS name
OS_ALIASES = {
    "linux": "linux",
    "darwin": "macos",
    "windows": "windows",
}

# platform.machine() (lowercased) -> our architecture name
ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "x86": "x86",
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host operating system and architecture.

    Attributes:
        os: 'linux', 'macos' or 'windows'
        arch: 'x64', 'x86', 'arm64', 'arm', or the raw machine name if unknown
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Example:
            >>> PlatformInfo('macos', 'arm64').platform_string()
            'macos-arm64'
        """
        return f"{self.os}-{self.arch}"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""

    def __str__(self) -> str:
        return self.platform_string()


def normalize_architecture(machine: str) -> str:
    """Map a raw machine name (uname -m style) to our architecture names."""
    machine = machine.lower()
    if machine in ARCH_ALIASES:
        return ARCH_ALIASES[machine]
    # armv6l, armv7l, ...
    if machine.startswith("arm"):
        return "arm"
    return machine


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect the host platform (cached for the life of the process).

    Raises:
        FetchError: If the operating system is not Linux, macOS or Windows
    """
    system = _platform.system().lower()
    os_name = OS_ALIASES.get(system)
    if os_name is None:
        raise FetchError(
            f"Unsupported operating system: {system} "
            f"(supported: {', '.join(sorted(OS_ALIASES))})",
            step="resolve-platform",
        )
    return PlatformInfo(os=os_name, arch=normalize_architecture(_platform.machine()))


def clear_platform_cache() -> None:
    detect_platform.cache_clear()
