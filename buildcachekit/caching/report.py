"""
Diagnostics report of the resolved sccache configuration.

Read-only: prints the binary, the remote cache variables (credentials only as
set / not set) and finally sccache's own statistics output.
"""

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from ..core.environment import Environment
from .installer import get_reported_version
from .release import TOOL_NAME
from .remote import CREDENTIAL_VARS, REMOTE_CACHE_VARS

logger = logging.getLogger(__name__)

NOT_SET = "<not set>"


class DiagnosticsReporter:
    """
    Print configuration and live statistics for operators.

    Attributes:
        env: Process environment to read from
        which: Resolver with the shutil.which signature
        out: Stream the report is written to
    """

    def __init__(
        self,
        env: Environment,
        which: Callable[..., Optional[str]] = shutil.which,
        out: Optional[TextIO] = None,
    ):
        self.env = env
        self.which = which
        self.out = out

    def _print(self, line: str = "") -> None:
        print(line, file=self.out or sys.stdout)

    def report(self, binary_path: Optional[Path] = None) -> None:
        """
        Print the report.

        Args:
            binary_path: Binary to report on (default: resolve through PATH)
        """
        if binary_path is None:
            resolved = self.which(TOOL_NAME, path=self.env.path)
            binary_path = Path(resolved) if resolved else None

        self._print("=== sccache configuration ===")

        if binary_path is None:
            self._print(f"{TOOL_NAME}: {NOT_SET} (not found on PATH)")
        else:
            binary_path = Path(binary_path).resolve()
            version = get_reported_version(binary_path)
            self._print(f"{TOOL_NAME} version: {version or '<unknown>'}")
            self._print(f"{TOOL_NAME} path: {binary_path}")

        for name in REMOTE_CACHE_VARS:
            self._print(f"{name}: {self._display_value(name)}")

        if binary_path is not None:
            self._print_stats(binary_path)

    def _display_value(self, name: str) -> str:
        value = self.env.get_nonempty(name)
        if name in CREDENTIAL_VARS:
            return "set" if value else NOT_SET
        return value or NOT_SET

    def _print_stats(self, binary_path: Path) -> None:
        self._print("=== sccache statistics ===")
        try:
            result = subprocess.run(
                [str(binary_path), "--show-stats"],
                capture_output=True,
                text=True,
                timeout=60,
                env=self.env.as_dict(),
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not collect sccache statistics: {e}")
            return

        if result.returncode != 0:
            logger.warning(
                f"sccache --show-stats exited with {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        self._print(result.stdout.rstrip())
