"""
Make the installed sccache binary discoverable through PATH.

The install directory is published on two channels:
- the job-wide path file, so later steps of the same job see it (best effort)
- this process's own PATH, so the rest of this run sees it immediately

After publishing, the tool is resolved again through the updated PATH. A
failed or misdirected resolution is fatal, and the error message separates
"installed but not wired" from "not installed".
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Optional

from ..core.environment import Environment, JobFiles
from ..core.exceptions import WiringError
from .release import TOOL_NAME

logger = logging.getLogger(__name__)

Which = Callable[..., Optional[str]]


def default_binary_name(tool: str = TOOL_NAME) -> str:
    return f"{tool}.exe" if os.name == "nt" else tool


class PathPublisher:
    """
    Publish an install directory on PATH and verify the wiring.

    Attributes:
        env: Process environment to mutate
        job_files: Job-wide propagation files (None when unavailable)
        which: Resolver with the shutil.which signature
        tool: Command name to resolve
        binary_name: File name expected inside the install directory
    """

    def __init__(
        self,
        env: Environment,
        job_files: Optional[JobFiles] = None,
        which: Which = shutil.which,
        tool: str = TOOL_NAME,
        binary_name: Optional[str] = None,
    ):
        self.env = env
        self.job_files = job_files
        self.which = which
        self.tool = tool
        self.binary_name = binary_name or default_binary_name(tool)

    def publish(self, install_dir: Path) -> Path:
        """
        Publish install_dir on PATH.

        Args:
            install_dir: Directory holding the installed binary

        Returns:
            Absolute path the tool now resolves to

        Raises:
            WiringError: If the tool does not resolve into install_dir
        """
        install_dir = Path(install_dir).resolve()
        directory = str(install_dir)

        if self.job_files is not None:
            try:
                if self.job_files.add_path(directory):
                    logger.info(f"Added {directory} to job PATH file")
            except OSError as e:
                logger.warning(f"Could not append to job PATH file: {e}")

        self.env.prepend_path(directory)
        logger.info(f"Prepended {directory} to PATH")

        resolved = self.which(self.tool, path=self.env.path)
        expected = install_dir / self.binary_name

        if resolved is None:
            raise WiringError(self._describe_unresolved(expected))

        resolved_path = Path(resolved).absolute()
        if resolved_path.parent.resolve() != install_dir:
            raise WiringError(
                f"'{self.tool}' resolves to {resolved_path}, not to the managed "
                f"install at {expected}. PATH={self.env.path}"
            )

        logger.info(f"{self.tool} resolves to {resolved_path}")
        return resolved_path

    def _describe_unresolved(self, expected: Path) -> str:
        exists = expected.is_file()
        lines = [
            f"Failed to resolve '{self.tool}' on PATH after publishing {expected.parent}",
            f"  resolution: which('{self.tool}') returned nothing",
            f"  PATH: {self.env.path}",
            f"  expected location: {expected}",
            f"  binary exists at expected location: {'yes' if exists else 'no'}",
        ]
        if exists:
            lines.append(
                "  diagnosis: installed but not wired (the file exists but PATH "
                "lookup does not find it; check its permissions and PATH handling)"
            )
        else:
            lines.append(
                f"  diagnosis: binary not found at expected location {expected} "
                "(the install step did not produce it)"
            )
        return "\n".join(lines)
