"""
Process environment and job-wide propagation files.

CI job steps only communicate through environment variables and files. This
module models both channels explicitly:

- Environment: the mutable environment of *this* process. Mutations are seen
  by child processes started afterwards, but not by later job steps.
- JobFiles: the GitHub Actions side channel (GITHUB_ENV / GITHUB_PATH) that
  carries variables and PATH entries to later steps of the same job.

Usage:
    import os
    from buildcachekit.core.environment import Environment, JobFiles

    env = Environment(os.environ)
    job_files = JobFiles.from_environment(env)

    env.prepend_path("/opt/tools")
    job_files.add_path("/opt/tools")
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Iterator, List, MutableMapping, Optional

logger = logging.getLogger(__name__)


class Environment:
    """
    Explicit handle on a process environment mapping.

    The mapping is used by reference; wrapping ``os.environ`` makes every
    mutation visible to subprocesses spawned later in this process.
    """

    def __init__(self, mapping: Optional[MutableMapping[str, str]] = None):
        self._vars = mapping if mapping is not None else {}

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._vars.get(name, default)

    def get_nonempty(self, name: str) -> Optional[str]:
        """Return the variable value, treating empty strings as unset."""
        value = self._vars.get(name)
        return value if value else None

    def set(self, name: str, value: str) -> None:
        self._vars[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    @property
    def path(self) -> str:
        return self._vars.get("PATH", "")

    def path_entries(self) -> List[str]:
        return [entry for entry in self.path.split(os.pathsep) if entry]

    def prepend_path(self, directory: str) -> None:
        """Put directory first on PATH, dropping any later duplicate entry."""
        entries = [entry for entry in self.path_entries() if entry != directory]
        self._vars["PATH"] = os.pathsep.join([directory] + entries)
        logger.debug(f"Prepended to PATH: {directory}")

    def as_dict(self) -> Dict[str, str]:
        """Snapshot copy, suitable for passing to subprocess.run(env=...)."""
        return dict(self._vars)


class JobFiles:
    """
    Job-wide propagation files of a GitHub Actions job.

    Each file is optional; operations on a missing file are skipped and
    reported as not performed.

    Attributes:
        env_file: File appended with NAME=value lines (GITHUB_ENV)
        path_file: File appended with one directory per line (GITHUB_PATH)
    """

    def __init__(self, env_file: Optional[Path] = None, path_file: Optional[Path] = None):
        self.env_file = Path(env_file) if env_file else None
        self.path_file = Path(path_file) if path_file else None

    @classmethod
    def from_environment(cls, env: Environment) -> "JobFiles":
        """
        Discover the propagation files from the environment.

        Files are only used when GITHUB_ACTIONS is 'true', so a stray
        GITHUB_ENV on a developer machine is never written to.
        """
        if not is_github_actions(env):
            logger.debug("Not running inside GitHub Actions; job files unavailable")
            return cls()

        return cls(
            env_file=env.get_nonempty("GITHUB_ENV"),
            path_file=env.get_nonempty("GITHUB_PATH"),
        )

    @property
    def available(self) -> bool:
        return self.env_file is not None or self.path_file is not None

    def add_path(self, directory: str) -> bool:
        """
        Append a directory to the job-wide PATH file.

        Returns:
            True if the entry was written, False if no path file is available
        """
        if self.path_file is None:
            logger.debug(f"No job path file; not persisting PATH entry {directory}")
            return False

        with open(self.path_file, "a", encoding="utf-8") as f:
            f.write(f"{directory}\n")

        logger.debug(f"Appended {directory} to {self.path_file}")
        return True

    def export_variables(self, variables: Dict[str, str]) -> bool:
        """
        Append variables to the job-wide environment file in a single write.

        Multi-line values use the delimiter form understood by the runner.

        Returns:
            True if the variables were written, False if no env file is available

        Raises:
            OSError: If the env file cannot be written
        """
        if self.env_file is None:
            logger.debug(f"No job env file; not persisting {', '.join(variables)}")
            return False

        entries = "".join(format_env_entry(name, value) for name, value in variables.items())
        with open(self.env_file, "a", encoding="utf-8") as f:
            f.write(entries)

        logger.debug(f"Exported {', '.join(variables)} to {self.env_file}")
        return True


def format_env_entry(name: str, value: str) -> str:
    """
    Format a single GITHUB_ENV entry.

    Example:
        >>> format_env_entry("SCCACHE_REGION", "auto")
        'SCCACHE_REGION=auto\\n'
    """
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def is_github_actions(env: Environment) -> bool:
    """Whether this process runs as a GitHub Actions job step."""
    return env.get("GITHUB_ACTIONS", "").lower() == "true"
