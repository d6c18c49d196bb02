"""
Bootstrap orchestration: install, publish, configure, report.

The steps run strictly in order. Any fatal step raises a BootstrapError and
stops the run; there is no degraded mode, since a half-configured build cache
is worse than none.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from .caching.installer import CacheDirInstaller
from .caching.path import PathPublisher
from .caching.remote import RemoteCacheConfig, RemoteCacheConfigurator, Skipped
from .caching.report import DiagnosticsReporter
from .config import BootstrapSettings
from .core.environment import Environment, JobFiles
from .core.platform import PlatformInfo

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """Outcome of a successful bootstrap run."""

    binary_path: Path
    resolved_path: Path
    remote: Union[RemoteCacheConfig, Skipped]

    @property
    def remote_enabled(self) -> bool:
        return isinstance(self.remote, RemoteCacheConfig)


def run_bootstrap(
    settings: BootstrapSettings,
    env: Environment,
    job_files: Optional[JobFiles] = None,
    platform: Optional[PlatformInfo] = None,
    which: Callable[..., Optional[str]] = shutil.which,
    out: Optional[TextIO] = None,
    report: bool = True,
) -> BootstrapResult:
    """
    Run the full bootstrap.

    Args:
        settings: Resolved settings
        env: Process environment (mutated in place)
        job_files: Job-wide propagation files (default: discovered from env)
        platform: Host platform override
        which: Executable resolver
        out: Stream for the diagnostics report
        report: Whether to print the diagnostics report

    Returns:
        BootstrapResult describing what was installed and configured

    Raises:
        BootstrapError: On any fatal step failure
    """
    if job_files is None:
        job_files = JobFiles.from_environment(env)
    if not job_files.available:
        logger.info(
            "No job propagation files; PATH and cache variables apply to this process only"
        )

    install_dir = settings.resolved_install_dir

    logger.info(f"[1/4] Installing sccache {settings.version}")
    installer = CacheDirInstaller(platform=platform, lock=settings.lock)
    binary_path = installer.ensure_installed(settings.version, install_dir)

    logger.info("[2/4] Publishing sccache on PATH")
    publisher = PathPublisher(
        env, job_files, which=which, binary_name=binary_path.name
    )
    resolved_path = publisher.publish(install_dir)

    logger.info("[3/4] Configuring remote cache")
    configurator = RemoteCacheConfigurator(env, job_files, which=which)
    remote = configurator.configure(
        account_id=settings.account_id,
        bucket=settings.bucket,
        key_prefix=settings.key_prefix,
        workspace_dir=settings.workspace_dir,
        access_key_id=settings.access_key_id,
        secret_access_key=settings.secret_access_key,
        binary_path=binary_path,
    )
    if isinstance(remote, Skipped):
        logger.info(f"Remote cache skipped: {remote.reason}")

    if report:
        logger.info("[4/4] Reporting configuration")
        DiagnosticsReporter(env, which=which, out=out).report(resolved_path)

    return BootstrapResult(
        binary_path=binary_path, resolved_path=resolved_path, remote=remote
    )
