"""
buildcachekit CLI argument parser.

A single top-to-bottom run: install, publish, configure, report. There are no
subcommands.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..bootstrap import run_bootstrap
from ..core.environment import Environment
from ..core.exceptions import BootstrapError, SettingsError
from ..config import load_settings
from .utils import annotate_error, print_error

try:
    from importlib.metadata import version

    __version__ = version("buildcachekit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%(message)s"
VERBOSE_FORMAT = "%(levelname)s [%(name)s] %(message)s"
QUIET_FORMAT = "%(levelname)s: %(message)s"


class CLI:
    """buildcachekit command-line interface."""

    def __init__(self, env: Optional[Environment] = None):
        """
        Initialize CLI.

        Args:
            env: Process environment (default: wraps os.environ)
        """
        self.env = env if env is not None else Environment(os.environ)
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="buildcachekit",
            description=(
                "Install sccache, publish it on PATH and configure its "
                "remote cache for a CI job"
            ),
            epilog=(
                "Remote caching is enabled only when R2_ACCOUNT_ID, "
                "R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY are set."
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"buildcachekit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to settings file (default: ./buildcachekit.yaml if present)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=None,
            help="Project root directory (default: current directory)",
        )
        parser.add_argument(
            "--install-dir",
            type=Path,
            metavar="PATH",
            help="Directory holding the sccache binary (default: target/sccache)",
        )
        parser.add_argument(
            "--sccache-version",
            dest="sccache_version",
            metavar="TAG",
            help="sccache release tag to install (default: pinned version)",
        )
        parser.add_argument(
            "--lock",
            action="store_true",
            default=None,
            help="Serialize installs into the install directory with a file lock",
        )
        parser.add_argument(
            "--no-report",
            action="store_true",
            help="Skip the diagnostics report",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run one bootstrap.

        Args:
            args: Command-line arguments (default: sys.argv[1:])

        Returns:
            0 on success, 1 on a fatal bootstrap or settings error, 130 on
            interrupt
        """
        parsed_args = self.parse_args(args)
        self._configure_logging(parsed_args)

        try:
            settings = load_settings(
                self.env,
                project_root=parsed_args.project_root,
                config_file=parsed_args.config,
                overrides={
                    "install_dir": parsed_args.install_dir,
                    "version": parsed_args.sccache_version,
                    "lock": parsed_args.lock,
                },
            )
            result = run_bootstrap(
                settings, self.env, report=not parsed_args.no_report
            )
        except KeyboardInterrupt:
            logger.error("Interrupted")
            return 130
        except BootstrapError as e:
            headline = f"sccache bootstrap failed at step '{e.step}'"
            annotate_error(self.env, str(e), title=headline)
            print_error(headline, str(e))
            if parsed_args.verbose:
                logger.debug("Failure details", exc_info=True)
            return 1
        except SettingsError as e:
            annotate_error(self.env, str(e), title="Invalid buildcachekit settings")
            print_error("Invalid buildcachekit settings", str(e))
            return 1

        logger.info(
            f"sccache ready at {result.resolved_path} "
            f"(remote cache {'enabled' if result.remote_enabled else 'disabled'})"
        )
        return 0

    def _configure_logging(self, args: argparse.Namespace) -> None:
        """Route log records to stderr; report lines stay on stdout."""
        if args.verbose:
            level, fmt = logging.DEBUG, VERBOSE_FORMAT
        elif args.quiet:
            level, fmt = logging.ERROR, QUIET_FORMAT
        else:
            level, fmt = logging.INFO, DEFAULT_FORMAT

        # Replaces handlers installed by an earlier run in the same process
        logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)


def main():
    """Console script entry point."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
