"""
insthugo CLI argument parser.

Installs Hugo (or the release described by a custom metadata file) and prints
the path of the executable. Each failure category maps to its own exit code.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from insthugo.config import InstallerConfig, default_config_path, load_config
from insthugo.core.directory import get_home_dir
from insthugo.core.download import DownloadProgress, format_progress
from insthugo.core.exceptions import (
    DirectoryError,
    EnvironmentResolutionError,
    ExtractionError,
    FinalizeError,
    InstallerError,
    NetworkError,
    VerificationError,
)
from insthugo.installer import Installer

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("insthugo")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1

# Most specific first; the first matching class decides the exit code
EXIT_CODES = (
    (EnvironmentResolutionError, 2),
    (DirectoryError, 3),
    (NetworkError, 4),
    (VerificationError, 5),
    (ExtractionError, 6),
    (FinalizeError, 7),
    (InstallerError, EXIT_ERROR),
)


def exit_code_for(error: BaseException) -> int:
    """Map an exception to the process exit code."""
    for error_type, code in EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return EXIT_ERROR


class CLI:
    """insthugo command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="insthugo",
            description="Download, verify and install Hugo",
        )
        parser.add_argument(
            "--version", action="version", version=f"insthugo {__version__}"
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
            help="Path to configuration file (default: ~/.insthugo.yaml)",
        )
        parser.add_argument(
            "--base-dir",
            type=Path,
            metavar="PATH",
            help="Directory holding the application directory (default: home)",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SECONDS",
            help="HTTP timeout in seconds",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Only report whether the executable is installed",
        )
        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)
        self._configure_logging(parsed_args)

        try:
            config = self._load_config(parsed_args)
            installer = Installer(
                config=config,
                progress_callback=self._log_progress if parsed_args.verbose else None,
            )

            if parsed_args.check:
                return self._check(installer)

            result = installer.install()
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except InstallerError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return exit_code_for(e)

        print(result.executable)
        return EXIT_OK

    def _load_config(self, args) -> InstallerConfig:
        """Load the config file and apply command-line overrides."""
        if args.config:
            config = load_config(args.config, required=True)
        else:
            try:
                config = load_config(default_config_path(get_home_dir()))
            except EnvironmentResolutionError:
                # Reported again, fatally, when the install needs the home dir
                config = InstallerConfig()

        return config.with_overrides(base_dir=args.base_dir, timeout=args.timeout)

    def _check(self, installer: Installer) -> int:
        paths, _ = installer.resolve()
        if paths.executable.exists():
            print(paths.executable)
            return EXIT_OK
        logger.info(f"{installer.display_name} is not installed at {paths.executable}")
        return EXIT_ERROR

    @staticmethod
    def _log_progress(progress: DownloadProgress) -> None:
        logger.debug(format_progress(progress))

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
