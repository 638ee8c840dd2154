"""
ndkharness CLI argument parser.

This module implements the command-line interface for ndkharness using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ndkharness import __version__
from ndkharness.core.exceptions import NdkHarnessError
from ndkharness.cross.profiles import SUPPORTED_ARCHITECTURES

logger = logging.getLogger(__name__)


class CLI:
    """ndkharness command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="ndkh",
            description="ndkharness - Android NDK cross-build and on-device test harness",
            epilog='Use "ndkh COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"ndkharness {__version__}"
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
            help="Path to configuration file (default: ./ndkharness.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_profiles_command(subparsers)
        self._add_resolve_command(subparsers)
        self._add_build_command(subparsers)
        self._add_build_all_command(subparsers)
        self._add_test_command(subparsers)

        return parser

    @staticmethod
    def _add_resolution_options(parser):
        parser.add_argument(
            "-d",
            "--download-all",
            action="store_true",
            help="Download the prebuilt dependency bundle before resolving",
        )
        parser.add_argument(
            "--dep",
            action="append",
            metavar="NAME=PATH",
            help="Explicit dependency location (can be used multiple times)",
        )

    def _add_profiles_command(self, subparsers):
        """Add 'profiles' subcommand."""
        subparsers.add_parser(
            "profiles",
            help="List architecture profiles",
            description="List the supported Android architecture profiles",
        )

    def _add_resolve_command(self, subparsers):
        """Add 'resolve' subcommand."""
        parser = subparsers.add_parser(
            "resolve",
            help="Show dependency resolution",
            description="Resolve dependencies for one architecture and show where they come from",
        )
        parser.add_argument("arch", metavar="ARCH", help="Target architecture")
        self._add_resolution_options(parser)

    def _add_build_command(self, subparsers):
        """Add 'build' subcommand."""
        parser = subparsers.add_parser(
            "build",
            help="Build for one architecture",
            description="Resolve dependencies, configure the toolchain and build",
        )
        parser.add_argument("arch", metavar="ARCH", help="Target architecture")
        self._add_resolution_options(parser)
        parser.add_argument(
            "--package",
            action="store_true",
            help="Package the built libraries into a zip archive",
        )
        parser.add_argument(
            "--version",
            dest="package_version",
            metavar="TAG",
            help="Version suffix for the package archive name",
        )

    def _add_build_all_command(self, subparsers):
        """Add 'build-all' subcommand."""
        parser = subparsers.add_parser(
            "build-all",
            help="Build for several architectures in turn",
            description="Build each architecture sequentially (default: all profiles)",
        )
        parser.add_argument(
            "-d",
            "--download-all",
            action="store_true",
            help="Download the prebuilt dependency bundle before resolving",
        )
        parser.add_argument(
            "--arch",
            action="append",
            choices=SUPPORTED_ARCHITECTURES,
            metavar="ARCH",
            help="Architecture to build (can be used multiple times)",
        )
        parser.add_argument(
            "--package",
            action="store_true",
            help="Package the built libraries into zip archives",
        )
        parser.add_argument(
            "--version",
            dest="package_version",
            metavar="TAG",
            help="Version suffix for the package archive names",
        )

    def _add_test_command(self, subparsers):
        """Add 'test' subcommand."""
        parser = subparsers.add_parser(
            "test",
            help="Build tests and run them on a device",
            description="Compile test executables and run them on an attached device",
        )
        parser.add_argument("arch", metavar="ARCH", help="Target architecture")
        self._add_resolution_options(parser)
        parser.add_argument("--serial", metavar="SERIAL", help="Device serial to use")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit non-zero if any test executable did not succeed",
        )
        parser.add_argument(
            "--no-teardown",
            action="store_true",
            help="Leave the device session running afterwards",
        )
        parser.add_argument(
            "--emulator",
            metavar="AVD",
            help="Start this AVD headless for the run and stop it afterwards",
        )

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

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except NdkHarnessError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return e.exit_code
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

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

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "profiles": "ndkharness.cli.commands.profiles",
            "resolve": "ndkharness.cli.commands.resolve",
            "build": "ndkharness.cli.commands.build",
            "build-all": "ndkharness.cli.commands.build_all",
            "test": "ndkharness.cli.commands.test",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Failed to load command module: {e}")
            return 1

        if not hasattr(module, "run"):
            logger.error(f"Command module {module_name} has no run() function")
            return 1

        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
