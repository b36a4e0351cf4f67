"""
devstrap CLI argument parser.

This module implements the command-line interface for devstrap using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from devstrap import __version__
from devstrap.core.exceptions import DevstrapError

logger = logging.getLogger(__name__)

CONFIGURE_TARGETS = ["git", "npm", "ngrok", "all"]


class CLI:
    """devstrap command-line interface."""

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
            prog="devstrap",
            description="devstrap - Windows developer workstation bootstrapper",
            epilog='Use "devstrap COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"devstrap {__version__}"
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
            help="Path to configuration file (default: ./devstrap.yaml)",
        )
        parser.add_argument(
            "--env-file",
            type=Path,
            metavar="PATH",
            help="Path to .env file (default: ./.env)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_setup_command(subparsers)
        self._add_configure_command(subparsers)
        self._add_status_command(subparsers)

        return parser

    @staticmethod
    def _add_mode_flags(parser):
        """Flags shared by install and setup."""
        parser.add_argument(
            "--upgrade",
            action="store_true",
            help="Upgrade tools that are already installed",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Reinstall unconditionally (overrides --upgrade)",
        )
        parser.add_argument(
            "--non-interactive",
            action="store_true",
            help="Never prompt or wait for input",
        )
        parser.add_argument(
            "--allow-admin",
            action="store_true",
            help="Allow user-scope steps to run from an elevated session",
        )

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install, upgrade or reinstall one tool",
            description="Install one tool; skips it when already installed "
            "unless --upgrade or --force is given",
        )
        parser.add_argument(
            "tool",
            metavar="TOOL",
            help="Tool name (winget, git, node, pyenv, python, pwsh, wsl, "
            "docker, ngrok, claude)",
        )
        self._add_mode_flags(parser)
        parser.add_argument(
            "--version",
            dest="tool_version",
            metavar="V",
            help="Pin a version (default: latest/LTS)",
        )
        parser.add_argument(
            "--distro",
            metavar="NAME",
            help="WSL distribution to install after enabling WSL2 (e.g. Ubuntu)",
        )
        parser.add_argument(
            "--python-version",
            metavar="V",
            help="Python version to install with pyenv (python and pyenv only)",
        )

    def _add_setup_command(self, subparsers):
        """Add 'setup' subcommand."""
        parser = subparsers.add_parser(
            "setup",
            help="Install and configure everything in dependency order",
            description="Run the full workstation sequence; stops at the first "
            "failing required step",
        )
        self._add_mode_flags(parser)
        parser.add_argument(
            "--only",
            nargs="+",
            metavar="STEP",
            help="Run only these steps",
        )
        parser.add_argument(
            "--skip",
            nargs="+",
            metavar="STEP",
            help="Skip these steps",
        )

    def _add_configure_command(self, subparsers):
        """Add 'configure' subcommand."""
        parser = subparsers.add_parser(
            "configure",
            help="Apply Git identity, npm prefix and Ngrok authtoken",
            description="Apply user-level settings from .env and devstrap.yaml",
        )
        parser.add_argument(
            "target",
            choices=CONFIGURE_TARGETS,
            help="What to configure",
        )
        parser.add_argument(
            "--non-interactive",
            action="store_true",
            help="Never prompt or wait for input",
        )
        parser.add_argument(
            "--allow-admin",
            action="store_true",
            help="Allow running from an elevated session",
        )

    def _add_status_command(self, subparsers):
        """Add 'status' subcommand."""
        parser = subparsers.add_parser(
            "status",
            help="Report installed tool versions",
            description="Probe every tool and report its installed version",
        )
        parser.add_argument(
            "--non-interactive",
            action="store_true",
            help="Never prompt or wait for input",
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
            Exit code (0 for success, 1 for failure, 130 when interrupted)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            exit_code = self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except DevstrapError as e:
            logger.error(f"Error: {e}")
            exit_code = 1

        from devstrap.cli.utils import pause_before_exit

        pause_before_exit(getattr(parsed_args, "non_interactive", False))
        return exit_code

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
            "install": "devstrap.cli.commands.install",
            "setup": "devstrap.cli.commands.setup",
            "configure": "devstrap.cli.commands.configure",
            "status": "devstrap.cli.commands.status",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
