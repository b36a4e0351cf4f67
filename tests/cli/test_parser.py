"""
Tests for the CLI argument parser and dispatch.
"""

from unittest.mock import patch

import pytest

from devstrap.cli.parser import CLI
from devstrap.core.exceptions import DevstrapError


@pytest.fixture
def cli():
    """CLI instance."""
    return CLI()


class TestParsing:
    """Test argument parsing."""

    def test_install_flags(self, cli):
        """Test install flags and options are parsed."""
        args = cli.parse_args(["install", "node", "--upgrade", "--version", "20.11.1"])
        assert args.command == "install"
        assert args.tool == "node"
        assert args.upgrade
        assert not args.force
        assert args.tool_version == "20.11.1"

    def test_install_wsl_distro(self, cli):
        """Test --distro and --non-interactive for WSL."""
        args = cli.parse_args(["install", "wsl", "--distro", "Ubuntu", "--non-interactive"])
        assert args.distro == "Ubuntu"
        assert args.non_interactive

    def test_setup_only_and_skip(self, cli):
        """Test --only and --skip take several steps."""
        args = cli.parse_args(["setup", "--only", "git", "node", "--skip", "node"])
        assert args.only == ["git", "node"]
        assert args.skip == ["node"]

    def test_global_options_before_command(self, cli):
        """Test global options precede the command."""
        args = cli.parse_args(["--verbose", "--config", "my.yaml", "status"])
        assert args.verbose
        assert str(args.config) == "my.yaml"

    def test_configure_target_choices(self, cli):
        """Test configure accepts only known targets."""
        assert cli.parse_args(["configure", "git"]).target == "git"
        with pytest.raises(SystemExit):
            cli.parse_args(["configure", "vim"])

    def test_program_version(self, cli, capsys):
        """Test --version prints the program version."""
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "devstrap" in capsys.readouterr().out


class TestRun:
    """Test CLI.run exit codes."""

    def test_no_command_prints_help(self, cli, capsys):
        """Test no command prints help and exits 1."""
        assert cli.run([]) == 1
        assert "usage: devstrap" in capsys.readouterr().out

    def test_dispatches_to_command_module(self, cli):
        """The command module receives the parsed arguments."""
        with patch("devstrap.cli.commands.status.run", return_value=0) as run:
            assert cli.run(["status", "--non-interactive"]) == 0
        args = run.call_args[0][0]
        assert args.command == "status"
        assert args.non_interactive

    def test_keyboard_interrupt_exits_130(self, cli):
        """Test Ctrl+C exits 130."""
        with patch.object(CLI, "_dispatch_command", side_effect=KeyboardInterrupt):
            assert cli.run(["status", "--non-interactive"]) == 130

    def test_devstrap_error_exits_1(self, cli):
        """Test an unhandled DevstrapError exits 1."""
        with patch.object(CLI, "_dispatch_command", side_effect=DevstrapError("boom")):
            assert cli.run(["status", "--non-interactive"]) == 1

    def test_command_exit_code_is_returned(self, cli):
        """Test the command's exit code is returned."""
        with patch.object(CLI, "_dispatch_command", return_value=3):
            assert cli.run(["install", "git", "--non-interactive"]) == 3

    def test_pause_skipped_when_non_interactive(self, cli):
        """Test --non-interactive skips the exit pause."""
        with patch.object(CLI, "_dispatch_command", return_value=0), patch(
            "builtins.input"
        ) as prompt:
            cli.run(["status", "--non-interactive"])
        prompt.assert_not_called()
