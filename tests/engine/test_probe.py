"""
Unit tests for the state probe.
"""

import subprocess

from devstrap.core.exceptions import CommandNotFoundError
from devstrap.engine.probe import COMMAND_NOT_RECOGNIZED, probe_tool
from devstrap.engine.strategies import WingetStrategy
from devstrap.engine.base import ToolSpec
from tests.mocks import FakeRunner

SPEC = ToolSpec(
    name="git",
    display_name="Git",
    probe_command=("git", "--version"),
    version_pattern=r"git version (\d+\.\d+\.\d+)",
    primary=WingetStrategy("Git.Git"),
)


class TestProbeTool:
    """Test probe outcomes."""

    def test_installed(self, env):
        """Test a recognized version line reports the tool installed."""
        runner = FakeRunner().add(["git", "--version"], (0, "git version 2.45.1.windows.1"))

        result = probe_tool(SPEC, runner, env)

        assert result.installed
        assert result.version == "2.45.1"
        assert runner.calls == [("git", "--version")]

    def test_probe_runs_against_snapshot(self, env):
        """Test the probe runs with the snapshot PATH."""
        runner = FakeRunner().add(["git", "--version"], (0, "git version 2.45.1"))
        probe_tool(SPEC, runner, env)
        assert runner.envs[0]["PATH"] == env.path

    def test_missing_command(self, env):
        """Test a command that cannot be found means not installed."""
        result = probe_tool(SPEC, FakeRunner(missing=["git"]), env)
        assert not result.installed
        assert result.version is None

    def test_non_zero_exit(self, env):
        """Test a non-zero exit means not installed."""
        runner = FakeRunner().add(["git"], COMMAND_NOT_RECOGNIZED)
        assert not probe_tool(SPEC, runner, env).installed

    def test_timeout(self, env):
        """Test a hung probe means not installed."""
        runner = FakeRunner().add(["git"], subprocess.TimeoutExpired("git", 30))
        assert not probe_tool(SPEC, runner, env).installed

    def test_unrecognized_output_is_ambiguous(self, env, caplog):
        """Test unparseable output is flagged ambiguous and logged."""
        runner = FakeRunner().add(["git"], (0, "git: weird build"))

        with caplog.at_level("WARNING"):
            result = probe_tool(SPEC, runner, env)

        assert not result.installed
        assert result.ambiguous
        assert "unrecognized version output" in caplog.text

    def test_missing_then_present(self, env):
        """Test probing twice sees a newly installed tool."""
        runner = FakeRunner().add(
            ["git"], CommandNotFoundError("git"), (0, "git version 2.46.0")
        )
        assert not probe_tool(SPEC, runner, env).installed
        assert probe_tool(SPEC, runner, env).version == "2.46.0"
