"""
Tests for the tool catalog and end-to-end installer runs against it.
"""

import pytest

from devstrap.core.exceptions import PrimaryStrategyError, UnknownToolError
from devstrap.engine.base import StrategyRequest
from devstrap.engine.decision import InstallDecision, InstallFlags
from devstrap.engine.installer import OutcomeStatus
from devstrap.tools import get_tool, list_tools, tool_names
from devstrap.tools.catalog import DEFAULT_AGENT_PACKAGE, DEFAULT_PYTHON_VERSION

WINGET_SENTINEL_SIGNED = -1978335189


def request_for(name, context, env, decision=InstallDecision.INSTALL, options=None):
    return StrategyRequest(
        spec=get_tool(name),
        decision=decision,
        current_version=None,
        env=env,
        context=context,
        options=options or {},
    )


class TestRegistry:
    """Test tool lookup."""

    def test_all_tools_present(self):
        """Test the catalog lists every tool in install order."""
        assert tool_names() == [
            "winget",
            "git",
            "node",
            "pyenv",
            "python",
            "pwsh",
            "wsl",
            "docker",
            "ngrok",
            "claude",
        ]

    def test_lookup_is_case_insensitive(self):
        """Test tool names match regardless of case."""
        assert get_tool("Git").name == "git"

    def test_unknown_tool(self):
        """Test an unknown name raises UnknownToolError."""
        with pytest.raises(UnknownToolError, match="Unknown tool: vim"):
            get_tool("vim")

    def test_dependencies_are_known_tools(self):
        """Test every dependency names a catalog tool."""
        names = set(tool_names())
        for spec in list_tools():
            assert set(spec.requires) <= names

    def test_dependency_order(self):
        """Test dependencies come before the tools that need them."""
        names = tool_names()
        for spec in list_tools():
            for dependency in spec.requires:
                assert names.index(dependency) < names.index(spec.name)

    def test_privilege_levels(self):
        """Test which tools need admin and which must run as the user."""
        admin = {s.name for s in list_tools() if s.requires_admin}
        user = {s.name for s in list_tools() if s.user_scope}
        assert admin == {"git", "node", "pwsh", "wsl", "docker"}
        assert user == {"pyenv", "python", "ngrok", "claude"}

    def test_every_tool_except_agent_has_fallback(self):
        """Test only the coding agent lacks a fallback."""
        without = [s.name for s in list_tools() if s.fallback is None]
        assert without == ["claude"]


class TestEndToEnd:
    """Installer runs over real catalog entries with a fake runner."""

    def test_git_present_no_flags_runs_no_mutating_command(self, installer, runner, env):
        """Test a present Git with no flags only runs the probe."""
        runner.add(["git", "--version"], (0, "git version 2.45.1.windows.1"))

        outcome = installer.install(get_tool("git"), InstallFlags(), env)

        assert outcome.exit_code == 0
        assert outcome.status is OutcomeStatus.SKIPPED
        assert runner.calls == [("git", "--version")]

    def test_node_upgrade_sentinel_is_already_latest(self, installer, runner, env):
        """Test the winget sentinel on a Node upgrade never reaches the MSI fallback."""
        runner.add(["node", "--version"], (0, "v20.11.1"))
        runner.add(["winget"], WINGET_SENTINEL_SIGNED)

        outcome = installer.install(get_tool("node"), InstallFlags(upgrade=True), env)

        assert outcome.exit_code == 0
        assert outcome.status is OutcomeStatus.ALREADY_LATEST
        assert "already the latest" in outcome.message
        winget_calls = runner.calls_to("winget", "upgrade", "--id", "OpenJS.NodeJS.LTS")
        assert len(winget_calls) == 1
        assert runner.calls_to("msiexec.exe") == []

    def test_python_requires_pyenv(self, installer, runner, env):
        """Test Python fails with a hint when pyenv is missing."""
        runner.missing.update({"python", "pyenv"})

        outcome = installer.install(get_tool("python"), InstallFlags(), env)

        assert outcome.status is OutcomeStatus.FAILED
        assert "devstrap install pyenv" in outcome.message
        assert runner.calls == [("python", "--version"), ("pyenv", "--version")]


class TestCommandBuilders:
    """Command lists produced by catalog strategies."""

    def test_agent_npm_install(self, context, env):
        """Test the agent installs the latest npm package globally."""
        spec = get_tool("claude")
        commands = spec.primary.commands(request_for("claude", context, env))
        assert commands == [["npm", "install", "-g", f"{DEFAULT_AGENT_PACKAGE}@latest"]]

    def test_agent_reinstall_forces(self, context, env):
        """Test a reinstall of a custom agent package passes --force."""
        spec = get_tool("claude")
        request = request_for(
            "claude", context, env, InstallDecision.REINSTALL, {"package": "other-cli"}
        )
        assert spec.primary.commands(request) == [
            ["npm", "install", "-g", "other-cli@latest", "--force"]
        ]

    def test_python_default_version(self, context, env):
        """Test pyenv installs, selects and rehashes the default version."""
        commands = get_tool("python").primary.commands(request_for("python", context, env))
        assert commands[0] == ["pyenv", "install", "-q", DEFAULT_PYTHON_VERSION]
        assert commands[1] == ["pyenv", "global", DEFAULT_PYTHON_VERSION]
        assert commands[2] == ["pyenv", "rehash"]

    def test_python_pinned_reinstall(self, context, env):
        """Test a pinned reinstall forces pyenv to reinstall."""
        request = request_for(
            "python", context, env, InstallDecision.REINSTALL, {"version": "3.11.9"}
        )
        commands = get_tool("python").primary.commands(request)
        assert commands[0] == ["pyenv", "install", "-q", "3.11.9", "-f"]

    def test_pyenv_script_only_for_fresh_install(self, context, env):
        """Test the pyenv-win script refuses anything but a fresh install."""
        primary = get_tool("pyenv").primary
        assert len(primary.commands(request_for("pyenv", context, env))) == 1
        upgrade = request_for("pyenv", context, env, InstallDecision.UPGRADE)
        with pytest.raises(PrimaryStrategyError, match="cannot upgrade"):
            primary.commands(upgrade)

    def test_wsl_setup_with_distro(self, context, env):
        """Test WSL setup installs the configured distro last."""
        post = get_tool("wsl").post_install
        commands = post.commands(request_for("wsl", context, env, options={"distro": "Ubuntu"}))
        assert ["wsl.exe", "--set-default-version", "2"] in commands
        assert commands[-1] == ["wsl.exe", "--install", "-d", "Ubuntu", "--no-launch"]

    def test_wsl_setup_without_distro(self, context, env):
        """Test no distro is installed unless configured."""
        commands = get_tool("wsl").post_install.commands(request_for("wsl", context, env))
        assert not any("--install" in c for c in commands)
