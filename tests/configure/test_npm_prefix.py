"""
Tests for npm global prefix configuration.
"""

import os

import pytest

from devstrap.configure import configure_npm_prefix
from devstrap.core.environment import USER
from devstrap.core.exceptions import ConfigurationError, DependencyMissingError


@pytest.fixture
def prefix(temp_dir):
    """npm prefix inside the temporary directory."""
    return str(temp_dir / "npm-global")


class TestConfigureNpmPrefix:
    """Test configure_npm_prefix."""

    def test_sets_prefix_and_user_path(self, runner, env, store, prefix):
        """Test the prefix is set, created and added to user PATH."""
        runner.add(["npm", "config", "get", "prefix"], (0, "C:\\Program Files\\nodejs\n"))

        result = configure_npm_prefix(runner, env, store, prefix)

        assert result.changed
        assert ("npm", "config", "set", "prefix", prefix) in runner.calls
        assert store.read("Path", USER) == prefix
        assert result.env.path == os.pathsep.join([env.path, prefix])
        assert os.path.isdir(prefix)

    def test_already_configured(self, runner, env, store, prefix):
        """Test a matching prefix already on PATH makes no changes."""
        store.write("Path", prefix, USER)
        env = env.with_path_entry(prefix)
        runner.add(["npm", "config", "get", "prefix"], (0, prefix + "\n"))

        result = configure_npm_prefix(runner, env, store, prefix)

        assert not result.changed
        assert result.message == f"npm prefix already {prefix}"
        assert runner.calls_to("npm", "config", "set") == []
        assert result.env is env

    def test_default_prefix_expands_appdata(self, runner, env, store):
        """Test the default prefix expands %APPDATA%."""
        result = configure_npm_prefix(runner, env, store)

        expected = env.variables["APPDATA"] + "\\npm"
        assert ("npm", "config", "set", "prefix", expected) in runner.calls
        assert result.message == f"npm prefix set to {expected}"

    def test_unexpandable_prefix(self, runner, env, store):
        """Test an unknown variable in the prefix raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Cannot expand"):
            configure_npm_prefix(runner, env, store, "%NO_SUCH_VAR%\\npm")
        assert runner.calls == []

    def test_npm_missing(self, runner, env, store, prefix):
        """Test a missing npm raises DependencyMissingError."""
        runner.missing.add("npm")
        with pytest.raises(DependencyMissingError, match="requires node"):
            configure_npm_prefix(runner, env, store, prefix)

    def test_npm_rejects_prefix(self, runner, env, store, prefix):
        """Test a failing npm config set leaves PATH untouched."""
        runner.add(["npm", "config", "get", "prefix"], (0, "C:\\elsewhere"))
        runner.add(["npm", "config", "set", "prefix"], 1)

        with pytest.raises(ConfigurationError, match="npm config set prefix failed"):
            configure_npm_prefix(runner, env, store, prefix)
        assert store.writes == []
