"""
Tests for vendor release resolvers.

HTTP is mocked with responses.
"""

import pytest
import responses

from devstrap.core.exceptions import ReleaseLookupError
from devstrap.engine.base import StrategyRequest
from devstrap.engine.decision import InstallDecision
from devstrap.tools import get_tool
from devstrap.tools.releases import (
    GITHUB_API,
    NODE_DIST,
    github_release,
    node_release,
    static_release,
    templated_release,
)

PWSH_RELEASE = {
    "tag_name": "v7.4.6",
    "assets": [
        {
            "name": "PowerShell-7.4.6-win-arm64.msi",
            "browser_download_url": "https://example.com/arm64.msi",
        },
        {
            "name": "PowerShell-7.4.6-win-x64.msi",
            "browser_download_url": "https://example.com/x64.msi",
            "digest": "sha256:" + "a" * 64,
        },
    ],
}

NODE_INDEX = [
    {"version": "v23.3.0", "lts": False, "files": ["win-x64-msi"]},
    {"version": "v22.12.0", "lts": "Jod", "files": ["win-x64-msi", "win-arm64-msi"]},
    {"version": "v20.18.1", "lts": "Iron", "files": ["win-x64-msi"]},
]


def make_request(context, env, options=None):
    return StrategyRequest(
        spec=get_tool("pwsh"),
        decision=InstallDecision.INSTALL,
        current_version=None,
        env=env,
        context=context,
        options=options or {},
    )


class TestGithubRelease:
    """Test GitHub Releases lookup."""

    @responses.activate
    def test_latest_asset_for_arch(self, context, env):
        """Test the latest release asset for the host architecture is picked."""
        responses.add(
            responses.GET,
            f"{GITHUB_API}/repos/PowerShell/PowerShell/releases/latest",
            json=PWSH_RELEASE,
        )
        resolve = github_release("PowerShell/PowerShell", r"^PowerShell-[\d.]+-win-{arch}\.msi$")

        release = resolve(make_request(context, env))

        assert release.version == "7.4.6"
        assert release.url == "https://example.com/x64.msi"
        assert release.filename == "PowerShell-7.4.6-win-x64.msi"
        assert release.sha256 == "a" * 64

    @responses.activate
    def test_pinned_version(self, context, env):
        """Test a pinned version is found in the release list."""
        responses.add(
            responses.GET,
            f"{GITHUB_API}/repos/PowerShell/PowerShell/releases",
            json=[{"tag_name": "v7.5.0", "assets": []}, PWSH_RELEASE],
        )
        resolve = github_release("PowerShell/PowerShell", r"win-{arch}\.msi$")

        release = resolve(make_request(context, env, {"version": "7.4.6"}))

        assert release.version == "7.4.6"

    @responses.activate
    def test_git_for_windows_tag(self, context, env):
        """Test the Git for Windows tag suffix is dropped."""
        responses.add(
            responses.GET,
            f"{GITHUB_API}/repos/git-for-windows/git/releases/latest",
            json={
                "tag_name": "v2.47.1.windows.1",
                "assets": [
                    {
                        "name": "Git-2.47.1-64-bit.exe",
                        "browser_download_url": "https://example.com/git.exe",
                    }
                ],
            },
        )
        resolve = github_release("git-for-windows/git", r"^Git-[\d.]+-(64-bit|{arch})\.exe$")

        release = resolve(make_request(context, env))

        assert release.version == "2.47.1"
        assert release.sha256 is None

    @responses.activate
    def test_no_matching_asset(self, context, env):
        """Test a release without a matching asset raises ReleaseLookupError."""
        responses.add(
            responses.GET,
            f"{GITHUB_API}/repos/PowerShell/PowerShell/releases/latest",
            json={"tag_name": "v7.4.6", "assets": []},
        )
        resolve = github_release("PowerShell/PowerShell", r"\.msi$")

        with pytest.raises(ReleaseLookupError, match="No asset"):
            resolve(make_request(context, env))

    @responses.activate
    def test_pinned_version_missing(self, context, env):
        """Test an unknown pinned version raises ReleaseLookupError."""
        responses.add(
            responses.GET,
            f"{GITHUB_API}/repos/PowerShell/PowerShell/releases",
            json=[PWSH_RELEASE],
        )
        resolve = github_release("PowerShell/PowerShell", r"\.msi$")

        with pytest.raises(ReleaseLookupError, match="no release 6.0.0"):
            resolve(make_request(context, env, {"version": "6.0.0"}))


class TestNodeRelease:
    """Test nodejs.org dist index lookup."""

    @responses.activate
    def test_newest_lts(self, context, env):
        """Test lts picks the newest LTS line with a Windows MSI."""
        responses.add(responses.GET, f"{NODE_DIST}/index.json", json=NODE_INDEX)

        release = node_release("lts")(make_request(context, env))

        assert release.version == "22.12.0"
        assert release.url == f"{NODE_DIST}/v22.12.0/node-v22.12.0-x64.msi"
        assert release.filename == "node-v22.12.0-x64.msi"

    @responses.activate
    def test_latest_channel(self, context, env):
        """Test latest picks the newest release."""
        responses.add(responses.GET, f"{NODE_DIST}/index.json", json=NODE_INDEX)
        assert node_release("latest")(make_request(context, env)).version == "23.3.0"

    @responses.activate
    def test_pinned(self, context, env):
        """Test a pinned version."""
        responses.add(responses.GET, f"{NODE_DIST}/index.json", json=NODE_INDEX)
        release = node_release()(make_request(context, env, {"version": "20.18.1"}))
        assert release.version == "20.18.1"

    @responses.activate
    def test_pinned_missing(self, context, env):
        """Test an unknown pinned version raises ReleaseLookupError."""
        responses.add(responses.GET, f"{NODE_DIST}/index.json", json=NODE_INDEX)
        with pytest.raises(ReleaseLookupError):
            node_release()(make_request(context, env, {"version": "18.0.0"}))


class TestStaticReleases:
    """Test fixed and templated URLs."""

    def test_static(self, context, env):
        """Test a fixed URL has no version."""
        release = static_release("https://example.com/a.zip", "a.zip")(make_request(context, env))
        assert release.version is None
        assert release.filename == "a.zip"

    def test_python_template(self, context, env):
        """Test version and architecture are filled into the URL."""
        resolve = templated_release(
            "https://www.python.org/ftp/python/{version}/python-{version}-{arch}.exe",
            "python-{version}-{arch}.exe",
            "3.12.7",
        )

        release = resolve(make_request(context, env))

        assert release.url == "https://www.python.org/ftp/python/3.12.7/python-3.12.7-amd64.exe"
        assert release.version == "3.12.7"

    def test_python_template_pinned(self, context, env):
        """Test a pinned version overrides the default."""
        resolve = templated_release("{version}", "python-{version}.exe", "3.12.7")
        assert resolve(make_request(context, env, {"version": "3.11.9"})).filename == "python-3.11.9.exe"
