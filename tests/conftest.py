"""
Pytest configuration and shared fixtures for devstrap tests.
"""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from devstrap.core.environment import EnvironmentSnapshot
from devstrap.core.platform import PlatformInfo
from devstrap.core.privilege import ElevationGuard
from devstrap.engine.base import InstallContext
from devstrap.engine.installer import ToolInstaller
from devstrap.tools import get_tool
from tests.mocks import FakeRunner, InMemoryEnvironmentStore


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def runner() -> FakeRunner:
    """Command runner that records commands instead of running them."""
    return FakeRunner()


@pytest.fixture
def store() -> InMemoryEnvironmentStore:
    """Empty durable environment store."""
    return InMemoryEnvironmentStore()


@pytest.fixture
def env(temp_dir: Path) -> EnvironmentSnapshot:
    """Windows-like environment snapshot rooted in a temporary profile."""
    profile = temp_dir / "profile"
    return EnvironmentSnapshot(
        {
            "PATH": str(temp_dir / "bin"),
            "USERPROFILE": str(profile),
            "APPDATA": str(profile / "AppData" / "Roaming"),
            "LOCALAPPDATA": str(profile / "AppData" / "Local"),
        }
    )


@pytest.fixture
def windows_x64() -> PlatformInfo:
    """Windows 11 x64 host."""
    return PlatformInfo("windows", "x64", "10.0.22631")


@pytest.fixture
def context(runner, store, windows_x64, temp_dir) -> InstallContext:
    """InstallContext wired to the fakes."""
    return InstallContext(
        runner=runner,
        store=store,
        platform=windows_x64,
        download_dir=temp_dir / "downloads",
    )


@pytest.fixture
def launcher() -> MagicMock:
    """Elevated launcher stub returning exit code 0."""
    return MagicMock(return_value=0)


@pytest.fixture
def guard(launcher) -> ElevationGuard:
    """Non-elevated guard with a stubbed launcher."""
    return ElevationGuard(privilege_check=lambda: False, launcher=launcher)


@pytest.fixture
def installer(context, guard) -> ToolInstaller:
    """Installer engine over the fakes."""
    return ToolInstaller(context, resolve_tool=get_tool, guard=guard)
