"""
Platform detection for devstrap.

Fallback installers pick vendor artifacts by architecture (x64 vs arm64
MSIs, zips and installers), and a handful of steps only make sense on
Windows. This module answers both questions once per process.

Usage:
    from devstrap.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info.arch)  # e.g. 'x64'
"""

import functools
import os
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
        os_version: OS version string (e.g., '10.0.22631')
    """

    os: str
    arch: str
    os_version: str

    def __str__(self) -> str:
        return f"{self.os}-{self.arch} v{self.os_version}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(
        os=_detect_os(),
        arch=_detect_architecture(),
        os_version=platform.version() or platform.release(),
    )


def _detect_os() -> str:
    """
    Detect operating system.

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    A 32-bit or emulated interpreter on Windows reports the process
    architecture; PROCESSOR_ARCHITEW6432 carries the native one.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm'
    """
    machine = (
        os.environ.get("PROCESSOR_ARCHITEW6432") or platform.machine()
    ).lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine
