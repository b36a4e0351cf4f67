"""
Core functionality for devstrap.

This package contains the foundational modules the installer engine,
configuration steps and CLI depend on.
"""

from .exceptions import (
    DevstrapError,
    PrivilegeError,
    ElevationDeclinedError,
    CommandNotFoundError,
    InstallError,
    PrimaryStrategyError,
    FallbackStrategyError,
    DependencyMissingError,
    UnknownToolError,
    ReleaseLookupError,
    VersionComparisonError,
    ConfigurationError,
    SequenceError,
)

from .process import CommandResult, CommandRunner

from .environment import (
    EnvironmentSnapshot,
    EnvironmentStore,
    default_store,
    refresh_path,
    add_user_path_entry,
)

from .platform import PlatformInfo, detect_platform

from .privilege import ElevationGuard, is_admin

from .version import Version, extract_version, same_version

__all__ = [
    "DevstrapError",
    "PrivilegeError",
    "ElevationDeclinedError",
    "CommandNotFoundError",
    "InstallError",
    "PrimaryStrategyError",
    "FallbackStrategyError",
    "DependencyMissingError",
    "UnknownToolError",
    "ReleaseLookupError",
    "VersionComparisonError",
    "ConfigurationError",
    "SequenceError",
    "CommandResult",
    "CommandRunner",
    "EnvironmentSnapshot",
    "EnvironmentStore",
    "default_store",
    "refresh_path",
    "add_user_path_entry",
    "PlatformInfo",
    "detect_platform",
    "ElevationGuard",
    "is_admin",
    "Version",
    "extract_version",
    "same_version",
]
