"""
Centralized exception hierarchy for devstrap.

All errors raised by the installer engine, the configuration steps and the
CLI derive from DevstrapError so callers can handle them in one place.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class DevstrapError(Exception):
    """Base exception for all devstrap errors."""

    pass


# ============================================================================
# Privilege Exceptions
# ============================================================================


class PrivilegeError(DevstrapError):
    """Raised when the process runs with the wrong privilege level."""

    pass


class ElevationDeclinedError(PrivilegeError):
    """Raised when the user declines the UAC prompt or elevation fails."""

    pass


# ============================================================================
# Process Exceptions
# ============================================================================


class CommandNotFoundError(DevstrapError):
    """Raised when an executable cannot be resolved on PATH."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Command not found on PATH: {command}")


# ============================================================================
# Installer Exceptions
# ============================================================================


class InstallError(DevstrapError):
    """Base exception for tool installation errors."""

    pass


class PrimaryStrategyError(InstallError):
    """Primary installer failed. Non-fatal, the fallback takes over."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class FallbackStrategyError(InstallError):
    """Fallback installer failed. Terminal for the tool."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class DependencyMissingError(InstallError):
    """Raised when a prerequisite tool is not installed."""

    def __init__(self, tool: str, dependency: str):
        self.tool = tool
        self.dependency = dependency
        super().__init__(
            f"{tool} requires {dependency}, which is not installed. "
            f"Run: devstrap install {dependency}"
        )


class UnknownToolError(InstallError):
    """Raised when a tool name is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ReleaseLookupError(InstallError):
    """Raised when vendor release metadata cannot be fetched or parsed."""

    pass


# ============================================================================
# Version Exceptions
# ============================================================================


class VersionComparisonError(DevstrapError):
    """Invalid version format."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(DevstrapError):
    """Raised when .env or devstrap.yaml content is missing or invalid."""

    pass


# ============================================================================
# Orchestration Exceptions
# ============================================================================


class SequenceError(DevstrapError):
    """Raised when a sequence definition is invalid."""

    pass
