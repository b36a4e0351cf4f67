"""
Installer engine data model and strategy interface.

A ToolSpec describes one tool: how to probe it, how to install it with the
package manager (primary strategy) and how to install it without one
(fallback strategy). The engine in ``installer.py`` drives these records; the
concrete strategies live in ``strategies.py`` and the per-tool records in
``devstrap.tools.catalog``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..core.download import DownloadProgress
from ..core.environment import EnvironmentSnapshot, EnvironmentStore
from ..core.platform import PlatformInfo
from ..core.process import CommandResult, CommandRunner
from .decision import InstallDecision

# Pinned-version keywords that mean "whatever the vendor calls current"
FLOATING_VERSIONS = ("", "latest", "lts", "stable")


@dataclass(frozen=True)
class ProbeResult:
    """
    Result of running a tool's version command.

    Attributes:
        installed: Tool answered and its version matched the pattern
        version: Parsed version, None when not installed
        output: Raw output of the probe command
        ambiguous: Tool answered but the version did not match the pattern
    """

    installed: bool
    version: Optional[str] = None
    output: str = ""
    ambiguous: bool = False

    @classmethod
    def absent(cls, output: str = "") -> "ProbeResult":
        return cls(installed=False, output=output)


@dataclass
class InstallContext:
    """
    Collaborators shared by every strategy in a run.

    Attributes:
        runner: Executes external commands
        store: Durable user/machine environment
        platform: Host platform (artifact selection)
        download_dir: Where installer artifacts are cached
        on_progress: Receives download progress updates, if set
    """

    runner: CommandRunner
    store: EnvironmentStore
    platform: PlatformInfo
    download_dir: Path
    on_progress: Optional[Callable[[DownloadProgress], None]] = None


@dataclass
class StrategyRequest:
    """Everything a strategy needs to act on one tool."""

    spec: "ToolSpec"
    decision: InstallDecision
    current_version: Optional[str]
    env: EnvironmentSnapshot
    context: InstallContext
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def desired_version(self) -> Optional[str]:
        """Pinned version from options, None when floating (latest/lts)."""
        value = str(self.options.get("version") or "").strip()
        if value.lower() in FLOATING_VERSIONS:
            return None
        return value.lstrip("v")

    def run(
        self, args: Sequence[str], timeout: Optional[float] = None
    ) -> CommandResult:
        """Run a command against the request's environment snapshot."""
        return self.context.runner.run(args, env=self.env.as_environ(), timeout=timeout)


class StrategyStatus(Enum):
    SUCCESS = "success"
    ALREADY_LATEST = "already_latest"
    FAILED = "failed"


@dataclass(frozen=True)
class StrategyResult:
    """
    Outcome of one strategy attempt.

    Attributes:
        status: SUCCESS, ALREADY_LATEST or FAILED
        strategy: Name of the strategy that produced this result
        exit_code: Exit code of the decisive command, if any
        message: Human-readable detail
        version: Version installed or found remotely, when known
        restart_required: Installer asked for a reboot (3010/1641)
    """

    status: StrategyStatus
    strategy: str
    exit_code: Optional[int] = None
    message: str = ""
    version: Optional[str] = None
    restart_required: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status is not StrategyStatus.FAILED


class InstallStrategy(ABC):
    """
    Abstract base class for installation strategies.

    A strategy installs, upgrades or reinstalls a tool according to the
    decision in the request. Strategies report failure through the result
    rather than raising, so the engine can hand over to the fallback.
    """

    name: str = "strategy"

    @abstractmethod
    def apply(self, request: StrategyRequest) -> StrategyResult:
        """
        Perform the requested action.

        Args:
            request: Tool, decision, environment and options

        Returns:
            StrategyResult describing what happened
        """
        pass

    def describe(self) -> str:
        return self.name

    def success(self, **kwargs) -> StrategyResult:
        return StrategyResult(StrategyStatus.SUCCESS, self.name, **kwargs)

    def already_latest(self, **kwargs) -> StrategyResult:
        return StrategyResult(StrategyStatus.ALREADY_LATEST, self.name, **kwargs)

    def failed(self, message: str, exit_code: Optional[int] = None) -> StrategyResult:
        return StrategyResult(
            StrategyStatus.FAILED, self.name, exit_code=exit_code, message=message
        )


@dataclass(frozen=True)
class ToolSpec:
    """
    Immutable definition of one installable tool.

    Attributes:
        name: Identifier used on the command line (e.g. 'git')
        display_name: Name shown to the user (e.g. 'Git')
        probe_command: Command printing the installed version
        version_pattern: Regex whose first group is the version
        primary: Package-manager strategy, tried once
        fallback: Direct-download strategy, tried once if primary fails
        requires_admin: Needs an elevated process
        user_scope: Installs into the user profile; refuses to run elevated
            unless explicitly allowed
        requires: Tools that must be installed first
        optional: Failure does not abort an orchestrated run
        verify_after_install: Re-probe after installing
        post_install: Extra configuration after a successful install
        post_install_hint: Message shown after a successful install
        probe_timeout: Seconds to wait for the probe command
    """

    name: str
    display_name: str
    probe_command: Tuple[str, ...]
    version_pattern: str
    primary: InstallStrategy
    fallback: Optional[InstallStrategy] = None
    requires_admin: bool = False
    user_scope: bool = False
    requires: Tuple[str, ...] = ()
    optional: bool = False
    verify_after_install: bool = True
    post_install: Optional[InstallStrategy] = None
    post_install_hint: Optional[str] = None
    probe_timeout: float = 30

    def __post_init__(self):
        if not self.name:
            raise ValueError("Tool name cannot be empty")
        if not self.probe_command:
            raise ValueError(f"{self.name}: probe_command cannot be empty")
        if self.requires_admin and self.user_scope:
            raise ValueError(f"{self.name}: cannot be both admin and user scope")
