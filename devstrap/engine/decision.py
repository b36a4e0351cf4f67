"""
Install decision gate.

Pure functions mapping (requested flags, probed version) to what the
installer should do. Nothing here touches the system.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class InstallMode(Enum):
    """Behaviour requested on the command line."""

    DEFAULT = "default"
    UPGRADE = "upgrade"
    FORCE = "force"


class InstallDecision(Enum):
    """What the installer will do for one tool."""

    SKIP = "skip"
    INSTALL = "install"
    UPGRADE = "upgrade"
    REINSTALL = "reinstall"

    @property
    def mutates(self) -> bool:
        return self is not InstallDecision.SKIP


def resolve_mode(upgrade: bool = False, force: bool = False) -> InstallMode:
    """
    Resolve mode flags. Force wins over Upgrade.

    Example:
        >>> resolve_mode(upgrade=True, force=True)
        <InstallMode.FORCE: 'force'>
    """
    if force:
        return InstallMode.FORCE
    if upgrade:
        return InstallMode.UPGRADE
    return InstallMode.DEFAULT


@dataclass(frozen=True)
class InstallFlags:
    """
    Flags shared by every install command.

    Attributes:
        upgrade: Upgrade an existing installation
        force: Reinstall unconditionally (overrides upgrade)
        non_interactive: Never prompt
        allow_admin: Permit user-scope work from an elevated process
    """

    upgrade: bool = False
    force: bool = False
    non_interactive: bool = False
    allow_admin: bool = False

    @property
    def mode(self) -> InstallMode:
        return resolve_mode(self.upgrade, self.force)

    def to_args(self) -> list:
        """Command-line switches reproducing these flags."""
        args = []
        if self.force:
            args.append("--force")
        elif self.upgrade:
            args.append("--upgrade")
        if self.non_interactive:
            args.append("--non-interactive")
        if self.allow_admin:
            args.append("--allow-admin")
        return args


def decide(current_version: Optional[str], mode: InstallMode) -> InstallDecision:
    """
    Decide what to do for a tool.

    Args:
        current_version: Probed version, None when the tool is absent
        mode: Requested mode

    Returns:
        InstallDecision
    """
    present = current_version is not None

    if mode is InstallMode.FORCE:
        return InstallDecision.REINSTALL
    if mode is InstallMode.UPGRADE:
        return InstallDecision.UPGRADE if present else InstallDecision.INSTALL
    return InstallDecision.SKIP if present else InstallDecision.INSTALL
