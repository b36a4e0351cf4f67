"""
Status command.

Probes every tool with its own version command and reports what is
installed. Nothing is changed.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from devstrap.cli.utils import FAIL, OK, WARN, create_installer, print_box, safe_print
from devstrap.core.environment import EnvironmentSnapshot
from devstrap.core.privilege import is_admin
from devstrap.engine.installer import ToolInstaller
from devstrap.tools import list_tools

logger = logging.getLogger(__name__)


@dataclass
class ToolStatus:
    """Probe result of one tool."""

    name: str
    display_name: str
    installed: bool
    version: Optional[str] = None
    ambiguous: bool = False

    def line(self) -> str:
        if self.installed:
            return f"{OK} {self.display_name} {self.version}"
        if self.ambiguous:
            return f"{WARN} {self.display_name}: unrecognized version output"
        return f"{FAIL} {self.display_name} not installed"


def collect_status(
    installer: ToolInstaller, env: EnvironmentSnapshot
) -> List[ToolStatus]:
    statuses = []
    for spec in list_tools():
        probe = installer.probe(spec, env)
        statuses.append(
            ToolStatus(
                name=spec.name,
                display_name=spec.display_name,
                installed=probe.installed,
                version=probe.version,
                ambiguous=probe.ambiguous,
            )
        )
    return statuses


def run(args) -> int:
    """
    Run status command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (always 0)
    """
    installer = create_installer()
    statuses = collect_status(installer, EnvironmentSnapshot.capture())

    print_box("devstrap status")
    for status in statuses:
        safe_print(status.line())

    installed = sum(1 for s in statuses if s.installed)
    safe_print("")
    safe_print(f"{installed}/{len(statuses)} tools installed")
    safe_print(f"Elevated: {'yes' if is_admin() else 'no'}")
    return 0
