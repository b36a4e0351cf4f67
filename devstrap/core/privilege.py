"""
Privilege detection and elevate-and-delegate.

Machine-wide installers (MSI, winget machine scope, WSL) need administrator
rights. When they are missing, devstrap relaunches its own entry point with
identical arguments through the UAC prompt, waits for the elevated child and
returns the child's exit code. The decision logic takes the privilege check
and the launcher as injected callables so it can be exercised without a real
UAC prompt.
"""

import logging
import os
import subprocess
import sys
from typing import Callable, List, Optional, Sequence

from .exceptions import ElevationDeclinedError, PrivilegeError

logger = logging.getLogger(__name__)

PrivilegeCheck = Callable[[], bool]
Launcher = Callable[[Sequence[str]], int]

ELEVATION_CANCELLED = 1223


def is_admin() -> bool:
    """
    Check whether the current process has administrator rights.

    Returns:
        True when elevated on Windows, or running as root elsewhere
    """
    try:
        import ctypes

        windll = getattr(ctypes, "windll", None)
        if windll is not None:
            return bool(windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError) as e:
        logger.debug(f"IsUserAnAdmin failed: {e}")
        return False

    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_elevation_command(argv: Sequence[str]) -> List[str]:
    """
    Build a PowerShell command that runs argv elevated and waits for it.

    Start-Process -Verb RunAs shows the UAC prompt; -Wait -PassThru lets the
    outer process read the child's exit code. A declined prompt makes
    Start-Process throw, which is mapped to exit code 1223
    (ERROR_CANCELLED).

    Args:
        argv: Full command line of the process to elevate

    Returns:
        Command line for powershell.exe
    """
    file_path = _ps_quote(argv[0])
    # Start-Process joins array elements with bare spaces; pass one quoted line
    arguments = ""
    if len(argv) > 1:
        arguments = f"-ArgumentList {_ps_quote(subprocess.list2cmdline(argv[1:]))} "
    script = (
        "try { "
        f"$p = Start-Process -FilePath {file_path} {arguments}"
        "-Verb RunAs -Wait -PassThru -ErrorAction Stop; exit $p.ExitCode "
        f"}} catch {{ exit {ELEVATION_CANCELLED} }}"
    )
    return [
        "powershell.exe",
        "-NoProfile",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        script,
    ]


def launch_elevated(argv: Sequence[str]) -> int:
    """
    Run argv elevated and return its exit code.

    Raises:
        ElevationDeclinedError: If the UAC prompt was declined or failed
    """
    logger.info("Administrator rights are required, requesting elevation...")
    completed = subprocess.run(build_elevation_command(argv), check=False)
    if completed.returncode == ELEVATION_CANCELLED:
        raise ElevationDeclinedError("Elevation was declined or failed")
    return completed.returncode


def current_entry_point(args: Sequence[str]) -> List[str]:
    """Command line that re-invokes devstrap with args."""
    return [sys.executable, "-m", "devstrap"] + list(args)


class ElevationGuard:
    """
    Decide whether to continue in-process or delegate to an elevated child.

    Example:
        >>> guard = ElevationGuard()
        >>> exit_code = guard.delegate_if_needed(True, sys.argv[1:])
        >>> if exit_code is not None:
        ...     sys.exit(exit_code)
    """

    def __init__(
        self,
        privilege_check: Optional[PrivilegeCheck] = None,
        launcher: Optional[Launcher] = None,
    ):
        self.privilege_check = privilege_check or is_admin
        self.launcher = launcher or launch_elevated

    def is_elevated(self) -> bool:
        return self.privilege_check()

    def delegate_if_needed(
        self, requires_admin: bool, args: Sequence[str]
    ) -> Optional[int]:
        """
        Elevate-and-delegate when required.

        Args:
            requires_admin: Whether the operation needs administrator rights
            args: devstrap arguments to forward unchanged

        Returns:
            None when the caller should proceed in-process, otherwise the
            exit code of the elevated child (1 if elevation was declined)
        """
        if not requires_admin or self.is_elevated():
            return None

        try:
            exit_code = self.launcher(current_entry_point(args))
        except ElevationDeclinedError as e:
            logger.error(f"{e}. Re-run from an elevated terminal.")
            return 1

        logger.debug(f"Elevated child exited with {exit_code}")
        return exit_code

    def check_user_scope(self, user_scope: bool, allow_admin: bool, name: str):
        """
        Refuse user-scope work from an elevated process.

        Raises:
            PrivilegeError: If elevated, user_scope is set and allow_admin is not
        """
        if user_scope and not allow_admin and self.is_elevated():
            raise PrivilegeError(
                f"{name} is installed per user and must not run elevated. "
                "Re-run from a normal terminal or pass --allow-admin."
            )
