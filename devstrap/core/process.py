"""
External process execution.

Every probe and installer in devstrap is an external process. CommandRunner
resolves executables against an explicit environment snapshot (not the
interpreter's inherited PATH) so that tools installed earlier in the same run
are found, and it normalizes output decoding for tools such as wsl.exe that
write UTF-16 to a pipe.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from .exceptions import CommandNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of a finished external command."""

    args: tuple
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return (self.stdout + "\n" + self.stderr).strip()


def decode_output(data: Optional[bytes]) -> str:
    """
    Decode process output.

    wsl.exe writes UTF-16LE when its output is redirected; everything else is
    UTF-8 (or the console code page, decoded leniently).

    Args:
        data: Raw bytes from the pipe

    Returns:
        Decoded text
    """
    if not data:
        return ""
    if data.startswith(b"\xff\xfe") or (len(data) > 1 and b"\x00" in data[1::2]):
        return data.decode("utf-16-le", errors="replace").lstrip("\ufeff")
    return data.decode("utf-8", errors="replace")


class CommandRunner:
    """
    Run external commands against an environment snapshot.

    Example:
        >>> runner = CommandRunner()
        >>> result = runner.run(["git", "--version"])
        >>> result.ok
        True
    """

    def resolve(self, command: str, env: Optional[Mapping[str, str]] = None) -> str:
        """
        Resolve an executable name using the PATH in env.

        Args:
            command: Executable name or path
            env: Environment whose PATH is searched (inherited PATH if None)

        Returns:
            Absolute path to the executable

        Raises:
            CommandNotFoundError: If the executable cannot be found
        """
        search_path = env.get("PATH") if env is not None else None
        resolved = shutil.which(command, path=search_path)
        if not resolved:
            raise CommandNotFoundError(command)
        return resolved

    def run(
        self,
        args: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        secrets: Sequence[str] = (),
    ) -> CommandResult:
        """
        Run a command and wait for it to exit.

        Args:
            args: Command and arguments
            env: Environment for the child process
            timeout: Seconds to wait; None waits indefinitely
            secrets: Argument values masked in the debug log

        Returns:
            CommandResult with exit code and decoded output

        Raises:
            CommandNotFoundError: If the executable cannot be found
            subprocess.TimeoutExpired: If timeout elapses
        """
        argv: List[str] = [self.resolve(args[0], env)] + list(args[1:])
        shown = ["***" if a in secrets else a for a in args]
        logger.debug(f"Running: {' '.join(shown)}")

        completed = subprocess.run(
            argv,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
        )

        result = CommandResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=decode_output(completed.stdout),
            stderr=decode_output(completed.stderr),
        )
        logger.debug(f"Exit code {result.returncode}: {args[0]}")
        return result
