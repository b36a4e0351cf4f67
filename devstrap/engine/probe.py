"""
State probe: ask a tool for its version using its own CLI.
"""

import logging
import subprocess

from ..core.environment import EnvironmentSnapshot
from ..core.exceptions import CommandNotFoundError
from ..core.process import CommandRunner
from ..core.version import extract_version
from .base import ProbeResult, ToolSpec

logger = logging.getLogger(__name__)

# Exit code of the Windows "App execution alias" stubs (python.exe that opens
# the Store) and of cmd.exe for unknown commands.
COMMAND_NOT_RECOGNIZED = 9009


def probe_tool(
    spec: ToolSpec, runner: CommandRunner, env: EnvironmentSnapshot
) -> ProbeResult:
    """
    Probe a tool's installed version.

    A version string that doesn't match the tool's pattern is logged and
    treated as "not installed".

    Args:
        spec: Tool to probe
        runner: Command runner
        env: Environment snapshot (its PATH is searched)

    Returns:
        ProbeResult
    """
    try:
        result = runner.run(
            spec.probe_command, env=env.as_environ(), timeout=spec.probe_timeout
        )
    except CommandNotFoundError:
        logger.debug(f"{spec.display_name}: {spec.probe_command[0]} not on PATH")
        return ProbeResult.absent()
    except subprocess.TimeoutExpired:
        logger.warning(f"{spec.display_name}: version check timed out")
        return ProbeResult.absent()
    except OSError as e:
        logger.warning(f"{spec.display_name}: version check failed: {e}")
        return ProbeResult.absent()

    if result.returncode != 0:
        if result.returncode != COMMAND_NOT_RECOGNIZED:
            logger.debug(
                f"{spec.display_name}: '{' '.join(spec.probe_command)}' "
                f"exited with {result.returncode}"
            )
        return ProbeResult.absent(result.output)

    version = extract_version(result.output, spec.version_pattern)
    if version is None:
        first_line = result.output.splitlines()[0] if result.output else ""
        logger.warning(
            f"{spec.display_name}: unrecognized version output '{first_line}', "
            "treating as not installed"
        )
        return ProbeResult(installed=False, output=result.output, ambiguous=True)

    logger.debug(f"{spec.display_name} {version} detected")
    return ProbeResult(installed=True, version=version, output=result.output)
