"""
Install command.

Installs, upgrades or reinstalls one tool. Tools that need administrator
rights relaunch `devstrap install` elevated, with configuration paths made
absolute, and return the child's exit code.
"""

import logging
from typing import Any, Dict

from devstrap.cli.utils import (
    create_installer,
    flags_from_args,
    global_args,
    load_configuration,
    report_outcome,
)
from devstrap.core.environment import EnvironmentSnapshot
from devstrap.core.privilege import ElevationGuard
from devstrap.plan import delegation_args
from devstrap.tools import get_tool

logger = logging.getLogger(__name__)


def tool_options(args, configured: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge devstrap.yaml tool options with command-line overrides.

    --python-version pins the version for `install python`.
    """
    options = dict(configured)
    if getattr(args, "tool_version", None):
        options["version"] = args.tool_version
    if getattr(args, "distro", None):
        options["distro"] = args.distro
    if args.tool == "python" and getattr(args, "python_version", None):
        options["version"] = args.python_version
    return options


def run(args) -> int:
    """
    Run install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    spec = get_tool(args.tool)
    flags = flags_from_args(args)
    config, env_config = load_configuration(args)
    options = tool_options(args, config.tool_options(spec.name))

    guard = ElevationGuard()
    forwarded = delegation_args(
        spec,
        flags,
        options,
        global_args(args, config, env_config),
        non_interactive=False,
    )
    delegated = guard.delegate_if_needed(spec.requires_admin, forwarded)
    if delegated is not None:
        return delegated

    installer = create_installer(guard, quiet=getattr(args, "quiet", False))
    env = EnvironmentSnapshot.capture()

    outcome = installer.install(spec, flags, env, options)
    report_outcome(spec, outcome)
    if not outcome.ok:
        return outcome.exit_code

    # `install pyenv --python-version V` also installs that Python
    python_version = getattr(args, "python_version", None)
    if spec.name == "pyenv" and python_version:
        python = get_tool("python")
        python_options = dict(config.tool_options("python"), version=python_version)
        outcome = installer.install(python, flags, outcome.env, python_options)
        report_outcome(python, outcome)

    return outcome.exit_code
