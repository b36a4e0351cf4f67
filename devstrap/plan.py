"""
Setup plan: turns step names into runnable Steps.

Tool steps install through the ToolInstaller, or, when the tool needs
administrator rights and the orchestrator is not elevated, through an
elevated child `devstrap install <tool>` whose exit code becomes the step's
result. Configuration steps apply user-level settings.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .configure import (
    configure_git_identity,
    configure_ngrok_authtoken,
    configure_npm_prefix,
)
from .core.config import DevstrapConfig, EnvConfig
from .core.environment import EnvironmentSnapshot, refresh_path
from .core.exceptions import SequenceError
from .core.privilege import ElevationGuard
from .engine.base import ToolSpec
from .engine.decision import InstallFlags
from .engine.installer import InstallOutcome, ToolInstaller
from .engine.sequencer import Step, StepResult
from .tools import get_tool, tool_names

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE = [
    "winget",
    "git",
    "git-config",
    "node",
    "npm-prefix",
    "claude",
    "pyenv",
    "python",
    "pwsh",
    "wsl",
    "docker",
    "ngrok",
    "ngrok-auth",
]

CONFIG_STEPS = ("git-config", "npm-prefix", "ngrok-auth")

# Tool options forwarded to an elevated child as command-line switches
_OPTION_SWITCHES = {"version": "--version", "distro": "--distro"}


def known_steps() -> List[str]:
    return tool_names() + list(CONFIG_STEPS)


def select_steps(
    sequence: Optional[Sequence[str]] = None,
    only: Optional[Sequence[str]] = None,
    skip: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Resolve the ordered step names for a setup run.

    Args:
        sequence: Base order (default: DEFAULT_SEQUENCE)
        only: Keep only these steps, in base order
        skip: Drop these steps

    Raises:
        SequenceError: If a name is not a known step
    """
    names = list(sequence or DEFAULT_SEQUENCE)
    known = set(known_steps())
    unknown = [n for n in names + list(only or []) + list(skip or []) if n not in known]
    if unknown:
        raise SequenceError(
            f"Unknown step(s): {', '.join(unknown)}. "
            f"Available: {', '.join(known_steps())}"
        )
    if only:
        names = [n for n in names if n in only]
    if skip:
        names = [n for n in names if n not in skip]
    return names


def delegation_args(
    spec: ToolSpec,
    flags: InstallFlags,
    options: Dict[str, Any],
    global_args: Sequence[str] = (),
    non_interactive: bool = True,
) -> List[str]:
    """
    Arguments for an elevated `devstrap install <tool>` child.

    Args:
        spec: Tool to install
        flags: Mode and privilege flags
        options: Tool options; version and distro become switches
        global_args: Global switches placed before the subcommand
        non_interactive: Force --non-interactive so the child never waits
            for Enter (setup runs); otherwise only flags decide
    """
    args = list(global_args) + ["install", spec.name]
    for arg in flags.to_args():
        if arg not in args:
            args.append(arg)
    if non_interactive and "--non-interactive" not in args:
        args.append("--non-interactive")
    for key, switch in _OPTION_SWITCHES.items():
        value = options.get(key)
        if value:
            args += [switch, str(value)]
    return args


OutcomeCallback = Callable[[InstallOutcome], None]


@dataclass
class SetupPlan:
    """
    Everything needed to build the steps of a setup run.

    Attributes:
        installer: Installer engine
        flags: Mode and privilege flags
        config: devstrap.yaml settings
        env_config: .env values
        guard: Elevation guard
        global_args: Global CLI switches forwarded to elevated children
        on_outcome: Called with each in-process install outcome
    """

    installer: ToolInstaller
    flags: InstallFlags
    config: DevstrapConfig = field(default_factory=DevstrapConfig)
    env_config: EnvConfig = field(default_factory=EnvConfig)
    guard: Optional[ElevationGuard] = None
    global_args: Sequence[str] = ()
    on_outcome: Optional[OutcomeCallback] = None

    def __post_init__(self):
        if self.guard is None:
            self.guard = self.installer.guard

    def build(self, names: Sequence[str]) -> List[Step]:
        steps = []
        for name in names:
            if name in CONFIG_STEPS:
                steps.append(self._config_step(name))
            else:
                steps.append(self._tool_step(get_tool(name)))
        return steps

    # ------------------------------------------------------------------
    # Tool steps
    # ------------------------------------------------------------------

    def _tool_step(self, spec: ToolSpec) -> Step:
        options = self.config.tool_options(spec.name)

        def run(env: EnvironmentSnapshot) -> StepResult:
            if spec.requires_admin and not self.guard.is_elevated():
                return self._delegate(spec, options, env)
            outcome = self.installer.install(spec, self.flags, env, options)
            if self.on_outcome is not None:
                self.on_outcome(outcome)
            return StepResult(outcome.exit_code, outcome.env, outcome.message)

        return Step(spec.name, run, optional=spec.optional)

    def _delegate(
        self, spec: ToolSpec, options: Dict[str, Any], env: EnvironmentSnapshot
    ) -> StepResult:
        logger.info(f"{spec.display_name} requires administrator rights, elevating...")
        args = delegation_args(spec, self.flags, options, self.global_args)
        exit_code = self.guard.delegate_if_needed(True, args)
        if exit_code is None:
            exit_code = 0
        refreshed = refresh_path(env, self.installer.context.store)
        if exit_code == 0:
            return StepResult(0, refreshed, f"{spec.display_name} step completed")
        return StepResult(
            exit_code,
            refreshed,
            f"Elevated {spec.display_name} install exited with {exit_code}",
        )

    # ------------------------------------------------------------------
    # Configuration steps
    # ------------------------------------------------------------------

    def _config_step(self, name: str) -> Step:
        context = self.installer.context

        def git_config(env: EnvironmentSnapshot) -> StepResult:
            result = configure_git_identity(self.env_config, context.runner, env)
            return StepResult(0, result.env, result.message)

        def npm_prefix(env: EnvironmentSnapshot) -> StepResult:
            self.guard.check_user_scope(True, self.flags.allow_admin, "npm prefix")
            result = configure_npm_prefix(
                context.runner, env, context.store, self.config.npm_prefix
            )
            return StepResult(0, result.env, result.message)

        def ngrok_auth(env: EnvironmentSnapshot) -> StepResult:
            self.guard.check_user_scope(True, self.flags.allow_admin, "Ngrok authtoken")
            result = configure_ngrok_authtoken(self.env_config, context.runner, env)
            return StepResult(0, result.env, result.message)

        actions = {
            "git-config": (git_config, False),
            "npm-prefix": (npm_prefix, False),
            "ngrok-auth": (ngrok_auth, True),
        }
        action, optional = actions[name]
        return Step(name, action, optional=optional)
