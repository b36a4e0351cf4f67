"""
Idempotent tool installer.

Drives one ToolSpec through probe -> decision -> primary -> fallback ->
post-check. The environment snapshot is an explicit input and output: after
any mutating step PATH is rebuilt from durable machine/user state and the new
snapshot is returned in the outcome for the next step to use.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..core.environment import EnvironmentSnapshot, refresh_path
from ..core.exceptions import (
    DependencyMissingError,
    DevstrapError,
    FallbackStrategyError,
    PrimaryStrategyError,
)
from ..core.privilege import ElevationGuard
from ..core.version import same_version
from .base import (
    InstallContext,
    ProbeResult,
    StrategyRequest,
    StrategyResult,
    StrategyStatus,
    ToolSpec,
)
from .decision import InstallDecision, InstallFlags, decide
from .probe import probe_tool

logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    SKIPPED = "skipped"
    INSTALLED = "installed"
    UPGRADED = "upgraded"
    REINSTALLED = "reinstalled"
    ALREADY_LATEST = "already_latest"
    FAILED = "failed"


_SUCCESS_STATUS = {
    InstallDecision.INSTALL: OutcomeStatus.INSTALLED,
    InstallDecision.UPGRADE: OutcomeStatus.UPGRADED,
    InstallDecision.REINSTALL: OutcomeStatus.REINSTALLED,
}


@dataclass
class InstallOutcome:
    """
    Result of running the installer for one tool.

    Attributes:
        tool: Tool name
        decision: What the decision gate chose
        status: Final status
        previous_version: Version before the run (None if absent)
        version: Version after the run, when known
        strategy: Name of the strategy that completed the work
        message: Human-readable summary
        restart_required: An installer asked for a reboot
        env: Environment snapshot to use for subsequent steps
        attempts: Strategy results in the order they ran
    """

    tool: str
    decision: InstallDecision
    status: OutcomeStatus
    previous_version: Optional[str] = None
    version: Optional[str] = None
    strategy: Optional[str] = None
    message: str = ""
    restart_required: bool = False
    env: Optional[EnvironmentSnapshot] = None
    attempts: List[StrategyResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


ToolResolver = Callable[[str], ToolSpec]


class ToolInstaller:
    """
    Data-driven installer engine.

    Example:
        >>> installer = ToolInstaller(context, resolve_tool=get_tool)
        >>> outcome = installer.install(get_tool("git"), InstallFlags(), env)
        >>> outcome.exit_code
        0
    """

    def __init__(
        self,
        context: InstallContext,
        resolve_tool: Optional[ToolResolver] = None,
        guard: Optional[ElevationGuard] = None,
    ):
        self.context = context
        self.resolve_tool = resolve_tool
        self.guard = guard or ElevationGuard()

    def probe(self, spec: ToolSpec, env: EnvironmentSnapshot) -> ProbeResult:
        return probe_tool(spec, self.context.runner, env)

    def install(
        self,
        spec: ToolSpec,
        flags: InstallFlags,
        env: EnvironmentSnapshot,
        options: Optional[Dict[str, Any]] = None,
    ) -> InstallOutcome:
        """
        Run the full install flow for one tool.

        Failures are reported in the outcome (status FAILED, exit code 1),
        not raised.

        Args:
            spec: Tool definition
            flags: Mode and privilege flags
            env: Current environment snapshot
            options: Tool options (e.g. {"version": "20.11.1"})

        Returns:
            InstallOutcome
        """
        options = dict(options or {})
        probe = None
        decision = InstallDecision.SKIP
        try:
            self.guard.check_user_scope(
                spec.user_scope, flags.allow_admin, spec.display_name
            )

            probe = self.probe(spec, env)
            current = probe.version if probe.installed else None
            decision = decide(current, flags.mode)
            logger.debug(f"{spec.name}: mode={flags.mode.value} decision={decision.value}")

            if decision is InstallDecision.SKIP:
                return InstallOutcome(
                    tool=spec.name,
                    decision=decision,
                    status=OutcomeStatus.SKIPPED,
                    previous_version=current,
                    version=current,
                    message=(
                        f"{spec.display_name} {current} is already installed "
                        "(use --upgrade to update or --force to reinstall)"
                    ),
                    env=env,
                )

            self._check_dependencies(spec, env)

            request = StrategyRequest(
                spec=spec,
                decision=decision,
                current_version=current,
                env=env,
                context=self.context,
                options=options,
            )

            pinned = request.desired_version
            if (
                decision is InstallDecision.UPGRADE
                and pinned
                and same_version(pinned, current)
            ):
                return self._already_latest(spec, decision, current, env, [])

            return self._run_strategies(spec, request)

        except DevstrapError as e:
            logger.debug(f"{spec.name}: {type(e).__name__}: {e}")
            return InstallOutcome(
                tool=spec.name,
                decision=decision,
                status=OutcomeStatus.FAILED,
                previous_version=probe.version if probe else None,
                message=str(e),
                env=env,
            )

    def _check_dependencies(self, spec: ToolSpec, env: EnvironmentSnapshot):
        if not spec.requires:
            return
        if self.resolve_tool is None:
            raise DevstrapError(f"{spec.name}: no tool resolver for dependencies")
        for dependency in spec.requires:
            dep_spec = self.resolve_tool(dependency)
            if not self.probe(dep_spec, env).installed:
                raise DependencyMissingError(spec.display_name, dependency)

    def _run_strategies(
        self, spec: ToolSpec, request: StrategyRequest
    ) -> InstallOutcome:
        attempts: List[StrategyResult] = []

        try:
            result = spec.primary.apply(request)
        except PrimaryStrategyError as e:
            result = StrategyResult(
                StrategyStatus.FAILED, spec.primary.name, e.exit_code, str(e)
            )
        attempts.append(result)

        if not result.succeeded:
            if spec.fallback is None:
                raise FallbackStrategyError(
                    f"{spec.display_name} installation failed: {result.message}",
                    exit_code=result.exit_code,
                )
            logger.warning(
                f"{spec.primary.describe()} failed ({result.message}), "
                f"falling back to {spec.fallback.describe()}"
            )
            request.env = refresh_path(request.env, self.context.store)
            result = spec.fallback.apply(request)
            attempts.append(result)
            if not result.succeeded:
                raise FallbackStrategyError(
                    f"{spec.display_name} installation failed: {result.message}",
                    exit_code=result.exit_code,
                )

        if result.status is StrategyStatus.ALREADY_LATEST and request.current_version:
            return self._already_latest(
                spec, request.decision, request.current_version, request.env, attempts
            )

        return self._finish(spec, request, result, attempts)

    def _already_latest(self, spec, decision, current, env, attempts) -> InstallOutcome:
        return InstallOutcome(
            tool=spec.name,
            decision=decision,
            status=OutcomeStatus.ALREADY_LATEST,
            previous_version=current,
            version=current,
            strategy=attempts[-1].strategy if attempts else None,
            message=f"{spec.display_name} {current} is already the latest version",
            env=env,
            attempts=attempts,
        )

    def _finish(
        self,
        spec: ToolSpec,
        request: StrategyRequest,
        result: StrategyResult,
        attempts: List[StrategyResult],
    ) -> InstallOutcome:
        restart_required = result.restart_required
        request.env = refresh_path(request.env, self.context.store)

        if spec.post_install is not None:
            post = spec.post_install.apply(request)
            attempts.append(post)
            if not post.succeeded:
                raise FallbackStrategyError(
                    f"{spec.display_name} post-install configuration failed: "
                    f"{post.message}",
                    exit_code=post.exit_code,
                )
            restart_required = restart_required or post.restart_required
            request.env = refresh_path(request.env, self.context.store)

        version = result.version
        if spec.verify_after_install and not restart_required:
            check = self.probe(spec, request.env)
            if not check.installed:
                raise FallbackStrategyError(
                    f"{spec.display_name} was installed but "
                    f"'{' '.join(spec.probe_command)}' does not work yet. "
                    "Open a new terminal and re-run to verify."
                )
            version = check.version

        label = f"{spec.display_name} {version}" if version else spec.display_name
        status = _SUCCESS_STATUS[request.decision]
        message = f"{label} {status.value} successfully"
        if restart_required:
            message += "; restart Windows to complete the installation"

        return InstallOutcome(
            tool=spec.name,
            decision=request.decision,
            status=status,
            previous_version=request.current_version,
            version=version,
            strategy=result.strategy,
            message=message,
            restart_required=restart_required,
            env=request.env,
            attempts=attempts,
        )
