"""
Orchestration sequencer.

Runs an ordered list of steps one after another. A step that fails halts the
run and is reported by name and exit code, unless the step is optional. No
parallelism, no rollback.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..core.environment import EnvironmentSnapshot
from ..core.exceptions import DevstrapError, SequenceError

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """
    Result of one step.

    Attributes:
        exit_code: 0 on success
        env: Environment snapshot after the step (None = unchanged)
        message: Summary shown to the user
    """

    exit_code: int
    env: Optional[EnvironmentSnapshot] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


StepAction = Callable[[EnvironmentSnapshot], StepResult]


@dataclass(frozen=True)
class Step:
    """A named unit of an orchestrated run."""

    name: str
    run: StepAction
    optional: bool = False


@dataclass
class SequenceResult:
    """
    Result of a sequence run.

    Attributes:
        completed: Names of steps that succeeded, in order
        failed_step: Name of the step that halted the run
        exit_code: Exit code of the failed step (0 if none failed)
        optional_failures: (name, exit_code) of optional steps that failed
        env: Final environment snapshot
    """

    completed: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    exit_code: int = 0
    optional_failures: List[Tuple[str, int]] = field(default_factory=list)
    env: Optional[EnvironmentSnapshot] = None

    @property
    def ok(self) -> bool:
        return self.failed_step is None


class Sequencer:
    """
    Run steps in dependency order.

    Example:
        >>> sequencer = Sequencer([Step("git", install_git)])
        >>> result = sequencer.run(EnvironmentSnapshot.capture())
        >>> result.ok
        True
    """

    def __init__(self, steps: Sequence[Step]):
        names = [s.name for s in steps]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SequenceError(f"Duplicate step(s): {', '.join(duplicates)}")
        self.steps = list(steps)

    def run(
        self,
        env: EnvironmentSnapshot,
        on_step: Optional[Callable[[Step, StepResult], None]] = None,
    ) -> SequenceResult:
        """
        Run every step until one fails.

        Args:
            env: Initial environment snapshot
            on_step: Called after each step with its result

        Returns:
            SequenceResult
        """
        result = SequenceResult(env=env)
        total = len(self.steps)

        for index, step in enumerate(self.steps, 1):
            logger.info(f"[{index}/{total}] {step.name}")
            try:
                step_result = step.run(result.env)
            except DevstrapError as e:
                logger.error(f"{step.name}: {e}")
                step_result = StepResult(exit_code=1, message=str(e))

            if step_result.env is not None:
                result.env = step_result.env
            if on_step is not None:
                on_step(step, step_result)

            if step_result.ok:
                result.completed.append(step.name)
                continue

            if step.optional:
                logger.warning(
                    f"Optional step '{step.name}' failed with exit code "
                    f"{step_result.exit_code}, continuing"
                )
                result.optional_failures.append((step.name, step_result.exit_code))
                continue

            logger.error(
                f"Step '{step.name}' failed with exit code {step_result.exit_code}"
            )
            result.failed_step = step.name
            result.exit_code = step_result.exit_code
            break

        return result
