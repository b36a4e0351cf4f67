"""
Setup command.

Runs every step of the workstation sequence in dependency order (winget
before Git, WSL2 before Docker) and stops at the first failing required
step.
"""

import logging

from devstrap.cli.utils import (
    FAIL,
    OK,
    WARN,
    create_installer,
    flags_from_args,
    global_args,
    load_configuration,
    print_box,
    report_outcome,
    safe_print,
)
from devstrap.core.environment import EnvironmentSnapshot
from devstrap.core.privilege import ElevationGuard
from devstrap.engine.sequencer import Sequencer, Step, StepResult
from devstrap.plan import SetupPlan, select_steps
from devstrap.tools import get_tool

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run setup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if a required step failed)
    """
    config, env_config = load_configuration(args)
    names = select_steps(config.sequence, args.only, args.skip)

    reported = set()

    def on_outcome(outcome):
        reported.add(outcome.tool)
        report_outcome(get_tool(outcome.tool), outcome)

    def on_step(step: Step, result: StepResult):
        # In-process installs were already reported by on_outcome
        if step.name in reported or not result.message:
            return
        glyph = OK if result.ok else (WARN if step.optional else FAIL)
        safe_print(f"{glyph} {result.message}")

    guard = ElevationGuard()
    plan = SetupPlan(
        installer=create_installer(guard, quiet=getattr(args, "quiet", False)),
        flags=flags_from_args(args),
        config=config,
        env_config=env_config,
        guard=guard,
        global_args=global_args(args, config, env_config),
        on_outcome=on_outcome,
    )
    sequencer = Sequencer(plan.build(names))

    result = sequencer.run(EnvironmentSnapshot.capture(), on_step=on_step)

    safe_print("")
    if result.ok:
        print_box(f"{OK} Setup completed ({len(result.completed)} step(s))")
        for name, code in result.optional_failures:
            safe_print(f"{WARN} Optional step '{name}' failed (exit code {code})")
        return 0

    print_box(
        f"{FAIL} Setup failed at step '{result.failed_step}' "
        f"(exit code {result.exit_code})"
    )
    return 1
