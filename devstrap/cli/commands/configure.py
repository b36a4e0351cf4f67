"""
Configure command.

Applies user-level settings: Git identity and Ngrok authtoken from .env,
npm global prefix from devstrap.yaml (default %APPDATA%\\npm).
"""

import logging

from devstrap.cli.utils import (
    FAIL,
    OK,
    WARN,
    create_installer,
    flags_from_args,
    load_configuration,
    safe_print,
)
from devstrap.core.environment import EnvironmentSnapshot
from devstrap.engine.sequencer import Sequencer, Step, StepResult
from devstrap.plan import SetupPlan

logger = logging.getLogger(__name__)

TARGET_STEPS = {
    "git": ["git-config"],
    "npm": ["npm-prefix"],
    "ngrok": ["ngrok-auth"],
    "all": ["git-config", "npm-prefix", "ngrok-auth"],
}


def run(args) -> int:
    """
    Run configure command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    config, env_config = load_configuration(args)
    installer = create_installer()
    plan = SetupPlan(
        installer=installer,
        flags=flags_from_args(args),
        config=config,
        env_config=env_config,
    )

    def on_step(step: Step, result: StepResult):
        glyph = OK if result.ok else (WARN if step.optional else FAIL)
        safe_print(f"{glyph} {result.message}")

    steps = plan.build(TARGET_STEPS[args.target])
    # An explicitly requested step is never optional
    if args.target != "all":
        steps = [Step(s.name, s.run) for s in steps]

    result = Sequencer(steps).run(EnvironmentSnapshot.capture(), on_step=on_step)
    return 0 if result.ok else 1
