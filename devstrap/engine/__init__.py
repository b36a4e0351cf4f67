"""
Installer engine.

One idempotent decision engine driven by ToolSpec records, plus the
sequencer that runs steps in dependency order.
"""

from .decision import InstallDecision, InstallFlags, InstallMode, decide, resolve_mode
from .base import (
    InstallContext,
    InstallStrategy,
    ProbeResult,
    StrategyRequest,
    StrategyResult,
    StrategyStatus,
    ToolSpec,
)
from .probe import probe_tool
from .installer import InstallOutcome, OutcomeStatus, ToolInstaller
from .sequencer import SequenceResult, Sequencer, Step, StepResult

__all__ = [
    "InstallDecision",
    "InstallFlags",
    "InstallMode",
    "decide",
    "resolve_mode",
    "InstallContext",
    "InstallStrategy",
    "ProbeResult",
    "StrategyRequest",
    "StrategyResult",
    "StrategyStatus",
    "ToolSpec",
    "probe_tool",
    "InstallOutcome",
    "OutcomeStatus",
    "ToolInstaller",
    "SequenceResult",
    "Sequencer",
    "Step",
    "StepResult",
]
