"""
Shared utilities for CLI commands.

Provides the pieces every command needs: loading devstrap.yaml and .env,
building the installer engine, and printing status lines that survive a
legacy Windows console code page.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

from ..core.config import (
    DEFAULT_ENV_FILE,
    DevstrapConfig,
    EnvConfig,
    load_config,
    load_env_file,
)
from ..core.download import DownloadProgress, get_download_dir
from ..core.environment import default_store
from ..core.platform import detect_platform
from ..core.privilege import ElevationGuard
from ..core.process import CommandRunner
from ..engine.base import InstallContext, ToolSpec
from ..engine.decision import InstallFlags
from ..engine.installer import InstallOutcome, OutcomeStatus, ToolInstaller
from ..tools import get_tool

logger = logging.getLogger(__name__)

OK = "✅"
FAIL = "❌"
WARN = "⚠️"
DOWNLOAD = "⬇️"

STATUS_GLYPHS = {
    OutcomeStatus.SKIPPED: OK,
    OutcomeStatus.INSTALLED: OK,
    OutcomeStatus.UPGRADED: OK,
    OutcomeStatus.REINSTALLED: OK,
    OutcomeStatus.ALREADY_LATEST: OK,
    OutcomeStatus.FAILED: FAIL,
}

_ASCII_GLYPHS = {
    OK: "[OK]",
    FAIL: "[ERROR]",
    WARN: "WARNING:",
    DOWNLOAD: "[DOWNLOAD]",
}


# ============================================================================
# Configuration Management
# ============================================================================


def load_configuration(args) -> Tuple[DevstrapConfig, EnvConfig]:
    """
    Load devstrap.yaml and the .env file named by the CLI arguments.

    --config is required to exist when given explicitly; the default
    ./devstrap.yaml is optional. The .env path comes from --env-file, then
    from env_file in devstrap.yaml, then ./.env.

    Returns:
        (DevstrapConfig, EnvConfig)

    Raises:
        ConfigurationError: If a named file is missing or invalid
    """
    config_path = getattr(args, "config", None)
    config = load_config(config_path, required=config_path is not None)

    env_path: Optional[Path] = getattr(args, "env_file", None)
    if env_path is not None:
        return config, load_env_file(env_path, required=True)
    if config.env_file is not None:
        return config, load_env_file(config.env_file, required=True)
    return config, load_env_file(Path.cwd() / DEFAULT_ENV_FILE)


def flags_from_args(args) -> InstallFlags:
    return InstallFlags(
        upgrade=bool(getattr(args, "upgrade", False)),
        force=bool(getattr(args, "force", False)),
        non_interactive=bool(getattr(args, "non_interactive", False)),
        allow_admin=bool(getattr(args, "allow_admin", False)),
    )


def global_args(
    args,
    config: Optional[DevstrapConfig] = None,
    env_config: Optional[EnvConfig] = None,
) -> list:
    """
    Global switches to forward to an elevated child process.

    An elevated child starts in the system directory, so every configuration
    file the parent read, named or found in the working directory, is passed
    as an absolute path.
    """
    forwarded = []
    if getattr(args, "verbose", False):
        forwarded.append("--verbose")
    if getattr(args, "quiet", False):
        forwarded.append("--quiet")

    config_path = getattr(args, "config", None)
    if config_path is None and config is not None:
        config_path = config.source
    if config_path:
        forwarded += ["--config", str(Path(config_path).resolve())]

    env_path = getattr(args, "env_file", None)
    if env_path is None and env_config is not None and env_config.source:
        env_path = env_config.source if env_config.source.exists() else None
    if env_path:
        forwarded += ["--env-file", str(Path(env_path).resolve())]
    return forwarded


def create_installer(
    guard: Optional[ElevationGuard] = None, quiet: bool = False
) -> ToolInstaller:
    """
    Build the installer engine with the real runner and environment store.

    Args:
        guard: Elevation guard shared with the command
        quiet: Suppress the download progress bar
    """
    context = InstallContext(
        runner=CommandRunner(),
        store=default_store(),
        platform=detect_platform(),
        download_dir=get_download_dir(),
        on_progress=None if quiet else show_download_progress,
    )
    return ToolInstaller(context, resolve_tool=get_tool, guard=guard)


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def print_box(text: str, width: int = 70, char: str = "="):
    """Print text in a box for emphasis."""
    safe_print(char * width)
    safe_print(text)
    safe_print(char * width)


def safe_print(message: str, file=None, end: str = "\n"):
    """
    Print message with safe encoding handling for Windows console.

    Falls back to ASCII-safe markers if the status glyphs can't be encoded.

    Args:
        message: Message to print
        file: Output file (default: stdout)
        end: Line terminator
    """
    try:
        print(message, file=file, end=end, flush=True)
    except UnicodeEncodeError:
        for glyph, text in _ASCII_GLYPHS.items():
            message = message.replace(glyph, text)
        print(
            message.encode("ascii", "replace").decode("ascii"),
            file=file,
            end=end,
            flush=True,
        )


def show_download_progress(progress: DownloadProgress):
    """Redraw the download progress bar on the current console line."""
    bar_length = 40
    filled = int(bar_length * min(progress.percentage, 100) / 100)
    bar = "=" * filled + "-" * (bar_length - filled)
    finished = 0 < progress.total_bytes <= progress.bytes_downloaded
    safe_print(f"\r{DOWNLOAD} [{bar}] {progress}", end="\n" if finished else "")


def report_outcome(spec: ToolSpec, outcome: InstallOutcome):
    """Print the status line (and any follow-up hints) for one install."""
    glyph = STATUS_GLYPHS[outcome.status]
    stream = sys.stderr if outcome.status is OutcomeStatus.FAILED else None
    safe_print(f"{glyph} {outcome.message}", file=stream)

    if outcome.strategy == "download" and outcome.ok:
        safe_print(f"{DOWNLOAD} Installed from the vendor download")
    if outcome.restart_required:
        safe_print(f"{WARN} Restart Windows to complete the installation")
    if outcome.status in (
        OutcomeStatus.INSTALLED,
        OutcomeStatus.UPGRADED,
        OutcomeStatus.REINSTALLED,
    ) and spec.post_install_hint:
        safe_print(f"{WARN} {spec.post_install_hint}")


def pause_before_exit(non_interactive: bool):
    """
    Wait for Enter so a double-clicked or elevated console stays readable.

    Skipped with --non-interactive or when stdin is not a terminal.
    """
    if non_interactive or not sys.stdin or not sys.stdin.isatty():
        return
    try:
        input("Press Enter to exit...")
    except EOFError:
        pass
