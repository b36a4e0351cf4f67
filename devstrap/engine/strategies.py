"""
Concrete installation strategies.

- WingetStrategy: primary strategy for most tools, one winget invocation.
- CommandStrategy: runs a fixed list of commands (npm, pyenv, wsl, dism).
- DirectDownloadStrategy: fallback; resolves vendor release metadata, skips
  the download when the installed version is already the latest, then runs
  the artifact silently (MSI, EXE, MSIX or ZIP).
"""

import logging
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence

from ..core.download import DownloadError, download_file
from ..core.environment import USER, add_user_path_entry, expand_variables
from ..core.exceptions import CommandNotFoundError, ReleaseLookupError
from ..core.version import same_version
from .base import InstallStrategy, StrategyRequest, StrategyResult
from .decision import InstallDecision

logger = logging.getLogger(__name__)

# APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE: "No applicable update found"
WINGET_UPDATE_NOT_APPLICABLE = 0x8A15002B

# ERROR_SUCCESS_REBOOT_REQUIRED, ERROR_SUCCESS_REBOOT_INITIATED
RESTART_EXIT_CODES = frozenset({3010, 1641})

ACTION_VERBS = {
    InstallDecision.INSTALL: "Installing",
    InstallDecision.UPGRADE: "Upgrading",
    InstallDecision.REINSTALL: "Reinstalling",
}


def normalize_exit_code(code: int) -> int:
    """
    Map an exit code to its unsigned 32-bit form.

    HRESULT-style codes surface as negative numbers on some Python builds
    (-1978335189) and as unsigned on others (2316632107).
    """
    return code & 0xFFFFFFFF


def format_exit_code(code: Optional[int]) -> str:
    if code is None:
        return "unknown"
    unsigned = normalize_exit_code(code)
    if unsigned > 0xFFFF:
        return f"0x{unsigned:08X}"
    return str(code)


# ============================================================================
# Winget
# ============================================================================


class WingetStrategy(InstallStrategy):
    """
    Install, upgrade or reinstall a package with winget.

    Exit codes listed in benign_exit_codes (by default only "no applicable
    update") are reported as ALREADY_LATEST instead of failure. The set is
    not assumed to be exhaustive across winget releases.
    """

    name = "winget"

    def __init__(
        self,
        package_id: str,
        scope: Optional[str] = None,
        benign_exit_codes: Iterable[int] = (WINGET_UPDATE_NOT_APPLICABLE,),
        extra_args: Sequence[str] = (),
    ):
        self.package_id = package_id
        self.scope = scope
        self.benign_exit_codes: FrozenSet[int] = frozenset(
            normalize_exit_code(c) for c in benign_exit_codes
        )
        self.extra_args = tuple(extra_args)

    def describe(self) -> str:
        return f"winget ({self.package_id})"

    def build_command(self, request: StrategyRequest) -> List[str]:
        verb = "upgrade" if request.decision is InstallDecision.UPGRADE else "install"
        cmd = [
            "winget",
            verb,
            "--id",
            self.package_id,
            "--exact",
            "--silent",
            "--accept-source-agreements",
            "--accept-package-agreements",
            "--disable-interactivity",
        ]
        if self.scope:
            cmd += ["--scope", self.scope]
        if request.desired_version:
            cmd += ["--version", request.desired_version]
        if request.decision is InstallDecision.REINSTALL:
            cmd.append("--force")
        return cmd + list(self.extra_args)

    def apply(self, request: StrategyRequest) -> StrategyResult:
        cmd = self.build_command(request)
        logger.info(
            f"{ACTION_VERBS[request.decision]} {request.spec.display_name} "
            f"via winget ({self.package_id})..."
        )
        try:
            result = request.run(cmd)
        except CommandNotFoundError:
            return self.failed("winget is not available")

        if result.returncode == 0:
            return self.success(exit_code=0)

        code = normalize_exit_code(result.returncode)
        if code in self.benign_exit_codes:
            logger.debug(f"winget returned benign code {format_exit_code(code)}")
            return self.already_latest(
                exit_code=result.returncode, message="No applicable update found"
            )

        if result.output:
            logger.debug(result.output)
        return self.failed(
            f"winget exited with {format_exit_code(result.returncode)}",
            exit_code=result.returncode,
        )


# ============================================================================
# Fixed command lists
# ============================================================================

CommandBuilder = Callable[[StrategyRequest], List[List[str]]]


class CommandStrategy(InstallStrategy):
    """
    Run a sequence of commands; the first failure stops the sequence.

    A builder that returns no commands for the requested decision reports
    failure, handing over to the fallback.

    Example:
        >>> npm = CommandStrategy(
        ...     "npm",
        ...     lambda req: [["npm", "install", "-g", "some-cli@latest"]],
        ... )
    """

    def __init__(
        self,
        name: str,
        commands: CommandBuilder,
        benign_exit_codes: Iterable[int] = (),
        timeout: Optional[float] = None,
        stop_on_restart: bool = False,
    ):
        self.name = name
        self.commands = commands
        self.stop_on_restart = stop_on_restart
        self.benign_exit_codes = frozenset(
            normalize_exit_code(c) for c in benign_exit_codes
        )
        self.timeout = timeout

    def apply(self, request: StrategyRequest) -> StrategyResult:
        commands = self.commands(request)
        if not commands:
            return self.failed(
                f"{self.name} cannot {request.decision.value} {request.spec.display_name}"
            )

        restart_required = False
        for cmd in commands:
            logger.info(f"Running: {' '.join(_abbreviate(cmd))}")
            try:
                result = request.run(cmd, timeout=self.timeout)
            except CommandNotFoundError as e:
                return self.failed(str(e))

            code = normalize_exit_code(result.returncode)
            if result.returncode == 0 or code in self.benign_exit_codes:
                continue
            if result.returncode in RESTART_EXIT_CODES:
                restart_required = True
                if self.stop_on_restart:
                    break
                continue
            if result.output:
                logger.debug(result.output)
            return self.failed(
                f"'{cmd[0]}' exited with {format_exit_code(result.returncode)}",
                exit_code=result.returncode,
            )
        return self.success(exit_code=0, restart_required=restart_required)


def _abbreviate(cmd: Sequence[str]) -> List[str]:
    # Long PowerShell scripts are noise in the log
    return [c if len(c) < 120 else c[:117] + "..." for c in cmd]


# ============================================================================
# Direct download
# ============================================================================


@dataclass(frozen=True)
class ReleaseInfo:
    """
    A downloadable vendor artifact.

    Attributes:
        version: Version the artifact installs (None when the vendor only
            publishes a "latest" URL)
        url: Download URL
        filename: Local file name in the download cache
        sha256: Expected checksum, when published
    """

    version: Optional[str]
    url: str
    filename: str
    sha256: Optional[str] = None


ReleaseResolver = Callable[[StrategyRequest], ReleaseInfo]


class ArtifactInstaller(ABC):
    """Runs a downloaded artifact."""

    @abstractmethod
    def install(self, artifact: Path, request: StrategyRequest) -> int:
        """Install the artifact and return the installer's exit code."""
        pass


class MsiInstaller(ArtifactInstaller):
    def __init__(self, properties: Sequence[str] = ()):
        self.properties = tuple(properties)

    def install(self, artifact: Path, request: StrategyRequest) -> int:
        cmd = ["msiexec.exe", "/i", str(artifact), "/qn", "/norestart"]
        return request.run(cmd + list(self.properties)).returncode


class ExeInstaller(ArtifactInstaller):
    def __init__(self, silent_args: Sequence[str]):
        self.silent_args = tuple(silent_args)

    def install(self, artifact: Path, request: StrategyRequest) -> int:
        return request.run([str(artifact)] + list(self.silent_args)).returncode


class MsixInstaller(ArtifactInstaller):
    def install(self, artifact: Path, request: StrategyRequest) -> int:
        path = str(artifact).replace("'", "''")
        cmd = [
            "powershell.exe",
            "-NoProfile",
            "-Command",
            f"Add-AppxPackage -Path '{path}'",
        ]
        return request.run(cmd).returncode


class ZipInstaller(ArtifactInstaller):
    """
    Extract an archive into the user profile and register it on PATH.

    Attributes:
        target: Destination directory, %VAR% references expanded from the
            request environment
        strip_top_level: Drop the archive's single top-level directory
        path_entries: Directories (templates over {target}) added to user PATH
        variables: User environment variables (templates over {target})
    """

    def __init__(
        self,
        target: str,
        strip_top_level: bool = False,
        path_entries: Sequence[str] = ("{target}",),
        variables: Optional[Dict[str, str]] = None,
    ):
        self.target = target
        self.strip_top_level = strip_top_level
        self.path_entries = tuple(path_entries)
        self.variables = dict(variables or {})

    def resolve_target(self, request: StrategyRequest) -> Path:
        return Path(expand_variables(self.target, request.env.variables))

    def install(self, artifact: Path, request: StrategyRequest) -> int:
        target = self.resolve_target(request)
        target.mkdir(parents=True, exist_ok=True)
        extract_zip(artifact, target, strip_top_level=self.strip_top_level)
        logger.info(f"Extracted {artifact.name} to {target}")

        store = request.context.store
        for name, template in self.variables.items():
            store.write(name, template.format(target=target), USER)

        env = request.env
        for template in self.path_entries:
            env = add_user_path_entry(template.format(target=target), env, store)
        request.env = env
        return 0


def extract_zip(archive: Path, destination: Path, strip_top_level: bool = False):
    """
    Extract a zip archive, refusing members that escape destination.

    Raises:
        zipfile.BadZipFile: If the archive is corrupt
        ValueError: If a member path escapes the destination
    """
    root = destination.resolve()
    with zipfile.ZipFile(archive) as zf:
        for member in zf.infolist():
            parts = PurePosixPath(member.filename).parts
            if strip_top_level:
                parts = parts[1:]
            if not parts:
                continue
            out_path = (destination.joinpath(*parts)).resolve()
            if root != out_path and root not in out_path.parents:
                raise ValueError(f"Unsafe path in archive: {member.filename}")
            if member.is_dir():
                out_path.mkdir(parents=True, exist_ok=True)
                continue
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(member) as src, open(out_path, "wb") as dst:
                while chunk := src.read(64 * 1024):
                    dst.write(chunk)


class DirectDownloadStrategy(InstallStrategy):
    """
    Download a vendor artifact and install it silently.

    In upgrade mode the resolved release version is compared with the
    installed one first; when they match nothing is downloaded.
    """

    name = "download"

    def __init__(self, resolver: ReleaseResolver, installer: ArtifactInstaller):
        self.resolver = resolver
        self.installer = installer

    def apply(self, request: StrategyRequest) -> StrategyResult:
        display = request.spec.display_name
        try:
            release = self.resolver(request)
        except (ReleaseLookupError, DownloadError) as e:
            return self.failed(f"Could not resolve {display} release: {e}")

        if (
            request.decision is InstallDecision.UPGRADE
            and release.version
            and same_version(release.version, request.current_version)
        ):
            logger.info(f"{display} {release.version} is already the latest version")
            return self.already_latest(
                version=release.version,
                message=f"{release.version} is already installed",
            )

        destination = request.context.download_dir / release.filename
        try:
            artifact = download_file(
                release.url,
                destination,
                expected_sha256=release.sha256,
                progress_callback=request.context.on_progress,
            )
        except DownloadError as e:
            return self.failed(str(e))

        label = f"{display} {release.version}" if release.version else display
        logger.info(f"Installing {label} from {artifact.name}...")
        try:
            exit_code = self.installer.install(artifact, request)
        except CommandNotFoundError as e:
            return self.failed(str(e))
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            return self.failed(f"Installing {artifact.name} failed: {e}")

        if exit_code == 0:
            return self.success(exit_code=0, version=release.version)
        if exit_code in RESTART_EXIT_CODES:
            return self.success(
                exit_code=exit_code, version=release.version, restart_required=True
            )
        return self.failed(
            f"{artifact.name} exited with {format_exit_code(exit_code)}",
            exit_code=exit_code,
        )
