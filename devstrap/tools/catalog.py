"""
Tool catalog.

One ToolSpec per tool devstrap can install. Each record names how to probe
the tool, the package-manager strategy tried first and the direct-download
fallback tried once if it fails.
"""

from typing import Dict, List

from ..core.exceptions import PrimaryStrategyError
from ..engine.base import StrategyRequest, ToolSpec
from ..engine.decision import InstallDecision
from ..engine.strategies import (
    CommandStrategy,
    DirectDownloadStrategy,
    ExeInstaller,
    MsiInstaller,
    MsixInstaller,
    WingetStrategy,
    ZipInstaller,
)
from .releases import github_release, node_release, static_release, templated_release

DEFAULT_PYTHON_VERSION = "3.12.7"
DEFAULT_AGENT_PACKAGE = "@anthropic-ai/claude-code"

PYENV_INSTALL_SCRIPT = (
    "https://raw.githubusercontent.com/pyenv-win/pyenv-win/master/"
    "pyenv-win/install-pyenv-win.ps1"
)
PYENV_ARCHIVE = "https://github.com/pyenv-win/pyenv-win/archive/refs/heads/master.zip"
DOCKER_INSTALLER = (
    "https://desktop.docker.com/win/main/amd64/Docker%20Desktop%20Installer.exe"
)
NGROK_ARCHIVE = (
    "https://bin.equinox.io/c/bNyj1mQVY4c/ngrok-v3-stable-windows-amd64.zip"
)
PYTHON_INSTALLER = "https://www.python.org/ftp/python/{version}/python-{version}-{arch}.exe"


def _powershell(script: str) -> List[str]:
    return [
        "powershell.exe",
        "-NoProfile",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        script,
    ]


# ============================================================================
# Package manager and core tools
# ============================================================================


def winget_spec() -> ToolSpec:
    return ToolSpec(
        name="winget",
        display_name="winget",
        probe_command=("winget", "--version"),
        version_pattern=r"v?(\d+\.\d+\.\d+)",
        primary=WingetStrategy("Microsoft.AppInstaller"),
        fallback=DirectDownloadStrategy(
            github_release("microsoft/winget-cli", r"\.msixbundle$"),
            MsixInstaller(),
        ),
    )


def git_spec() -> ToolSpec:
    return ToolSpec(
        name="git",
        display_name="Git",
        probe_command=("git", "--version"),
        version_pattern=r"git version (\d+\.\d+\.\d+)",
        primary=WingetStrategy("Git.Git", scope="machine"),
        fallback=DirectDownloadStrategy(
            github_release("git-for-windows/git", r"^Git-[\d.]+-(64-bit|{arch})\.exe$"),
            ExeInstaller(
                [
                    "/VERYSILENT",
                    "/NORESTART",
                    "/NOCANCEL",
                    "/SP-",
                    "/SUPPRESSMSGBOXES",
                    "/CLOSEAPPLICATIONS",
                ]
            ),
        ),
        requires_admin=True,
    )


def node_spec() -> ToolSpec:
    return ToolSpec(
        name="node",
        display_name="Node.js",
        probe_command=("node", "--version"),
        version_pattern=r"v(\d+\.\d+\.\d+)",
        primary=WingetStrategy("OpenJS.NodeJS.LTS", scope="machine"),
        fallback=DirectDownloadStrategy(node_release("lts"), MsiInstaller()),
        requires_admin=True,
    )


def pwsh_spec() -> ToolSpec:
    return ToolSpec(
        name="pwsh",
        display_name="PowerShell 7",
        probe_command=("pwsh", "--version"),
        version_pattern=r"PowerShell (\d+\.\d+\.\d+)",
        primary=WingetStrategy("Microsoft.PowerShell", scope="machine"),
        fallback=DirectDownloadStrategy(
            github_release("PowerShell/PowerShell", r"^PowerShell-[\d.]+-win-{arch}\.msi$"),
            MsiInstaller(
                [
                    "ADD_EXPLORER_CONTEXT_MENU_OPENPOWERSHELL=1",
                    "ADD_FILE_CONTEXT_MENU_RUNPOWERSHELL=1",
                    "ADD_PATH=1",
                    "REGISTER_MANIFEST=1",
                    "USE_MU=1",
                    "ENABLE_MU=1",
                ]
            ),
        ),
        requires_admin=True,
    )


# ============================================================================
# Python toolchain
# ============================================================================


def _pyenv_script_commands(request: StrategyRequest) -> List[List[str]]:
    # The installer script only performs fresh installs; upgrades go through
    # the archive fallback, which keeps the installed Python versions.
    if request.decision is not InstallDecision.INSTALL:
        raise PrimaryStrategyError(
            f"pyenv-win install script cannot {request.decision.value} pyenv-win"
        )
    script = (
        f"Invoke-WebRequest -UseBasicParsing -Uri '{PYENV_INSTALL_SCRIPT}' "
        "-OutFile \"$env:TEMP\\install-pyenv-win.ps1\"; "
        "& \"$env:TEMP\\install-pyenv-win.ps1\""
    )
    return [_powershell(script)]


def pyenv_spec() -> ToolSpec:
    return ToolSpec(
        name="pyenv",
        display_name="pyenv-win",
        probe_command=("pyenv", "--version"),
        version_pattern=r"pyenv (\d+\.\d+\.\d+)",
        primary=CommandStrategy("pyenv-installer", _pyenv_script_commands),
        fallback=DirectDownloadStrategy(
            static_release(PYENV_ARCHIVE, "pyenv-win-master.zip"),
            ZipInstaller(
                "%USERPROFILE%\\.pyenv",
                strip_top_level=True,
                path_entries=(
                    "{target}\\pyenv-win\\bin",
                    "{target}\\pyenv-win\\shims",
                ),
                variables={
                    "PYENV": "{target}\\pyenv-win\\",
                    "PYENV_ROOT": "{target}\\pyenv-win\\",
                    "PYENV_HOME": "{target}\\pyenv-win\\",
                },
            ),
        ),
        user_scope=True,
    )


def _python_version(request: StrategyRequest) -> str:
    return request.desired_version or DEFAULT_PYTHON_VERSION


def _pyenv_python_commands(request: StrategyRequest) -> List[List[str]]:
    version = _python_version(request)
    install = ["pyenv", "install", "-q", version]
    if request.decision is InstallDecision.REINSTALL:
        install.append("-f")
    return [
        install,
        ["pyenv", "global", version],
        ["pyenv", "rehash"],
    ]


def python_spec() -> ToolSpec:
    return ToolSpec(
        name="python",
        display_name="Python",
        probe_command=("python", "--version"),
        version_pattern=r"Python (\d+\.\d+\.\d+)",
        primary=CommandStrategy("pyenv", _pyenv_python_commands),
        fallback=DirectDownloadStrategy(
            templated_release(
                PYTHON_INSTALLER,
                "python-{version}-{arch}.exe",
                DEFAULT_PYTHON_VERSION,
            ),
            ExeInstaller(
                ["/quiet", "InstallAllUsers=0", "PrependPath=1", "Include_test=0"]
            ),
        ),
        user_scope=True,
        requires=("pyenv",),
    )


# ============================================================================
# Containers
# ============================================================================


def _wsl_setup_commands(request: StrategyRequest) -> List[List[str]]:
    commands = [
        [
            "dism.exe",
            "/online",
            "/enable-feature",
            "/featurename:Microsoft-Windows-Subsystem-Linux",
            "/all",
            "/norestart",
        ],
        [
            "dism.exe",
            "/online",
            "/enable-feature",
            "/featurename:VirtualMachinePlatform",
            "/all",
            "/norestart",
        ],
        ["wsl.exe", "--set-default-version", "2"],
    ]
    distro = request.options.get("distro")
    if distro:
        commands.append(["wsl.exe", "--install", "-d", str(distro), "--no-launch"])
    return commands


def wsl_spec() -> ToolSpec:
    return ToolSpec(
        name="wsl",
        display_name="WSL2",
        probe_command=("wsl", "--version"),
        version_pattern=r"(\d+\.\d+\.\d+\.\d+)",
        primary=WingetStrategy("Microsoft.WSL"),
        fallback=DirectDownloadStrategy(
            github_release("microsoft/WSL", r"^wsl\.[\d.]+\.{arch}\.msi$"),
            MsiInstaller(),
        ),
        requires_admin=True,
        post_install=CommandStrategy(
            "wsl-setup", _wsl_setup_commands, stop_on_restart=True
        ),
        post_install_hint=(
            "Restart Windows if prompted, then run 'devstrap install wsl' "
            "again to finish WSL2 setup."
        ),
    )


def docker_spec() -> ToolSpec:
    return ToolSpec(
        name="docker",
        display_name="Docker Desktop",
        probe_command=("docker", "--version"),
        version_pattern=r"Docker version (\d+\.\d+\.\d+)",
        primary=WingetStrategy("Docker.DockerDesktop"),
        fallback=DirectDownloadStrategy(
            static_release(DOCKER_INSTALLER, "Docker Desktop Installer.exe"),
            ExeInstaller(
                ["install", "--quiet", "--accept-license", "--backend=wsl-2"]
            ),
        ),
        requires_admin=True,
        requires=("wsl",),
        post_install_hint=(
            "Sign out and back in so the docker-users group membership "
            "applies, then start Docker Desktop once to finish setup."
        ),
    )


# ============================================================================
# User tools
# ============================================================================


def ngrok_spec() -> ToolSpec:
    return ToolSpec(
        name="ngrok",
        display_name="Ngrok",
        probe_command=("ngrok", "version"),
        version_pattern=r"ngrok version (\d+\.\d+\.\d+)",
        primary=WingetStrategy("Ngrok.Ngrok", scope="user"),
        fallback=DirectDownloadStrategy(
            static_release(NGROK_ARCHIVE, "ngrok-v3-stable-windows-amd64.zip"),
            ZipInstaller("%LOCALAPPDATA%\\ngrok"),
        ),
        user_scope=True,
    )


def _npm_agent_commands(request: StrategyRequest) -> List[List[str]]:
    package = request.options.get("package") or DEFAULT_AGENT_PACKAGE
    version = request.desired_version or "latest"
    cmd = ["npm", "install", "-g", f"{package}@{version}"]
    if request.decision is InstallDecision.REINSTALL:
        cmd.append("--force")
    return [cmd]


def claude_spec() -> ToolSpec:
    return ToolSpec(
        name="claude",
        display_name="Claude Code",
        probe_command=("claude", "--version"),
        version_pattern=r"(\d+\.\d+\.\d+)",
        primary=CommandStrategy("npm", _npm_agent_commands),
        user_scope=True,
        requires=("node",),
        optional=True,
    )


_FACTORIES = (
    winget_spec,
    git_spec,
    node_spec,
    pyenv_spec,
    python_spec,
    pwsh_spec,
    wsl_spec,
    docker_spec,
    ngrok_spec,
    claude_spec,
)


def build_catalog() -> Dict[str, ToolSpec]:
    """Create every ToolSpec, keyed by name, in dependency order."""
    catalog = {}
    for factory in _FACTORIES:
        spec = factory()
        catalog[spec.name] = spec
    return catalog
