"""
Environment snapshots and durable PATH state.

Installers mutate the machine and user PATH stored in the registry; the
running process does not see those changes. Instead of patching os.environ,
devstrap passes an immutable EnvironmentSnapshot between steps and builds a
fresh one from durable state after every mutating step.

Scopes:
    machine: HKLM\\SYSTEM\\CurrentControlSet\\Control\\Session Manager\\Environment
    user:    HKCU\\Environment
"""

import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

MACHINE = "machine"
USER = "user"

_MACHINE_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
_USER_KEY = "Environment"

_VAR_PATTERN = re.compile(r"%([^%]+)%")


def split_path(value: str, separator: Optional[str] = None) -> List[str]:
    """Split a PATH value into non-empty entries."""
    sep = separator or os.pathsep
    return [entry for entry in value.split(sep) if entry.strip()]


def expand_variables(value: str, variables: Mapping[str, str]) -> str:
    """
    Expand %VAR% references the way REG_EXPAND_SZ values are expanded.

    Lookup is case-insensitive; unknown variables are left untouched.
    """
    lowered = {k.upper(): v for k, v in variables.items()}

    def _replace(match):
        return lowered.get(match.group(1).upper(), match.group(0))

    return _VAR_PATTERN.sub(_replace, value)


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """
    Immutable copy of process environment variables.

    Example:
        >>> snapshot = EnvironmentSnapshot.capture()
        >>> snapshot = snapshot.with_path_entry(r"C:\\Tools\\bin")
        >>> runner.run(["tool", "--version"], env=snapshot.as_environ())
    """

    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def capture(cls) -> "EnvironmentSnapshot":
        """Snapshot the current process environment."""
        return cls(dict(os.environ))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for key, value in self.variables.items():
            if key.upper() == name.upper():
                return value
        return default

    def _key_for(self, name: str) -> str:
        for key in self.variables:
            if key.upper() == name.upper():
                return key
        return name

    @property
    def path(self) -> str:
        return self.get("PATH", "") or ""

    def path_entries(self) -> List[str]:
        return split_path(self.path)

    def with_variable(self, name: str, value: str) -> "EnvironmentSnapshot":
        """Return a copy with one variable set."""
        updated: Dict[str, str] = dict(self.variables)
        updated[self._key_for(name)] = value
        return EnvironmentSnapshot(updated)

    def with_path(self, value: str) -> "EnvironmentSnapshot":
        return self.with_variable("PATH", value)

    def with_path_entry(self, entry: str) -> "EnvironmentSnapshot":
        """Return a copy with entry appended to PATH (no duplicates)."""
        entries = self.path_entries()
        if _contains_path(entries, entry):
            return self
        return self.with_path(os.pathsep.join(entries + [entry]))

    def as_environ(self) -> Dict[str, str]:
        """Plain dict suitable for subprocess env=."""
        return dict(self.variables)


def _normalize_entry(entry: str) -> str:
    return os.path.normcase(entry.strip().rstrip("\\/"))


def _contains_path(entries: List[str], entry: str) -> bool:
    target = _normalize_entry(entry)
    return any(_normalize_entry(e) == target for e in entries)


class EnvironmentStore(ABC):
    """Durable (registry-backed) environment variables."""

    @abstractmethod
    def read(self, name: str, scope: str) -> Optional[str]:
        """Read a variable from the given scope, None if unset."""
        pass

    @abstractmethod
    def write(self, name: str, value: str, scope: str) -> None:
        """Persist a variable in the given scope."""
        pass


class WindowsEnvironmentStore(EnvironmentStore):
    """EnvironmentStore backed by the Windows registry."""

    def read(self, name: str, scope: str) -> Optional[str]:
        import winreg

        root, key_path = _registry_location(scope)
        try:
            with winreg.OpenKey(root, key_path) as key:
                value, _ = winreg.QueryValueEx(key, name)
                return str(value)
        except FileNotFoundError:
            return None

    def write(self, name: str, value: str, scope: str) -> None:
        import winreg

        root, key_path = _registry_location(scope)
        value_type = winreg.REG_EXPAND_SZ if "%" in value else winreg.REG_SZ
        with winreg.OpenKey(root, key_path, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, name, 0, value_type, value)
        logger.debug(f"Wrote {scope} environment variable {name}")
        _broadcast_environment_change()


class ProcessEnvironmentStore(EnvironmentStore):
    """
    Store used on non-Windows hosts.

    There is no durable user/machine split, so reads come from the current
    process environment and writes only update it.
    """

    def read(self, name: str, scope: str) -> Optional[str]:
        if scope == USER:
            return None
        return os.environ.get(name, os.environ.get(name.upper()))

    def write(self, name: str, value: str, scope: str) -> None:
        os.environ[name] = value


def _registry_location(scope: str):
    import winreg

    if scope == MACHINE:
        return winreg.HKEY_LOCAL_MACHINE, _MACHINE_KEY
    if scope == USER:
        return winreg.HKEY_CURRENT_USER, _USER_KEY
    raise ValueError(f"Unknown environment scope: {scope}")


def _broadcast_environment_change() -> None:
    """Notify running shells (Explorer) that the environment changed."""
    import ctypes

    HWND_BROADCAST = 0xFFFF
    WM_SETTINGCHANGE = 0x001A
    SMTO_ABORTIFHUNG = 0x0002
    result = ctypes.c_ulong()
    ctypes.windll.user32.SendMessageTimeoutW(
        HWND_BROADCAST,
        WM_SETTINGCHANGE,
        0,
        "Environment",
        SMTO_ABORTIFHUNG,
        5000,
        ctypes.byref(result),
    )


def default_store() -> EnvironmentStore:
    """Registry store on Windows, process store elsewhere."""
    if sys.platform == "win32":
        return WindowsEnvironmentStore()
    return ProcessEnvironmentStore()


def refresh_path(
    snapshot: EnvironmentSnapshot, store: EnvironmentStore
) -> EnvironmentSnapshot:
    """
    Rebuild PATH from durable machine and user state.

    Machine entries come first, then user entries, matching how Windows
    composes PATH for a new logon session. If the store has no PATH at all
    the snapshot is returned unchanged.

    Args:
        snapshot: Current snapshot
        store: Durable environment store

    Returns:
        New snapshot with refreshed PATH
    """
    machine = store.read("Path", MACHINE) or ""
    user = store.read("Path", USER) or ""
    if not machine and not user:
        return snapshot

    entries: List[str] = []
    for raw in split_path(machine, ";") + split_path(user, ";"):
        expanded = expand_variables(raw, snapshot.variables)
        if not _contains_path(entries, expanded):
            entries.append(expanded)

    logger.debug(f"Refreshed PATH ({len(entries)} entries)")
    return snapshot.with_path(os.pathsep.join(entries))


def add_user_path_entry(
    entry: str, snapshot: EnvironmentSnapshot, store: EnvironmentStore
) -> EnvironmentSnapshot:
    """
    Persist entry in the user PATH and return a snapshot that includes it.

    Args:
        entry: Directory to add
        snapshot: Current snapshot
        store: Durable environment store

    Returns:
        Snapshot with entry on PATH
    """
    current = store.read("Path", USER) or ""
    entries = split_path(current, ";")
    if not _contains_path(entries, entry):
        store.write("Path", ";".join(entries + [entry]), USER)
        logger.info(f"Added {entry} to user PATH")
    else:
        logger.debug(f"{entry} already on user PATH")
    return snapshot.with_path_entry(entry)
