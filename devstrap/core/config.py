"""
Configuration loading.

Two sources feed a devstrap run:

- ``devstrap.yaml`` (optional): step sequence, per-tool options and the npm
  prefix. Parsed with PyYAML.
- ``.env``: user identity and secrets (GIT_USER_NAME, GIT_USER_EMAIL,
  NGROK_AUTHTOKEN). Parsed with python-dotenv and read once per run; devstrap
  never writes it back.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "devstrap.yaml"
DEFAULT_ENV_FILE = ".env"


# ============================================================================
# .env
# ============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Key/value pairs read from a .env file."""

    values: Mapping[str, str] = field(default_factory=dict)
    source: Optional[Path] = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.values.get(key)
        return value if value is not None else default

    def require(self, key: str) -> str:
        """
        Get a mandatory, non-blank value.

        Raises:
            ConfigurationError: If key is missing or blank
        """
        value = (self.values.get(key) or "").strip()
        if not value:
            where = str(self.source) if self.source else DEFAULT_ENV_FILE
            raise ConfigurationError(f"{key} is not set in {where}")
        return value


def load_env_file(path: Optional[Path] = None, required: bool = False) -> EnvConfig:
    """
    Load a .env file.

    KEY=VALUE lines are read; '#' comments and blank lines are ignored.

    Args:
        path: File to read (default: ./.env)
        required: Raise if the file doesn't exist

    Returns:
        EnvConfig (empty if the file is absent and not required)

    Raises:
        ConfigurationError: If required and missing
    """
    env_path = Path(path) if path else Path.cwd() / DEFAULT_ENV_FILE
    if not env_path.exists():
        if required:
            raise ConfigurationError(f".env file not found: {env_path}")
        logger.debug(f".env not found (optional): {env_path}")
        return EnvConfig({}, env_path)

    raw = dotenv_values(env_path)
    values = {k: v for k, v in raw.items() if v is not None}
    logger.debug(f"Loaded {len(values)} value(s) from {env_path}")
    return EnvConfig(values, env_path)


# ============================================================================
# devstrap.yaml
# ============================================================================


@dataclass
class DevstrapConfig:
    """
    Parsed devstrap.yaml.

    Attributes:
        sequence: Ordered step names for `devstrap setup` (None = default order)
        tools: Per-tool option mappings, e.g. {"node": {"version": "lts"}}
        npm_prefix: Global npm prefix directory (None = %APPDATA%\\npm)
        env_file: Path to the .env file
        source: File the configuration was read from
    """

    sequence: Optional[List[str]] = None
    tools: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    npm_prefix: Optional[str] = None
    env_file: Optional[Path] = None
    source: Optional[Path] = None

    def tool_options(self, name: str) -> Dict[str, Any]:
        return dict(self.tools.get(name) or {})


def load_config(path: Optional[Path] = None, required: bool = False) -> DevstrapConfig:
    """
    Load devstrap.yaml.

    Args:
        path: Configuration file (default: ./devstrap.yaml)
        required: Raise if the file doesn't exist

    Returns:
        DevstrapConfig with defaults for anything not set

    Raises:
        ConfigurationError: If the file is required and missing, or invalid
    """
    config_file = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_FILE
    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return DevstrapConfig()

    logger.debug(f"Loading configuration from {config_file}")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_file} must contain a mapping")

    sequence = data.get("sequence")
    if sequence is not None and (
        not isinstance(sequence, list) or not all(isinstance(s, str) for s in sequence)
    ):
        raise ConfigurationError("'sequence' must be a list of step names")

    tools = data.get("tools") or {}
    if not isinstance(tools, dict):
        raise ConfigurationError("'tools' must be a mapping of tool name to options")

    npm = data.get("npm") or {}
    env_file = data.get("env_file")

    return DevstrapConfig(
        sequence=sequence,
        tools={str(k): dict(v or {}) for k, v in tools.items()},
        npm_prefix=npm.get("prefix") if isinstance(npm, dict) else None,
        env_file=(config_file.parent / env_file) if env_file else None,
        source=config_file,
    )
