"""
npm global prefix configuration.

Points `npm install -g` at a directory in the user profile so global
packages install without elevation, and puts that directory on the user
PATH.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..core.environment import (
    EnvironmentSnapshot,
    EnvironmentStore,
    add_user_path_entry,
    expand_variables,
)
from ..core.exceptions import (
    CommandNotFoundError,
    ConfigurationError,
    DependencyMissingError,
)
from ..core.process import CommandRunner
from . import ConfigureResult

logger = logging.getLogger(__name__)

DEFAULT_NPM_PREFIX = "%APPDATA%\\npm"


def _same_dir(left: str, right: str) -> bool:
    def norm(p):
        return os.path.normcase(p.strip().rstrip("\\/"))

    return norm(left) == norm(right)


def configure_npm_prefix(
    runner: CommandRunner,
    env: EnvironmentSnapshot,
    store: EnvironmentStore,
    prefix: Optional[str] = None,
) -> ConfigureResult:
    """
    Set npm's global prefix and add it to the user PATH.

    Args:
        runner: Command runner
        env: Environment snapshot
        store: Durable environment store (user PATH)
        prefix: Prefix directory, %VAR% references allowed
            (default: %APPDATA%\\npm)

    Returns:
        ConfigureResult with the updated snapshot

    Raises:
        DependencyMissingError: If npm is not installed
        ConfigurationError: If npm rejects the setting
    """
    target = expand_variables(prefix or DEFAULT_NPM_PREFIX, env.variables)
    if "%" in target:
        raise ConfigurationError(f"Cannot expand npm prefix: {target}")

    environ = env.as_environ()
    try:
        runner.resolve("npm", environ)
    except CommandNotFoundError:
        raise DependencyMissingError("npm prefix", "node") from None

    current = runner.run(["npm", "config", "get", "prefix"], env=environ)
    changed = False
    if current.ok and _same_dir(current.stdout, target):
        logger.debug(f"npm prefix already {target}")
    else:
        result = runner.run(["npm", "config", "set", "prefix", target], env=environ)
        if not result.ok:
            raise ConfigurationError(
                f"npm config set prefix failed with exit code {result.returncode}"
            )
        logger.info(f"Set npm prefix = {target}")
        changed = True

    Path(target).mkdir(parents=True, exist_ok=True)
    updated = add_user_path_entry(target, env, store)
    changed = changed or updated is not env

    message = f"npm prefix set to {target}" if changed else f"npm prefix already {target}"
    return ConfigureResult(changed, message, env=updated)
