"""
Git identity configuration.

Reads GIT_USER_NAME and GIT_USER_EMAIL from .env and writes them to the
global Git configuration with `git config --global`. Values already set are
left alone.
"""

import logging
import re

from ..core.config import EnvConfig
from ..core.environment import EnvironmentSnapshot
from ..core.exceptions import (
    CommandNotFoundError,
    ConfigurationError,
    DependencyMissingError,
)
from ..core.process import CommandRunner
from . import ConfigureResult

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

IDENTITY_KEYS = (
    ("user.name", "GIT_USER_NAME"),
    ("user.email", "GIT_USER_EMAIL"),
)


def configure_git_identity(
    config: EnvConfig, runner: CommandRunner, env: EnvironmentSnapshot
) -> ConfigureResult:
    """
    Set the global Git user name and email.

    Args:
        config: Values from .env
        runner: Command runner
        env: Environment snapshot

    Returns:
        ConfigureResult

    Raises:
        ConfigurationError: If a key is missing or blank, the email is
            malformed, or git rejects the setting
        DependencyMissingError: If git is not installed
    """
    wanted = {git_key: config.require(env_key) for git_key, env_key in IDENTITY_KEYS}
    if not _EMAIL.match(wanted["user.email"]):
        raise ConfigurationError(
            f"GIT_USER_EMAIL is not a valid email address: {wanted['user.email']}"
        )

    environ = env.as_environ()
    try:
        runner.resolve("git", environ)
    except CommandNotFoundError:
        raise DependencyMissingError("Git identity", "git") from None

    changed = []
    for key, value in wanted.items():
        current = runner.run(["git", "config", "--global", "--get", key], env=environ)
        if current.returncode == 0 and current.stdout.strip() == value:
            logger.debug(f"git {key} already set")
            continue

        result = runner.run(["git", "config", "--global", key, value], env=environ)
        if not result.ok:
            raise ConfigurationError(
                f"git config --global {key} failed with exit code {result.returncode}"
            )
        logger.info(f"Set git {key} = {value}")
        changed.append(key)

    if not changed:
        return ConfigureResult(False, "Git identity already configured")
    return ConfigureResult(
        True, f"Git identity configured ({', '.join(changed)})"
    )
