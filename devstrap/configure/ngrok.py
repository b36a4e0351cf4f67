"""Ngrok authtoken configuration."""

import logging

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


def configure_ngrok_authtoken(
    config: EnvConfig, runner: CommandRunner, env: EnvironmentSnapshot
) -> ConfigureResult:
    """
    Save NGROK_AUTHTOKEN into ngrok.yml with `ngrok config add-authtoken`.

    The token never appears in log output.

    Raises:
        ConfigurationError: If the token is missing or ngrok rejects it
        DependencyMissingError: If ngrok is not installed
    """
    token = config.require("NGROK_AUTHTOKEN")

    environ = env.as_environ()
    try:
        runner.resolve("ngrok", environ)
    except CommandNotFoundError:
        raise DependencyMissingError("Ngrok authtoken", "ngrok") from None

    result = runner.run(
        ["ngrok", "config", "add-authtoken", token], env=environ, secrets=(token,)
    )
    if not result.ok:
        raise ConfigurationError(
            f"ngrok config add-authtoken failed with exit code {result.returncode}"
        )
    logger.debug("Ngrok authtoken written")
    return ConfigureResult(True, "Ngrok authtoken saved")
