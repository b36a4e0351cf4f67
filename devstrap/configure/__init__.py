"""
User-level configuration steps.

Each step applies one setting through the owning tool's own configuration
command and is idempotent: re-running with the same input changes nothing.

- git: global user.name / user.email from .env
- npm: global prefix directory, added to the user PATH
- ngrok: authtoken from .env
"""

from dataclasses import dataclass
from typing import Optional

from ..core.environment import EnvironmentSnapshot


@dataclass
class ConfigureResult:
    """
    Result of a configuration step.

    Attributes:
        changed: Whether any setting was written
        message: Summary shown to the user
        env: Updated environment snapshot (None = unchanged)
    """

    changed: bool
    message: str
    env: Optional[EnvironmentSnapshot] = None


from .git import configure_git_identity  # noqa: E402
from .npm import configure_npm_prefix  # noqa: E402
from .ngrok import configure_ngrok_authtoken  # noqa: E402

__all__ = [
    "ConfigureResult",
    "configure_git_identity",
    "configure_npm_prefix",
    "configure_ngrok_authtoken",
]
