"""
devstrap CLI module.

Provides the `devstrap` command with subcommands:
- install: Install, upgrade or reinstall one tool
- setup: Run the full workstation sequence
- configure: Apply Git, npm and Ngrok user settings
- status: Report installed tool versions
"""

from .parser import CLI, main
from . import utils

__all__ = ["CLI", "main", "utils"]
