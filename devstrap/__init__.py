"""
devstrap - Windows developer workstation bootstrapper.

Installs and configures winget, Git, Node.js, pyenv-win and Python,
PowerShell 7, WSL2, Docker Desktop, Ngrok and an npm-distributed AI CLI
agent through one idempotent, data-driven installer engine.
"""

__version__ = "0.1.0"
