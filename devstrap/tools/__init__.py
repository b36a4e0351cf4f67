"""
Registry of installable tools.

Example:
    >>> from devstrap.tools import get_tool
    >>> get_tool("git").display_name
    'Git'
"""

from functools import lru_cache
from typing import Dict, List

from ..core.exceptions import UnknownToolError
from ..engine.base import ToolSpec
from .catalog import build_catalog


@lru_cache(maxsize=1)
def _catalog() -> Dict[str, ToolSpec]:
    return build_catalog()


def get_tool(name: str) -> ToolSpec:
    """
    Look up a tool by name.

    Raises:
        UnknownToolError: If no tool has that name
    """
    try:
        return _catalog()[name.lower()]
    except KeyError:
        raise UnknownToolError(name) from None


def list_tools() -> List[ToolSpec]:
    """All tools in dependency order."""
    return list(_catalog().values())


def tool_names() -> List[str]:
    return list(_catalog())


__all__ = ["get_tool", "list_tools", "tool_names"]
