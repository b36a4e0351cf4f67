"""
Version parsing and comparison.

Tools report versions in many shapes ("git version 2.45.1.windows.1",
"v20.11.1", "WSL version: 2.1.5.0", "PowerShell 7.4.2"). Probes extract the
version with a per-tool regular expression; Version compares the numeric
components.
"""

import re
from typing import Optional, Pattern, Tuple, Union

from .exceptions import VersionComparisonError

_NUMERIC = re.compile(r"^v?(\d+(?:\.\d+){1,3})")


class Version:
    """
    Dotted numeric version parser and comparator.

    Accepts two to four numeric components; missing components are zero.
    Trailing qualifiers such as ".windows.1" or "-rc1" are ignored.

    Example:
        >>> Version("2.45.1.windows.1") > Version("2.44.0")
        True
        >>> Version("v20.11") == Version("20.11.0")
        True
    """

    def __init__(self, version_string: str):
        """
        Parse version string.

        Args:
            version_string: Version such as "20.11.1" or "v2.1.5.0"

        Raises:
            VersionComparisonError: If version format is invalid
        """
        self.original = version_string
        self.parts = self._parse(version_string)

    @staticmethod
    def _parse(version_string: str) -> Tuple[int, int, int, int]:
        match = _NUMERIC.match(version_string.strip())
        if not match:
            raise VersionComparisonError(
                f"Invalid version format: {version_string}. "
                f"Expected format: major.minor[.patch[.build]]"
            )
        numbers = [int(p) for p in match.group(1).split(".")]
        numbers += [0] * (4 - len(numbers))
        return numbers[0], numbers[1], numbers[2], numbers[3]

    @property
    def major(self) -> int:
        return self.parts[0]

    @property
    def minor(self) -> int:
        return self.parts[1]

    @property
    def patch(self) -> int:
        return self.parts[2]

    def __lt__(self, other: "Version") -> bool:
        return self.parts < other.parts

    def __le__(self, other: "Version") -> bool:
        return self.parts <= other.parts

    def __gt__(self, other: "Version") -> bool:
        return self.parts > other.parts

    def __ge__(self, other: "Version") -> bool:
        return self.parts >= other.parts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.parts == other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __str__(self) -> str:
        if self.parts[3]:
            return ".".join(str(p) for p in self.parts)
        return f"{self.major}.{self.minor}.{self.patch}"

    def __repr__(self) -> str:
        return f"Version('{self}')"


def extract_version(
    output: str, pattern: Union[str, Pattern[str]]
) -> Optional[str]:
    """
    Extract a version string from tool output.

    Args:
        output: Text printed by the tool
        pattern: Regex whose first group (or whole match) is the version

    Returns:
        Version string, or None if the output doesn't match
    """
    if not output:
        return None
    match = re.search(pattern, output)
    if not match:
        return None
    return match.group(1) if match.groups() else match.group(0)


def same_version(left: Optional[str], right: Optional[str]) -> bool:
    """
    Compare two version strings numerically.

    Falls back to string equality when either side is not parseable.
    """
    if not left or not right:
        return False
    try:
        return Version(left) == Version(right)
    except VersionComparisonError:
        return left.strip().lstrip("v") == right.strip().lstrip("v")
