"""
Unit tests for version parsing and comparison.
"""

import pytest

from devstrap.core.exceptions import VersionComparisonError
from devstrap.core.version import Version, extract_version, same_version


class TestVersion:
    """Test Version parsing and ordering."""

    def test_parse_three_components(self):
        """Test parsing major, minor and patch."""
        version = Version("2.45.1")
        assert (version.major, version.minor, version.patch) == (2, 45, 1)

    def test_leading_v_is_ignored(self):
        """Test a leading v is ignored."""
        assert Version("v20.11.1") == Version("20.11.1")

    def test_missing_components_are_zero(self):
        """Test missing components compare as zero."""
        assert Version("20.11") == Version("20.11.0")

    def test_git_windows_suffix(self):
        """Test the Git for Windows suffix is dropped."""
        assert Version("2.45.1.windows.1") == Version("2.45.1")

    def test_four_components_ordering(self):
        """Test four-part versions order on the build number."""
        assert Version("2.3.26.0") < Version("2.3.26.1")

    def test_ordering(self):
        """Test numeric, not lexical, ordering."""
        assert Version("7.4.6") > Version("7.4.5")
        assert Version("7.10.0") > Version("7.9.9")

    def test_str_drops_zero_build(self):
        """Test a zero build number is omitted from the string form."""
        assert str(Version("7.4.6.0")) == "7.4.6"
        assert str(Version("2.3.26.1")) == "2.3.26.1"

    def test_invalid_version_raises(self):
        """Test non-numeric versions raise VersionComparisonError."""
        with pytest.raises(VersionComparisonError, match="Invalid version format"):
            Version("latest")


class TestExtractVersion:
    """Test extract_version."""

    def test_first_group(self):
        """Test the first capture group is returned."""
        output = "git version 2.45.1.windows.1"
        assert extract_version(output, r"git version (\d+\.\d+\.\d+)") == "2.45.1"

    def test_whole_match_without_group(self):
        """Test the whole match is returned when the pattern has no group."""
        assert extract_version("1.0.3 (Claude Code)", r"\d+\.\d+\.\d+") == "1.0.3"

    def test_no_match(self):
        """Test no match returns None."""
        assert extract_version("'git' is not recognized", r"git version (\d+)") is None

    def test_empty_output(self):
        """Test empty output returns None."""
        assert extract_version("", r"(\d+)") is None


class TestSameVersion:
    """Test same_version."""

    def test_numeric_equality(self):
        """Test versions equal after normalization."""
        assert same_version("v20.11.1", "20.11.1")

    def test_different(self):
        """Test different versions."""
        assert not same_version("20.11.1", "20.12.0")

    def test_missing_side(self):
        """Test a missing version never matches."""
        assert not same_version(None, "1.0.0")
        assert not same_version("1.0.0", "")

    def test_unparseable_falls_back_to_string(self):
        """Test unparseable versions compare as strings."""
        assert same_version("nightly", "nightly")
