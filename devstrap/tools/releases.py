"""
Vendor release metadata resolvers used by the direct-download fallbacks.

Each factory returns a callable taking a StrategyRequest and returning the
ReleaseInfo to download: the latest GitHub release, the nodejs.org dist
index, or a fixed URL for vendors that only publish a "latest" link.
"""

import logging
import re
from typing import Dict, List, Optional

from ..core.download import fetch_json
from ..core.exceptions import ReleaseLookupError, VersionComparisonError
from ..core.version import Version
from ..engine.base import StrategyRequest
from ..engine.strategies import ReleaseInfo, ReleaseResolver

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
NODE_DIST = "https://nodejs.org/dist"

# nodejs.org dist index uses its own platform file tags
_NODE_MSI_ARCH = {"x64": "x64", "arm64": "arm64", "x86": "x86"}


def _arch(request: StrategyRequest) -> str:
    return request.context.platform.arch


def github_release(repo: str, asset_pattern: str) -> ReleaseResolver:
    """
    Resolve an asset of a GitHub release.

    Args:
        repo: "owner/name"
        asset_pattern: Regex matched against asset names; "{arch}" is replaced
            with the host architecture (x64, arm64)

    Returns:
        Resolver for the latest release, or the release tagged with the
        pinned version ("v1.2.3" or "1.2.3")

    Example:
        >>> resolve = github_release("PowerShell/PowerShell", r"PowerShell-.*-win-{arch}\\.msi$")
    """

    def resolve(request: StrategyRequest) -> ReleaseInfo:
        pinned = request.desired_version
        if pinned:
            release = _github_tagged_release(repo, pinned)
        else:
            release = fetch_json(f"{GITHUB_API}/repos/{repo}/releases/latest")

        if not isinstance(release, dict) or "tag_name" not in release:
            raise ReleaseLookupError(f"Unexpected release data from {repo}")

        pattern = re.compile(asset_pattern.replace("{arch}", _arch(request)))
        for asset in release.get("assets") or []:
            name = asset.get("name", "")
            if pattern.search(name):
                version = _version_from_tag(release["tag_name"])
                logger.debug(f"{repo}: {release['tag_name']} -> {name}")
                return ReleaseInfo(
                    version=version,
                    url=asset["browser_download_url"],
                    filename=name,
                    sha256=_asset_sha256(asset),
                )

        raise ReleaseLookupError(
            f"No asset matching '{pattern.pattern}' in {repo} {release['tag_name']}"
        )

    return resolve


def _github_tagged_release(repo: str, version: str) -> Dict:
    releases = fetch_json(f"{GITHUB_API}/repos/{repo}/releases?per_page=50")
    if not isinstance(releases, list):
        raise ReleaseLookupError(f"Unexpected release list from {repo}")
    for release in releases:
        tag = release.get("tag_name", "")
        if _version_from_tag(tag) == version or tag.lstrip("v") == version:
            return release
    raise ReleaseLookupError(f"{repo} has no release {version}")


def _version_from_tag(tag: str) -> Optional[str]:
    """
    Normalize a release tag to a version string.

    "v2.45.1.windows.1" -> "2.45.1", "v7.4.6" -> "7.4.6"
    """
    match = re.search(r"(\d+(?:\.\d+){1,3})", tag)
    if not match:
        return None
    try:
        return str(Version(match.group(1)))
    except VersionComparisonError:
        return match.group(1)


def _asset_sha256(asset: Dict) -> Optional[str]:
    # GitHub publishes "sha256:<hex>" digests for newer uploads
    digest = asset.get("digest") or ""
    if digest.startswith("sha256:"):
        return digest.split(":", 1)[1]
    return None


def node_release(channel: str = "lts") -> ReleaseResolver:
    """
    Resolve a Node.js MSI from the nodejs.org dist index.

    Args:
        channel: "lts" for the newest LTS line, "latest" for the newest
            release; a pinned version in the request options wins
    """

    def resolve(request: StrategyRequest) -> ReleaseInfo:
        arch = _NODE_MSI_ARCH.get(_arch(request))
        if arch is None:
            raise ReleaseLookupError(f"No Node.js MSI for architecture {_arch(request)}")

        index = fetch_json(f"{NODE_DIST}/index.json")
        if not isinstance(index, list):
            raise ReleaseLookupError("Unexpected data from nodejs.org dist index")

        entry = _select_node_entry(index, request.desired_version, channel, arch)
        version = entry["version"].lstrip("v")
        filename = f"node-v{version}-{arch}.msi"
        return ReleaseInfo(
            version=version,
            url=f"{NODE_DIST}/v{version}/{filename}",
            filename=filename,
        )

    return resolve


def _select_node_entry(
    index: List[Dict], pinned: Optional[str], channel: str, arch: str
) -> Dict:
    file_tag = f"win-{arch}-msi"
    candidates = [e for e in index if file_tag in (e.get("files") or [])]

    if pinned:
        for entry in candidates:
            if entry.get("version", "").lstrip("v") == pinned:
                return entry
        raise ReleaseLookupError(f"Node.js {pinned} not found in dist index")

    if channel == "lts":
        candidates = [e for e in candidates if e.get("lts")]
    if not candidates:
        raise ReleaseLookupError(f"No Node.js {channel} release in dist index")

    # index.json is ordered newest first; sort anyway to not depend on it
    return max(candidates, key=lambda e: Version(e["version"]))


def static_release(
    url: str, filename: str, version: Optional[str] = None
) -> ReleaseResolver:
    """Resolver for a vendor that publishes a fixed "latest" URL."""

    def resolve(request: StrategyRequest) -> ReleaseInfo:
        return ReleaseInfo(version=version, url=url, filename=filename)

    return resolve


def templated_release(
    url_template: str,
    filename_template: str,
    default_version: str,
) -> ReleaseResolver:
    """
    Resolver for URLs built from a version number (python.org).

    Templates may use {version} and {arch}.
    """

    def resolve(request: StrategyRequest) -> ReleaseInfo:
        version = request.desired_version or default_version
        values = {"version": version, "arch": _python_arch(_arch(request))}
        return ReleaseInfo(
            version=version,
            url=url_template.format(**values),
            filename=filename_template.format(**values),
        )

    return resolve


def _python_arch(arch: str) -> str:
    return {"x64": "amd64", "arm64": "arm64"}.get(arch, arch)

