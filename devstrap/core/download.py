"""
Network access for fallback installers.

Provides:
- JSON metadata fetch for vendor release APIs (GitHub Releases, nodejs.org)
- Artifact download with retry/backoff and streaming checksum verification
- A per-artifact file lock so two devstrap processes (for example an
  orchestrator and its elevated child) never write the same file
- Progress reporting through an optional callback
"""

import hashlib
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests
from filelock import FileLock, Timeout as LockTimeout
from requests.exceptions import RequestException

from .exceptions import DevstrapError

logger = logging.getLogger(__name__)

USER_AGENT = "devstrap"
CHUNK_SIZE = 64 * 1024


class DownloadError(DevstrapError):
    """Exception raised when download fails."""

    pass


class ChecksumError(DownloadError):
    """Exception raised when checksum verification fails."""

    pass


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        mb_downloaded = self.bytes_downloaded / 1024 / 1024
        if self.total_bytes > 0:
            mb_total = self.total_bytes / 1024 / 1024
            return f"{mb_downloaded:.1f}/{mb_total:.1f} MB ({self.percentage:.1f}%)"
        return f"{mb_downloaded:.1f} MB"


def get_download_dir() -> Path:
    """
    Directory where installer artifacts are cached.

    Returns:
        %USERPROFILE%\\.devstrap\\downloads (or ~/.devstrap/downloads)
    """
    override = os.environ.get("DEVSTRAP_CACHE_DIR")
    base = Path(override) if override else Path.home() / ".devstrap"
    return base / "downloads"


def _session_headers() -> Dict[str, str]:
    headers = {"User-Agent": USER_AGENT}
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_json(url: str, timeout: int = 30) -> Any:
    """
    Fetch and decode a JSON document.

    Args:
        url: API endpoint
        timeout: Request timeout in seconds

    Returns:
        Decoded JSON value

    Raises:
        DownloadError: If the request fails or the body is not JSON
    """
    logger.debug(f"Fetching {url}")
    try:
        response = requests.get(url, headers=_session_headers(), timeout=timeout)
        response.raise_for_status()
    except RequestException as e:
        raise DownloadError(f"Failed to fetch {url}: {e}") from e
    try:
        return response.json()
    except ValueError as e:
        raise DownloadError(f"Invalid JSON from {url}: {e}") from e


def sha256_of(path: Path) -> str:
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)
    return hasher.hexdigest()


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 60,
    max_retries: int = 3,
    lock_timeout: float = 600,
) -> Path:
    """
    Download url to destination with retries and checksum verification.

    An existing file with a matching checksum is reused without a request.
    Data is streamed to "<destination>.partial" and renamed on success so an
    interrupted download never looks complete.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash, verified while streaming
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts
        lock_timeout: Seconds to wait for another process downloading the same file

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries or the destination
            cannot be written
        ChecksumError: If checksum doesn't match expected value
        ValueError: If URL is empty
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    lock = FileLock(str(destination) + ".lock")

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with lock.acquire(timeout=lock_timeout):
            if destination.exists() and expected_sha256:
                if sha256_of(destination).lower() == expected_sha256.lower():
                    logger.info(f"Using cached {destination.name}")
                    return destination
                logger.warning(f"Cached {destination.name} is corrupt, re-downloading")
                destination.unlink()

            for attempt in range(max_retries):
                try:
                    return _download_once(
                        url, destination, expected_sha256, progress_callback, timeout
                    )
                except RequestException as e:
                    if attempt == max_retries - 1:
                        raise DownloadError(
                            f"Download failed after {max_retries} attempts: {e}"
                        ) from e
                    backoff_seconds = 2**attempt
                    logger.warning(
                        f"Download attempt {attempt + 1} failed: {e}. "
                        f"Retrying in {backoff_seconds}s..."
                    )
                    time.sleep(backoff_seconds)
    except LockTimeout as e:
        raise DownloadError(
            f"Timed out waiting for another download of {destination.name}"
        ) from e
    except OSError as e:
        # LockTimeout is an OSError too, so this clause must come after it
        raise DownloadError(f"Cannot write {destination}: {e}") from e

    raise DownloadError("Download failed for unknown reason")


def _download_once(
    url: str,
    destination: Path,
    expected_sha256: Optional[str],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    partial = destination.with_name(destination.name + ".partial")
    logger.info(f"Downloading {url}")

    response = requests.get(
        url,
        headers={"User-Agent": USER_AGENT},
        stream=True,
        timeout=timeout,
        allow_redirects=True,
    )
    response.raise_for_status()

    total = int(response.headers.get("content-length") or 0)
    hasher = hashlib.sha256()
    downloaded = 0
    last_report = 0.0

    with open(partial, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            hasher.update(chunk)
            downloaded += len(chunk)

            now = time.time()
            if progress_callback and now - last_report >= 0.5:
                progress_callback(DownloadProgress(downloaded, total))
                last_report = now

    if progress_callback:
        progress_callback(DownloadProgress(downloaded, total or downloaded))

    if expected_sha256:
        actual = hasher.hexdigest()
        if actual.lower() != expected_sha256.lower():
            partial.unlink()
            raise ChecksumError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_sha256}, got {actual}"
            )
        logger.debug("Checksum verified successfully")

    partial.replace(destination)
    logger.info(f"Download complete: {destination}")
    return destination
