"""
Network download of prebuilt dependency bundles.

Downloads are streamed to disk with optional SHA-256 verification performed
while the bytes arrive. A failed fetch is a hard stop: nothing is retried,
and any timeout beyond the per-request socket timeout is the caller's
responsibility.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from ndkharness.core.exceptions import ChecksumError, DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    speed_bps: float  # bytes per second

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        mb_downloaded = self.bytes_downloaded / 1024 / 1024
        speed_mbps = self.speed_bps / 1024 / 1024
        if self.total_bytes > 0:
            mb_total = self.total_bytes / 1024 / 1024
            return (
                f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
                f"({self.percentage:.1f}%) at {speed_mbps:.1f} MB/s"
            )
        return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified during download)
        progress_callback: Optional callback for progress updates
        timeout: Socket timeout in seconds for each read

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request fails
        ChecksumError: If checksum doesn't match expected value
        ValueError: If URL or destination is invalid

    Example:
        >>> download_file(
        ...     "https://example.com/deps.zip",
        ...     Path("/tmp/android_build/deps.zip"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")
    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    if destination.exists() and expected_sha256:
        if verify_checksum(destination, expected_sha256):
            logger.info(f"Checksum verified, skipping download: {destination}")
            return destination
        logger.warning(f"Checksum mismatch for existing {destination}, re-downloading")
        destination.unlink()

    logger.info(f"Downloading from {url}")

    try:
        response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
    except RequestException as e:
        raise DownloadError(f"Download failed for {url}: {e}") from e

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    hasher = hashlib.sha256() if expected_sha256 else None
    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)
                if hasher:
                    hasher.update(chunk)

                # Report progress (max once per 0.5 seconds)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5 or downloaded == total_size
                ):
                    elapsed = current_time - start_time
                    progress_callback(
                        DownloadProgress(
                            bytes_downloaded=downloaded,
                            total_bytes=total_size,
                            speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                        )
                    )
                    last_progress_time = current_time
    except RequestException as e:
        destination.unlink(missing_ok=True)
        raise DownloadError(f"Download interrupted for {url}: {e}") from e

    if hasher and expected_sha256:
        actual_hash = hasher.hexdigest()
        if actual_hash.lower() != expected_sha256.lower():
            destination.unlink()
            raise ChecksumError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_sha256}, got {actual_hash}"
            )
        logger.info("Checksum verified successfully")

    logger.info(f"Download complete: {destination}")
    return destination


def verify_checksum(file_path: Path, expected_sha256: str) -> bool:
    """
    Verify file SHA256 checksum.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)

    return hasher.hexdigest().lower() == expected_sha256.lower()
