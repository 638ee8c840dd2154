"""
File system helpers for ndkharness.

Covers the handful of operations the pipeline performs on disk:
- Archive extraction (zip, tar.gz, tar.xz, tar.bz2) with traversal checks
- Safe directory removal (used to clear per-architecture build state)
- Recursive copy for staging package layouts
"""

import logging
import shutil
import sys
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Optional, Union

from ndkharness.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
)

logger = logging.getLogger(__name__)


def is_relative_to(path: Path, parent: Path) -> bool:
    """Return True if ``path`` lies under ``parent``."""
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()
    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "Extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    Supported formats: .zip, .tar.gz/.tgz, .tar.xz, .tar.bz2

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        progress_callback: Optional callback(current, total) for progress

    Raises:
        ArchiveExtractionError: If the format is unknown or extraction fails
        InsecureArchiveError: If archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)
    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip"):
            _extract_zip(archive_path, destination, progress_callback)
        elif archive_name.endswith((".tar.gz", ".tgz")):
            _extract_tar(archive_path, destination, "r:gz", progress_callback)
        elif archive_name.endswith(".tar.xz"):
            _extract_tar(archive_path, destination, "r:xz", progress_callback)
        elif archive_name.endswith((".tar.bz2", ".tbz2")):
            _extract_tar(archive_path, destination, "r:bz2", progress_callback)
        else:
            raise ArchiveExtractionError(
                f"Unsupported archive format: {archive_path.name}. "
                "Supported: .zip, .tar.gz, .tar.xz, .tar.bz2"
            )
    except ArchiveExtractionError:
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(
    archive_path: Path,
    destination: Path,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()
        total = len(members)

        for member in members:
            _validate_archive_path(member, destination)

        for i, member in enumerate(members):
            zf.extract(member, destination)
            if progress_callback:
                progress_callback(i + 1, total)


def _extract_tar(
    archive_path: Path,
    destination: Path,
    mode: str,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()
        total = len(members)

        for member in members:
            _validate_archive_path(member.name, destination)

        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)

        if progress_callback:
            progress_callback(total, total)


# ============================================================================
# Safe File Operations
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Remove a directory tree, refusing anything outside ``require_prefix``.

    Example:
        >>> safe_rmtree('/work/target/aarch64-linux-android', require_prefix='/work')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def recursive_copy(source: Union[str, Path], destination: Union[str, Path]) -> None:
    """Recursively copy a directory tree, merging into ``destination``."""
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    destination.mkdir(parents=True, exist_ok=True)

    for item in source.rglob("*"):
        dest_item = destination / item.relative_to(source)
        if item.is_dir():
            dest_item.mkdir(parents=True, exist_ok=True)
        else:
            dest_item.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest_item)


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure a directory exists (idempotent) and return it resolved."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path.resolve()
