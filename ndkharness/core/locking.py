"""
Cross-process locking for ndkharness.

Two resources are shared between concurrent ndkharness processes:

- the unpacked prebuilt dependency bundle inside the build folder, which
  must be downloaded and extracted by exactly one process;
- the attached device/emulator, which exposes one filesystem and one
  process-output channel and so admits a single harness run at a time.

Usage:
    from ndkharness.core.locking import LockManager

    lock_manager = LockManager(build_folder / "lock")
    with lock_manager.bundle_lock("indy-android-dependencies"):
        # download and unpack if still missing
        pass
"""

import logging
import platform
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)


def get_global_lock_dir() -> Path:
    """Default directory for lock files when no build folder is known."""
    if platform.system() == "Windows":
        base = Path.home() / "AppData" / "Local" / "ndkharness"
    else:
        base = Path.home() / ".ndkharness"
    return base / "lock"


def _safe_name(identifier: str) -> str:
    return identifier.replace("/", "-").replace("\\", "-").replace(":", "-")


class LockManager:
    """
    Manages file locks for shared ndkharness resources.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Optional[Path] = None):
        if lock_dir is None:
            lock_dir = get_global_lock_dir()
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def bundle_lock(self, bundle_id: str, timeout: int = 600):
        """
        Acquire lock for downloading/unpacking a dependency bundle.

        Args:
            bundle_id: Bundle identifier (directory name of the unpacked bundle)
            timeout: Maximum wait time in seconds (default: 600 for long downloads)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_dir / f"bundle-{_safe_name(bundle_id)}.lock"
        with self._acquire(lock_path, timeout, f"bundle {bundle_id}"):
            yield

    @contextmanager
    def device_lock(self, serial: str, timeout: int = 10):
        """
        Acquire exclusive use of a device for one harness run.

        Raises:
            LockTimeout: If another harness run holds the device
        """
        lock_path = self.lock_dir / f"device-{_safe_name(serial)}.lock"
        with self._acquire(lock_path, timeout, f"device {serial}"):
            yield

    @contextmanager
    def _acquire(self, lock_path: Path, timeout: int, what: str):
        lock = FileLock(lock_path, timeout=timeout)
        try:
            with lock:
                logger.debug(f"Acquired lock for {what}: {lock_path}")
                yield
                logger.debug(f"Released lock for {what}: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire lock for {what} after {timeout}s. "
                "Another ndkharness process may be using it."
            )
            raise LockTimeout(str(lock_path)) from e
