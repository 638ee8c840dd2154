"""
Prebuilt dependency bundle download and extraction.

The bundle is a single archive holding every architecture's variant of each
prebuilt dependency, laid out as::

    <bundle>/prebuilt/<group>/<dep>_<arch>.zip

Fetching downloads the archive once, unpacks it, and then unpacks every
nested per-architecture archive next to itself. The whole operation is
idempotent: if the bundle directory already exists nothing is fetched.
"""

import logging
import shutil
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlparse

from ndkharness.core.download import download_file
from ndkharness.core.filesystem import extract_archive, safe_rmtree
from ndkharness.core.locking import LockManager

logger = logging.getLogger(__name__)

_ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz", ".tar.xz", ".tar.bz2", ".tbz2")


@dataclass(frozen=True)
class DependencyBundle:
    """
    Location of the prebuilt dependency bundle.

    Attributes:
        url: Download URL of the bundle archive
        name: Directory name of the unpacked bundle inside the build folder
        version: Bundle version tag (informational, part of the archive name)
        sha256: Optional SHA-256 of the archive
        prebuilt_subdir: Directory inside the bundle holding dependency groups
    """

    url: str
    name: str = "indy-android-dependencies"
    version: str = "v1.0.2"
    sha256: Optional[str] = None
    prebuilt_subdir: str = "prebuilt"

    def archive_name(self) -> str:
        """File name the downloaded archive is stored under."""
        url_name = Path(urlparse(self.url).path).name.lower()
        for suffix in _ARCHIVE_SUFFIXES:
            if url_name.endswith(suffix):
                return f"{self.name}-{self.version}{suffix}"
        return f"{self.name}-{self.version}.zip"


DEFAULT_BUNDLE = DependencyBundle(
    url="https://github.com/evernym/indy-android-dependencies/archive/refs/tags/v1.0.2.zip",
)


class BundleFetcher:
    """
    Downloads and unpacks a dependency bundle into a build folder.

    Example:
        >>> fetcher = BundleFetcher(Path("/tmp/android_build"))
        >>> prebuilt = fetcher.ensure(DEFAULT_BUNDLE)
        >>> (prebuilt / "sodium" / "libsodium_arm64").is_dir()
        True
    """

    def __init__(
        self,
        build_folder: Path,
        lock_manager: Optional[LockManager] = None,
        downloader: Callable[..., Path] = download_file,
        max_workers: int = 5,
        timeout: int = 30,
    ):
        """
        Args:
            build_folder: Folder holding downloads and the unpacked bundle
            lock_manager: Optional lock manager (default: lock dir in build folder)
            downloader: Callable with the signature of ``download_file``
            max_workers: Parallelism for unpacking nested archives
            timeout: Socket timeout passed to the downloader
        """
        self.build_folder = Path(build_folder)
        self.downloads_dir = self.build_folder / "downloads"
        self.lock_manager = lock_manager or LockManager(self.build_folder / "lock")
        self.downloader = downloader
        self.max_workers = max_workers
        self.timeout = timeout

    def bundle_dir(self, bundle: DependencyBundle) -> Path:
        return self.build_folder / bundle.name

    def prebuilt_root(self, bundle: DependencyBundle) -> Path:
        return self.bundle_dir(bundle) / bundle.prebuilt_subdir

    def is_present(self, bundle: DependencyBundle) -> bool:
        return self.bundle_dir(bundle).is_dir()

    def ensure(self, bundle: DependencyBundle) -> Path:
        """
        Make sure the bundle is unpacked and return its prebuilt root.

        Performs no network I/O when the bundle directory already exists.

        Raises:
            DownloadError: If fetching the archive fails
            ArchiveExtractionError: If any archive cannot be unpacked
        """
        if self.is_present(bundle):
            logger.info(f"Skipping download, bundle already present: {self.bundle_dir(bundle)}")
            return self.prebuilt_root(bundle)

        with self.lock_manager.bundle_lock(bundle.name):
            # Another process may have finished while we waited
            if self.is_present(bundle):
                logger.info(f"Bundle unpacked by another process: {self.bundle_dir(bundle)}")
                return self.prebuilt_root(bundle)

            start = time.time()
            archive = self.downloader(
                bundle.url,
                self.downloads_dir / bundle.archive_name(),
                expected_sha256=bundle.sha256,
                timeout=self.timeout,
            )
            self._unpack(Path(archive), bundle)
            logger.info(
                f"Dependencies ready in {time.time() - start:.1f}s: {self.bundle_dir(bundle)}"
            )

        return self.prebuilt_root(bundle)

    def _unpack(self, archive: Path, bundle: DependencyBundle) -> None:
        target = self.bundle_dir(bundle)
        staging = target.with_name(target.name + ".partial")
        safe_rmtree(staging, require_prefix=self.build_folder)

        logger.info(f"Extracting {archive.name}")
        extract_archive(archive, staging)

        # Source archives wrap everything in a single top-level directory
        root = staging
        entries = list(staging.iterdir())
        if (
            len(entries) == 1
            and entries[0].is_dir()
            and entries[0].name != bundle.prebuilt_subdir
        ):
            root = entries[0]

        self._unpack_nested(root / bundle.prebuilt_subdir)

        # Promote only a completely unpacked bundle
        if root is staging:
            staging.rename(target)
        else:
            shutil.move(str(root), str(target))
            safe_rmtree(staging, require_prefix=self.build_folder)

    def _unpack_nested(self, prebuilt_root: Path) -> None:
        """Unpack every nested archive into its own directory, in parallel."""
        if not prebuilt_root.is_dir():
            logger.warning(f"Bundle has no prebuilt directory: {prebuilt_root}")
            return

        archives = sorted(prebuilt_root.rglob("*.zip"))
        if not archives:
            return

        logger.debug(f"Unpacking {len(archives)} nested archive(s)")
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(extract_archive, nested, nested.parent): nested
                for nested in archives
            }
            for future in as_completed(futures):
                future.result()
                logger.debug(f"Unpacked {futures[future].name}")
