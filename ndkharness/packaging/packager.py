"""
Distribution packaging for built libraries.

Lays out ``<build_folder>/<library>_<arch>/lib`` (and ``include`` when the
project ships headers) and zips that directory as
``<library>_<platform>_<arch>[_<version>].zip``.
"""

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from ndkharness.build.artifacts import ArtifactKind, BuildArtifact
from ndkharness.core.filesystem import ensure_directory, recursive_copy, safe_rmtree

logger = logging.getLogger(__name__)

PACKAGED_KINDS = (ArtifactKind.SHARED_LIBRARY, ArtifactKind.STATIC_LIBRARY)


def bundle_name(
    library: str, platform: str, architecture: str, version: Optional[str] = None
) -> str:
    """
    Name of the distributable archive.

    Example:
        >>> bundle_name("libnullpay", "android", "arm64", "1.6.0")
        'libnullpay_android_arm64_1.6.0.zip'
    """
    parts = [library, platform, architecture]
    if version:
        parts.append(version)
    return "_".join(parts) + ".zip"


class ArtifactPackager:
    """
    Copies library artifacts into the staging layout and zips them.

    Stateless apart from its configuration; packaging the same artifacts
    twice overwrites the previous layout and archive.
    """

    def __init__(
        self,
        build_folder: Path,
        library: str,
        platform: str = "android",
        output_dir: Optional[Path] = None,
    ):
        self.build_folder = Path(build_folder)
        self.library = library
        self.platform = platform
        self.output_dir = Path(output_dir) if output_dir else self.build_folder

    def staging_dir(self, architecture: str) -> Path:
        return self.build_folder / f"{self.library}_{architecture}"

    def package(
        self,
        architecture: str,
        artifacts: Iterable[BuildArtifact],
        version: Optional[str] = None,
        include_dir: Optional[Path] = None,
    ) -> Path:
        """
        Package the libraries built for one architecture.

        Args:
            architecture: Architecture name used in the layout and archive name
            artifacts: Artifacts from a successful BUILD; test executables are ignored
            version: Optional version suffix for the archive name
            include_dir: Optional header directory copied as ``include``

        Returns:
            Path to the created zip archive

        Raises:
            ValueError: If no library artifact belongs to ``architecture``
        """
        libraries = [
            a for a in artifacts if a.kind in PACKAGED_KINDS and a.architecture == architecture
        ]
        if not libraries:
            raise ValueError(f"No library artifacts to package for {architecture}")

        staging = self.staging_dir(architecture)
        safe_rmtree(staging, require_prefix=self.build_folder)
        lib_dir = ensure_directory(staging / "lib")

        for artifact in libraries:
            shutil.copy2(artifact.path, lib_dir / artifact.name)
            logger.debug(f"Copied {artifact.path} -> {lib_dir}")

        if include_dir is not None:
            include_dir = Path(include_dir)
            if include_dir.is_dir():
                recursive_copy(include_dir, staging / "include")
            else:
                logger.warning(f"Header directory not found, skipping: {include_dir}")

        archive_path = ensure_directory(self.output_dir) / bundle_name(
            self.library, self.platform, architecture, version
        )
        if archive_path.exists():
            archive_path.unlink()

        self._zip_directory(staging, archive_path)
        logger.info(f"Packaged {self.library} for {architecture}: {archive_path}")
        return archive_path

    @staticmethod
    def _zip_directory(source: Path, archive_path: Path) -> None:
        # Entries keep the top-level <library>_<arch>/ directory
        with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for item in sorted(source.rglob("*")):
                arcname = item.relative_to(source.parent).as_posix()
                if item.is_dir():
                    zf.write(item, arcname + "/")
                else:
                    zf.write(item, arcname)
