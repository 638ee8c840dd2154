"""
Dependency resolution.

Determines the on-disk location of every third-party library a build needs,
using one precedence chain for all dependencies:

1. explicit override path supplied by the caller
2. conventional local directory ``<dep>_<arch>`` under the search root
3. the downloaded prebuilt bundle (``<bundle>/prebuilt/<group>/<dep>_<arch>``)

In *download all* mode the bundle is fetched before anything else is looked
at; in *local* mode it is never fetched and never consulted. SDK
dependencies only ever resolve through steps 1-2.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ndkharness.core.exceptions import MissingDependency
from ndkharness.cross.profiles import ArchitectureProfile
from ndkharness.deps.bundle import BundleFetcher, DependencyBundle, DEFAULT_BUNDLE
from ndkharness.deps.definitions import DependencyDefinition, DependencyKind

logger = logging.getLogger(__name__)


class ResolutionSource(Enum):
    """Where a dependency path came from."""

    OVERRIDE = "override"
    LOCAL = "local"
    DOWNLOADED = "downloaded"


@dataclass(frozen=True)
class DependencySpec:
    """A dependency resolved for one architecture."""

    name: str
    path: Path
    source: ResolutionSource
    definition: DependencyDefinition

    @property
    def lib_dir(self) -> Path:
        """Library directory (the path itself when it already points at ``lib``)."""
        candidate = self.path / "lib"
        return candidate if candidate.is_dir() else self.path

    @property
    def include_dir(self) -> Path:
        return self.path / "include"


class DependencyResolver:
    """
    Resolve dependencies for one architecture.

    Args:
        profile: Target architecture profile
        search_root: Directory searched for ``<dep>_<arch>`` directories
        download_all: Fetch the prebuilt bundle before resolving
        overrides: Explicit paths keyed by dependency name
        fetcher: Bundle fetcher (required when ``download_all`` is True)
        bundle: Bundle to fetch (default: the upstream indy dependency bundle)
    """

    def __init__(
        self,
        profile: ArchitectureProfile,
        search_root: Path,
        download_all: bool = False,
        overrides: Optional[Mapping[str, Path]] = None,
        fetcher: Optional[BundleFetcher] = None,
        bundle: DependencyBundle = DEFAULT_BUNDLE,
    ):
        if download_all and fetcher is None:
            raise ValueError("download_all requires a bundle fetcher")

        self.profile = profile
        self.search_root = Path(search_root)
        self.download_all = download_all
        self.overrides = {name: Path(p) for name, p in (overrides or {}).items()}
        self.fetcher = fetcher
        self.bundle = bundle

    def resolve_all(
        self, definitions: Sequence[DependencyDefinition]
    ) -> Dict[str, DependencySpec]:
        """
        Resolve every dependency, failing once with all missing names.

        Returns:
            Resolved specs keyed by dependency name, in input order

        Raises:
            MissingDependency: If any dependency could not be resolved
            DownloadError: If the bundle download fails in download-all mode
        """
        prebuilt_root = None
        needs_bundle = any(d.kind is DependencyKind.PREBUILT for d in definitions)
        if self.download_all and needs_bundle:
            prebuilt_root = self.fetcher.ensure(self.bundle)
        elif not self.download_all:
            logger.info(
                "Not downloading prebuilt dependencies. "
                "Dependency locations have to be passed or present locally"
            )

        resolved: Dict[str, DependencySpec] = {}
        missing: Dict[str, List[Path]] = {}

        for definition in definitions:
            spec, tried = self._resolve_one(definition, prebuilt_root)
            if spec is None:
                missing[definition.name] = tried
            else:
                resolved[definition.name] = spec

        if missing:
            raise MissingDependency(list(missing), missing)

        return resolved

    def _resolve_one(
        self, definition: DependencyDefinition, prebuilt_root: Optional[Path]
    ) -> Tuple[Optional[DependencySpec], List[Path]]:
        tried: List[Path] = []
        dir_name = f"{definition.name}_{self.profile.dependency_arch}"

        override = self.overrides.get(definition.name)
        if override is not None:
            path = override.expanduser()
            if not path.is_absolute():
                path = self.search_root / path
            tried.append(path)
            if path.exists():
                return self._make_spec(definition, path, ResolutionSource.OVERRIDE), tried
            logger.warning(f"Override for {definition.name} does not exist: {path}")

        local = self.search_root / dir_name
        tried.append(local)
        if local.is_dir():
            return self._make_spec(definition, local, ResolutionSource.LOCAL), tried

        if definition.kind is DependencyKind.PREBUILT and prebuilt_root is not None:
            group = definition.bundle_group or definition.name
            candidate = prebuilt_root / group / dir_name
            tried.append(candidate)
            if candidate.is_dir():
                return (
                    self._make_spec(definition, candidate, ResolutionSource.DOWNLOADED),
                    tried,
                )

        return None, tried

    def _make_spec(
        self, definition: DependencyDefinition, path: Path, source: ResolutionSource
    ) -> DependencySpec:
        path = path.absolute()
        if definition.kind is DependencyKind.SDK and (path / "lib").is_dir():
            path = path / "lib"
        logger.info(f"Found {definition.name} ({source.value}): {path}")
        return DependencySpec(
            name=definition.name, path=path, source=source, definition=definition
        )
