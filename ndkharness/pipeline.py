"""
Build pipeline.

Runs the stages for one architecture in order:

    resolve dependencies -> configure toolchain -> build -> package | test

Multi-architecture builds repeat the whole sequence per architecture, one
after another, each with its own BuildContext.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ndkharness.backends.base import BuildMode, CompileBackend
from ndkharness.build.artifacts import ArtifactKind, BuildArtifact
from ndkharness.build.runner import BuildRunner
from ndkharness.config.parser import NdkHarnessConfig
from ndkharness.core.context import BuildContext
from ndkharness.core.exceptions import NdkHarnessError, ToolchainPathMissing
from ndkharness.core.locking import LockManager
from ndkharness.cross.profiles import SUPPORTED_ARCHITECTURES, get_profile
from ndkharness.deps.bundle import BundleFetcher
from ndkharness.deps.definitions import DependencyDefinition, lookup_definitions
from ndkharness.deps.resolver import DependencyResolver, DependencySpec
from ndkharness.harness.remote import HarnessReport, RemoteTestHarness
from ndkharness.packaging.packager import ArtifactPackager
from ndkharness.toolchain.configurator import (
    STL_LIBRARY,
    ToolchainEnvironment,
    configure_toolchain,
)
from ndkharness.toolchain.standalone import StandaloneToolchain, default_toolchain_prefix

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Orchestrates the build stages for a project.

    Example:
        >>> pipeline = Pipeline(config, Path("."))
        >>> ctx = pipeline.build_architecture("arm64", package=True)
        >>> ctx.package_path
        PosixPath('/tmp/android_build/libnullpay_android_arm64.zip')
    """

    def __init__(
        self,
        config: NdkHarnessConfig,
        project_dir: Path,
        backend: Optional[CompileBackend] = None,
        lock_manager: Optional[LockManager] = None,
        fetcher: Optional[BundleFetcher] = None,
        toolchains: Optional[StandaloneToolchain] = None,
    ):
        self.config = config
        self.project_dir = Path(project_dir).resolve()
        self.build_folder = Path(config.build_folder)
        self.lock_manager = lock_manager
        self.runner = BuildRunner(self.project_dir, config.library, backend)
        self._fetcher = fetcher
        self._toolchains = toolchains

    # ------------------------------------------------------------------
    # Lazily constructed collaborators
    # ------------------------------------------------------------------

    @property
    def fetcher(self) -> BundleFetcher:
        if self._fetcher is None:
            self._fetcher = BundleFetcher(
                self.build_folder,
                lock_manager=self.lock_manager,
                timeout=self.config.download_timeout,
            )
        return self._fetcher

    @property
    def toolchains(self) -> StandaloneToolchain:
        if self._toolchains is None:
            ndk_root = self.config.ndk_root or os.environ.get("ANDROID_NDK_ROOT")
            if not ndk_root:
                raise ToolchainPathMissing("ANDROID_NDK_ROOT")
            prefix = self.config.toolchain_prefix or default_toolchain_prefix(self.build_folder)
            self._toolchains = StandaloneToolchain(Path(ndk_root), Path(prefix))
        return self._toolchains

    def definitions(self) -> List[DependencyDefinition]:
        return lookup_definitions(self.config.dependencies, self.config.definitions)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def create_context(
        self,
        architecture: str,
        download_all: bool = False,
        overrides: Optional[Dict[str, Path]] = None,
    ) -> BuildContext:
        """
        Start a build session for ``architecture``.

        CLI overrides take precedence over overrides from the config file.

        Raises:
            UnknownArchitecture: If ``architecture`` has no profile
        """
        merged = dict(self.config.overrides)
        merged.update(overrides or {})
        return BuildContext(
            profile=get_profile(architecture),
            project_dir=self.project_dir,
            build_folder=self.build_folder,
            download_all=download_all,
            overrides=merged,
        )

    def resolve(self, ctx: BuildContext) -> Dict[str, DependencySpec]:
        resolver = DependencyResolver(
            ctx.profile,
            search_root=ctx.project_dir,
            download_all=ctx.download_all,
            overrides=ctx.overrides,
            fetcher=self.fetcher if ctx.download_all else None,
            bundle=self.config.bundle,
        )
        ctx.dependencies = resolver.resolve_all(self.definitions())
        return ctx.dependencies

    def configure(self, ctx: BuildContext) -> ToolchainEnvironment:
        ctx.toolchain_dir = self.toolchains.ensure(ctx.profile)
        ctx.env = configure_toolchain(ctx.profile, ctx.dependencies, ctx.toolchain_dir)
        return ctx.env

    def build(self, ctx: BuildContext, mode: BuildMode = BuildMode.BUILD) -> List[BuildArtifact]:
        if ctx.env is None:
            raise NdkHarnessError("Toolchain must be configured before building")
        ctx.artifacts = self.runner.run(ctx.env, mode)
        return ctx.artifacts

    def package(self, ctx: BuildContext, version: Optional[str] = None) -> Path:
        packager = ArtifactPackager(
            self.build_folder, self.config.library, self.config.platform
        )
        include_dir = self.config.include_dir
        if include_dir is None and (ctx.project_dir / "include").is_dir():
            include_dir = ctx.project_dir / "include"
        ctx.package_path = packager.package(
            ctx.architecture, ctx.artifacts, version=version, include_dir=include_dir
        )
        return ctx.package_path

    def runtime_libraries(self, ctx: BuildContext) -> List[Path]:
        """Shared objects test executables need on the device."""
        if ctx.env is None:
            raise NdkHarnessError("Toolchain must be configured first")
        libraries = [Path(ctx.env["STL_LIB_DIR"]) / f"lib{STL_LIBRARY}.so"]
        for spec in ctx.dependencies.values():
            libraries.extend(spec.lib_dir / name for name in spec.definition.runtime_libs)
        return libraries

    def run_tests(
        self, ctx: BuildContext, harness: RemoteTestHarness, serial: Optional[str] = None
    ) -> HarnessReport:
        executables = [a.path for a in ctx.artifacts_of(ArtifactKind.TEST_EXECUTABLE)]
        return harness.run(executables, self.runtime_libraries(ctx), serial=serial)

    # ------------------------------------------------------------------
    # Whole-session helpers
    # ------------------------------------------------------------------

    def prepare(
        self,
        architecture: str,
        download_all: bool = False,
        overrides: Optional[Dict[str, Path]] = None,
    ) -> BuildContext:
        """Create a context and run the resolve and configure stages."""
        ctx = self.create_context(architecture, download_all, overrides)
        self.resolve(ctx)
        self.configure(ctx)
        return ctx

    def build_architecture(
        self,
        architecture: str,
        download_all: bool = False,
        overrides: Optional[Dict[str, Path]] = None,
        package: bool = False,
        version: Optional[str] = None,
    ) -> BuildContext:
        ctx = self.prepare(architecture, download_all, overrides)
        self.build(ctx, BuildMode.BUILD)
        if package:
            self.package(ctx, version)
        return ctx

    def build_all(
        self,
        architectures: Optional[Sequence[str]] = None,
        download_all: bool = False,
        package: bool = False,
        version: Optional[str] = None,
    ) -> List[BuildContext]:
        """
        Build each architecture in turn; the first failure stops the loop.
        """
        architectures = list(architectures or SUPPORTED_ARCHITECTURES)
        contexts = []
        for index, architecture in enumerate(architectures, start=1):
            logger.info(f"[{index}/{len(architectures)}] {architecture}")
            contexts.append(
                self.build_architecture(
                    architecture, download_all=download_all, package=package, version=version
                )
            )
        return contexts

    def test_architecture(
        self,
        architecture: str,
        harness: RemoteTestHarness,
        download_all: bool = False,
        overrides: Optional[Dict[str, Path]] = None,
        serial: Optional[str] = None,
    ) -> HarnessReport:
        ctx = self.prepare(architecture, download_all, overrides)
        self.build(ctx, BuildMode.TEST_COMPILE_ONLY)
        return self.run_tests(ctx, harness, serial=serial)
