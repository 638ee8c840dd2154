"""
Tests for the per-architecture build pipeline.
"""

import zipfile

import pytest

from ndkharness.backends.base import BuildMode
from ndkharness.build.artifacts import ArtifactKind
from ndkharness.config.parser import NdkHarnessConfig
from ndkharness.core.exceptions import (
    CompileFailed,
    MissingDependency,
    NdkHarnessError,
    ToolchainPathMissing,
    UnknownArchitecture,
)
from ndkharness.cross.profiles import get_profile
from ndkharness.deps.resolver import ResolutionSource
from ndkharness.harness.remote import Outcome, RemoteTestHarness
from ndkharness.pipeline import Pipeline
from ndkharness.toolchain.standalone import StandaloneToolchain
from tests.mocks import FakeBackend, FakeBridge


@pytest.fixture
def config(temp_dir):
    return NdkHarnessConfig(build_folder=temp_dir / "build")


@pytest.fixture
def toolchains(temp_dir, make_toolchain):
    for arch in ("arm", "arm64"):
        make_toolchain(temp_dir, get_profile(arch))
    return StandaloneToolchain(temp_dir / "ndk", temp_dir / "toolchains")


def add_dependencies(project_dir, make_dependency, arch):
    make_dependency(project_dir, "openssl", arch)
    make_dependency(project_dir, "libsodium", arch, libs=["libsodium.so"])
    make_dependency(project_dir, "libindy", arch, headers=False, libs=["libindy.so"])


@pytest.fixture
def pipeline(config, project_dir, toolchains):
    return Pipeline(config, project_dir, backend=FakeBackend(), toolchains=toolchains)


class TestCreateContext:
    """Test context creation."""

    def test_unknown_architecture(self, pipeline):
        with pytest.raises(UnknownArchitecture):
            pipeline.create_context("mips")

    def test_cli_overrides_win(self, config, project_dir, toolchains, temp_dir):
        """Test command-line overrides replace config overrides of the same name."""
        config.overrides = {"openssl": temp_dir / "from-config", "libindy": temp_dir / "sdk"}
        pipeline = Pipeline(config, project_dir, toolchains=toolchains)

        ctx = pipeline.create_context("arm", overrides={"openssl": temp_dir / "from-cli"})

        assert ctx.overrides == {
            "openssl": temp_dir / "from-cli",
            "libindy": temp_dir / "sdk",
        }


class TestStages:
    """Test the individual stages."""

    def test_resolve_local(self, pipeline, project_dir, make_dependency):
        add_dependencies(project_dir, make_dependency, "arm64")
        ctx = pipeline.create_context("arm64")

        deps = pipeline.resolve(ctx)

        assert list(deps) == ["openssl", "libsodium", "libindy"]
        assert all(spec.source is ResolutionSource.LOCAL for spec in deps.values())

    def test_resolve_reports_every_missing(self, pipeline, project_dir, make_dependency):
        """Test a partially populated project names every missing dependency."""
        make_dependency(project_dir, "openssl", "arm64")
        ctx = pipeline.create_context("arm64")

        with pytest.raises(MissingDependency) as exc_info:
            pipeline.resolve(ctx)

        assert exc_info.value.names == ["libsodium", "libindy"]

    def test_configure(self, pipeline, project_dir, make_dependency, temp_dir):
        add_dependencies(project_dir, make_dependency, "arm64")
        ctx = pipeline.create_context("arm64")
        pipeline.resolve(ctx)

        env = pipeline.configure(ctx)

        assert ctx.toolchain_dir == temp_dir / "toolchains" / "arm64"
        assert env["TRIPLET"] == "aarch64-linux-android"
        assert "-lsodium" in env["RUSTFLAGS"]

    def test_build_requires_configure(self, pipeline):
        ctx = pipeline.create_context("arm64")

        with pytest.raises(NdkHarnessError, match="configured"):
            pipeline.build(ctx)

    def test_missing_ndk_root(self, config, project_dir, monkeypatch):
        """Test a missing NDK location is a toolchain path error."""
        monkeypatch.delenv("ANDROID_NDK_ROOT", raising=False)
        pipeline = Pipeline(config, project_dir)

        with pytest.raises(ToolchainPathMissing, match="ANDROID_NDK_ROOT"):
            pipeline.toolchains

    def test_ndk_root_from_environment(self, config, project_dir, monkeypatch, temp_dir):
        monkeypatch.setenv("ANDROID_NDK_ROOT", str(temp_dir / "ndk"))
        pipeline = Pipeline(config, project_dir)

        assert pipeline.toolchains.ndk_root == temp_dir / "ndk"
        assert pipeline.toolchains.toolchain_prefix.parent == temp_dir / "build" / "toolchains"


class TestBuildArchitecture:
    """Test a whole build session."""

    def test_build_and_package(self, pipeline, project_dir, make_dependency, temp_dir):
        add_dependencies(project_dir, make_dependency, "arm")
        (project_dir / "include").mkdir()
        (project_dir / "include" / "nullpay.h").write_text("")

        ctx = pipeline.build_architecture("arm", package=True, version="1.0.1")

        assert [a.kind for a in ctx.artifacts] == [
            ArtifactKind.SHARED_LIBRARY,
            ArtifactKind.STATIC_LIBRARY,
        ]
        assert ctx.package_path == temp_dir / "build" / "libnullpay_android_arm_1.0.1.zip"
        with zipfile.ZipFile(ctx.package_path) as zf:
            names = zf.namelist()
        assert "libnullpay_arm/lib/libnullpay.so" in names
        assert "libnullpay_arm/include/nullpay.h" in names

    def test_linker_config_written(self, pipeline, project_dir, make_dependency):
        add_dependencies(project_dir, make_dependency, "arm64")

        ctx = pipeline.build_architecture("arm64")

        config_text = (project_dir / ".cargo" / "config.toml").read_text()
        assert config_text == ctx.env.linker_config

    def test_compile_failure(self, config, project_dir, toolchains, make_dependency):
        add_dependencies(project_dir, make_dependency, "arm64")
        pipeline = Pipeline(
            config, project_dir, backend=FakeBackend(returncode=101), toolchains=toolchains
        )

        with pytest.raises(CompileFailed) as exc_info:
            pipeline.build_architecture("arm64")

        assert "error[E0425]" in exc_info.value.diagnostics


class TestBuildAll:
    """Test sequential multi-architecture builds."""

    def test_builds_in_order(self, pipeline, project_dir, make_dependency):
        for arch in ("arm", "arm64"):
            add_dependencies(project_dir, make_dependency, arch)

        contexts = pipeline.build_all(["arm", "arm64"])

        assert [ctx.architecture for ctx in contexts] == ["arm", "arm64"]
        assert contexts[0].env.triplet != contexts[1].env.triplet

    def test_stops_at_first_failure(self, pipeline, project_dir, make_dependency):
        """Test a failing architecture prevents later ones from building."""
        add_dependencies(project_dir, make_dependency, "arm64")

        with pytest.raises(MissingDependency):
            pipeline.build_all(["arm", "arm64"])

        assert pipeline.runner.backend.calls == []


class TestTestArchitecture:
    """Test compiling and running tests on a device."""

    def test_runs_executables_on_device(
        self, config, project_dir, toolchains, make_dependency, temp_dir
    ):
        add_dependencies(project_dir, make_dependency, "arm64")
        backend = FakeBackend(tests=["nullpay-1a2b", "utils-3c4d"])
        pipeline = Pipeline(config, project_dir, backend=backend, toolchains=toolchains)
        bridge = FakeBridge()
        bridge.script("nullpay-1a2b", "test result: ok\nADB_SUCCESS!\n")
        bridge.script("utils-3c4d", "test result: FAILED\n")

        report = pipeline.test_architecture("arm64", RemoteTestHarness(bridge))

        assert ("compile", BuildMode.TEST_COMPILE_ONLY) in backend.calls
        assert report.outcomes == [Outcome.SUCCESS, Outcome.FAILURE]
        assert report.exit_code(strict=True) == 8

        staged = [local.name for local, _ in bridge.pushed]
        assert staged == [
            "libgnustl_shared.so",
            "libsodium.so",
            "libindy.so",
            "nullpay-1a2b",
            "utils-3c4d",
        ]

    def test_runtime_libraries(self, pipeline, project_dir, make_dependency, temp_dir):
        """Test the STL and every dependency runtime library are staged."""
        add_dependencies(project_dir, make_dependency, "arm64")
        ctx = pipeline.prepare("arm64")

        libraries = pipeline.runtime_libraries(ctx)

        assert libraries[0] == (
            temp_dir / "toolchains" / "arm64" / "aarch64-linux-android" / "lib"
            / "libgnustl_shared.so"
        )
        assert libraries[1:] == [
            project_dir / "libsodium_arm64" / "lib" / "libsodium.so",
            project_dir / "libindy_arm64" / "lib" / "libindy.so",
        ]
