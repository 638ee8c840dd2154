"""
Tests for the cross-compilation environment configurator.
"""

import os

import pytest

from ndkharness.core.exceptions import ToolchainPathMissing
from ndkharness.cross.profiles import get_profile
from ndkharness.deps.definitions import lookup_definitions
from ndkharness.deps.resolver import DependencyResolver
from ndkharness.toolchain.configurator import (
    CROSS_FLAGS,
    configure_toolchain,
    generate_linker_config,
)


@pytest.fixture
def arm64_setup(temp_dir, make_dependency, make_toolchain):
    """Resolved dependencies and a toolchain tree for arm64."""
    profile = get_profile("arm64")
    deps_root = temp_dir / "deps"
    make_dependency(deps_root, "openssl", "arm64")
    make_dependency(deps_root, "libsodium", "arm64", libs=["libsodium.so"])
    make_dependency(deps_root, "libindy", "arm64", headers=False, libs=["libindy.so"])
    resolved = DependencyResolver(profile, deps_root).resolve_all(
        lookup_definitions(["openssl", "libsodium", "libindy"])
    )
    toolchain = make_toolchain(temp_dir, profile)
    return profile, resolved, toolchain


class TestConfigureToolchain:
    """Test environment derivation."""

    def test_tool_paths(self, arm64_setup):
        """Test compiler tools use the toolchain triplet prefix."""
        profile, resolved, toolchain = arm64_setup

        env = configure_toolchain(profile, resolved, toolchain)

        assert env["CC"] == str(toolchain / "bin" / "aarch64-linux-android-clang")
        assert env["CXX"] == str(toolchain / "bin" / "aarch64-linux-android-clang++")
        assert env["AR"] == str(toolchain / "bin" / "aarch64-linux-android-ar")
        assert env["RANLIB"].endswith("aarch64-linux-android-ranlib")
        assert env["TRIPLET"] == "aarch64-linux-android"
        assert env["TARGET_API"] == "21"

    def test_dependency_variables(self, arm64_setup, temp_dir):
        """Test each dependency exports its directory variables."""
        profile, resolved, toolchain = arm64_setup

        env = configure_toolchain(profile, resolved, toolchain)

        assert env["OPENSSL_DIR"] == str(temp_dir / "deps" / "openssl_arm64")
        assert env["OPENSSL_INCLUDE_DIR"].endswith("include")
        assert env["SODIUM_LIB_DIR"] == str(temp_dir / "deps" / "libsodium_arm64" / "lib")
        assert env.get("LIBINDY_INCLUDE_DIR") is None

    def test_rustflags(self, arm64_setup):
        """Test RUSTFLAGS carries search paths and libraries in link order."""
        profile, resolved, toolchain = arm64_setup

        env = configure_toolchain(profile, resolved, toolchain)
        flags = env["RUSTFLAGS"].split()

        assert flags[0] == f"-L{toolchain / 'sysroot' / 'usr' / 'lib'}"
        assert flags[1] == "-lz"
        assert "-lsodium" in flags
        assert "-lindy" in flags
        assert flags[-1] == "-lgnustl_shared"

    def test_cross_flags_present(self, arm64_setup):
        """Test the fixed cross-compilation switches are set."""
        env = configure_toolchain(*arm64_setup)

        for name, value in CROSS_FLAGS:
            assert env[name] == value

    def test_deterministic(self, arm64_setup):
        """Test identical inputs give identical environments."""
        first = configure_toolchain(*arm64_setup)
        second = configure_toolchain(*arm64_setup)

        assert first == second
        assert first.fingerprint() == second.fingerprint()

    def test_x86_64_uses_lib64(self, temp_dir, make_toolchain):
        """Test x86_64 links against the lib64 sysroot."""
        profile = get_profile("x86_64")
        toolchain = make_toolchain(temp_dir, profile)

        env = configure_toolchain(profile, {}, toolchain)

        assert env["SYSROOT_LIB_DIR"].endswith(os.path.join("usr", "lib64"))
        assert env["STL_LIB_DIR"].endswith(os.path.join("x86_64-linux-android", "lib64"))

    def test_missing_toolchain_dir(self, temp_dir):
        """Test a missing toolchain root names TOOLCHAIN_DIR."""
        with pytest.raises(ToolchainPathMissing) as exc_info:
            configure_toolchain(get_profile("x86"), {}, temp_dir / "missing")

        assert exc_info.value.field == "TOOLCHAIN_DIR"
        assert exc_info.value.exit_code == 4

    def test_missing_compiler(self, temp_dir, make_toolchain):
        """Test a missing compiler binary names the CC field."""
        profile = get_profile("x86")
        toolchain = make_toolchain(temp_dir, profile)
        (toolchain / "bin" / "i686-linux-android-clang").unlink()

        with pytest.raises(ToolchainPathMissing) as exc_info:
            configure_toolchain(profile, {}, toolchain)

        assert exc_info.value.field == "CC"

    def test_missing_dependency_headers(self, arm64_setup, temp_dir):
        """Test a dependency without its include directory is rejected."""
        profile, resolved, toolchain = arm64_setup
        (temp_dir / "deps" / "openssl_arm64" / "include").rmdir()

        with pytest.raises(ToolchainPathMissing) as exc_info:
            configure_toolchain(profile, resolved, toolchain)

        assert exc_info.value.field == "OPENSSL_INCLUDE_DIR"


class TestToolchainEnvironment:
    """Test the immutable environment value."""

    def test_as_environ_does_not_mutate(self, arm64_setup):
        """Test merging leaves the base mapping and os.environ untouched."""
        env = configure_toolchain(*arm64_setup)
        base = {"PATH": "/usr/bin", "HOME": "/home/ci"}

        merged = env.as_environ(base)

        assert base == {"PATH": "/usr/bin", "HOME": "/home/ci"}
        assert merged["HOME"] == "/home/ci"
        assert merged["PATH"].startswith(env.bin_dir + os.pathsep)

    def test_as_dict(self, arm64_setup):
        """Test the variables convert to a plain dict."""
        env = configure_toolchain(*arm64_setup)
        assert env.as_dict()["ABI"] == "arm64-v8a"

    def test_linker_config(self, arm64_setup):
        """Test the linker fragment binds the triplet to its archiver and linker."""
        env = configure_toolchain(*arm64_setup)

        assert env.linker_config.startswith("[target.aarch64-linux-android]")
        assert f'linker = "{env["CC"]}"' in env.linker_config
        assert f'ar = "{env["AR"]}"' in env.linker_config


class TestGenerateLinkerConfig:
    """Test linker config fragment generation."""

    def test_format(self):
        """Test the fragment is a cargo target table."""
        config = generate_linker_config("i686-linux-android", "/tc/ar", "/tc/cc")

        assert config == '[target.i686-linux-android]\nar = "/tc/ar"\nlinker = "/tc/cc"'
