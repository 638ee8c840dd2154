"""
Unit tests for the exception hierarchy and exit codes.
"""

import pytest

from ndkharness.core.exceptions import (
    CompileFailed,
    ConfigError,
    DeviceError,
    FilesystemError,
    MissingDependency,
    NdkHarnessError,
    NoDeviceAttached,
    RemoteExecutionInconclusive,
    StagingFailed,
    ToolchainPathMissing,
    ToolchainSetupError,
    UnknownArchitecture,
)


class TestExitCodes:
    """Test every terminal error maps to its documented exit code."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (NdkHarnessError("x"), 1),
            (ConfigError("x"), 1),
            (UnknownArchitecture("mips"), 2),
            (MissingDependency(["openssl"], {}), 3),
            (ToolchainPathMissing("CC"), 4),
            (ToolchainSetupError("x"), 4),
            (CompileFailed("arm"), 5),
            (NoDeviceAttached(), 6),
            (StagingFailed("/tmp/a", "/data/local/tmp/a"), 7),
        ],
    )
    def test_exit_code(self, error, code):
        assert error.exit_code == code


class TestMessages:
    """Test diagnostic fields and messages."""

    def test_unknown_architecture_lists_supported(self):
        error = UnknownArchitecture("mips", ["arm", "arm64"])
        assert str(error) == "Unknown architecture: mips. Supported architectures: arm, arm64"
        assert error.architecture == "mips"

    def test_missing_dependency_lists_every_name(self):
        """Test one error names every missing dependency and the paths tried."""
        error = MissingDependency(
            ["openssl", "libsodium"],
            {"openssl": ["/work/openssl_arm"], "libsodium": []},
        )
        message = str(error)
        assert "openssl, libsodium" in message
        assert "/work/openssl_arm" in message
        assert "--dep libsodium=<path>" in message

    def test_toolchain_path_missing(self):
        error = ToolchainPathMissing("SYSROOT", "/ndk/sysroot")
        assert error.field == "SYSROOT"
        assert str(error).endswith("/ndk/sysroot")

    def test_compile_failed_keeps_diagnostics(self):
        error = CompileFailed("arm64", "error[E0425]: cannot find value\n")
        assert error.diagnostics.startswith("error[E0425]")
        assert "error[E0425]" in str(error)

    def test_staging_failed(self):
        error = StagingFailed("/tmp/libindy.so", "/data/local/tmp/libindy.so", "Read-only\n")
        assert str(error).endswith(": Read-only")

    def test_inconclusive_is_device_error(self):
        assert isinstance(RemoteExecutionInconclusive("nullpay-1"), DeviceError)

    def test_filesystem_error_is_harness_error(self):
        """Test filesystem failures are handled like every other harness error."""
        error = FilesystemError("Failed to remove directory '/work/target'")
        assert isinstance(error, NdkHarnessError)
        assert error.exit_code == 1
