"""
Centralized exception hierarchy for ndkharness.

Every failure that terminates a pipeline stage is represented here. Each
exception carries the structured fields an operator needs for diagnosis and
the process exit code the CLI reports for it.
"""

from pathlib import Path
from typing import List, Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class NdkHarnessError(Exception):
    """Base exception for all ndkharness errors."""

    exit_code = 1


class ConfigError(NdkHarnessError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Profile / Resolution Exceptions
# ============================================================================


class UnknownArchitecture(NdkHarnessError):
    """Raised when an architecture name is not in the enumerated profile set."""

    exit_code = 2

    def __init__(self, architecture: str, supported: Sequence[str] = ()):
        self.architecture = architecture
        self.supported = list(supported)
        msg = f"Unknown architecture: {architecture}"
        if self.supported:
            msg += f". Supported architectures: {', '.join(self.supported)}"
        super().__init__(msg)


class MissingDependency(NdkHarnessError):
    """
    Raised when one or more dependencies cannot be resolved.

    Attributes:
        names: Logical names of every unresolved dependency
        suggested_paths: Paths that were tried, keyed by dependency name
    """

    exit_code = 3

    def __init__(self, names: Sequence[str], suggested_paths: dict):
        self.names = list(names)
        self.suggested_paths = {
            name: [str(p) for p in paths] for name, paths in suggested_paths.items()
        }
        lines = [f"Missing dependencies: {', '.join(self.names)}"]
        for name in self.names:
            tried = self.suggested_paths.get(name, [])
            if tried:
                lines.append(f"  {name}: tried {', '.join(tried)}")
            lines.append(
                f"  set --dep {name}=<path> or provide a directory named "
                f"{name}_<arch>"
            )
        super().__init__("\n".join(lines))


# ============================================================================
# Toolchain / Build Exceptions
# ============================================================================


class ToolchainPathMissing(NdkHarnessError):
    """Raised when a path to be embedded in the toolchain environment is absent."""

    exit_code = 4

    def __init__(self, field: str, path: Optional[Path] = None):
        self.field = field
        self.path = path
        msg = f"Toolchain path missing for {field}"
        if path is not None:
            msg += f": {path}"
        super().__init__(msg)


class ToolchainSetupError(NdkHarnessError):
    """Raised when the standalone toolchain cannot be created."""

    exit_code = 4


class CompileFailed(NdkHarnessError):
    """Raised when the compile capability exits non-zero or produces nothing."""

    exit_code = 5

    def __init__(self, architecture: str, diagnostics: str = ""):
        self.architecture = architecture
        self.diagnostics = diagnostics
        msg = f"Compilation failed for {architecture}"
        if diagnostics:
            msg += f"\n{diagnostics.strip()[-2000:]}"
        super().__init__(msg)


# ============================================================================
# Device / Harness Exceptions
# ============================================================================


class DeviceError(NdkHarnessError):
    """Base exception for device bridge errors."""

    pass


class NoDeviceAttached(DeviceError):
    """Raised when no single device/emulator session is available."""

    exit_code = 6

    def __init__(self, message: str = "No device or emulator attached", devices: Optional[List[str]] = None):
        self.devices = list(devices or [])
        super().__init__(message)


class StagingFailed(DeviceError):
    """Raised when pushing a file to the device fails."""

    exit_code = 7

    def __init__(self, local_path: Path, remote_path: str, reason: str = ""):
        self.local_path = Path(local_path)
        self.remote_path = remote_path
        self.reason = reason
        msg = f"Failed to stage {local_path} -> {remote_path}"
        if reason:
            msg += f": {reason.strip()}"
        super().__init__(msg)


class RemoteExecutionInconclusive(DeviceError):
    """
    Sentinel absent and no diagnostic captured.

    The device most likely crashed or lost connectivity mid-run. Recorded on
    the individual remote run rather than raised out of the harness.
    """

    def __init__(self, executable: str, reason: str = ""):
        self.executable = executable
        self.reason = reason
        msg = f"Remote execution of {executable} was inconclusive"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class HarnessStateError(NdkHarnessError):
    """Raised on an illegal remote harness state transition."""

    pass


# ============================================================================
# Download / Filesystem Exceptions
# ============================================================================


class DownloadError(NdkHarnessError):
    """Exception raised when a download fails."""

    pass


class ChecksumError(DownloadError):
    """Exception raised when checksum verification fails."""

    pass


class ArchiveExtractionError(NdkHarnessError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains a member that would escape the destination."""

    pass


class FilesystemError(NdkHarnessError):
    """Base exception for filesystem operations."""

    pass
