"""
Standalone NDK toolchain setup.

Each architecture builds against a standalone toolchain generated from the
NDK by ``make_standalone_toolchain.py``. Generation is skipped when the
install directory already exists.
"""

import logging
import platform
import subprocess
import sys
from pathlib import Path

from ndkharness.core.exceptions import ToolchainPathMissing, ToolchainSetupError
from ndkharness.cross.profiles import ArchitectureProfile

logger = logging.getLogger(__name__)


def default_toolchain_prefix(build_folder: Path) -> Path:
    """Host-specific directory holding per-architecture toolchains."""
    host = "darwin" if platform.system() == "Darwin" else "linux"
    return Path(build_folder) / "toolchains" / host


class StandaloneToolchain:
    """
    Creates per-architecture standalone toolchains from an NDK.

    Example:
        >>> toolchains = StandaloneToolchain(ndk_root, Path("/tmp/android_build/toolchains/linux"))
        >>> toolchain_dir = toolchains.ensure(get_profile("arm64"))
    """

    def __init__(self, ndk_root: Path, toolchain_prefix: Path, stl: str = "gnustl"):
        self.ndk_root = Path(ndk_root).expanduser()
        self.toolchain_prefix = Path(toolchain_prefix).expanduser()
        self.stl = stl

    @property
    def generator_script(self) -> Path:
        return self.ndk_root / "build" / "tools" / "make_standalone_toolchain.py"

    def install_dir(self, profile: ArchitectureProfile) -> Path:
        return self.toolchain_prefix / profile.ndk_arch

    def ensure(self, profile: ArchitectureProfile) -> Path:
        """
        Create the standalone toolchain for ``profile`` unless it exists.

        Returns:
            The toolchain install directory

        Raises:
            ToolchainPathMissing: If the NDK generator script is absent
            ToolchainSetupError: If the generator exits non-zero
        """
        install_dir = self.install_dir(profile)
        if install_dir.is_dir():
            logger.debug(f"Standalone toolchain present: {install_dir}")
            return install_dir

        script = self.generator_script
        if not script.exists():
            raise ToolchainPathMissing("ANDROID_NDK_ROOT", script)

        cmd = [
            sys.executable,
            str(script),
            "--arch",
            profile.ndk_arch,
            "--api",
            str(profile.api_level),
            f"--stl={self.stl}",
            "--install-dir",
            str(install_dir),
        ]
        logger.info(f"Creating standalone toolchain for {profile.name} in {install_dir}")
        logger.debug(f"Toolchain command: {' '.join(cmd)}")

        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise ToolchainSetupError(
                f"make_standalone_toolchain.py failed with exit code "
                f"{result.returncode}: {result.stderr.strip()}"
            )
        return install_dir
