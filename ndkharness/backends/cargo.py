"""
Cargo compile backend.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import List

from ndkharness.backends.base import BuildMode, CompileBackend, CompileResult
from ndkharness.toolchain.configurator import ToolchainEnvironment

logger = logging.getLogger(__name__)


def parse_test_executables(stdout: str) -> List[Path]:
    """
    Pick test binaries out of ``cargo --message-format=json`` output.

    Only artifacts whose profile is marked as a test are kept, in the order
    cargo reported them, without duplicates.
    """
    executables: List[Path] = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            continue

        profile = message.get("profile") or {}
        if profile.get("test") is not True:
            continue

        for filename in message.get("filenames") or []:
            path = Path(filename)
            if path not in executables:
                executables.append(path)

    return executables


class CargoBackend(CompileBackend):
    """
    Cargo compile backend implementation.
    """

    def __init__(self, cargo: str = "cargo"):
        self.cargo = cargo

    def clean(self, project_dir: Path, env: ToolchainEnvironment) -> None:
        cmd = [self.cargo, "clean", "--target", env.triplet]
        logger.debug(f"Cargo command: {' '.join(cmd)}")
        result = subprocess.run(
            cmd,
            cwd=project_dir,
            env=env.as_environ(),
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            logger.warning(f"cargo clean failed: {result.stderr.strip()}")

    def compile(
        self, project_dir: Path, env: ToolchainEnvironment, mode: BuildMode
    ) -> CompileResult:
        if mode is BuildMode.TEST_COMPILE_ONLY:
            cmd = [
                self.cargo,
                "test",
                f"--target={env.triplet}",
                "--no-run",
                "--message-format=json",
            ]
        else:
            cmd = [self.cargo, "build", "--release", f"--target={env.triplet}"]

        logger.info(f"Running {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                cwd=project_dir,
                env=env.as_environ(),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            logger.error(f"{self.cargo} not found in PATH")
            return CompileResult(returncode=127, stderr=f"{self.cargo} not found in PATH")

        test_executables = []
        if mode is BuildMode.TEST_COMPILE_ONLY and result.returncode == 0:
            test_executables = parse_test_executables(result.stdout)

        return CompileResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            test_executables=test_executables,
        )
