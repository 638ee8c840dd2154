"""
Compile backend interface for ndkharness.

This module defines the abstract base class for the compile capability the
build runner drives (e.g., cargo).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List

from ndkharness.toolchain.configurator import ToolchainEnvironment


class BuildMode(Enum):
    """What the compile invocation should produce."""

    BUILD = "build"
    TEST_COMPILE_ONLY = "test-compile-only"


@dataclass
class CompileResult:
    """Outcome of one compile invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    test_executables: List[Path] = field(default_factory=list)

    @property
    def diagnostics(self) -> str:
        return self.stderr or self.stdout


class CompileBackend(ABC):
    """
    Abstract base class for compile backends.

    A backend is architecture-unaware: everything it needs to target one
    architecture comes from the ToolchainEnvironment it is given.
    """

    @abstractmethod
    def clean(self, project_dir: Path, env: ToolchainEnvironment) -> None:
        """
        Remove intermediate build state for the environment's architecture.

        Args:
            project_dir: Root directory of the project
            env: Toolchain environment of the architecture being cleaned
        """
        pass

    @abstractmethod
    def compile(
        self, project_dir: Path, env: ToolchainEnvironment, mode: BuildMode
    ) -> CompileResult:
        """
        Run the compiler once.

        Args:
            project_dir: Root directory of the project
            env: Toolchain environment to run under
            mode: BUILD for release libraries, TEST_COMPILE_ONLY for test binaries

        Returns:
            CompileResult; a non-zero returncode signals failure
        """
        pass
