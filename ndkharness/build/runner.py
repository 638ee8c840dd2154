"""
Single-architecture build runner.

Drives one compile for one architecture under an already-computed
ToolchainEnvironment and collects what it produced. Nothing is promoted to
the caller unless the compile succeeded and every expected file exists.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ndkharness.backends.base import BuildMode, CompileBackend, CompileResult
from ndkharness.backends.cargo import CargoBackend
from ndkharness.build.artifacts import ArtifactKind, BuildArtifact
from ndkharness.core.exceptions import CompileFailed
from ndkharness.core.filesystem import ensure_directory, safe_rmtree
from ndkharness.toolchain.configurator import ToolchainEnvironment

logger = logging.getLogger(__name__)

LINKER_CONFIG_PATH = Path(".cargo") / "config.toml"


def library_file_stem(library_name: str) -> str:
    """``libnullpay`` and ``nullpay`` both map to ``libnullpay``."""
    return library_name if library_name.startswith("lib") else f"lib{library_name}"


class BuildRunner:
    """
    Runs the compile capability for one architecture at a time.

    Example:
        >>> runner = BuildRunner(Path("."), "libnullpay")
        >>> artifacts = runner.run(env, BuildMode.BUILD)
    """

    def __init__(
        self,
        project_dir: Path,
        library_name: str,
        backend: Optional[CompileBackend] = None,
    ):
        self.project_dir = Path(project_dir).resolve()
        self.library_name = library_name
        self.backend = backend or CargoBackend()

    def target_dir(self, env: ToolchainEnvironment) -> Path:
        return self.project_dir / "target" / env.triplet

    def output_dir(self, env: ToolchainEnvironment) -> Path:
        return self.target_dir(env) / "release"

    def run(
        self, env: ToolchainEnvironment, mode: BuildMode = BuildMode.BUILD
    ) -> List[BuildArtifact]:
        """
        Compile for ``env.architecture``.

        Args:
            env: Toolchain environment for the architecture
            mode: BUILD for libraries, TEST_COMPILE_ONLY for test executables

        Returns:
            Artifacts produced by this compile

        Raises:
            CompileFailed: If the compile exits non-zero or an expected
                artifact is missing afterwards
        """
        logger.info(f"Building {self.library_name} for {env.architecture} ({mode.value})")

        self.clear_intermediate_state(env)
        self.write_linker_config(env)

        result = self.backend.compile(self.project_dir, env, mode)
        if result.returncode != 0:
            logger.error(f"Compile for {env.architecture} exited with {result.returncode}")
            raise CompileFailed(env.architecture, result.diagnostics)

        if mode is BuildMode.TEST_COMPILE_ONLY:
            artifacts = self._collect_test_executables(env, result)
        else:
            artifacts = self._collect_libraries(env, result)

        for artifact in artifacts:
            logger.info(f"Produced {artifact.kind.value}: {artifact.path}")
        return artifacts

    def clear_intermediate_state(self, env: ToolchainEnvironment) -> None:
        """Remove ``target/<triplet>`` and ask the backend to clean."""
        target_dir = self.target_dir(env)
        logger.debug(f"Clearing {target_dir}")
        safe_rmtree(target_dir, require_prefix=self.project_dir)
        self.backend.clean(self.project_dir, env)

    def write_linker_config(self, env: ToolchainEnvironment) -> Path:
        config_path = self.project_dir / LINKER_CONFIG_PATH
        ensure_directory(config_path.parent)
        config_path.write_text(env.linker_config)
        logger.debug(f"Wrote linker config to {config_path}")
        return config_path

    def _collect_libraries(
        self, env: ToolchainEnvironment, result: CompileResult
    ) -> List[BuildArtifact]:
        stem = library_file_stem(self.library_name)
        output_dir = self.output_dir(env)
        expected = [
            (ArtifactKind.SHARED_LIBRARY, output_dir / f"{stem}.so"),
            (ArtifactKind.STATIC_LIBRARY, output_dir / f"{stem}.a"),
        ]

        missing = [str(path) for _, path in expected if not path.is_file()]
        if missing:
            raise CompileFailed(
                env.architecture,
                f"Compile reported success but artifacts are missing: {', '.join(missing)}",
            )

        return [
            BuildArtifact.from_path(env.architecture, kind, path) for kind, path in expected
        ]

    def _collect_test_executables(
        self, env: ToolchainEnvironment, result: CompileResult
    ) -> List[BuildArtifact]:
        if not result.test_executables:
            raise CompileFailed(
                env.architecture, "Compile reported success but produced no test executables"
            )

        artifacts = []
        for path in result.test_executables:
            path = Path(path)
            if not path.is_absolute():
                path = self.project_dir / path
            if not path.is_file():
                raise CompileFailed(
                    env.architecture, f"Reported test executable is missing: {path}"
                )
            artifacts.append(
                BuildArtifact.from_path(env.architecture, ArtifactKind.TEST_EXECUTABLE, path)
            )
        return artifacts
